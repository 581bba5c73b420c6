"""128-bit UUID codec.

UUIDs are 16 bytes big-endian on the wire regardless of host byte order: the
most significant 64-bit half first, then the least significant half.
"""

from __future__ import annotations

import struct
import uuid
from typing import List, Sequence, Tuple, Union

from bt_access.errors import DecodeError, DecodeErrorKind

UUID_LEN = 16

_HALVES = struct.Struct(">QQ")
_MASK64 = (1 << 64) - 1


def uuid_from_bits(msb: int, lsb: int) -> uuid.UUID:
    """Build a UUID from its 64-bit halves (signed halves are accepted)."""

    return uuid.UUID(int=((int(msb) & _MASK64) << 64) | (int(lsb) & _MASK64))


def uuid_to_bits(value: uuid.UUID) -> Tuple[int, int]:
    return value.int >> 64, value.int & _MASK64


def encode_uuid(value: uuid.UUID) -> bytes:
    msb, lsb = uuid_to_bits(value)
    return _HALVES.pack(msb, lsb)


def encode_uuids(values: Sequence[uuid.UUID]) -> bytes:
    out = bytearray(len(values) * UUID_LEN)
    for i, value in enumerate(values):
        msb, lsb = uuid_to_bits(value)
        _HALVES.pack_into(out, i * UUID_LEN, msb, lsb)
    return bytes(out)


def decode_uuid(data: Union[bytes, bytearray, memoryview]) -> uuid.UUID:
    buf = bytes(data)
    if len(buf) != UUID_LEN:
        raise DecodeError(
            DecodeErrorKind.LENGTH_MISMATCH,
            f"expected {UUID_LEN} uuid bytes, got {len(buf)}",
            expected=UUID_LEN,
            actual=len(buf),
        )
    msb, lsb = _HALVES.unpack(buf)
    return uuid_from_bits(msb, lsb)


def decode_uuids(data: Union[bytes, bytearray, memoryview]) -> List[uuid.UUID]:
    buf = bytes(data)
    if len(buf) % UUID_LEN:
        raise DecodeError(
            DecodeErrorKind.LENGTH_MISMATCH,
            f"uuid batch length {len(buf)} is not a multiple of {UUID_LEN}",
            expected=(len(buf) // UUID_LEN + 1) * UUID_LEN,
            actual=len(buf),
        )
    return [
        uuid_from_bits(*_HALVES.unpack_from(buf, offset))
        for offset in range(0, len(buf), UUID_LEN)
    ]
