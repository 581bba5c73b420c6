"""48-bit hardware address codec.

Addresses travel as exactly 6 bytes in transmission order. Two text forms are
supported: the full uppercase colon-hex form and a redacted form for logs that
keeps only the two least significant octets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from bt_access.errors import DecodeError, DecodeErrorKind

ADDRESS_LEN = 6

NULL_ADDRESS_TEXT = "00:00:00:00:00:00"
REDACTION_MASK = "XX:XX:XX:XX"
LOGGABLE_MASK = "xx:xx:xx:xx"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_SEPARATOR = ":"


@dataclass(frozen=True)
class HardwareAddress:
    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            raise TypeError("HardwareAddress.value must be bytes")
        if len(self.value) != ADDRESS_LEN:
            raise DecodeError(
                DecodeErrorKind.LENGTH_MISMATCH,
                f"hardware address must be {ADDRESS_LEN} bytes, got {len(self.value)}",
                expected=ADDRESS_LEN,
                actual=len(self.value),
            )
        object.__setattr__(self, "value", bytes(self.value))

    def __repr__(self) -> str:
        # Keep full addresses out of logs and tracebacks.
        return f"HardwareAddress({to_redacted_string(self)})"

    def __bytes__(self) -> bytes:
        return self.value


def decode_address(data: Union[bytes, bytearray, memoryview]) -> HardwareAddress:
    buf = bytes(data)
    if len(buf) != ADDRESS_LEN:
        raise DecodeError(
            DecodeErrorKind.LENGTH_MISMATCH,
            f"expected {ADDRESS_LEN} address bytes, got {len(buf)}",
            expected=ADDRESS_LEN,
            actual=len(buf),
        )
    return HardwareAddress(buf)


def encode_address(text: str) -> bytes:
    """Parse colon-hex text into 6 wire bytes.

    Separators are skipped; every other character must belong to a two digit
    hex group.
    """

    if not isinstance(text, str):
        raise TypeError("address text must be a string")

    out = bytearray()
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == _SEPARATOR:
            i += 1
            continue
        pair = text[i : i + 2]
        if len(pair) < 2:
            raise DecodeError(
                DecodeErrorKind.LENGTH_MISMATCH,
                f"dangling hex digit at offset {i} in address text",
                expected=ADDRESS_LEN,
                actual=len(out),
            )
        if pair[0] not in _HEX_DIGITS or pair[1] not in _HEX_DIGITS:
            raise DecodeError(
                DecodeErrorKind.MALFORMED,
                f"non-hex characters {pair!r} at offset {i} in address text",
            )
        out.append(int(pair, 16))
        i += 2

    if len(out) != ADDRESS_LEN:
        raise DecodeError(
            DecodeErrorKind.LENGTH_MISMATCH,
            f"expected {ADDRESS_LEN} hex groups, got {len(out)}",
            expected=ADDRESS_LEN,
            actual=len(out),
        )
    return bytes(out)


def parse_address(text: str) -> HardwareAddress:
    return decode_address(encode_address(text))


def to_display_string(addr: HardwareAddress) -> str:
    return ":".join(f"{b:02X}" for b in addr.value)


def to_redacted_string(addr: Optional[HardwareAddress]) -> str:
    """Loggable form of an address.

    A missing address becomes the all-zero address, never the mask; log
    scrapers rely on that distinction.
    """

    if addr is None:
        return NULL_ADDRESS_TEXT
    return f"{REDACTION_MASK}:{addr.value[4]:02X}:{addr.value[5]:02X}"


def redact_address_text(text: Optional[str]) -> str:
    """Loggable form of a device address string.

    Uses the lowercase device-log mask; the text must be a valid address.
    """

    if text is None:
        return NULL_ADDRESS_TEXT
    addr = parse_address(text)
    return f"{LOGGABLE_MASK}:{addr.value[4]:02X}:{addr.value[5]:02X}"


def addresses_equal(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return str(a).strip().lower() == str(b).strip().lower()
