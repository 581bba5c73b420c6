"""Small byte/scalar helpers used around the Bluetooth stack.

Unlike the address and UUID codecs these follow host (native) byte order.
"""

from __future__ import annotations

import logging
import struct
from typing import Optional

logger = logging.getLogger(__name__)

MICROS_PER_UNIT = 625

_NATIVE_INT = struct.Struct("=i")
_NATIVE_SHORT = struct.Struct("=h")


def bytes_to_int(buf: bytes, offset: int = 0) -> int:
    return _NATIVE_INT.unpack_from(buf, offset)[0]


def bytes_to_short(buf: bytes) -> int:
    return _NATIVE_SHORT.unpack_from(buf, 0)[0]


def int_to_bytes(value: int) -> bytes:
    return _NATIVE_INT.pack(value)


def bytes_to_hex_string(buf: bytes) -> str:
    return " ".join(f"{b:02x}" for b in buf)


def bytes_to_utf8(buf: bytes) -> str:
    try:
        return bytes(buf).decode("utf-8")
    except UnicodeDecodeError as e:
        logger.error("Error when parsing byte array to UTF8 String. %s", e)
        return ""


def millis_to_units(milliseconds: int) -> int:
    """Convert milliseconds to 0.625 ms units."""

    return int(milliseconds) * 1000 // MICROS_PER_UNIT


def ccc_to_str(value: int) -> str:
    """Client characteristic configuration descriptor value to text."""

    if value == 0:
        return "NO SUBSCRIPTION"
    parts = []
    if value & 0x1:
        parts.append("NOTIFICATION")
    if value & 0x2:
        parts.append("INDICATION")
    return "|".join(parts)


def ellipsize(text: Optional[str], *, release_build: bool) -> Optional[str]:
    """Shorten names on release builds to first char + ellipsis + last char."""

    if not release_build or text is None:
        return text
    if len(text) < 3:
        return text
    return f"{text[0]}⋯{text[-1]}"
