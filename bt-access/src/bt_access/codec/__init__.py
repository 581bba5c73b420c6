"""Wire codecs: hardware addresses, UUIDs and native scalar helpers."""

from __future__ import annotations

from bt_access.codec.address import (
    ADDRESS_LEN,
    NULL_ADDRESS_TEXT,
    HardwareAddress,
    decode_address,
    encode_address,
    parse_address,
    redact_address_text,
    to_display_string,
    to_redacted_string,
)
from bt_access.codec.uuids import (
    UUID_LEN,
    decode_uuid,
    decode_uuids,
    encode_uuid,
    encode_uuids,
    uuid_from_bits,
    uuid_to_bits,
)

__all__ = [
    "ADDRESS_LEN",
    "NULL_ADDRESS_TEXT",
    "UUID_LEN",
    "HardwareAddress",
    "decode_address",
    "decode_uuid",
    "decode_uuids",
    "encode_address",
    "encode_uuid",
    "encode_uuids",
    "parse_address",
    "redact_address_text",
    "to_display_string",
    "to_redacted_string",
    "uuid_from_bits",
    "uuid_to_bits",
]
