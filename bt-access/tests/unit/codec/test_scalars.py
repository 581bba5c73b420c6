from __future__ import annotations

import struct

from bt_access.codec.scalars import (
    bytes_to_hex_string,
    bytes_to_int,
    bytes_to_short,
    bytes_to_utf8,
    ccc_to_str,
    ellipsize,
    int_to_bytes,
    millis_to_units,
)


def test_native_int_round_trip() -> None:
    for value in (0, 1, -1, 0x12345678, -(2**31), 2**31 - 1):
        assert bytes_to_int(int_to_bytes(value)) == value


def test_native_order_matches_host() -> None:
    assert int_to_bytes(0x01020304) == struct.pack("=i", 0x01020304)
    assert bytes_to_short(struct.pack("=h", -2)) == -2


def test_bytes_to_int_offset() -> None:
    buf = b"\xff\xff" + int_to_bytes(42)
    assert bytes_to_int(buf, 2) == 42


def test_hex_string() -> None:
    assert bytes_to_hex_string(b"\x00\xab\x10") == "00 ab 10"


def test_utf8_failure_is_empty(caplog) -> None:
    assert bytes_to_utf8("héllo".encode("utf-8")) == "héllo"
    assert bytes_to_utf8(b"\xff\xfe") == ""
    assert "UTF8" in caplog.text


def test_millis_to_units() -> None:
    assert millis_to_units(1) == 1
    assert millis_to_units(10) == 16
    assert millis_to_units(1000) == 1600


def test_ccc_to_str() -> None:
    assert ccc_to_str(0) == "NO SUBSCRIPTION"
    assert ccc_to_str(1) == "NOTIFICATION"
    assert ccc_to_str(2) == "INDICATION"
    assert ccc_to_str(3) == "NOTIFICATION|INDICATION"


def test_ellipsize_only_on_release() -> None:
    assert ellipsize("Headphones", release_build=False) == "Headphones"
    assert ellipsize("Headphones", release_build=True) == "H⋯s"
    assert ellipsize("ab", release_build=True) == "ab"
    assert ellipsize(None, release_build=True) is None
