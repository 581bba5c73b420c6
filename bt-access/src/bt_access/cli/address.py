from __future__ import annotations

import argparse
import sys
import uuid

from bt_access.codec.address import decode_address, parse_address, to_display_string, to_redacted_string
from bt_access.codec.uuids import decode_uuids, encode_uuids
from bt_access.errors import DecodeError


def _hex_bytes(text: str) -> bytes:
    cleaned = "".join(text.split()).replace(":", "")
    try:
        return bytes.fromhex(cleaned)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a hex byte string: {text!r}") from e


def _cmd_display(args: argparse.Namespace) -> int:
    print(to_display_string(decode_address(args.hex)))
    return 0


def _cmd_redact(args: argparse.Namespace) -> int:
    print(to_redacted_string(parse_address(args.address)))
    return 0


def _cmd_uuids(args: argparse.Namespace) -> int:
    if args.decode is not None:
        for value in decode_uuids(args.decode):
            print(value)
    else:
        print(encode_uuids([uuid.UUID(v) for v in args.encode]).hex())
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Hardware address and UUID codec utility.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_display = sub.add_parser("display", help="Format 6 address bytes (hex) as colon-hex text.")
    p_display.add_argument("hex", type=_hex_bytes, help="Address bytes as hex, e.g. 001122AABBCC.")
    p_display.set_defaults(func=_cmd_display)

    p_redact = sub.add_parser("redact", help="Print the log-safe form of an address.")
    p_redact.add_argument("address", help="Colon-hex address, e.g. 00:11:22:AA:BB:CC.")
    p_redact.set_defaults(func=_cmd_redact)

    p_uuids = sub.add_parser("uuids", help="Encode or decode packed 16-byte UUID arrays.")
    group = p_uuids.add_mutually_exclusive_group(required=True)
    group.add_argument("--decode", type=_hex_bytes, default=None, help="Packed UUID bytes as hex.")
    group.add_argument("--encode", nargs="+", default=None, help="UUID strings to pack.")
    p_uuids.set_defaults(func=_cmd_uuids)

    args = parser.parse_args()
    try:
        return int(args.func(args))
    except DecodeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
