"""sfv command-line interface.

Usage:
    echo 'sugar, tea;q=0.5' | python3 -m sfv parse --type list
    echo '[[1, []]]' | python3 -m sfv serialize --type list
    echo 'a=1,   b' | python3 -m sfv canon --type dictionary
    python3 -m sfv parse --type item --input header.txt
    python3 -m sfv version

Parsed values are printed in the JSON shape used by the HTTP structured
field test suite (see _json_adapter), and serialize reads the same shape.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import (
    FIELD_TYPES,
    SfvError,
    __version__,
    from_json,
    parse,
    serialize,
    to_json,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sfv",
        description="Structured Field Values for HTTP (RFC 8941 / RFC 9651)",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log what is being done to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── parse ──
    parse_p = sub.add_parser("parse", help="Parse a header value, print JSON")
    # ── serialize ──
    ser_p = sub.add_parser("serialize", help="Serialize JSON to a header value")
    # ── canon ──
    canon_p = sub.add_parser("canon", help="Rewrite a header value in canonical form")

    for p in (parse_p, ser_p, canon_p):
        p.add_argument("--type", "-t", required=True, choices=FIELD_TYPES,
                       dest="field_type", help="Structured field type")
        p.add_argument("--input", "-i", metavar="FILE",
                       help="Read from FILE instead of stdin")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read raw bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("sfv: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _read_field(filepath: Optional[str]) -> bytes:
    # A header value never ends in a line break; the shell's does.
    return _read_input(filepath).rstrip(b"\r\n")


def _cmd_parse(args: argparse.Namespace) -> None:
    raw = _read_field(args.input)
    logger.debug("parsing %d bytes as %s", len(raw), args.field_type)
    tree = parse(raw, args.field_type)
    print(json.dumps(to_json(tree, args.field_type), ensure_ascii=False))


def _cmd_serialize(args: argparse.Namespace) -> None:
    obj = json.loads(_read_input(args.input))
    logger.debug("serializing JSON %s", args.field_type)
    print(serialize(from_json(obj, args.field_type), args.field_type))


def _cmd_canon(args: argparse.Namespace) -> None:
    raw = _read_field(args.input)
    logger.debug("canonicalizing %d bytes as %s", len(raw), args.field_type)
    print(serialize(parse(raw, args.field_type), args.field_type))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"sfv {__version__}")
        return

    try:
        if args.command == "parse":
            _cmd_parse(args)
        elif args.command == "serialize":
            _cmd_serialize(args)
        elif args.command == "canon":
            _cmd_canon(args)
    except SfvError as e:
        print(f"sfv: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except json.JSONDecodeError as e:
        print(f"sfv: JSON parse error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
