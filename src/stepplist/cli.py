"""``stepplist-parse``: parse a plist file and print it back, indented.

Also runnable as ``python -m stepplist.cli``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import IO, Sequence

from .dynbuf import DynBuf
from .errors import PlistError
from .parser import parse_file
from .writer import object_write_indented

MIN_BUFFER_SIZE = 1 << 16


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepplist-parse",
        description="Parse a text property list and write it to stdout.",
    )
    parser.add_argument("plist_file", metavar="PLIST_FILE",
                        help="property list file to parse")
    parser.add_argument(
        "--indentation", type=int, default=4, metavar="N",
        help="indentation to use when writing the parsed plist; "
             "0 writes it on one line (default: 4)")
    parser.add_argument(
        "--max-size", type=int, default=sys.maxsize, metavar="BYTES",
        help="upper bound for the output buffer (default: unbounded)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log debug diagnostics to stderr")
    return parser


def run(args: argparse.Namespace, out: IO[bytes], err: IO[str]) -> int:
    try:
        obj = parse_file(args.plist_file)
    except PlistError as exc:
        print(f"Failed to parse {args.plist_file!r}: {exc}", file=err)
        return 1

    buf = DynBuf(min(MIN_BUFFER_SIZE, args.max_size), args.max_size)
    try:
        while not object_write_indented(obj, buf, args.indentation, 0):
            if not buf.grow():
                print(f"Failed to write {args.plist_file!r}: output exceeds "
                      f"{args.max_size} bytes", file=err)
                return 1
        out.write(buf.value())
        out.write(b"\n")
    finally:
        obj.unref()
        buf.fini()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.indentation < 0:
        parser.error("--indentation must not be negative")
    if args.max_size <= 0:
        parser.error("--max-size must be positive")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return run(args, sys.stdout.buffer, sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
