from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO

from bytejson.config import ParserSettings
from bytejson.decoder import encode_text
from bytejson.error import MalformedInputError
from bytejson.node import release
from bytejson.parser import ByteParser
from bytejson.render import render
from bytejson.types import ErrorPolicy


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="bytejson",
        description="Parse JSON values one byte at a time and print each finished value",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="File to read instead of standard input",
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Print every value on a single line",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop at the first malformed byte instead of skipping it",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log parser failures in detail",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    settings = ParserSettings(
        on_error=ErrorPolicy.RAISE if args.strict else ErrorPolicy.SKIP
    )
    input_path: Path | None = args.input
    if input_path is None:
        status = run(sys.stdin.buffer, settings, compact=args.compact)
    else:
        with input_path.open("rb") as source:
            status = run(source, settings, compact=args.compact)
    sys.exit(status)


def run(source: BinaryIO, settings: ParserSettings, compact: bool = False) -> int:
    byte_parser = ByteParser(settings)
    out = sys.stdout.buffer
    try:
        for value in byte_parser.iter_values(source):
            out.write(encode_text(render(value, formatted=not compact)) + b"\n")
            out.flush()
            release(value)
    except MalformedInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if byte_parser.errors:
        print(f"Skipped {byte_parser.errors} malformed value(s).", file=sys.stderr)
    return 0


if __name__ == "__main__":
    main()
