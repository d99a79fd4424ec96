import math
import re

NUMBER_BYTES = frozenset(b"0123456789.eE-+")
NUMBER_START_BYTES = frozenset(b"0123456789-")
STRUCTURAL_DELIMITERS = frozenset(b",}]")

_NUMBER_LITERAL = re.compile(rb"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


def is_whitespace(byte: int) -> bool:
    # anything at or below space counts, control bytes included
    return byte <= 0x20


def is_number_byte(byte: int) -> bool:
    return byte in NUMBER_BYTES


def is_number_delimiter(byte: int) -> bool:
    return is_whitespace(byte) or byte in STRUCTURAL_DELIMITERS


def parse_number(literal: bytes) -> float:
    if _NUMBER_LITERAL.fullmatch(literal) is None:
        raise ValueError(f"'{literal.decode('ascii')}' is not a valid JSON number")
    value = float(literal.decode("ascii"))
    if math.isinf(value):
        raise ValueError(f"'{literal.decode('ascii')}' is out of range")
    return value


def is_keyword_prefix(scratch: bytes, keyword: bytes) -> bool:
    return keyword.startswith(scratch)
