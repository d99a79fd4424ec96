from bytejson.config import ParserSettings
from bytejson.error import (
    InvalidNumberError,
    MalformedInputError,
    ParserStateError,
    TruncatedInputError,
    UnsupportedEscapeError,
)
from bytejson.machine import advance, feed
from bytejson.model import parse_model, tree_to_model
from bytejson.node import Allocator, ValueNode, allocate, release
from bytejson.parser import ByteParser
from bytejson.render import from_python, render, to_python
from bytejson.types import ErrorPolicy, Kind, Signal, State

__all__ = [
    "Allocator",
    "ByteParser",
    "ErrorPolicy",
    "InvalidNumberError",
    "Kind",
    "MalformedInputError",
    "ParserSettings",
    "ParserStateError",
    "Signal",
    "State",
    "TruncatedInputError",
    "UnsupportedEscapeError",
    "ValueNode",
    "advance",
    "allocate",
    "feed",
    "from_python",
    "parse_model",
    "release",
    "render",
    "to_python",
    "tree_to_model",
]
