import math
from typing import Any, List, Optional, TypeAlias

from bytejson.decoder import encode_text
from bytejson.node import Allocator, ValueNode, allocate, release
from bytejson.types import Kind, State

JsonValue: TypeAlias = (
    "str | int | float | bool | None | dict[str, JsonValue] | list[JsonValue]"
)

_MAX_EXACT_INTEGER = 2**53

_STRING_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def render(node: ValueNode, formatted: bool = True) -> str:
    """
    Serialize a finished tree to JSON text.

    Formatted output puts each object member on its own tab-indented line
    with a tab after the colon, and keeps arrays on one line. Compact output
    carries no whitespace at all.
    """
    parts: List[str] = []
    _render_into(parts, node, formatted, depth=0)
    return "".join(parts)


def _render_into(parts: List[str], node: ValueNode, formatted: bool, depth: int) -> None:
    match node.kind:
        case Kind.OBJECT:
            _render_object(parts, node, formatted, depth)
        case Kind.ARRAY:
            _render_array(parts, node, formatted, depth)
        case Kind.STRING:
            parts.append(render_string(node.text_value or ""))
        case Kind.NUMBER:
            parts.append(render_number(node.number_value))
        case Kind.BOOL:
            parts.append("true" if node.bool_value else "false")
        case Kind.NULL:
            parts.append("null")
        case _:
            raise ValueError("Cannot render a node whose type is not known yet.")


def _render_object(parts: List[str], node: ValueNode, formatted: bool, depth: int) -> None:
    parts.append("{")
    if formatted:
        parts.append("\n")
    for index, child in enumerate(node.children):
        if formatted:
            parts.append("\t" * (depth + 1))
        parts.append(render_string(child.key or ""))
        parts.append(":\t" if formatted else ":")
        _render_into(parts, child, formatted, depth + 1)
        if index < len(node.children) - 1:
            parts.append(",")
        if formatted:
            parts.append("\n")
    if formatted:
        parts.append("\t" * depth)
    parts.append("}")


def _render_array(parts: List[str], node: ValueNode, formatted: bool, depth: int) -> None:
    parts.append("[")
    for index, child in enumerate(node.children):
        if index:
            parts.append(", " if formatted else ",")
        _render_into(parts, child, formatted, depth + 1)
    parts.append("]")


def render_string(text: str) -> str:
    out = ['"']
    for ch in text:
        escaped = _STRING_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def render_number(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        # JSON has no literal for these
        return "null"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    if _is_exact_integer(value):
        return str(int(value))
    return repr(value)


def _is_exact_integer(value: float) -> bool:
    return value.is_integer() and abs(value) < _MAX_EXACT_INTEGER


def to_python(node: ValueNode) -> JsonValue:
    match node.kind:
        case Kind.OBJECT:
            return {child.key or "": to_python(child) for child in node.children}
        case Kind.ARRAY:
            return [to_python(child) for child in node.children]
        case Kind.NUMBER:
            value = node.number_value
            if value is not None and _is_exact_integer(value):
                return int(value)
            return value
        case Kind.UNTYPED:
            raise ValueError("Cannot convert a node whose type is not known yet.")
        case _:
            return node.value


def from_python(value: Any, allocator: Optional[Allocator] = None) -> ValueNode:
    """Build a finished tree out of plain Python data."""
    node = allocate(allocator)
    try:
        _fill(node, value, allocator)
    except (TypeError, ValueError, OverflowError):
        release(node)
        raise
    return node


def _fill(node: ValueNode, value: Any, allocator: Optional[Allocator]) -> None:
    if isinstance(value, dict):
        node.set_kind(Kind.OBJECT)
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Object keys must be str, got {type(key).__name__}.")
            _check_text(key)
            child = from_python(item, allocator)
            child.key = key
            node.children.append(child)
    elif isinstance(value, (list, tuple)):
        node.set_kind(Kind.ARRAY)
        node.children.extend(from_python(item, allocator) for item in value)
    elif isinstance(value, str):
        _check_text(value)
        node.set_kind(Kind.STRING)
        node.text_value = value
    elif isinstance(value, bool):
        node.set_kind(Kind.BOOL)
        node.bool_value = value
    elif isinstance(value, (int, float)):
        number = float(value)
        if not math.isfinite(number):
            raise ValueError(f"JSON numbers must be finite, got {value!r}.")
        node.set_kind(Kind.NUMBER)
        node.number_value = number
    elif value is None:
        node.set_kind(Kind.NULL)
    else:
        raise TypeError(f"Cannot represent {type(value).__name__} as JSON.")
    node.parse_state = State.DONE


def _check_text(text: str) -> None:
    # only surrogates produced by surrogateescape can be written back out
    try:
        encode_text(text)
    except UnicodeEncodeError as e:
        raise ValueError(f"String cannot be written as UTF-8: {text!r}.") from e
