import logging
from typing import Callable, Dict, List, Optional, Tuple, TypeAlias

from bytejson.decoder import UNICODE_ESCAPE, decode_escape, decode_text
from bytejson.error import (
    InvalidNumberError,
    MalformedInputError,
    ParserStateError,
    UnsupportedEscapeError,
)
from bytejson.helpers import (
    NUMBER_START_BYTES,
    is_keyword_prefix,
    is_number_byte,
    is_number_delimiter,
    is_whitespace,
    parse_number,
)
from bytejson.node import Allocator, ValueNode, allocate, release
from bytejson.types import (
    KEYWORD_STATES,
    VALUE_STATES,
    Kind,
    Signal,
    State,
)

log = logging.getLogger(__name__)

Handler: TypeAlias = Callable[[ValueNode, int], Signal]


def feed(
    node: Optional[ValueNode], byte: int, allocator: Optional[Allocator] = None
) -> Tuple[Optional[ValueNode], Signal]:
    """
    Advance the parse of `node` by a single byte.

    Pass `None` to start a new top-level value; the fresh root is allocated
    from `allocator`. On `Signal.CONTINUE` the same node comes back and must be
    passed in again with the next byte. On `Signal.COMPLETE` the node is the
    finished tree and belongs to the caller. On `Signal.FAIL` the whole tree
    has been released and `None` is returned.
    """
    try:
        if node is None:
            node = allocate(allocator)
        signal = advance(node, byte)
    except (MalformedInputError, MemoryError) as e:
        log.debug("Discarding partial value: %s", e)
        release(node)
        return None, Signal.FAIL
    return node, signal


def advance(root: ValueNode, byte: int) -> Signal:
    """
    Push one byte through the tree rooted at `root` and raise
    `MalformedInputError` if it does not fit. Unlike `feed`, nothing is
    released on failure.
    """
    if root.is_complete:
        raise ParserStateError("Value is already complete, start a new one.")

    frames = _active_frames(root)
    node = frames.pop()
    signal = _HANDLERS[node.parse_state](node, byte)
    while signal is Signal.COMPLETE and frames:
        parent = frames.pop()
        signal = _child_completed(parent, node, byte)
        node = parent
    return signal


def _active_frames(root: ValueNode) -> List[ValueNode]:
    frames = [root]
    node = root
    while (child := _delegate_target(node)) is not None:
        frames.append(child)
        node = child
    return frames


def _delegate_target(node: ValueNode) -> Optional[ValueNode]:
    child = node.current_child
    if child is None:
        return None
    if node.parse_state is State.OBJECT_KEY:
        if child.parse_state in (State.STRING, State.ESCAPE):
            return child
        return None
    if node.parse_state in VALUE_STATES and child.parse_state is not State.ITEM:
        return child
    return None


def _child_completed(parent: ValueNode, child: ValueNode, byte: int) -> Signal:
    if parent.parse_state is State.OBJECT_KEY:
        parent.parse_state = State.OBJECT_KEY_PARSED
        return Signal.CONTINUE

    if parent.parse_state is State.OBJECT_VALUE:
        parent.parse_state = State.OBJECT_VALUE_PARSED
    elif parent.parse_state is State.ARRAY_VALUE:
        parent.parse_state = State.ARRAY_VALUE_PARSED
    else:
        raise ParserStateError(
            f"Child completed while parent is in state '{parent.parse_state.value}'."
        )

    if child.kind is Kind.NUMBER:
        # the number stopped on a byte it does not own, hand it to the container
        return _HANDLERS[parent.parse_state](parent, byte)
    return Signal.CONTINUE


def _complete(node: ValueNode) -> Signal:
    node.parse_state = State.DONE
    return Signal.COMPLETE


def _state_item(node: ValueNode, byte: int) -> Signal:
    if byte == ord("{"):
        node.set_kind(Kind.OBJECT)
        node.parse_state = State.OBJECT_KEY
    elif byte == ord("["):
        node.set_kind(Kind.ARRAY)
        node.parse_state = State.ARRAY_VALUE
    elif byte == ord('"'):
        node.set_kind(Kind.STRING)
        node.parse_state = State.STRING
        node.start_scratch()
    elif byte == ord("t"):
        node.set_kind(Kind.BOOL)
        node.parse_state = State.TRUE
        node.start_scratch(byte)
    elif byte == ord("f"):
        node.set_kind(Kind.BOOL)
        node.parse_state = State.FALSE
        node.start_scratch(byte)
    elif byte == ord("n"):
        node.set_kind(Kind.NULL)
        node.parse_state = State.NULL
        node.start_scratch(byte)
    elif byte in NUMBER_START_BYTES:
        node.set_kind(Kind.NUMBER)
        node.parse_state = State.NUMBER
        node.start_scratch(byte)
    else:
        raise MalformedInputError(
            byte, node.parse_state.value, "Expected the start of a JSON value."
        )
    return Signal.CONTINUE


def _state_object_key(node: ValueNode, byte: int) -> Signal:
    if is_whitespace(byte):
        return Signal.CONTINUE
    if byte == ord("}") and not node.children:
        return _complete(node)
    if byte == ord('"'):
        child = node.current_child
        if child is None:
            child = node.append_child()
        # the key is parsed in the member node itself, its kind stays untyped
        child.parse_state = State.STRING
        child.start_scratch()
        return Signal.CONTINUE
    raise MalformedInputError(
        byte,
        node.parse_state.value,
        "Expected '\"' or JSON whitespace."
        if node.children
        else "Expected '\"', '}' or JSON whitespace.",
    )


def _state_object_key_parsed(node: ValueNode, byte: int) -> Signal:
    if is_whitespace(byte):
        return Signal.CONTINUE
    if byte == ord(":"):
        node.parse_state = State.OBJECT_VALUE
        return Signal.CONTINUE
    raise MalformedInputError(
        byte, node.parse_state.value, "Expected ':' or JSON whitespace."
    )


def _state_value(node: ValueNode, byte: int) -> Signal:
    if is_whitespace(byte):
        return Signal.CONTINUE
    if (
        byte == ord("]")
        and node.parse_state is State.ARRAY_VALUE
        and not node.children
    ):
        return _complete(node)
    child = node.current_child
    if child is None:
        child = node.append_child()
    return _state_item(child, byte)


def _state_value_parsed(node: ValueNode, byte: int) -> Signal:
    is_array = node.parse_state is State.ARRAY_VALUE_PARSED
    closer = ord("]") if is_array else ord("}")
    if is_whitespace(byte):
        return Signal.CONTINUE
    if byte == ord(","):
        node.append_child()
        node.parse_state = State.ARRAY_VALUE if is_array else State.OBJECT_KEY
        return Signal.CONTINUE
    if byte == closer:
        return _complete(node)
    raise MalformedInputError(
        byte,
        node.parse_state.value,
        f"Expected ',', '{chr(closer)}' or JSON whitespace.",
    )


def _state_string(node: ValueNode, byte: int) -> Signal:
    if byte == ord('"'):
        text = decode_text(node.take_scratch())
        if node.kind is Kind.UNTYPED:
            node.key = text
            node.parse_state = State.ITEM
            return Signal.COMPLETE
        node.text_value = text
        return _complete(node)
    if byte == ord("\\"):
        node.parse_state = State.ESCAPE
        return Signal.CONTINUE
    node.scratch.append(byte)
    return Signal.CONTINUE


def _state_escape(node: ValueNode, byte: int) -> Signal:
    literal = decode_escape(byte)
    if literal is None:
        raise UnsupportedEscapeError(
            byte,
            node.parse_state.value,
            "Unicode escapes are not supported."
            if byte == UNICODE_ESCAPE
            else "Unknown escape sequence.",
        )
    node.scratch.append(literal)
    node.parse_state = State.STRING
    return Signal.CONTINUE


def _state_number(node: ValueNode, byte: int) -> Signal:
    if is_number_byte(byte):
        node.scratch.append(byte)
        return Signal.CONTINUE
    if is_number_delimiter(byte):
        try:
            node.number_value = parse_number(node.take_scratch())
        except ValueError as e:
            raise InvalidNumberError(byte, node.parse_state.value, str(e)) from e
        return _complete(node)
    raise InvalidNumberError(
        byte, node.parse_state.value, "Number must be followed by a delimiter."
    )


def _state_keyword(node: ValueNode, byte: int) -> Signal:
    keyword = KEYWORD_STATES[node.parse_state]
    node.scratch.append(byte)
    if not is_keyword_prefix(node.scratch, keyword):
        raise MalformedInputError(
            byte, node.parse_state.value, f"Expected '{keyword.decode()}'."
        )
    if len(node.scratch) < len(keyword):
        return Signal.CONTINUE
    node.take_scratch()
    if node.kind is Kind.BOOL:
        node.bool_value = node.parse_state is State.TRUE
    return _complete(node)


def _state_done(node: ValueNode, byte: int) -> Signal:
    raise ParserStateError("Value is already complete, start a new one.")


_HANDLERS: Dict[State, Handler] = {
    State.ITEM: _state_item,
    State.OBJECT_KEY: _state_object_key,
    State.OBJECT_KEY_PARSED: _state_object_key_parsed,
    State.OBJECT_VALUE: _state_value,
    State.ARRAY_VALUE: _state_value,
    State.OBJECT_VALUE_PARSED: _state_value_parsed,
    State.ARRAY_VALUE_PARSED: _state_value_parsed,
    State.STRING: _state_string,
    State.ESCAPE: _state_escape,
    State.NUMBER: _state_number,
    State.TRUE: _state_keyword,
    State.FALSE: _state_keyword,
    State.NULL: _state_keyword,
    State.DONE: _state_done,
}
