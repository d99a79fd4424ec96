from enum import Enum


class Kind(Enum):
    UNTYPED = "untyped"
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"


class State(Enum):
    ITEM = "item"
    DONE = "done"
    # containers
    OBJECT_KEY = "object_key"
    OBJECT_KEY_PARSED = "object_key_parsed"
    OBJECT_VALUE = "object_value"
    OBJECT_VALUE_PARSED = "object_value_parsed"
    ARRAY_VALUE = "array_value"
    ARRAY_VALUE_PARSED = "array_value_parsed"
    # scalars
    STRING = "string"
    ESCAPE = "escape"
    NUMBER = "number"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"


class Signal(Enum):
    CONTINUE = "continue"
    COMPLETE = "complete"
    FAIL = "fail"


class ErrorPolicy(Enum):
    RAISE = "raise"
    SKIP = "skip"


KEYWORD_STATES: dict[State, bytes] = {
    State.TRUE: b"true",
    State.FALSE: b"false",
    State.NULL: b"null",
}

VALUE_STATES = {State.OBJECT_VALUE, State.ARRAY_VALUE}
