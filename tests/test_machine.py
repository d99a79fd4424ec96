import math
from typing import List, Optional, Tuple

import pytest

from bytejson.error import (
    InvalidNumberError,
    MalformedInputError,
    ParserStateError,
    UnsupportedEscapeError,
)
from bytejson.machine import advance, feed
from bytejson.node import Allocator, ValueNode, allocate
from bytejson.render import to_python
from bytejson.types import Kind, Signal, State


def feed_bytes(
    data: bytes, allocator: Optional[Allocator] = None
) -> Tuple[Optional[ValueNode], List[Signal]]:
    node = None
    signals: List[Signal] = []
    for byte in data:
        node, signal = feed(node, byte, allocator)
        signals.append(signal)
        if signal is not Signal.CONTINUE:
            break
    return node, signals


# fmt: off
parse_prefix__params = [
    (b"{", Kind.OBJECT, State.OBJECT_KEY),
    (b"{ \t\n", Kind.OBJECT, State.OBJECT_KEY),
    (b'{"', Kind.OBJECT, State.OBJECT_KEY),
    (b'{"ke', Kind.OBJECT, State.OBJECT_KEY),
    (b'{"key"', Kind.OBJECT, State.OBJECT_KEY_PARSED),
    (b'{"key" ', Kind.OBJECT, State.OBJECT_KEY_PARSED),
    (b'{"key":', Kind.OBJECT, State.OBJECT_VALUE),
    (b'{"key": ', Kind.OBJECT, State.OBJECT_VALUE),
    (b'{"key": 1', Kind.OBJECT, State.OBJECT_VALUE),
    (b'{"key": 12 ', Kind.OBJECT, State.OBJECT_VALUE_PARSED),
    (b'{"key": 12,', Kind.OBJECT, State.OBJECT_KEY),
    (b'{"key": 12, "other": "va', Kind.OBJECT, State.OBJECT_VALUE),
    (b'{"key": 12, "other": "val"', Kind.OBJECT, State.OBJECT_VALUE_PARSED),
    (b"[", Kind.ARRAY, State.ARRAY_VALUE),
    (b"[ ", Kind.ARRAY, State.ARRAY_VALUE),
    (b"[t", Kind.ARRAY, State.ARRAY_VALUE),
    (b"[true", Kind.ARRAY, State.ARRAY_VALUE_PARSED),
    (b"[true,", Kind.ARRAY, State.ARRAY_VALUE),
    (b"[true, [", Kind.ARRAY, State.ARRAY_VALUE),
    (b"[true, []", Kind.ARRAY, State.ARRAY_VALUE_PARSED),
    (b'"', Kind.STRING, State.STRING),
    (b'"ab', Kind.STRING, State.STRING),
    (b'"ab\\', Kind.STRING, State.ESCAPE),
    (b'"ab\\n', Kind.STRING, State.STRING),
    (b"-", Kind.NUMBER, State.NUMBER),
    (b"-1.5e+", Kind.NUMBER, State.NUMBER),
    (b"t", Kind.BOOL, State.TRUE),
    (b"fal", Kind.BOOL, State.FALSE),
    (b"nul", Kind.NULL, State.NULL),
]
# fmt: on


@pytest.mark.parametrize("prefix,kind,state", parse_prefix__params)
def test_feed__prefix__assert_state(prefix: bytes, kind: Kind, state: State):
    node, signals = feed_bytes(prefix)

    assert signals == [Signal.CONTINUE] * len(prefix)
    assert node is not None
    assert node.kind is kind
    assert node.parse_state is state


# fmt: off
parse_complete__params = [
    (b"{}", {}),
    (b"{ }", {}),
    (b"[]", []),
    (b"[ \n ]", []),
    (b'""', ""),
    (b'"hello world"', "hello world"),
    (b"true", True),
    (b"false", False),
    (b"null", None),
    (b"[1, 2.5, -3]", [1, 2.5, -3]),
    (b"[1,2,3]", [1, 2, 3]),
    (b"[1 , 2 ]", [1, 2]),
    (b'{"a":1}', {"a": 1}),
    (b'{"a": 1 }', {"a": 1}),
    (b'{"a":1,"b":[true,false,null]}', {"a": 1, "b": [True, False, None]}),
    (b'{"a": {"b": {"c": "d"}}}', {"a": {"b": {"c": "d"}}}),
    (b'{"a": [1]}', {"a": [1]}),
    (b'{"a": [[1], [2, [3]]]}', {"a": [[1], [2, [3]]]}),
    (b"[[[]], {}]", [[[]], {}]),
    (b'[{"x": 1}, {"x": 2.25}]', [{"x": 1}, {"x": 2.25}]),
    (b'["a b", " c ", "\\t"]', ["a b", " c ", "\t"]),
    (b'{"k e y": "v a l"}', {"k e y": "v a l"}),
    (b'{"": 0}', {"": 0}),
    (b'{"a\\"b": null}', {'a"b': None}),
]
# fmt: on


@pytest.mark.parametrize("data,expected", parse_complete__params)
def test_feed__complete_on_last_byte(data: bytes, expected):
    node, signals = feed_bytes(data)

    assert len(signals) == len(data)

    assert signals[:-1] == [Signal.CONTINUE] * (len(signals) - 1)
    assert signals[-1] is Signal.COMPLETE
    assert node is not None
    assert node.is_complete
    assert to_python(node) == expected


def test_feed__object_scenario():
    node, signals = feed_bytes(b'{"a":1,"b":[true,false,null]}')

    assert signals[-1] is Signal.COMPLETE
    assert node.kind is Kind.OBJECT
    assert [child.key for child in node.children] == ["a", "b"]

    a, b = node.children
    assert a.kind is Kind.NUMBER
    assert a.number_value == 1.0
    assert b.kind is Kind.ARRAY
    assert [child.kind for child in b.children] == [Kind.BOOL, Kind.BOOL, Kind.NULL]
    assert [child.value for child in b.children] == [True, False, None]
    assert all(child.key is None for child in b.children)


def test_feed__member_key_leaves_kind_untyped():
    node, _ = feed_bytes(b'{"name"')

    member = node.current_child
    assert member.key == "name"
    assert member.kind is Kind.UNTYPED
    assert member.parse_state is State.ITEM
    assert member.scratch is None


def test_feed__string_member_in_progress():
    node, _ = feed_bytes(b'{"key": "va')

    member = node.current_child
    assert member.key == "key"
    assert member.kind is Kind.STRING
    assert member.parse_state is State.STRING
    assert bytes(member.scratch) == b"va"


def test_feed__scratch_dropped_once_finalized():
    node, _ = feed_bytes(b'["abc", 12, true, null]')

    assert all(child.scratch is None for child in node.children)


def test_feed__duplicate_keys_kept_in_order():
    node, _ = feed_bytes(b'{"a": 1, "a": 2}')

    assert [child.key for child in node.children] == ["a", "a"]
    assert [child.value for child in node.children] == [1.0, 2.0]
    assert to_python(node) == {"a": 2}


# fmt: off
@pytest.mark.parametrize(
    "data,expected",
    [
        (b"-0 ", -0.0),
        (b"1e10 ", 1e10),
        (b"1.5E-3 ", 1.5e-3),
        (b"0 ", 0.0),
        (b"0,", 0.0),
        (b"42]", 42.0),
        (b"7}", 7.0),
        (b"-12.75\n", -12.75),
        (b"2E+2\t", 200.0),
    ],
)
# fmt: on
def test_feed__number_completes_on_delimiter(data: bytes, expected: float):
    node, signals = feed_bytes(data)

    assert signals == [Signal.CONTINUE] * (len(data) - 1) + [Signal.COMPLETE]
    assert node.kind is Kind.NUMBER
    assert node.number_value == expected
    assert math.copysign(1.0, node.number_value) == math.copysign(1.0, expected)


def test_feed__number_without_delimiter_continues():
    node, signals = feed_bytes(b"123")

    assert signals == [Signal.CONTINUE] * 3
    assert node.parse_state is State.NUMBER


@pytest.mark.parametrize(
    "data",
    [
        b"1.2.3 ",
        b"- ",
        b"01 ",
        b"1. ",
        b"1e ",
        b"--1 ",
        b"1e999 ",
        b"1x",
        b"[1.2.3]",
        b'{"a": 01}',
        b"[1a",
    ],
)
def test_feed__invalid_number_fails(data: bytes):
    node, signals = feed_bytes(data)

    assert signals == [Signal.CONTINUE] * (len(data) - 1) + [Signal.FAIL]
    assert node is None


def test_feed__string_escapes():
    node, signals = feed_bytes(b'"a\\"b\\\\c"')

    assert signals[-1] is Signal.COMPLETE
    assert node.text_value == 'a"b\\c'


def test_feed__all_simple_escapes():
    node, _ = feed_bytes(b'"\\b\\f\\n\\r\\t\\/\\"\\\\"')

    assert node.text_value == '\b\f\n\r\t/"\\'


@pytest.mark.parametrize(
    "data,fail_index",
    [
        (b'"\\u0041"', 2),
        (b'"abc\\x"', 5),
        (b'["\\0"]', 3),
        (b'{"\\u0041": 1}', 3),
    ],
)
def test_feed__unsupported_escape_fails(data: bytes, fail_index: int):
    node, signals = feed_bytes(data)

    assert len(signals) == fail_index + 1
    assert signals[-1] is Signal.FAIL
    assert node is None


def test_feed__string_bytes_not_validated():
    node, _ = feed_bytes(b'["caf\xc3\xa9", "\xff"]')

    assert node.children[0].text_value == "café"
    assert node.children[1].text_value == "\udcff"


@pytest.mark.parametrize(
    "data",
    [b"x", b" ", b"\n", b"}", b"]", b",", b":", b"T", b"+", b".", b"'"],
)
def test_feed__first_byte_cannot_start_value(data: bytes):
    node, signal = feed(None, data[0])

    assert signal is Signal.FAIL
    assert node is None


# fmt: off
@pytest.mark.parametrize(
    "data",
    [
        b'{"a" 1}',
        b"{a:1}",
        b"{'a':1}",
        b"{{}",
        b"{1: 2}",
        b"[1,]",
        b'{"a":1,}',
        b"{,}",
        b"[,1]",
        b"[1 2]",
        b'{"a":1]',
        b"[1}",
        b'["a"}',
        b'{"a"::1}',
        b'{"a":1 "b":2}',
        b"tru ",
        b"nul1",
        b"fals3",
        b"[tx]",
        b"[truee]",
        b"nulx",
    ],
)
# fmt: on
def test_feed__malformed_input_fails(data: bytes):
    allocator = Allocator()
    node, signals = feed_bytes(data, allocator)

    assert signals[-1] is Signal.FAIL
    assert all(signal is Signal.CONTINUE for signal in signals[:-1])
    assert node is None
    assert allocator.allocated > 0
    assert allocator.live == 0


@pytest.mark.parametrize(
    "prefix",
    [b"{", b'{"a', b'{"a":', b'{"a": [1, {"b": "c', b"[[[", b'"abc', b"tr", b"-1"],
)
def test_feed__prefix_never_completes(prefix: bytes):
    _, signals = feed_bytes(prefix)

    assert signals == [Signal.CONTINUE] * len(prefix)


def test_feed__complete_tree_accounted_until_released():
    allocator = Allocator()
    node, _ = feed_bytes(b'{"a":1,"b":[true,false,null]}', allocator)

    assert allocator.live == 6


def test_feed__fail_deep_inside_releases_everything():
    allocator = Allocator()
    node, signals = feed_bytes(b'{"a": [1, {"b": [true, "x", {"c": nope}]}]}', allocator)

    assert signals[-1] is Signal.FAIL
    assert node is None
    assert allocator.allocated == 9
    assert allocator.live == 0


def test_feed__completed_node_cannot_be_fed_again():
    node, _ = feed_bytes(b"[]")

    with pytest.raises(ParserStateError):
        feed(node, ord(" "))


def test_feed__memory_error_is_reported_as_failure(monkeypatch: pytest.MonkeyPatch):
    allocator = Allocator()
    node, _ = feed_bytes(b'["abc", ', allocator)

    def exhausted(self):
        raise MemoryError()

    monkeypatch.setattr(Allocator, "allocate", exhausted)
    # the comma already created the next element, so allocation happens on the next comma
    node, signal = feed(node, ord("1"))
    assert signal is Signal.CONTINUE
    node, signal = feed(node, ord(","))
    assert signal is Signal.FAIL
    assert node is None
    assert allocator.live == 0


def test_feed__independent_parses_do_not_share_state():
    first = None
    second = None
    for a, b in zip(b'["left", 1]', b'{"r":"igh"}'):
        first, first_signal = feed(first, a)
        second, second_signal = feed(second, b)

    assert first_signal is Signal.COMPLETE
    assert second_signal is Signal.COMPLETE
    assert to_python(first) == ["left", 1]
    assert to_python(second) == {"r": "igh"}


def test_feed__deep_nesting_does_not_recurse():
    depth = 1500
    node, signals = feed_bytes(b"[" * depth + b"]" * depth)

    assert signals[-1] is Signal.COMPLETE
    levels = 0
    current = node
    while current.children:
        current = current.children[0]
        levels += 1
    assert levels == depth - 1


@pytest.mark.parametrize(
    "data,error_type,byte,state",
    [
        (b"x", MalformedInputError, "x", "item"),
        (b'{"a" 1', MalformedInputError, "1", "object_key_parsed"),
        (b'"\\u', UnsupportedEscapeError, "u", "escape"),
        (b"1.2.3 ", InvalidNumberError, " ", "number"),
        (b"[1,2}", MalformedInputError, "}", "array_value_parsed"),
    ],
)
def test_advance__raises_with_byte_and_state(
    data: bytes, error_type: type, byte: str, state: str
):
    node = allocate()
    with pytest.raises(error_type) as exc_info:
        for b in data:
            advance(node, b)

    assert exc_info.value.byte == ord(byte)
    assert exc_info.value.state == state
