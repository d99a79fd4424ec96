from __future__ import annotations

from typing import List, Optional, TypeAlias

from bytejson.types import Kind, State

Payload: TypeAlias = "str | float | bool | None"


class Allocator:
    """
    Per-parse node accounting. Every node allocated through an allocator is
    counted until `release` reclaims it, so `live` is the number of nodes
    still reachable from trees built with it.
    """

    def __init__(self) -> None:
        self.allocated = 0
        self.released = 0

    @property
    def live(self) -> int:
        return self.allocated - self.released

    def allocate(self) -> ValueNode:
        node = ValueNode(self)
        self.allocated += 1
        return node

    def _reclaim(self) -> None:
        self.released += 1


class ValueNode:
    __slots__ = (
        "kind",
        "key",
        "text_value",
        "number_value",
        "bool_value",
        "children",
        "parse_state",
        "scratch",
        "allocator",
    )

    def __init__(self, allocator: Optional[Allocator] = None) -> None:
        self.kind: Kind = Kind.UNTYPED
        self.key: Optional[str] = None
        self.text_value: Optional[str] = None
        self.number_value: Optional[float] = None
        self.bool_value: Optional[bool] = None
        self.children: List[ValueNode] = []
        self.parse_state: State = State.ITEM
        self.scratch: Optional[bytearray] = None
        self.allocator: Optional[Allocator] = allocator

    @property
    def is_complete(self) -> bool:
        return self.parse_state is State.DONE

    @property
    def current_child(self) -> Optional[ValueNode]:
        if not self.children:
            return None
        return self.children[-1]

    @property
    def value(self) -> Payload:
        match self.kind:
            case Kind.STRING:
                return self.text_value
            case Kind.NUMBER:
                return self.number_value
            case Kind.BOOL:
                return self.bool_value
            case Kind.NULL:
                return None
            case _:
                raise TypeError(f"Node of kind '{self.kind.value}' has no scalar value.")

    def set_kind(self, kind: Kind) -> None:
        if self.kind is not Kind.UNTYPED:
            raise ValueError(
                f"Node kind is already '{self.kind.value}', cannot change it to '{kind.value}'."
            )
        self.kind = kind

    def start_scratch(self, byte: Optional[int] = None) -> bytearray:
        self.scratch = bytearray()
        if byte is not None:
            self.scratch.append(byte)
        return self.scratch

    def take_scratch(self) -> bytes:
        if self.scratch is None:
            raise ValueError("Node has no scratch buffer to finalize.")
        data = bytes(self.scratch)
        self.scratch = None
        return data

    def append_child(self) -> ValueNode:
        child = allocate(self.allocator)
        self.children.append(child)
        return child

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueNode):
            return NotImplemented
        if self.kind is not other.kind or self.key != other.key:
            return False
        if self.kind in (Kind.OBJECT, Kind.ARRAY):
            return self.children == other.children
        if self.kind is Kind.UNTYPED:
            return True
        return self.value == other.value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        prefix = f"{self.key!r}: " if self.key is not None else ""
        if self.kind is Kind.OBJECT:
            body = "{" + ", ".join(repr(c) for c in self.children) + "}"
        elif self.kind is Kind.ARRAY:
            body = "[" + ", ".join(repr(c) for c in self.children) + "]"
        elif self.kind is Kind.UNTYPED or not self.is_complete:
            body = f"<{self.kind.value} {self.parse_state.value}>"
        else:
            body = repr(self.value)
        return f"ValueNode({prefix}{body})"


def allocate(allocator: Optional[Allocator] = None) -> ValueNode:
    if allocator is None:
        return ValueNode()
    return allocator.allocate()


def release(node: Optional[ValueNode]) -> None:
    """Recursively free `node`, its children and every buffer they own."""
    if node is None:
        return
    stack = [node]
    while stack:
        current = stack.pop()
        stack.extend(current.children)
        current.children = []
        current.scratch = None
        current.text_value = None
        current.key = None
        if current.allocator is not None:
            current.allocator._reclaim()
            current.allocator = None
