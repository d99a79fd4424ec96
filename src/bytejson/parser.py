import logging
from functools import partial
from typing import (
    AsyncIterable,
    AsyncIterator,
    BinaryIO,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
)

from bytejson.config import ParserSettings
from bytejson.error import MalformedInputError, TruncatedInputError
from bytejson.helpers import is_whitespace
from bytejson.machine import advance
from bytejson.node import Allocator, ValueNode, release
from bytejson.types import ErrorPolicy, Kind, Signal, State

log = logging.getLogger(__name__)

_END_OF_INPUT = ord(" ")


class ByteParser:
    """
    Drives the state machine over a stream of bytes and hands out every
    top-level value as soon as its last byte arrives.

    A top-level number only knows it has ended when the next byte shows up.
    That byte is not part of the number, so it is fed again as the first byte
    of the next value, right before the following byte (or at `close`): `1 2`
    yields two numbers while `1,` yields one and then fails on the comma. When
    the replayed byte fails, the byte that triggered the replay is still fed
    before the error is raised.
    """

    def __init__(self, settings: Optional[ParserSettings] = None) -> None:
        self.settings = settings or ParserSettings()
        self.allocator = Allocator()
        self.offset = 0
        self.errors = 0
        self._node: Optional[ValueNode] = None
        self._replay: Optional[Tuple[int, int]] = None

    @property
    def pending(self) -> Optional[ValueNode]:
        return self._node

    def feed_byte(self, byte: int) -> Optional[ValueNode]:
        try:
            self._flush_replay()
        except MalformedInputError:
            # the replayed terminator failed, `byte` still counts as consumed
            self._consume(byte)
            raise
        return self._consume(byte)

    def feed_chunk(self, data: bytes) -> List[ValueNode]:
        """
        Feed every byte of `data` and return the values finished along the
        way. If a byte is malformed under `ErrorPolicy.RAISE`, the values
        finished before it travel with the error in `MalformedInputError.values`.
        """
        values: List[ValueNode] = []
        try:
            for byte in data:
                value = self.feed_byte(byte)
                if value is not None:
                    values.append(value)
        except MalformedInputError as e:
            e.values = values
            raise
        return values

    def close(self) -> Optional[ValueNode]:
        """
        Signal the end of input. A number still waiting for its delimiter is
        finished and returned; any other unfinished value is malformed.
        """
        self._flush_replay()
        node = self._node
        if node is None:
            return None
        if node.parse_state is State.NUMBER:
            return self._put(_END_OF_INPUT, self.offset, replay=False)
        state = node.parse_state.value
        self._discard()
        self._handle_error(
            TruncatedInputError(
                state, "Input ended before the value was complete.", self.offset
            )
        )
        return None

    def iter_values(self, source: BinaryIO | Iterable[bytes]) -> Iterator[ValueNode]:
        chunks = _read_bytewise(source) if hasattr(source, "read") else source
        for chunk in chunks:
            for byte in chunk:
                value = self.feed_byte(byte)
                if value is not None:
                    yield value
        value = self.close()
        if value is not None:
            yield value

    async def aiter_values(self, source: AsyncIterable[bytes]) -> AsyncIterator[ValueNode]:
        async for chunk in source:
            for byte in chunk:
                value = self.feed_byte(byte)
                if value is not None:
                    yield value
        value = self.close()
        if value is not None:
            yield value

    def _consume(self, byte: int) -> Optional[ValueNode]:
        offset = self.offset
        self.offset += 1
        return self._put(byte, offset)

    def _put(
        self, byte: int, offset: int, replay: bool = True
    ) -> Optional[ValueNode]:
        if self._node is None:
            if self.settings.skip_whitespace and is_whitespace(byte):
                return None
            self._node = self.allocator.allocate()
        node = self._node

        try:
            signal = advance(node, byte)
        except MalformedInputError as e:
            self._discard()
            self._handle_error(e.at_offset(offset))
            return None
        except MemoryError as e:
            state = node.parse_state.value
            self._discard()
            error = MalformedInputError(byte, state, "Allocation failed.", offset)
            error.__cause__ = e
            self._handle_error(error)
            return None

        if signal is Signal.CONTINUE:
            return None

        self._node = None
        if replay and node.kind is Kind.NUMBER:
            self._replay = (byte, offset)
        return node

    def _flush_replay(self) -> None:
        if self._replay is None:
            return
        byte, offset = self._replay
        self._replay = None
        # a single byte never finishes a fresh value, so nothing is returned
        self._put(byte, offset, replay=False)

    def _discard(self) -> None:
        release(self._node)
        self._node = None

    def _handle_error(self, error: MalformedInputError) -> None:
        if self.settings.on_error is ErrorPolicy.RAISE:
            raise error
        self.errors += 1
        log.warning("Skipping malformed input: %s", error)


def _read_bytewise(source: BinaryIO) -> Iterator[bytes]:
    return iter(partial(source.read, 1), b"")
