from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from bytejson.node import ValueNode


class MalformedInputError(Exception):
    def __init__(
        self,
        byte: int | None,
        state: str,
        message: str | None = None,
        offset: int | None = None,
    ) -> None:
        self.byte = byte
        self.state = state
        self.message = message
        self.offset = offset
        # values that finished before the failing byte, owned by whoever catches this
        self.values: List["ValueNode"] = []
        super().__init__(self._format())

    def _format(self) -> str:
        if self.byte is None:
            text = f"Input ended in state '{self.state}'"
        else:
            text = f"Received unexpected byte {describe_byte(self.byte)} in state '{self.state}'"
        if self.offset is not None:
            text += f" at offset {self.offset}"
        if self.message:
            text += f": {self.message}"
        return text

    def at_offset(self, offset: int) -> "MalformedInputError":
        self.offset = offset
        self.args = (self._format(),)
        return self


class UnsupportedEscapeError(MalformedInputError):
    pass


class InvalidNumberError(MalformedInputError):
    pass


class TruncatedInputError(MalformedInputError):
    def __init__(
        self, state: str, message: str | None = None, offset: int | None = None
    ) -> None:
        super().__init__(None, state, message, offset)


class ParserStateError(Exception):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            "Parser used in an invalid state" + (f": {message}" if message else "")
        )


def describe_byte(byte: int) -> str:
    if 0x20 < byte < 0x7F:
        return f"'{chr(byte)}'"
    return f"0x{byte:02x}"
