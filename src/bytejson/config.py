from pydantic import BaseModel, ConfigDict

from bytejson.types import ErrorPolicy


class ParserSettings(BaseModel):
    """
    Driver behaviour for `ByteParser`.

    `on_error` decides what happens to a malformed byte: `RAISE` surfaces a
    `MalformedInputError` carrying the stream offset, `SKIP` logs it, drops
    the partial value and carries on with the next byte. `skip_whitespace`
    ignores whitespace between top-level values; with it off every byte must
    start or continue a value.
    """

    model_config = ConfigDict(frozen=True)

    on_error: ErrorPolicy = ErrorPolicy.RAISE
    skip_whitespace: bool = True
