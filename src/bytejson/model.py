from typing import List, Optional, TypeVar

from pydantic import BaseModel

from bytejson.config import ParserSettings
from bytejson.error import MalformedInputError
from bytejson.node import ValueNode, release
from bytejson.parser import ByteParser
from bytejson.render import to_python

M = TypeVar("M", bound=BaseModel)


def tree_to_model(node: ValueNode, model: type[M]) -> M:
    return model.model_validate(to_python(node))


def parse_model(
    data: bytes, model: type[M], settings: Optional[ParserSettings] = None
) -> M:
    parser = ByteParser(settings)
    values: List[ValueNode] = []
    try:
        try:
            values.extend(parser.feed_chunk(data))
        except MalformedInputError as e:
            values.extend(e.values)
            raise
        tail = parser.close()
        if tail is not None:
            values.append(tail)
        if len(values) != 1:
            raise ValueError(f"Expected exactly one JSON value, got {len(values)}.")
        return tree_to_model(values[0], model)
    finally:
        for value in values:
            release(value)
