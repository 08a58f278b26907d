"""Path parameter converters.

A converter pairs the regex a ``{name:kind}`` segment matches with the
callable that turns the captured text into a value.
"""

from collections.abc import Callable
from typing import NamedTuple


class Converter(NamedTuple):
    regex: str
    to_python: Callable[[str], object]


CONVERTERS: dict[str, Converter] = {
    "str": Converter(r"[^/]+", str),
    "int": Converter(r"\d+", int),
    "float": Converter(r"\d+(?:\.\d+)?", float),
    # Spans slashes, so only valid as the last segment
    "path": Converter(r".+", str),
}


def convert_param(value: str, kind: str) -> object:
    """Convert a captured path parameter with the converter named *kind*.

    Raises ``KeyError`` for an unknown converter and ``ValueError`` when
    *value* does not convert.
    """
    return CONVERTERS[kind].to_python(value)
