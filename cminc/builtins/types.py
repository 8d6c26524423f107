"""Built-in type definitions for C-minus."""

from __future__ import annotations
from enum import Enum


class DataType(Enum):
    INTEGER = "int"
    VOID = "void"
    BOOLEAN = "bool"

    def __str__(self):
        return self.value


_KEYWORDS = {
    "int": DataType.INTEGER,
    "void": DataType.VOID,
}


def from_keyword(keyword: str) -> DataType:
    """Map a type specifier keyword to its DataType."""
    try:
        return _KEYWORDS[keyword]
    except KeyError:
        raise ValueError(f"Unknown type specifier '{keyword}'") from None


def is_boolean_compatible(t: DataType) -> bool:
    # Integers are truthy in conditions; only void has no value.
    return t in (DataType.BOOLEAN, DataType.INTEGER)
