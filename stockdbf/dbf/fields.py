"""
Field type variants and descriptors for table files.

`FieldType` is a closed union: every consumer (record decoding, SQL type
mapping) matches on it exhaustively, with `Unknown` carrying the raw type
character for tags outside the known set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Character:
    length: int


@dataclass(frozen=True)
class Numeric:
    length: int
    decimals: int


@dataclass(frozen=True)
class Date:
    pass


@dataclass(frozen=True)
class Logical:
    pass


@dataclass(frozen=True)
class Memo:
    pass


@dataclass(frozen=True)
class Float:
    length: int
    decimals: int


@dataclass(frozen=True)
class Currency:
    pass


@dataclass(frozen=True)
class Integer:
    pass


@dataclass(frozen=True)
class DateTime:
    pass


@dataclass(frozen=True)
class Unknown:
    type_char: str


FieldType = Union[
    Character, Numeric, Date, Logical, Memo, Float, Currency, Integer, DateTime, Unknown
]


def field_type_from_tag(tag: str, length: int, decimals: int) -> FieldType:
    """Map a descriptor's type character onto its variant."""
    match tag:
        case "C":
            return Character(length)
        case "N":
            return Numeric(length, decimals)
        case "D":
            return Date()
        case "L":
            return Logical()
        case "M":
            return Memo()
        case "F":
            return Float(length, decimals)
        case "Y":
            return Currency()
        case "I":
            return Integer()
        case "T":
            return DateTime()
        case _:
            return Unknown(tag)


@dataclass(frozen=True)
class FieldDescriptor:
    """One entry of the header's field descriptor array."""

    name: str
    field_type: FieldType
    length: int
    decimals: int

    @property
    def type_char(self) -> str:
        match self.field_type:
            case Character():
                return "C"
            case Numeric():
                return "N"
            case Date():
                return "D"
            case Logical():
                return "L"
            case Memo():
                return "M"
            case Float():
                return "F"
            case Currency():
                return "Y"
            case Integer():
                return "I"
            case DateTime():
                return "T"
            case Unknown(type_char=char):
                return char


__all__ = [
    "Character",
    "Numeric",
    "Date",
    "Logical",
    "Memo",
    "Float",
    "Currency",
    "Integer",
    "DateTime",
    "Unknown",
    "FieldType",
    "FieldDescriptor",
    "field_type_from_tag",
]
