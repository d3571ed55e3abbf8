"""
Lazy, per-field decoding of fixed-length table records.

Each accessor first tries the field's typed decoder (chosen from its
`FieldType`), then falls back to re-parsing the stringified raw value. The
accessors never raise: a missing field, a null sentinel and a decode failure
all collapse onto the accessor's default (None for strings and dates, 0 for
numbers, False for booleans).
"""

from __future__ import annotations

import struct
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from dateutil import parser as date_parser

from stockdbf.dbf.fields import (
    Character,
    Currency,
    Date,
    DateTime,
    FieldDescriptor,
    Float,
    Integer,
    Logical,
    Memo,
    Numeric,
    Unknown,
)
from stockdbf.dbf.header import TableSchema
from stockdbf.errors import FieldDecodeError

DELETED_MARKER = 0x2A  # '*'

TRUE_TOKENS = frozenset({"T", "TRUE", "1", "Y", "YES", "DA"})

# Julian day number of 0001-01-01 minus its proleptic ordinal.
_JULIAN_OFFSET = 1721425

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_JULIAN_STAMP = struct.Struct("<ii")


def _ascii(raw: bytes) -> str:
    return raw.decode("ascii").strip(" \x00")


def decode_field(descriptor: FieldDescriptor, raw: bytes, encoding: str) -> Any:
    """
    Decode one field with its typed decoder.

    Returns None for the format's null sentinels (blank numerics and dates,
    '?' logicals, all-blank text).

    Raises
    ------
    FieldDecodeError
        When the bytes are not a valid value of the declared type.
    """
    name = descriptor.name
    try:
        match descriptor.field_type:
            case Character():
                text = raw.decode(encoding).rstrip(" \x00")
                return text or None
            case Numeric(decimals=decimals) | Float(decimals=decimals):
                text = _ascii(raw)
                if not text or set(text) == {"*"}:
                    return None
                value = Decimal(text)
                if not value.is_finite():
                    raise FieldDecodeError(name, f"non-finite number {text!r}")
                if decimals == 0 and value == value.to_integral_value():
                    return int(value)
                return value
            case Date():
                text = _ascii(raw)
                if not text or text == "00000000":
                    return None
                return datetime.strptime(text, "%Y%m%d").date()
            case Logical():
                text = _ascii(raw)
                if text in ("", "?"):
                    return None
                if text in ("T", "t", "Y", "y"):
                    return True
                if text in ("F", "f", "N", "n"):
                    return False
                raise FieldDecodeError(name, f"invalid logical {text!r}")
            case Integer():
                return _INT32.unpack(raw[:4])[0]
            case Currency():
                return Decimal(_INT64.unpack(raw[:8])[0]).scaleb(-4)
            case DateTime():
                day, millis = _JULIAN_STAMP.unpack(raw[:8])
                if day == 0:
                    return None
                stamp = datetime.combine(date.fromordinal(day - _JULIAN_OFFSET), time())
                return stamp + timedelta(milliseconds=millis)
            case Memo():
                raise FieldDecodeError(name, "memo blocks are not resolved")
            case Unknown(type_char=char):
                raise FieldDecodeError(name, f"unsupported field type {char!r}")
    except FieldDecodeError:
        raise
    except (ValueError, ArithmeticError, struct.error, UnicodeDecodeError) as exc:
        raise FieldDecodeError(name, str(exc)) from exc


class RecordView:
    """
    Accessor over one raw record buffer.

    Parameters
    ----------
    schema : TableSchema
        Decoded header of the file the record belongs to.
    ordinals : Mapping[str, int]
        Upper-cased physical field name to descriptor position (-1 if absent).
    raw : bytes
        Exactly `schema.record_length` bytes, deletion marker included.
    encoding : str
        Code page of Character fields.
    """

    __slots__ = ("schema", "ordinals", "raw", "encoding", "_decoded")

    def __init__(
        self, schema: TableSchema, ordinals: Mapping[str, int], raw: bytes, encoding: str
    ) -> None:
        self.schema = schema
        self.ordinals = ordinals
        self.raw = raw
        self.encoding = encoding
        self._decoded: dict[int, Any] = {}

    @property
    def is_deleted(self) -> bool:
        return bool(self.raw) and self.raw[0] == DELETED_MARKER

    def _ordinal(self, name: str) -> int:
        return self.ordinals.get(name.upper(), -1)

    def _slice(self, ordinal: int) -> bytes:
        start = self.schema.field_offsets[ordinal]
        return self.raw[start : start + self.schema.fields[ordinal].length]

    def _value(self, ordinal: int) -> Any:
        """Typed value of the field; decode errors propagate."""
        if ordinal not in self._decoded:
            descriptor = self.schema.fields[ordinal]
            self._decoded[ordinal] = decode_field(descriptor, self._slice(ordinal), self.encoding)
        return self._decoded[ordinal]

    def _raw_text(self, ordinal: int) -> Optional[str]:
        """Stringified raw value for the fallback parsers."""
        try:
            value = self._value(ordinal)
        except FieldDecodeError:
            text = self._slice(ordinal).decode(self.encoding, errors="replace")
            return text.strip(" \x00") or None
        if value is None:
            return None
        if isinstance(value, bool):
            return "True" if value else "False"
        return str(value).strip()

    def get_string(self, name: str) -> Optional[str]:
        ordinal = self._ordinal(name)
        if ordinal < 0:
            return None
        try:
            value = self._value(ordinal)
        except FieldDecodeError:
            return None
        if value is None:
            return None
        if isinstance(value, str):
            return value.strip()
        return str(value).strip()

    def get_int(self, name: str) -> int:
        ordinal = self._ordinal(name)
        if ordinal < 0:
            return 0
        try:
            value = self._value(ordinal)
            if value is None:
                return 0
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        except FieldDecodeError:
            pass
        text = self._raw_text(ordinal)
        if not text:
            return 0
        try:
            return int(Decimal(text))
        except (InvalidOperation, ValueError, OverflowError):
            return 0

    def get_decimal(self, name: str) -> Decimal:
        ordinal = self._ordinal(name)
        if ordinal < 0:
            return Decimal(0)
        try:
            value = self._value(ordinal)
            if value is None:
                return Decimal(0)
            if isinstance(value, Decimal):
                return value
            if isinstance(value, int) and not isinstance(value, bool):
                return Decimal(value)
        except FieldDecodeError:
            pass
        text = self._raw_text(ordinal)
        if not text:
            return Decimal(0)
        try:
            result = Decimal(text)
        except InvalidOperation:
            return Decimal(0)
        return result if result.is_finite() else Decimal(0)

    def get_bool(self, name: str) -> bool:
        ordinal = self._ordinal(name)
        if ordinal < 0:
            return False
        try:
            value = self._value(ordinal)
            if value is None:
                return False
            if isinstance(value, bool):
                return value
        except FieldDecodeError:
            pass
        text = self._raw_text(ordinal)
        return text is not None and text.upper() in TRUE_TOKENS

    def get_datetime(self, name: str) -> Optional[datetime]:
        ordinal = self._ordinal(name)
        if ordinal < 0:
            return None
        try:
            value = self._value(ordinal)
            if value is None:
                return None
            if isinstance(value, datetime):
                return value
            if isinstance(value, date):
                return datetime.combine(value, time())
        except FieldDecodeError:
            pass
        text = self._raw_text(ordinal)
        if not text:
            return None
        try:
            return date_parser.parse(text, ignoretz=True)
        except (ValueError, OverflowError):
            return None


__all__ = ["RecordView", "decode_field", "DELETED_MARKER", "TRUE_TOKENS"]
