from __future__ import annotations

import struct
from datetime import date, datetime
from decimal import Decimal

import pytest

from scripts.generate_table import _build_table_bytes
from stockdbf.dbf.fields import Currency, FieldDescriptor, Integer, Memo, Unknown
from stockdbf.dbf.header import parse_header
from stockdbf.dbf.record import RecordView, decode_field
from stockdbf.errors import FieldDecodeError

COLUMNS = [
    ("COD", "N", 10, 0),
    ("NAME", "C", 20, 0),
    ("QTY", "N", 10, 3),
    ("FLAG", "L", 1, 0),
    ("TEXTFLAG", "C", 5, 0),
    ("DAY", "D", 8, 0),
    ("TEXTDAY", "C", 20, 0),
    ("SCORE", "I", 4, 0),
    ("AMOUNT", "Y", 8, 0),
    ("STAMP", "T", 8, 0),
    ("NOTE", "M", 10, 0),
]


def _view(row: dict, deleted: bool = False) -> RecordView:
    data = _build_table_bytes(COLUMNS, [row], deleted=[0] if deleted else [])
    schema = parse_header(data)
    raw = data[schema.header_length : schema.header_length + schema.record_length]
    ordinals = {name.upper(): schema.ordinal(name) for name, _, _, _ in COLUMNS}
    return RecordView(schema, ordinals, raw, "cp1252")


def test_typed_values_decode() -> None:
    view = _view(
        {
            "COD": 42,
            "NAME": "Cafea boabe",
            "QTY": Decimal("12.500"),
            "FLAG": True,
            "DAY": date(2023, 5, 17),
            "SCORE": -7,
            "AMOUNT": Decimal("19.99"),
            "STAMP": datetime(2024, 2, 29, 13, 45, 10),
        }
    )

    assert view.get_int("COD") == 42
    assert view.get_string("NAME") == "Cafea boabe"
    assert view.get_decimal("QTY") == Decimal("12.500")
    assert view.get_bool("FLAG") is True
    assert view.get_datetime("DAY") == datetime(2023, 5, 17)
    assert view.get_int("SCORE") == -7
    assert view.get_decimal("AMOUNT") == Decimal("19.99")
    assert view.get_datetime("STAMP") == datetime(2024, 2, 29, 13, 45, 10)
    assert view.is_deleted is False


def test_accessors_are_case_insensitive() -> None:
    view = _view({"COD": 5, "NAME": "x"})

    assert view.get_int("cod") == 5
    assert view.get_string("Name") == "x"


def test_character_decoding_uses_code_page() -> None:
    view = _view({"NAME": "Crème brûlée"})

    assert view.get_string("NAME") == "Crème brûlée"


def test_missing_field_defaults() -> None:
    view = _view({"COD": 1})

    assert view.get_string("ABSENT") is None
    assert view.get_int("ABSENT") == 0
    assert view.get_decimal("ABSENT") == Decimal(0)
    assert view.get_bool("ABSENT") is False
    assert view.get_datetime("ABSENT") is None


def test_blank_values_collapse_to_defaults() -> None:
    view = _view({})

    assert view.get_string("NAME") is None
    assert view.get_int("COD") == 0
    assert view.get_decimal("QTY") == Decimal(0)
    assert view.get_bool("FLAG") is False
    assert view.get_datetime("DAY") is None


def test_integer_accessor_truncates_decimal_text() -> None:
    view = _view({"QTY": Decimal("7.900")})

    assert view.get_int("QTY") == 7


def test_integer_accessor_parses_numeric_text_field() -> None:
    view = _view({"NAME": "  1234 "})

    assert view.get_int("NAME") == 1234
    assert view.get_decimal("NAME") == Decimal("1234")


def test_unparsable_numbers_default_to_zero() -> None:
    view = _view({"COD": b"12AB", "NAME": "not a number"})

    assert view.get_int("COD") == 0
    assert view.get_int("NAME") == 0
    assert view.get_decimal("NAME") == Decimal(0)


def test_star_filled_numeric_is_null() -> None:
    view = _view({"QTY": b"**********"})

    assert view.get_decimal("QTY") == Decimal(0)


@pytest.mark.parametrize("token", ["T", "true", "1", "y", "YES", "da", "Da"])
def test_boolean_fallback_tokens(token: str) -> None:
    view = _view({"TEXTFLAG": token})

    assert view.get_bool("TEXTFLAG") is True


@pytest.mark.parametrize("token", ["F", "NU", "0", "no", "x"])
def test_boolean_fallback_rejects_other_tokens(token: str) -> None:
    view = _view({"TEXTFLAG": token})

    assert view.get_bool("TEXTFLAG") is False


def test_invalid_logical_byte_uses_fallback() -> None:
    assert _view({"FLAG": b"1"}).get_bool("FLAG") is True
    assert _view({"FLAG": b"X"}).get_bool("FLAG") is False


def test_datetime_fallback_parses_text() -> None:
    view = _view({"TEXTDAY": "2022-11-03 08:30"})

    assert view.get_datetime("TEXTDAY") == datetime(2022, 11, 3, 8, 30)


def test_datetime_fallback_drops_zone_tokens() -> None:
    value = _view({"TEXTDAY": "2022-11-03 08:30+02"}).get_datetime("TEXTDAY")

    assert value == datetime(2022, 11, 3, 8, 30)
    assert value.tzinfo is None


def test_malformed_date_falls_back_then_defaults() -> None:
    assert _view({"DAY": b"2023AB40"}).get_datetime("DAY") is None
    assert _view({"DAY": b"00000000"}).get_datetime("DAY") is None
    assert _view({"TEXTDAY": "not a date"}).get_datetime("TEXTDAY") is None


def test_memo_field_never_raises_through_accessors() -> None:
    view = _view({"NOTE": b"0000000012"})

    assert view.get_string("NOTE") is None
    assert view.get_int("NOTE") == 12


def test_deleted_marker() -> None:
    assert _view({"COD": 1}, deleted=True).is_deleted is True


def test_decode_field_raises_for_memo_and_unknown() -> None:
    with pytest.raises(FieldDecodeError):
        decode_field(FieldDescriptor("NOTE", Memo(), 10, 0), b" " * 10, "cp1252")
    with pytest.raises(FieldDecodeError) as excinfo:
        decode_field(FieldDescriptor("BLOB", Unknown("B"), 4, 0), b"\x00" * 4, "cp1252")
    assert excinfo.value.field_name == "BLOB"


def test_decode_field_integer_and_currency() -> None:
    integer = FieldDescriptor("N", Integer(), 4, 0)
    currency = FieldDescriptor("Y", Currency(), 8, 0)

    assert decode_field(integer, struct.pack("<i", 123456), "ascii") == 123456
    assert decode_field(currency, struct.pack("<q", -25000), "ascii") == Decimal("-2.5")
