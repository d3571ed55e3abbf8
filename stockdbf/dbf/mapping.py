"""
Physical STOC field names and their mapping onto `StockRecord`.

The ordinal map is computed once per file (see `OrdinalCache` in the
repository) and handed to every `RecordView` of that file.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple

from stockdbf.dbf.header import TableSchema
from stockdbf.dbf.record import RecordView
from stockdbf.domain.models import StockRecord

CODE_FIELD = "COD"
BARCODE_FIELD = "COD_BARE"

_Getter = Callable[[RecordView, str], object]

# (physical name, record attribute, accessor)
SUMMARY_FIELDS: Tuple[Tuple[str, str, _Getter], ...] = (
    ("COD", "code", RecordView.get_int),
    ("DENUMIRE", "name", RecordView.get_string),
    ("CATEGORIE", "category", RecordView.get_string),
    ("COD_BARE", "barcode", RecordView.get_string),
    ("CANTITATE", "quantity", RecordView.get_decimal),
    ("PRET", "price", RecordView.get_decimal),
    ("UNIT_MAS", "unit", RecordView.get_string),
    ("DEPOZITUL", "warehouse", RecordView.get_int),
)

DETAIL_FIELDS: Tuple[Tuple[str, str, _Getter], ...] = (
    ("DUBLU", "is_double", RecordView.get_bool),
    ("DATA", "date", RecordView.get_datetime),
    ("CANT_REZER", "reserved_quantity", RecordView.get_decimal),
    ("MOSTRE", "samples", RecordView.get_decimal),
    ("PRET_ACHI", "purchase_price", RecordView.get_decimal),
    ("GARANTIE", "warranty", RecordView.get_datetime),
    ("LA_ENGROS", "is_wholesale", RecordView.get_string),
    ("OBSERVATII", "notes", RecordView.get_string),
    ("BUC", "pieces", RecordView.get_string),
    ("PROTVAACHI", "vat_purchase", RecordView.get_decimal),
    ("PROTVAVINZ", "vat_sale", RecordView.get_decimal),
    ("COD_CORESP", "corresponding_code", RecordView.get_int),
    ("FURNIZOR", "supplier", RecordView.get_int),
    ("ADRESA", "address", RecordView.get_string),
    ("PRO_VAMA", "customs_duty", RecordView.get_decimal),
    ("PRET_B", "price_b", RecordView.get_decimal),
    ("PRET_C", "price_c", RecordView.get_decimal),
    ("SHORT_C", "short_code", RecordView.get_string),
    ("COD_CUTIE", "box_code", RecordView.get_string),
    ("PRET_RECEP", "reception_price", RecordView.get_decimal),
    ("PROL", "margin", RecordView.get_decimal),
    ("PROL_ACHI", "purchase_margin", RecordView.get_decimal),
    ("KILOGRAME", "kilograms", RecordView.get_decimal),
    ("GABARIT", "dimensions", RecordView.get_string),
    ("CHEIECMD", "order_key", RecordView.get_string),
    ("LOT", "lot", RecordView.get_string),
    ("CODTXINV", "tax_invoice_code", RecordView.get_string),
    ("CODVAMAL", "customs_code", RecordView.get_string),
    ("CODCPV", "cpv_code", RecordView.get_string),
    ("KILO_NET", "net_weight", RecordView.get_decimal),
)

STOCK_FIELD_NAMES: Tuple[str, ...] = tuple(
    name for name, _, _ in SUMMARY_FIELDS + DETAIL_FIELDS
)


def ordinal_map(schema: TableSchema) -> Dict[str, int]:
    """Position of every known STOC field in `schema`, -1 for absent ones."""
    return {name: schema.ordinal(name) for name in STOCK_FIELD_NAMES}


def to_summary(view: RecordView) -> StockRecord:
    """Decode only the attributes needed by list and search results."""
    return StockRecord(**{attr: getter(view, name) for name, attr, getter in SUMMARY_FIELDS})


def to_full(view: RecordView) -> StockRecord:
    """Decode every attribute, for single-record lookups."""
    values = {attr: getter(view, name) for name, attr, getter in SUMMARY_FIELDS + DETAIL_FIELDS}
    return StockRecord(**values)


__all__ = [
    "CODE_FIELD",
    "BARCODE_FIELD",
    "SUMMARY_FIELDS",
    "DETAIL_FIELDS",
    "STOCK_FIELD_NAMES",
    "ordinal_map",
    "to_summary",
    "to_full",
]
