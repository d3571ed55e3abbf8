"""
Domain models for the stock table server.

`StockRecord` mirrors one row of the STOC table under semantic names. List and
search paths only populate the summary attributes; single-record lookups
populate every attribute. `Page` is the paginated envelope returned by the
repository, and `IndexDescriptor` documents one tag of a companion index file.
"""
from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class StockRecord(BaseModel):
    """
    Representation of a single row in the stock table.
    """

    # Summary attributes
    code: int = Field(0, description="Item code (COD).")
    name: Optional[str] = Field(None, description="Item name (DENUMIRE).")
    category: Optional[str] = Field(None, description="Category (CATEGORIE).")
    barcode: Optional[str] = Field(None, description="Barcode (COD_BARE).")
    quantity: Decimal = Field(Decimal(0), description="Quantity in stock (CANTITATE).")
    price: Decimal = Field(Decimal(0), description="Sale price (PRET).")
    unit: Optional[str] = Field(None, description="Unit of measure (UNIT_MAS).")
    warehouse: int = Field(0, description="Warehouse number (DEPOZITUL).")

    # Full-depth attributes
    is_double: bool = False
    date: Optional[datetime] = None
    reserved_quantity: Decimal = Decimal(0)
    samples: Decimal = Decimal(0)
    purchase_price: Decimal = Decimal(0)
    warranty: Optional[datetime] = None
    is_wholesale: Optional[str] = None
    notes: Optional[str] = None
    pieces: Optional[str] = None
    vat_purchase: Decimal = Decimal(0)
    vat_sale: Decimal = Decimal(0)
    corresponding_code: int = 0
    supplier: int = 0
    address: Optional[str] = None
    customs_duty: Decimal = Decimal(0)
    price_b: Decimal = Decimal(0)
    price_c: Decimal = Decimal(0)
    short_code: Optional[str] = None
    box_code: Optional[str] = None
    reception_price: Decimal = Decimal(0)
    margin: Decimal = Decimal(0)
    purchase_margin: Decimal = Decimal(0)
    kilograms: Decimal = Decimal(0)
    dimensions: Optional[str] = None
    order_key: Optional[str] = None
    lot: Optional[str] = None
    tax_invoice_code: Optional[str] = None
    customs_code: Optional[str] = None
    cpv_code: Optional[str] = None
    net_weight: Decimal = Decimal(0)

    model_config = ConfigDict(frozen=True)


class Page(BaseModel, Generic[T]):
    """
    One page of a paginated listing.
    """

    items: List[T] = Field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    page_size: int = 10

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages


class IndexDescriptor(BaseModel):
    """
    One tag of a multi-tag index file.

    The key expression is the tag name itself and `unique`/`descending` are
    never read from the file; the tag's compiled expression is not decoded.
    """

    name: str
    key_expression: str
    for_expression: Optional[str] = None
    unique: bool = False
    descending: bool = False

    model_config = ConfigDict(frozen=True)


__all__ = ["StockRecord", "Page", "IndexDescriptor"]
