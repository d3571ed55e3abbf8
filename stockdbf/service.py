"""
Async facade over the repository for request-driven callers.

Scans are blocking, so each call is dispatched to a worker thread with
`asyncio.to_thread`; the event loop stays free while a large file is read.
Pagination parameters are clamped here and records are mapped onto the
public `StockItemDto` shape (camelCase JSON).
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stockdbf.domain.models import StockRecord
from stockdbf.repository import StockRepository


class StockItemDto(BaseModel):
    code: int
    name: Optional[str] = None
    category: Optional[str] = None
    quantity: Decimal = Decimal(0)
    unit: Optional[str] = None
    price: Decimal = Decimal(0)
    barcode: Optional[str] = None
    warehouse: int = 0
    notes: Optional[str] = None
    price_b: Decimal = Field(Decimal(0), alias="priceB")
    price_c: Decimal = Field(Decimal(0), alias="priceC")
    lot: Optional[str] = None
    warranty: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def from_record(cls, record: StockRecord) -> "StockItemDto":
        return cls(
            code=record.code,
            name=record.name,
            category=record.category,
            quantity=record.quantity,
            unit=record.unit,
            price=record.price,
            barcode=record.barcode,
            warehouse=record.warehouse,
            notes=record.notes,
            price_b=record.price_b,
            price_c=record.price_c,
            lot=record.lot,
            warranty=record.warranty,
        )


class PaginatedResponseDto(BaseModel):
    items: List[StockItemDto] = Field(default_factory=list)
    total_count: int = Field(0, alias="totalCount")
    page_number: int = Field(1, alias="pageNumber")
    page_size: int = Field(10, alias="pageSize")
    total_pages: int = Field(0, alias="totalPages")
    has_previous_page: bool = Field(False, alias="hasPreviousPage")
    has_next_page: bool = Field(False, alias="hasNextPage")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class StockService:
    """
    Parameters
    ----------
    repository : StockRepository
        Shared repository; one instance serves all concurrent callers.
    """

    def __init__(self, repository: StockRepository) -> None:
        self.repository = repository
        self.default_page_size = repository.settings.default_page_size
        self.max_page_size = repository.settings.max_page_size

    def clamp(self, page_number: int, page_size: int) -> tuple[int, int]:
        """Clamp request parameters into the range the repository accepts."""
        page_number = max(page_number, 1)
        if page_size < 1:
            page_size = self.default_page_size
        return page_number, min(page_size, self.max_page_size)

    async def get_stock_items(
        self, page_number: int = 1, page_size: int = 10, barcode: Optional[str] = None
    ) -> PaginatedResponseDto:
        page_number, page_size = self.clamp(page_number, page_size)
        page = await asyncio.to_thread(self.repository.list_page, page_number, page_size, barcode)
        return PaginatedResponseDto(
            items=[StockItemDto.from_record(r) for r in page.items],
            total_count=page.total_count,
            page_number=page.page_number,
            page_size=page.page_size,
            total_pages=page.total_pages,
            has_previous_page=page.has_previous_page,
            has_next_page=page.has_next_page,
        )

    async def get_stock_item_by_code(self, code: int) -> Optional[StockItemDto]:
        record = await asyncio.to_thread(self.repository.get_by_code, code)
        return StockItemDto.from_record(record) if record is not None else None

    async def search_by_barcode(self, barcode: str) -> List[StockItemDto]:
        if not barcode or not barcode.strip():
            raise ValueError("Barcode parameter is required")
        records = await asyncio.to_thread(self.repository.search_by_barcode, barcode)
        return [StockItemDto.from_record(r) for r in records]

    async def get_total_count(self, barcode: Optional[str] = None) -> int:
        return await asyncio.to_thread(self.repository.total_count, barcode)


__all__ = ["PaginatedResponseDto", "StockItemDto", "StockService"]
