from __future__ import annotations

import json
from decimal import Decimal

import pytest

from stockdbf.domain.models import StockRecord
from stockdbf.service import StockItemDto, StockService


@pytest.fixture
def service(repository) -> StockService:
    return StockService(repository)


@pytest.mark.parametrize(
    ("requested", "expected"),
    [
        ((0, 10), (1, 10)),
        ((-3, 5), (1, 5)),
        ((2, 0), (2, 10)),
        ((2, -1), (2, 10)),
        ((1, 500), (1, 100)),
        ((4, 100), (4, 100)),
    ],
)
def test_clamp(service: StockService, requested, expected) -> None:
    assert service.clamp(*requested) == expected


def test_dto_serializes_camel_case() -> None:
    record = StockRecord(code=9, name="Ceai", price_b=Decimal("2.50"), price_c=Decimal("3.00"))

    payload = json.loads(StockItemDto.from_record(record).model_dump_json(by_alias=True))

    assert payload["code"] == 9
    assert payload["priceB"] == "2.50"
    assert payload["priceC"] == "3.00"
    assert "price_b" not in payload


@pytest.mark.asyncio
async def test_get_stock_items_clamps_and_maps(service, write_stock_table, make_rows) -> None:
    write_stock_table(make_rows(3))

    response = await service.get_stock_items(page_number=0, page_size=0)

    assert response.page_number == 1
    assert response.page_size == 10
    assert response.total_count == 3
    assert response.total_pages == 1
    assert [item.code for item in response.items] == [1, 2, 3]
    dumped = response.model_dump(by_alias=True)
    assert dumped["hasNextPage"] is False
    assert dumped["totalCount"] == 3


@pytest.mark.asyncio
async def test_get_stock_item_by_code(service, write_stock_table, make_rows) -> None:
    write_stock_table(make_rows(3))

    item = await service.get_stock_item_by_code(2)

    assert item is not None and item.code == 2
    assert await service.get_stock_item_by_code(404) is None


@pytest.mark.asyncio
async def test_search_requires_barcode(service) -> None:
    with pytest.raises(ValueError):
        await service.search_by_barcode("  ")


@pytest.mark.asyncio
async def test_search_and_count(service, write_stock_table, make_rows) -> None:
    write_stock_table(make_rows(4, barcode=lambda c: "AB" if c < 3 else "CD"))

    results = await service.search_by_barcode("ab")

    assert [item.code for item in results] == [1, 2]
    assert await service.get_total_count() == 4
    assert await service.get_total_count("cd") == 2
