"""
Domain package for the stock table server.

Exports the records, pages and index descriptors shared by the repository,
the service facade and the schema exporter.
"""

from stockdbf.domain.models import IndexDescriptor, Page, StockRecord

__all__ = [
    "IndexDescriptor",
    "Page",
    "StockRecord",
]
