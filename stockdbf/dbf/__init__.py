"""
Binary access to legacy table (.DBF) and multi-tag index (.MDX) files.

Keep this package free of caching and query policy: it decodes bytes into
schemas, record views and index descriptors, nothing more.
"""

from stockdbf.dbf.fields import FieldDescriptor, FieldType, field_type_from_tag
from stockdbf.dbf.header import TableSchema, parse_header, read_schema
from stockdbf.dbf.index import parse_index_file, read_index
from stockdbf.dbf.reader import TableReader, open_table_file
from stockdbf.dbf.record import RecordView, decode_field

__all__ = [
    "FieldDescriptor",
    "FieldType",
    "field_type_from_tag",
    "TableSchema",
    "parse_header",
    "read_schema",
    "parse_index_file",
    "read_index",
    "TableReader",
    "open_table_file",
    "RecordView",
    "decode_field",
]
