"""
Table file header parsing.

Layout of the fixed 32-byte header (little-endian):
  [00]     Version byte
  [01-03]  Last update, YY (since 1900) / MM / DD
  [04-07]  Record count (uint32)
  [08-09]  Header length (uint16)
  [10-11]  Record length (uint16)
  [12-31]  Reserved

Field descriptors follow at offset 32, 32 bytes each:
  [00-10]  Name, NUL/space padded ASCII
  [11]     Type tag character
  [12-15]  Reserved
  [16]     Field length
  [17]     Decimal count
  [18-31]  Reserved

The descriptor array ends at `header_length - 1` (the 0x0D terminator) or at
a descriptor whose name is entirely zero.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import BinaryIO, Dict, Optional, Tuple, Union

from stockdbf.dbf.fields import FieldDescriptor, field_type_from_tag
from stockdbf.errors import CorruptHeaderError, InvalidDateError

HEADER_PREFIX_SIZE = 32
DESCRIPTOR_SIZE = 32
NAME_SIZE = 11
HEADER_TERMINATOR = 0x0D

_PREFIX = struct.Struct("<B3BIHH")


@dataclass(frozen=True)
class TableSchema:
    """Decoded header and field descriptor array of one table file."""

    version: int
    last_update: date
    record_count: int
    header_length: int
    record_length: int
    fields: Tuple[FieldDescriptor, ...]
    # Byte offset of each field within a record; byte 0 is the deletion marker.
    field_offsets: Tuple[int, ...] = field(default=())
    _ordinals: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.field_offsets:
            offsets = []
            position = 1
            for descriptor in self.fields:
                offsets.append(position)
                position += descriptor.length
            object.__setattr__(self, "field_offsets", tuple(offsets))
        ordinals: Dict[str, int] = {}
        for index, descriptor in enumerate(self.fields):
            # First occurrence wins when the format carries duplicate names.
            ordinals.setdefault(descriptor.name.upper(), index)
        object.__setattr__(self, "_ordinals", ordinals)

    def ordinal(self, name: str) -> int:
        """Case-insensitive position of a field, -1 when absent."""
        return self._ordinals.get(name.upper(), -1)

    def descriptor(self, name: str) -> Optional[FieldDescriptor]:
        index = self.ordinal(name)
        return self.fields[index] if index >= 0 else None

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.fields)


def _decode_name(raw: bytes) -> str:
    nul = raw.find(b"\x00")
    if nul >= 0:
        raw = raw[:nul]
    return raw.decode("ascii", errors="replace").strip()


def parse_header(data: bytes, path: Optional[Union[str, Path]] = None) -> TableSchema:
    """
    Decode the header and field descriptors of a table file.

    Parameters
    ----------
    data : bytes
        At least the first `header_length` bytes of the file.
    path : str | Path, optional
        Source path, only used to enrich error messages.

    Raises
    ------
    CorruptHeaderError
        The header is truncated or structurally invalid.
    InvalidDateError
        The last-update bytes do not form a calendar date.
    """
    if len(data) < HEADER_PREFIX_SIZE:
        raise CorruptHeaderError(f"header truncated ({len(data)} bytes)", path)

    version, yy, mm, dd, record_count, header_length, record_length = _PREFIX.unpack_from(data, 0)

    try:
        last_update = date(1900 + yy, mm, dd)
    except ValueError:
        raise InvalidDateError(1900 + yy, mm, dd, path) from None

    if header_length <= HEADER_PREFIX_SIZE:
        raise CorruptHeaderError(f"header length {header_length} too small", path)
    if record_length == 0:
        raise CorruptHeaderError("record length is zero", path)

    fields = []
    offset = HEADER_PREFIX_SIZE
    while offset < header_length - 1:
        if data[offset : offset + 1] == bytes([HEADER_TERMINATOR]):
            break
        descriptor = data[offset : offset + DESCRIPTOR_SIZE]
        if len(descriptor) < 18:
            raise CorruptHeaderError(f"field descriptor at offset {offset} truncated", path)
        raw_name = descriptor[:NAME_SIZE]
        if not raw_name.strip(b"\x00"):
            break
        name = _decode_name(raw_name)
        if name:
            tag = chr(descriptor[11])
            length = descriptor[16]
            decimals = descriptor[17]
            fields.append(
                FieldDescriptor(
                    name=name,
                    field_type=field_type_from_tag(tag, length, decimals),
                    length=length,
                    decimals=decimals,
                )
            )
        offset += DESCRIPTOR_SIZE

    return TableSchema(
        version=version,
        last_update=last_update,
        record_count=record_count,
        header_length=header_length,
        record_length=record_length,
        fields=tuple(fields),
    )


def read_header_from(f: BinaryIO, path: Optional[Union[str, Path]] = None) -> TableSchema:
    """Decode the header from a binary stream positioned at offset 0."""
    prefix = f.read(HEADER_PREFIX_SIZE)
    if len(prefix) < HEADER_PREFIX_SIZE:
        raise CorruptHeaderError(f"header truncated ({len(prefix)} bytes)", path)
    (header_length,) = struct.unpack_from("<H", prefix, 8)
    rest = f.read(max(header_length - HEADER_PREFIX_SIZE, 0))
    return parse_header(prefix + rest, path)


def read_schema(path: Union[str, Path]) -> TableSchema:
    """Read and decode the header of the table file at `path`."""
    with open(path, "rb") as f:
        return read_header_from(f, path)


__all__ = ["TableSchema", "parse_header", "read_header_from", "read_schema"]
