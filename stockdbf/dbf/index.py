"""
Tag directory parsing for multi-tag index (.MDX) files.

Only the tag names are extracted; they document which indexes exist on a
table. Index metadata is advisory, so parsing never fails the caller: a bad
signature or a truncated directory yields an empty list and a warning.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import List, Optional, Union

from stockdbf.domain.models import IndexDescriptor
from stockdbf.errors import IndexParseError
from stockdbf.utils.logging import get_logger

log = get_logger(__name__)

MDX_SIGNATURE = 0x02
TAG_COUNT_OFFSET = 28
TAG_DIRECTORY_OFFSET = 544
TAG_ENTRY_SIZE = 32
TAG_NAME_SIZE = 11
RESERVED_TAG = "DELETED"


def _tag_name(entry: bytes) -> str:
    raw = entry[:TAG_NAME_SIZE]
    nul = raw.find(b"\x00")
    if nul >= 0:
        raw = raw[:nul]
    return raw.decode("ascii", errors="replace").strip()


def _parse_tags(data: bytes) -> List[IndexDescriptor]:
    if len(data) < TAG_COUNT_OFFSET + 2:
        raise IndexParseError(f"index header truncated ({len(data)} bytes)")
    (tag_count,) = struct.unpack_from("<h", data, TAG_COUNT_OFFSET)
    if tag_count < 0:
        raise IndexParseError(f"negative tag count {tag_count}")

    tags: List[IndexDescriptor] = []
    for i in range(tag_count):
        start = TAG_DIRECTORY_OFFSET + i * TAG_ENTRY_SIZE
        entry = data[start : start + TAG_NAME_SIZE]
        if len(entry) < TAG_NAME_SIZE:
            raise IndexParseError(f"tag entry {i} at offset {start} truncated")
        name = _tag_name(entry)
        if name and name != RESERVED_TAG:
            tags.append(IndexDescriptor(name=name, key_expression=name))
    return tags


def parse_index_file(data: bytes, path: Optional[Union[str, Path]] = None) -> List[IndexDescriptor]:
    """
    Decode the tag directory of an index file into index descriptors.

    Never raises; returns an empty list when the data is not a readable index.
    """
    if not data or data[0] != MDX_SIGNATURE:
        signature = f"0x{data[0]:02X}" if data else "<empty>"
        log.warning(
            f"Index file signature not recognized ({signature})",
            extra={"path": str(path) if path else None},
        )
        return []
    try:
        return _parse_tags(data)
    except IndexParseError as exc:
        log.warning(
            f"Could not parse index file: {exc}",
            extra={"path": str(path) if path else None},
        )
        return []


def read_index(path: Union[str, Path]) -> List[IndexDescriptor]:
    """Read the index file at `path`; a missing or unreadable file yields []."""
    try:
        data = Path(path).read_bytes()
    except FileNotFoundError:
        return []
    except OSError as exc:
        log.warning(f"Could not read index file: {exc}", extra={"path": str(path)})
        return []
    return parse_index_file(data, path)


__all__ = ["parse_index_file", "read_index", "MDX_SIGNATURE", "TAG_DIRECTORY_OFFSET"]
