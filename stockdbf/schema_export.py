"""
SQL DDL export from table file headers and their companion index files.

Usage (example from CLI):
    from stockdbf.schema_export import export_schema

    result = export_schema(["tmp/*.DBF"], "config/schema.sql")
    print(result.tables, result.warnings)

One CREATE TABLE per input file (table name = upper-cased base name), followed
by one CREATE INDEX per tag found in the `.MDX` file of the same base name.
Files are processed in lexicographic order so the output is stable.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

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
from stockdbf.dbf.header import TableSchema, read_schema
from stockdbf.dbf.index import read_index
from stockdbf.domain.models import IndexDescriptor
from stockdbf.errors import DbfError, NoInputFilesError
from stockdbf.utils.logging import get_logger

log = get_logger(__name__)

TABLE_SUFFIX = ".DBF"
INDEX_SUFFIX = ".MDX"


def sql_type(descriptor: FieldDescriptor) -> str:
    """Map a field descriptor onto a portable SQL column type."""
    match descriptor.field_type:
        case Character(length=length):
            return f"VARCHAR({length})" if length <= 255 else "TEXT"
        case Numeric(length=length, decimals=0):
            if length <= 4:
                return "SMALLINT"
            if length <= 9:
                return "INTEGER"
            return "BIGINT"
        case Numeric(length=length, decimals=decimals):
            return f"DECIMAL({length},{decimals})"
        case Date():
            return "DATE"
        case Logical():
            return "BOOLEAN"
        case Memo():
            return "TEXT"
        case Float(length=length, decimals=decimals):
            return f"DECIMAL({length},{decimals})"
        case Currency():
            return "DECIMAL(19,4)"
        case Integer():
            return "INTEGER"
        case DateTime():
            return "TIMESTAMP"
        case Unknown(type_char=char):
            return f"VARCHAR(255) /* Unknown type: {char} */"
    raise TypeError(f"unhandled field type {descriptor.field_type!r}")


def render_table_ddl(
    table_name: str, schema: TableSchema, indexes: Sequence[IndexDescriptor] = ()
) -> str:
    """Render the commented CREATE TABLE (and CREATE INDEX) block of one table."""
    lines = [
        "-- Generated from DBF schema",
        f"-- Table: {table_name}",
        f"-- Last Updated: {schema.last_update:%Y-%m-%d}",
        f"-- Record Count: {schema.record_count}",
        "",
        f"CREATE TABLE {table_name} (",
        ",\n".join(f"    {d.name} {sql_type(d)}" for d in schema.fields),
        ");",
    ]
    if indexes:
        lines += ["", "-- Indexes from MDX file"]
        for index in indexes:
            unique = "UNIQUE " if index.unique else ""
            direction = " DESC" if index.descending else ""
            lines.append(
                f"CREATE {unique}INDEX idx_{table_name}_{index.name} "
                f"ON {table_name} ({index.key_expression}{direction});"
            )
    return "\n".join(lines) + "\n"


def _is_pattern(arg: str) -> bool:
    return "*" in arg or "?" in arg


def _is_table_file(path: Union[str, Path]) -> bool:
    return str(path).upper().endswith(TABLE_SUFFIX)


def resolve_inputs(patterns: Iterable[str]) -> Tuple[List[Path], List[str]]:
    """
    Expand wildcard patterns and plain paths into a sorted list of table files.

    Returns the files and a warning per plain path that does not exist or is
    not a table file.
    """
    files: set[Path] = set()
    warnings: List[str] = []
    for arg in patterns:
        if _is_pattern(arg):
            files.update(Path(p) for p in glob.glob(arg) if _is_table_file(p) and Path(p).is_file())
        elif not _is_table_file(arg):
            warnings.append(f"Not a DBF file: {arg}")
        elif Path(arg).is_file():
            files.add(Path(arg))
        else:
            warnings.append(f"File not found: {arg}")
    return sorted(files, key=str), warnings


def index_path_for(table_path: Path) -> Path:
    """Companion index path; tolerant of lower-case extensions on disk."""
    for suffix in (INDEX_SUFFIX, INDEX_SUFFIX.lower()):
        candidate = table_path.with_suffix(suffix)
        if candidate.exists():
            return candidate
    return table_path.with_suffix(INDEX_SUFFIX)


@dataclass
class ExportResult:
    output: Path
    tables: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    index_counts: dict[str, int] = field(default_factory=dict)


def export_schema(
    patterns: Sequence[str], output: Union[str, Path], generated_at: datetime | None = None
) -> ExportResult:
    """
    Write the DDL of every resolvable table file into one SQL artifact.

    Unreadable or corrupt files become warnings and are skipped.

    Raises
    ------
    NoInputFilesError
        When no pattern or path resolves to a table file.
    """
    files, warnings = resolve_inputs(patterns)
    for warning in warnings:
        log.warning(warning)
    if not files:
        raise NoInputFilesError(list(patterns))

    result = ExportResult(output=Path(output), warnings=list(warnings))
    stamp = generated_at or datetime.now()
    blocks = [
        "-- Generated from DBF schemas",
        f"-- Generated on: {stamp:%Y-%m-%d %H:%M:%S}",
        f"-- Total tables: {len(files)}",
        "",
    ]

    for path in files:
        log.info(f"Processing: {path}", extra={"path": str(path)})
        table_name = path.stem.upper()
        try:
            schema = read_schema(path)
        except (DbfError, OSError) as exc:
            message = f"Skipping {path}: {exc}"
            log.warning(message, extra={"path": str(path)})
            result.warnings.append(message)
            result.failed.append(str(path))
            continue

        indexes = read_index(index_path_for(path))
        log.info(
            f"Found {len(schema.fields)} fields and {len(indexes)} indexes",
            extra={"table": table_name, "fields": len(schema.fields), "indexes": len(indexes)},
        )
        blocks.append(render_table_ddl(table_name, schema, indexes))
        result.tables.append(table_name)
        result.index_counts[table_name] = len(indexes)

    result.output.parent.mkdir(parents=True, exist_ok=True)
    result.output.write_text("\n".join(blocks) + "\n", encoding="utf-8")
    log.info(
        f"Schema exported to: {result.output}",
        extra={"output": str(result.output), "tables": len(result.tables)},
    )
    return result


__all__ = [
    "ExportResult",
    "export_schema",
    "index_path_for",
    "render_table_ddl",
    "resolve_inputs",
    "sql_type",
]
