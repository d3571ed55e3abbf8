"""
Synthetic STOC table generator.

Writes a dBASE-compatible table file (and optionally its multi-tag index) with
deterministic pseudo-random stock rows. The byte-building helpers are reused
by the test suite to produce small fixture tables, including malformed ones.
"""

from __future__ import annotations

import random
import struct
import sys
import time
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import typer

app = typer.Typer(help="Generate a synthetic STOC table file (and index) for local runs.")

# (name, type tag, length, decimals)
Column = tuple[str, str, int, int]

STOCK_COLUMNS: list[Column] = [
    ("COD", "N", 10, 0),
    ("DENUMIRE", "C", 60, 0),
    ("CATEGORIE", "C", 20, 0),
    ("COD_BARE", "C", 20, 0),
    ("CANTITATE", "N", 14, 3),
    ("PRET", "N", 14, 2),
    ("UNIT_MAS", "C", 5, 0),
    ("DEPOZITUL", "N", 3, 0),
    ("DUBLU", "L", 1, 0),
    ("DATA", "D", 8, 0),
    ("CANT_REZER", "N", 14, 3),
    ("MOSTRE", "N", 10, 3),
    ("PRET_ACHI", "N", 14, 4),
    ("GARANTIE", "D", 8, 0),
    ("LA_ENGROS", "C", 1, 0),
    ("OBSERVATII", "C", 40, 0),
    ("BUC", "C", 5, 0),
    ("PROTVAACHI", "N", 5, 2),
    ("PROTVAVINZ", "N", 5, 2),
    ("COD_CORESP", "N", 10, 0),
    ("FURNIZOR", "N", 6, 0),
    ("ADRESA", "C", 30, 0),
    ("PRO_VAMA", "N", 6, 2),
    ("PRET_B", "N", 14, 2),
    ("PRET_C", "N", 14, 2),
    ("SHORT_C", "C", 10, 0),
    ("COD_CUTIE", "C", 15, 0),
    ("PRET_RECEP", "N", 14, 4),
    ("PROL", "N", 7, 2),
    ("PROL_ACHI", "N", 7, 2),
    ("KILOGRAME", "N", 10, 3),
    ("GABARIT", "C", 20, 0),
    ("CHEIECMD", "C", 10, 0),
    ("LOT", "C", 15, 0),
    ("CODTXINV", "C", 10, 0),
    ("CODVAMAL", "C", 10, 0),
    ("CODCPV", "C", 12, 0),
    ("KILO_NET", "N", 10, 3),
]

STOCK_INDEX_TAGS = ["COD", "COD_BARE", "DENUMIRE"]

_JULIAN_OFFSET = 1721425


def _encode_value(column: Column, value: Any, encoding: str) -> bytes:
    """Render one value into its fixed-width on-disk form."""
    _, tag, length, decimals = column
    if isinstance(value, bytes):
        return value[:length].ljust(length, b" ")
    if tag in ("N", "F"):
        if value is None:
            return b" " * length
        text = f"{Decimal(str(value)):.{decimals}f}" if decimals else str(int(value))
        return text.rjust(length)[-length:].encode("ascii")
    if tag == "D":
        if value is None:
            return b" " * 8
        return value.strftime("%Y%m%d").encode("ascii")
    if tag == "L":
        if value is None:
            return b"?"
        return b"T" if value else b"F"
    if tag == "I":
        return struct.pack("<i", int(value or 0))
    if tag == "Y":
        return struct.pack("<q", int(Decimal(str(value or 0)).scaleb(4)))
    if tag == "T":
        if value is None:
            return b"\x00" * 8
        day = value.date().toordinal() + _JULIAN_OFFSET
        millis = (value.hour * 3600 + value.minute * 60 + value.second) * 1000
        return struct.pack("<ii", day, millis + value.microsecond // 1000)
    text = "" if value is None else str(value)
    return text.encode(encoding)[:length].ljust(length, b" ")


def _build_table_bytes(
    columns: Sequence[Column],
    rows: Iterable[Mapping[str, Any]],
    deleted: Iterable[int] = (),
    version: int = 0x03,
    last_update: date | tuple[int, int, int] = date(2024, 1, 15),
    encoding: str = "cp1252",
) -> bytes:
    """
    Build a complete table file image.

    `deleted` holds row positions written with the deletion marker.
    `last_update` may be a raw (years since 1900, month, day) triple, so tests
    can write dates that are not on the calendar.
    """
    rows = list(rows)
    deleted = set(deleted)
    if isinstance(last_update, date):
        stamp = (last_update.year - 1900, last_update.month, last_update.day)
    else:
        stamp = last_update

    header_length = 32 + 32 * len(columns) + 1
    record_length = 1 + sum(length for _, _, length, _ in columns)

    out = bytearray()
    out += struct.pack("<B3BIHH", version, *stamp, len(rows), header_length, record_length)
    out += b"\x00" * 20
    for name, tag, length, decimals in columns:
        descriptor = bytearray(32)
        descriptor[0:11] = name.encode("ascii")[:10].ljust(11, b"\x00")
        descriptor[11] = ord(tag)
        descriptor[16] = length
        descriptor[17] = decimals
        out += descriptor
    out += b"\x0d"

    for position, row in enumerate(rows):
        out += b"*" if position in deleted else b" "
        for column in columns:
            out += _encode_value(column, row.get(column[0]), encoding)
    out += b"\x1a"
    return bytes(out)


def _build_index_bytes(
    tag_names: Sequence[str], signature: int = 0x02, tag_count: int | None = None
) -> bytes:
    """Build a multi-tag index image holding only the header and tag directory."""
    count = len(tag_names) if tag_count is None else tag_count
    out = bytearray(544 + 32 * len(tag_names))
    out[0] = signature
    struct.pack_into("<h", out, 28, count)
    for i, name in enumerate(tag_names):
        start = 544 + 32 * i
        out[start : start + 11] = name.encode("ascii")[:10].ljust(11, b"\x00")
    return bytes(out)


def stock_row(code: int, rng: random.Random, barcode: str | None = None) -> dict[str, Any]:
    """One plausible STOC row."""
    categories = ["ALIMENTE", "BAUTURI", "CURATENIE", "PAPETARIE"]
    units = ["BUC", "KG", "L", "SET"]
    return {
        "COD": code,
        "DENUMIRE": f"Produs {code}",
        "CATEGORIE": rng.choice(categories),
        "COD_BARE": barcode if barcode is not None else f"594{code:010d}",
        "CANTITATE": Decimal(rng.randint(0, 100_000)).scaleb(-3),
        "PRET": Decimal(rng.randint(100, 1_000_000)).scaleb(-2),
        "UNIT_MAS": rng.choice(units),
        "DEPOZITUL": rng.randint(1, 9),
        "DUBLU": rng.choice([True, False]),
        "DATA": date(2023, rng.randint(1, 12), rng.randint(1, 28)),
        "CANT_REZER": Decimal(rng.randint(0, 1_000)).scaleb(-3),
        "PRET_ACHI": Decimal(rng.randint(100, 900_000)).scaleb(-4),
        "GARANTIE": None,
        "LA_ENGROS": rng.choice(["D", "N"]),
        "PRET_B": Decimal(rng.randint(100, 1_000_000)).scaleb(-2),
        "PRET_C": Decimal(rng.randint(100, 1_000_000)).scaleb(-2),
        "FURNIZOR": rng.randint(1, 500),
        "LOT": f"L{rng.randint(1, 999):03d}",
        "KILO_NET": Decimal(rng.randint(0, 50_000)).scaleb(-3),
    }


def generate_rows(rows: int, seed: int) -> list[dict[str, Any]]:
    rng = random.Random(seed)
    return [stock_row(code, rng) for code in range(1, rows + 1)]


def _write_table(
    path: Path,
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[Column] = STOCK_COLUMNS,
    deleted: Iterable[int] = (),
    index_tags: Sequence[str] | None = None,
    **header: Any,
) -> Path:
    """Write a table file, plus a `.MDX` beside it when `index_tags` is given."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_build_table_bytes(columns, rows, deleted=deleted, **header))
    if index_tags is not None:
        path.with_suffix(".MDX").write_bytes(_build_index_bytes(index_tags))
    return path


@app.command()
def main(
    rows: int = typer.Option(
        100_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    deleted_every: int = typer.Option(
        0,
        "--deleted-every",
        help="Mark every Nth row as deleted (0 disables).",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("tmp/STOC.DBF"),
        "--output",
        "-o",
        help="Table file to write.",
    ),
    no_index: bool = typer.Option(
        False,
        "--no-index",
        help="Skip writing the companion index file.",
    ),
) -> None:
    """
    Generate a synthetic STOC table with the full production field layout.
    """
    start = time.perf_counter()
    typer.echo(f"Generating {rows:,} rows -> {output} (seed={seed})")
    deleted = range(deleted_every - 1, rows, deleted_every) if deleted_every > 0 else ()
    _write_table(
        output,
        generate_rows(rows, seed),
        deleted=deleted,
        index_tags=None if no_index else STOCK_INDEX_TAGS,
        last_update=datetime.now().date(),
    )
    duration = time.perf_counter() - start
    typer.echo(
        f"Table written in {duration:.2f}s ({rows / max(duration, 1e-9):,.0f} rows/s, "
        f"{output.stat().st_size:,} bytes)"
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
