from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime
from itertools import chain
from pathlib import Path
from types import MappingProxyType
from typing import Any, BinaryIO, Iterator, Mapping, TextIO
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from catalog_roundtrip.core.errors import ParseError

# tie -> earliest wins.
DELIMITER_CANDIDATES: tuple[str, ...] = (",", ";", "\t", "|")

XLSX_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm")


@dataclass(frozen=True, slots=True)
class RawRow:
    """One data line, keyed by normalized header name."""
    line_number: int                # 1-based physical line the record starts on, header is line 1.
    values: Mapping[str, str]       # read-only.

    def get(self, key: str, default: str = "") -> str:
        return self.values.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.values


def detect_delimiter(line: str) -> str:
    """
    Pick the candidate that splits `line` into the most columns.

    Quoted delimiters are not counted. Empty input gives `,`.
    """
    best, best_count = DELIMITER_CANDIDATES[0], 0
    for candidate in DELIMITER_CANDIDATES:
        cells = next(csv.reader([line], delimiter=candidate), [])
        if len(cells) > best_count:
            best, best_count = candidate, len(cells)
    return best


def _is_blank(cells: list[str]) -> bool:
    return all(c.strip() == "" for c in cells)


def _read_head(f: TextIO) -> tuple[list[str], str]:
    """Leading lines up to and including the first non-blank one, and that line."""
    head: list[str] = []
    for line in f:
        head.append(line)
        if line.strip():
            return head, line
    return head, ""


def _stream_text(f: TextIO) -> Iterator[RawRow]:
    head, first_line = _read_head(f)
    if not first_line:
        return
    reader = csv.reader(chain(head, f), delimiter=detect_delimiter(first_line))

    header: list[str] | None = None
    line_number = 1
    for cells in reader:
        start, line_number = line_number, reader.line_num + 1
        if _is_blank(cells):
            continue
        if header is None:
            header = [c.strip().lower() for c in cells]
            continue
        # duplicate header names: the last one wins.
        values = {h: (cells[i].strip() if i < len(cells) else "") for i, h in enumerate(header)}
        yield RawRow(line_number=start, values=MappingProxyType(values))


def stream_product_rows(source: str | Path | BinaryIO) -> Iterator[RawRow]:
    """
    Yields `RawRow` for each non-blank data line of a delimited UTF-8 file.

    `source` is a path or a readable binary stream. A leading BOM is dropped,
    the delimiter is sniffed off the header line. The iterator is lazy and
    single-use. Raises `ParseError` when the source can't be opened or decoded.
    """
    if isinstance(source, str):
        source = Path(source)
    try:
        if isinstance(source, Path):
            with source.open("r", encoding="utf-8-sig", newline="") as f:
                yield from _stream_text(f)
        else:
            f = io.TextIOWrapper(source, encoding="utf-8-sig", newline="")
            try:
                yield from _stream_text(f)
            finally:
                # hand the underlying stream back to its owner open.
                f.detach()
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"cannot read {getattr(source, 'name', source)}: {e}") from e


def _cell_text(v: Any) -> str:
    """Spreadsheet cell value as the text a delimited export would hold."""
    if v is None:
        return ""
    if isinstance(v, bool):
        return "yes" if v else "no"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    if isinstance(v, datetime):
        return v.date().isoformat()
    if isinstance(v, date):
        return v.isoformat()
    return str(v).strip()


def read_xlsx_rows(source: str | Path | BinaryIO) -> list[RawRow]:
    """
    Rows of the first worksheet of an XLSX workbook, normalized like a delimited file.

    Line numbers are sheet row numbers. Formulas are read as their cached values.
    Raises `ParseError` when the workbook can't be opened or read.
    """
    if isinstance(source, str):
        source = Path(source)
    try:
        wb = load_workbook(source, read_only=True, data_only=True)
    except (OSError, BadZipFile, InvalidFileException, KeyError) as e:
        raise ParseError(f"cannot read {getattr(source, 'name', source)}: {e}") from e

    rows: list[RawRow] = []
    header: list[str] | None = None
    try:
        ws = wb.worksheets[0]
        for line_number, cells in enumerate(ws.iter_rows(values_only=True), start=1):
            texts = [_cell_text(c) for c in cells]
            if _is_blank(texts):
                continue
            if header is None:
                header = [t.lower() for t in texts]
                continue
            values = {h: (texts[i] if i < len(texts) else "") for i, h in enumerate(header)}
            rows.append(RawRow(line_number=line_number, values=MappingProxyType(values)))
    except (OSError, BadZipFile, KeyError, ValueError) as e:
        raise ParseError(f"cannot read {getattr(source, 'name', source)}: {e}") from e
    finally:
        wb.close()
    return rows


def load_rows(source: str | Path | BinaryIO) -> list[RawRow]:
    """
    Every data row of `source`, read before the caller acts on any of them.

    Workbooks are picked by file suffix, anything else is read as delimited text.
    A `ParseError` anywhere in the file surfaces here, so a run never starts on
    a source it can't finish reading.
    """
    name = str(getattr(source, "name", source))
    if name.lower().endswith(XLSX_SUFFIXES):
        return read_xlsx_rows(source)
    return list(stream_product_rows(source))
