"""Spreadsheet decoding for CSV and XLSX uploads (first worksheet only)."""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import PurePosixPath
from typing import Iterable, Iterator, NamedTuple

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ledgerport.core.exceptions import FileDecodeError
from ledgerport.core.types import CellValue

logger = logging.getLogger(__name__)

MAX_ROWS = 5000
CSV_ENCODINGS = ("utf-8-sig", "latin-1")
XLSX_SUFFIXES = (".xlsx", ".xlsm")


class SheetData(NamedTuple):
    """Header row plus positional data rows, exactly as the file holds them."""

    headers: list[str]
    rows: list[list[CellValue]]


def _is_empty(row: Iterable[CellValue]) -> bool:
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)


def _collect(file_name: str, header_row: Iterable[CellValue] | None,
             body: Iterator[Iterable[CellValue]], max_rows: int) -> SheetData:
    if header_row is None:
        raise FileDecodeError(file_name, "file is empty")
    headers = ["" if h is None else str(h).strip() for h in header_row]
    while headers and not headers[-1]:
        headers.pop()
    if not headers:
        raise FileDecodeError(file_name, "file has no headers")

    rows: list[list[CellValue]] = []
    dropped = 0
    for raw in body:
        cells = list(raw)[: len(headers)]
        if _is_empty(cells):
            continue
        if len(rows) >= max_rows:
            dropped += 1
            continue
        cells.extend([None] * (len(headers) - len(cells)))
        rows.append(cells)

    if dropped:
        logger.warning("%s: kept first %d rows, dropped %d", file_name, max_rows, dropped)
    return SheetData(headers, rows)


def read_csv(content: bytes, file_name: str = "upload.csv", *, max_rows: int = MAX_ROWS) -> SheetData:
    """Decode CSV bytes, trying UTF-8 (BOM tolerated) before Latin-1."""
    text = None
    for encoding in CSV_ENCODINGS:
        try:
            text = content.decode(encoding)
            break
        except UnicodeDecodeError:
            logger.debug("%s: not decodable as %s", file_name, encoding)
    if text is None:
        raise FileDecodeError(file_name, "unsupported text encoding")

    try:
        reader = csv.reader(io.StringIO(text, newline=""))
        return _collect(file_name, next(reader, None), reader, max_rows)
    except csv.Error as exc:
        raise FileDecodeError(file_name, f"malformed CSV: {exc}") from exc


def read_xlsx(content: bytes, file_name: str = "upload.xlsx", *, max_rows: int = MAX_ROWS) -> SheetData:
    """Decode an XLSX workbook, keeping native cell types (numbers, datetimes)."""
    try:
        workbook = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise FileDecodeError(file_name, f"not a readable workbook: {exc}") from exc

    try:
        sheet = workbook.worksheets[0] if workbook.worksheets else None
        if sheet is None:
            raise FileDecodeError(file_name, "workbook has no worksheets")
        row_iter = sheet.iter_rows(values_only=True)
        return _collect(file_name, next(row_iter, None), row_iter, max_rows)
    finally:
        workbook.close()


def read_spreadsheet(content: bytes, file_name: str, *, max_rows: int = MAX_ROWS) -> SheetData:
    """Dispatch on file extension."""
    suffix = PurePosixPath(file_name).suffix.lower()
    if suffix == ".csv":
        return read_csv(content, file_name, max_rows=max_rows)
    if suffix in XLSX_SUFFIXES:
        return read_xlsx(content, file_name, max_rows=max_rows)
    raise FileDecodeError(file_name, f"unsupported file type {suffix or '(none)'}")
