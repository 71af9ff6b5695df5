"""Tests for CSV/XLSX decoding."""

from __future__ import annotations

import io
import logging
from datetime import datetime

import pytest
from openpyxl import Workbook

from ledgerport.core.exceptions import FileDecodeError
from ledgerport.ingest.readers import read_csv, read_spreadsheet, read_xlsx


def _xlsx(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestReadCsv:
    def test_headers_and_rows(self):
        sheet = read_csv(b"Customer,Item,Qty\nAcme,Widget,2\n")
        assert sheet.headers == ["Customer", "Item", "Qty"]
        assert sheet.rows == [["Acme", "Widget", "2"]]

    def test_utf8_bom(self):
        sheet = read_csv("\ufeffCustomer,Qty\nAcme,1\n".encode("utf-8"))
        assert sheet.headers[0] == "Customer"

    def test_latin1_fallback(self):
        sheet = read_csv("Customer,Qty\nCaf\xe9 Ltd,1\n".encode("latin-1"))
        assert sheet.rows[0][0] == "Caf\xe9 Ltd"

    def test_arabic_utf8(self):
        sheet = read_csv("العميل,الكمية\nشركة النور,3\n".encode("utf-8"))
        assert sheet.headers == ["العميل", "الكمية"]

    def test_skips_empty_rows_and_pads_short_rows(self):
        sheet = read_csv(b"A,B,C\n,,\n1\n\n2,3,4\n")
        assert sheet.rows == [["1", None, None], ["2", "3", "4"]]

    def test_multiline_quoted_cell(self):
        sheet = read_csv(b'Customer,Qty\n"Acme\nBranch 2",1\n')
        assert sheet.rows[0][0] == "Acme\nBranch 2"

    def test_max_rows(self, caplog):
        content = b"A\n" + b"".join(f"{i}\n".encode() for i in range(10))
        with caplog.at_level(logging.WARNING, logger="ledgerport.ingest.readers"):
            sheet = read_csv(content, max_rows=3)
        assert len(sheet.rows) == 3
        assert "dropped 7" in caplog.text

    def test_empty_file(self):
        with pytest.raises(FileDecodeError):
            read_csv(b"")


class TestReadXlsx:
    def test_native_cell_types(self):
        content = _xlsx([
            ["Customer", "Qty", "Date"],
            ["Acme", 2, datetime(2024, 1, 15)],
        ])
        sheet = read_xlsx(content)
        assert sheet.headers == ["Customer", "Qty", "Date"]
        assert sheet.rows[0][1] == 2
        assert sheet.rows[0][2] == datetime(2024, 1, 15)

    def test_blank_header_kept_positionally(self):
        sheet = read_xlsx(_xlsx([["Customer", None, "Qty"], ["Acme", "x", 1]]))
        assert sheet.headers == ["Customer", "", "Qty"]
        assert sheet.rows == [["Acme", "x", 1]]

    def test_garbage_bytes(self):
        with pytest.raises(FileDecodeError):
            read_xlsx(b"PK not really a zip")


class TestReadSpreadsheet:
    def test_dispatches_on_extension(self):
        assert read_spreadsheet(b"A\n1\n", "Orders.CSV").rows == [["1"]]
        assert read_spreadsheet(_xlsx([["A"], [1]]), "orders.xlsx").rows == [[1]]

    def test_unsupported_extension(self):
        with pytest.raises(FileDecodeError, match="unsupported file type"):
            read_spreadsheet(b"...", "orders.pdf")
