"""Tests for statement file adapters."""

import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from budgetkoll.utils.spreadsheet import (
    decode_text,
    is_xlsx,
    read_statement_bytes,
    read_statement_file,
    rows_to_text,
)


def make_xlsx(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_xlsx_converted_to_semicolon_text():
    data = make_xlsx(
        [
            ["Datum", "Text", "Belopp", "Saldo"],
            [datetime(2025, 8, 28), "ICA; Maxi", -1234.56, 8765.0],
        ]
    )

    assert is_xlsx(data)
    text = read_statement_bytes(data, "export.xlsx")

    lines = text.splitlines()
    assert lines[0] == "Datum;Text;Belopp;Saldo"
    assert lines[1] == "2025-08-28;ICA, Maxi;-1234.56;8765"


def test_csv_bytes_decoded_with_fallback_encoding():
    data = "Datum;Text\n2025-08-01;Kafé".encode("cp1252")

    assert not is_xlsx(data, "export.csv")
    assert "Kafé" in read_statement_bytes(data, "export.csv")


def test_decode_text_strips_bom():
    assert decode_text("﻿Datum".encode("utf-8")) == "Datum"


def test_rows_to_text_blank_cells():
    assert rows_to_text([["a", None, 3.0]]) == "a;;3"


def test_broken_xlsx_raises_value_error():
    with pytest.raises(ValueError):
        read_statement_bytes(b"PK\x03\x04 not really a zip", "broken.xlsx")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_statement_file(tmp_path / "nope.csv")
