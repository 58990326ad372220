"""Statement file adapters.

Every supported file format is turned into the same representation: semicolon
delimited text, one line per row. Parsing that text is the import service's
job; this module only knows about file formats.
"""

import io
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable

from openpyxl import load_workbook

DELIMITER = ";"
XLSX_MAGIC = b"PK\x03\x04"
TEXT_ENCODINGS = ("utf-8-sig", "utf-8", "cp1252", "latin-1")


def is_xlsx(data: bytes, filename: str | None = None) -> bool:
    """Detect an XLSX workbook by extension or zip signature."""
    if filename and filename.lower().endswith((".xlsx", ".xlsm")):
        return True
    return data[:4] == XLSX_MAGIC


def decode_text(data: bytes) -> str:
    """Decode CSV bytes, trying the encodings Swedish banks use."""
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Could not decode file with any known encoding")


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    # The delimiter cannot be quoted downstream, so drop it from cell text
    return text.replace(DELIMITER, ",").replace("\r", " ").replace("\n", " ")


def rows_to_text(rows: Iterable[Iterable[Any]]) -> str:
    """Join spreadsheet rows into semicolon-delimited lines."""
    return "\n".join(DELIMITER.join(_format_cell(cell) for cell in row) for row in rows)


def xlsx_to_text(data: bytes) -> str:
    """Convert the first worksheet of an XLSX workbook to delimited text."""
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise ValueError(f"Could not read Excel file: {e}") from e
    try:
        sheet = workbook.worksheets[0]
        return rows_to_text(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def read_statement_bytes(data: bytes, filename: str | None = None) -> str:
    """Turn uploaded statement bytes (CSV or XLSX) into delimited text."""
    if is_xlsx(data, filename):
        return xlsx_to_text(data)
    return decode_text(data)


def read_statement_file(path: str | Path) -> str:
    """Read a statement file from disk into delimited text.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Statement file not found: {path}")
    return read_statement_bytes(file_path.read_bytes(), file_path.name)
