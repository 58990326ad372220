"""Bank statement import domain service.

Parsing is a pure pipeline over delimited text:

    text -> header row -> field -> column index -> ImportedRow records

File formats (CSV, XLSX) are handled by ``budgetkoll.utils.spreadsheet``,
which turns any supported file into delimited text first.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.bank import REQUIRED_FIELDS, BankCsvMappingService, mapping_columns
from budgetkoll.domain.category_rule import CategoryRuleService
from budgetkoll.domain.entities import ImportedRow
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found
from budgetkoll.domain.monthly_balance import MonthlyBalanceService
from budgetkoll.domain.transaction import TransactionService, generate_unique_id
from budgetkoll.utils.amount_parser import parse_amount_ore
from budgetkoll.utils.date_parser import parse_date
from budgetkoll.utils.spreadsheet import read_statement_bytes, read_statement_file

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = (";", "\t", ",")


@dataclass
class ParsedStatement:
    """Result of parsing statement text."""

    header: list[str]
    column_index: dict[str, int]
    rows: list[ImportedRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def detect_delimiter(line: str) -> str:
    """Pick the delimiter that splits the header line into the most cells."""
    return max(CANDIDATE_DELIMITERS, key=lambda d: (line.count(d), d == ";"))


def split_line(line: str, delimiter: str) -> list[str]:
    """Split one line, honouring double-quoted cells."""
    return [cell.strip() for cell in next(csv.reader([line], delimiter=delimiter))]


def find_header_row(lines: list[str], columns: dict[str, str]) -> tuple[int, str]:
    """Locate the header row by scanning for the required column names.

    Bank exports often start with a few lines of account information, so the
    header is not assumed to be the first line.

    Returns:
        (line index, delimiter)

    Raises:
        ValidationError: If no line holds every required column
    """
    required = [columns[f] for f in REQUIRED_FIELDS if f in columns]
    for index, line in enumerate(lines):
        if not line.strip():
            continue
        delimiter = detect_delimiter(line)
        cells = set(split_line(line, delimiter))
        if all(name in cells for name in required):
            return index, delimiter
    raise ValidationError(
        f"Could not find a header row with columns: {', '.join(required)}"
    )


def map_columns(header: list[str], columns: dict[str, str]) -> dict[str, int]:
    """Map each semantic field to its column index in ``header``.

    Optional fields whose column is absent are left out.

    Raises:
        ValidationError: If a required field's column is missing
    """
    positions = {name: i for i, name in reversed(list(enumerate(header)))}
    index = {}
    missing = []
    for field_name, column_name in columns.items():
        if column_name in positions:
            index[field_name] = positions[column_name]
        elif field_name in REQUIRED_FIELDS:
            missing.append(column_name)
    if missing:
        raise ValidationError(f"Statement is missing required columns: {', '.join(missing)}")
    return index


def _cell(cells: list[str], column_index: dict[str, int], field_name: str) -> Optional[str]:
    position = column_index.get(field_name)
    if position is None or position >= len(cells):
        return None
    return cells[position].strip() or None


def parse_row(cells: list[str], column_index: dict[str, int], row_num: int) -> ImportedRow:
    """Turn one split line into a typed row.

    Raises:
        ValueError: If a required value is missing or malformed
    """
    date_str = _cell(cells, column_index, "date")
    if not date_str:
        raise ValueError("Missing date")
    amount_str = _cell(cells, column_index, "amount")
    if not amount_str:
        raise ValueError("Missing amount")

    balance_str = _cell(cells, column_index, "balance")
    return ImportedRow(
        row_num=row_num,
        date=parse_date(date_str),
        description=_cell(cells, column_index, "description") or "",
        amount=parse_amount_ore(amount_str),
        balance_after=parse_amount_ore(balance_str) if balance_str else None,
        bank_category=_cell(cells, column_index, "bank_category"),
        bank_sub_category=_cell(cells, column_index, "bank_sub_category"),
    )


def parse_statement(text: str, columns: dict[str, str]) -> ParsedStatement:
    """Parse statement text into typed rows.

    Blank lines are skipped silently. Rows that fail to parse are reported as
    ``"Row N: reason"`` (N is the 1-based line number) and never abort the
    file.

    Raises:
        ValidationError: If no header row can be found
    """
    lines = text.splitlines()
    header_index, delimiter = find_header_row(lines, columns)
    header = split_line(lines[header_index], delimiter)
    column_index = map_columns(header, columns)

    parsed = ParsedStatement(header=header, column_index=column_index)
    for offset, line in enumerate(lines[header_index + 1:], start=header_index + 2):
        if not line.strip() or not line.strip(delimiter + " "):
            continue
        try:
            parsed.rows.append(parse_row(split_line(line, delimiter), column_index, offset))
        except ValueError as e:
            logger.debug("Skipping statement row %s: %s", offset, e)
            parsed.errors.append(f"Row {offset}: {e}")
    return parsed


class CSVImportService:
    """Service for importing bank statements into an account."""

    def __init__(self, db: Database, user_id: str):
        """Initialize import service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id
        self.mapping_service = BankCsvMappingService(db, user_id)
        self.rule_service = CategoryRuleService(db, user_id)
        self.balance_service = MonthlyBalanceService(db, user_id)
        self.transaction_service = TransactionService(db, user_id)

    def resolve_columns(
        self, mapping_id: Optional[int] = None, bank_id: Optional[int] = None
    ) -> dict[str, str]:
        """Column names to use: an explicit mapping, the bank's active one, or the defaults."""
        if mapping_id is not None:
            mapping = self.mapping_service.get_mapping(mapping_id)
            if mapping is None:
                raise NotFoundError(not_found("CSV mapping", mapping_id))
            return mapping_columns(mapping)
        if bank_id is not None:
            if self.db.get_bank(self.user_id, bank_id) is None:
                raise NotFoundError(not_found("Bank", bank_id))
            return mapping_columns(self.mapping_service.get_active_mapping(bank_id))
        return mapping_columns(None)

    def import_text(
        self,
        text: str,
        account_id: int,
        mapping_id: Optional[int] = None,
        bank_id: Optional[int] = None,
        file_source: Optional[str] = None,
    ) -> dict[str, Any]:
        """Import delimited statement text into an account.

        Args:
            text: Delimited statement text
            account_id: Account the rows are booked on
            mapping_id: Explicit CSV mapping to use
            bank_id: Use this bank's active mapping when no mapping is given
            file_source: File name recorded on each transaction

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - skipped: number of duplicates skipped
            - categorized: number of imported rows categorized on the way in
            - errors: list of error messages
            - balances: month key -> bank closing balance recorded
            - linked: number of transfer pairs linked across accounts

        Raises:
            NotFoundError: If the account or mapping doesn't exist
            ValidationError: If the statement has no recognizable header
        """
        if self.db.get_account(self.user_id, account_id) is None:
            raise NotFoundError(not_found("Account", account_id))
        parsed = parse_statement(text, self.resolve_columns(mapping_id, bank_id))

        imported = 0
        skipped = 0
        categorized = 0
        errors = list(parsed.errors)
        seen: dict[tuple, int] = {}

        for row in parsed.rows:
            key = (row.date, row.description.strip(), row.amount, row.balance_after)
            occurrence = seen.get(key, 0)
            seen[key] = occurrence + 1
            unique_id = generate_unique_id(
                account_id, row.date, row.description, row.amount, row.balance_after, occurrence
            )
            if self.db.transaction_exists(account_id, unique_id):
                skipped += 1
                continue

            fields = self.rule_service.categorize(row, account_id) or {}
            try:
                self.db.create_transaction(
                    self.user_id,
                    unique_id=unique_id,
                    account_id=account_id,
                    date=row.date,
                    description=row.description,
                    amount=row.amount,
                    balance_after=row.balance_after,
                    bank_category=row.bank_category,
                    bank_sub_category=row.bank_sub_category,
                    file_source=file_source,
                    **fields,
                )
            except ValueError as e:
                errors.append(f"Row {row.row_num}: {e}")
                continue
            imported += 1
            if fields:
                categorized += 1

        balances = self.balance_service.update_from_statement(account_id, parsed.rows)
        linked = self.transaction_service.auto_match_transfers() if imported else []
        logger.info(
            "Imported %s transactions into account %s (%s skipped, %s errors)",
            imported,
            account_id,
            skipped,
            len(errors),
        )
        return {
            "imported": imported,
            "skipped": skipped,
            "categorized": categorized,
            "errors": errors,
            "balances": balances,
            "linked": len(linked),
        }

    def import_bytes(self, data: bytes, filename: Optional[str], account_id: int, **options: Any) -> dict[str, Any]:
        """Import an uploaded CSV or XLSX file."""
        try:
            text = read_statement_bytes(data, filename)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return self.import_text(text, account_id, file_source=filename, **options)

    def import_file(self, path: str, account_id: int, **options: Any) -> dict[str, Any]:
        """Import a CSV or XLSX file from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        try:
            text = read_statement_file(path)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return self.import_text(text, account_id, file_source=Path(path).name, **options)
