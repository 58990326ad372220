"""Planned transfers between accounts.

Two policies exist. A ``monthly`` transfer moves its ``amount`` once per month.
A ``daily`` transfer moves ``daily_amount`` on each day of the calendar month
whose weekday is in ``transfer_days`` (0=Sunday..6=Saturday).
"""

import logging
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.entities import PlannedTransfer, Transaction
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found
from budgetkoll.utils.amount_parser import is_ore
from budgetkoll.utils.date_parser import js_weekday, month_bounds

logger = logging.getLogger(__name__)

TRANSFER_MONTHLY = "monthly"
TRANSFER_DAILY = "daily"
TRANSFER_TYPES = (TRANSFER_MONTHLY, TRANSFER_DAILY)

WEEKDAY_NAMES = {0: "Sön", 1: "Mån", 2: "Tis", 3: "Ons", 4: "Tor", 5: "Fre", 6: "Lör"}


def _days_between(start: date, end: date) -> Iterable[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def transfer_days_in_month(month_key: str, transfer_days: Iterable[int]) -> int:
    """Count days in the calendar month whose weekday is in ``transfer_days``.

    >>> transfer_days_in_month("2025-08", [1])
    4
    """
    wanted = set(transfer_days)
    first, last = month_bounds(month_key)
    return sum(1 for day in _days_between(first, last) if js_weekday(day) in wanted)


def _is_daily(transfer: PlannedTransfer) -> bool:
    return (
        transfer.transfer_type == TRANSFER_DAILY
        and bool(transfer.daily_amount)
        and bool(transfer.transfer_days)
    )


def monthly_contribution(transfer: PlannedTransfer, month_key: Optional[str] = None) -> int:
    """Total öre the transfer moves in ``month_key`` (defaults to its own month)."""
    if not _is_daily(transfer):
        return transfer.amount
    month_key = month_key or transfer.month
    return transfer.daily_amount * transfer_days_in_month(month_key, transfer.transfer_days)


def estimated_to_date(
    transfer: PlannedTransfer, month_key: Optional[str] = None, today: Optional[date] = None
) -> int:
    """Amount expected to have moved by ``today`` (inclusive).

    Monthly transfers count in full. Daily transfers count the matching days
    from the first of the month up to ``today``: nothing before the month
    starts, everything once it has ended.
    """
    if not _is_daily(transfer):
        return transfer.amount
    month_key = month_key or transfer.month
    today = today or date.today()
    first, last = month_bounds(month_key)
    if today < first:
        return 0
    if today > last:
        return monthly_contribution(transfer, month_key)
    wanted = set(transfer.transfer_days)
    count = sum(1 for day in _days_between(first, today) if js_weekday(day) in wanted)
    return transfer.daily_amount * count


def remaining(
    transfer: PlannedTransfer, month_key: Optional[str] = None, today: Optional[date] = None
) -> int:
    """Amount a daily transfer still has to move this month; 0 for monthly transfers."""
    if not _is_daily(transfer):
        return 0
    month_key = month_key or transfer.month
    total = monthly_contribution(transfer, month_key)
    return max(0, total - estimated_to_date(transfer, month_key, today))


def actual_transferred(
    transfer: PlannedTransfer, transactions: Iterable[Transaction], month_key: Optional[str] = None
) -> int:
    """Sum of absolute (corrected) amounts booked on the transfer's underkategori within the month."""
    if transfer.underkategori_id is None:
        return 0
    first, last = month_bounds(month_key or transfer.month)
    return sum(
        abs(t.effective_amount)
        for t in transactions
        if t.underkategori_id == transfer.underkategori_id and first <= t.date <= last
    )


def format_transfer_days(transfer_days: Iterable[int]) -> str:
    """Swedish short weekday names, e.g. ``[5, 1]`` -> ``"Mån, Fre"``."""
    return ", ".join(WEEKDAY_NAMES[day] for day in sorted(set(transfer_days)))


def parse_transfer_days(text: str) -> list[int]:
    """Parse ``"1,3,5"`` or ``"mån,ons"`` into weekday numbers."""
    by_name = {name.lower(): num for num, name in WEEKDAY_NAMES.items()}
    days = []
    for part in text.split(","):
        part = part.strip().lower()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
        elif part[:3] in by_name:
            days.append(by_name[part[:3]])
        else:
            raise ValueError(f"Unknown weekday '{part}'")
    return validate_transfer_days(days)


def validate_transfer_days(days: Iterable[int]) -> list[int]:
    """Return sorted distinct weekday numbers, rejecting anything outside 0-6."""
    result = set()
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValueError(f"Transfer day {day!r} must be a weekday number 0-6")
        result.add(day)
    return sorted(result)


class PlannedTransferService:
    """Service for managing planned transfers."""

    def __init__(self, db: Database, user_id: str):
        """Initialize planned transfer service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id
        self.category_service = CategoryService(db, user_id)

    def _validate(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Validate a complete set of transfer fields."""
        from_id = fields.get("from_account_id")
        to_id = fields.get("to_account_id")
        for account_id in (from_id, to_id):
            if account_id is None:
                raise ValidationError("Both from_account_id and to_account_id are required")
            if self.db.get_account(self.user_id, account_id) is None:
                raise NotFoundError(not_found("Account", account_id))
        if from_id == to_id:
            raise ValidationError("A transfer needs two different accounts")

        try:
            month_bounds(fields.get("month") or "")
        except ValueError as e:
            raise ValidationError(str(e)) from e

        transfer_type = fields.get("transfer_type") or TRANSFER_MONTHLY
        if transfer_type not in TRANSFER_TYPES:
            raise ValidationError(f"transfer_type must be one of {', '.join(TRANSFER_TYPES)}")
        fields["transfer_type"] = transfer_type

        try:
            fields["transfer_days"] = validate_transfer_days(fields.get("transfer_days") or [])
        except ValueError as e:
            raise ValidationError(str(e)) from e

        amount = fields.get("amount", 0)
        if not is_ore(amount):
            raise ValidationError("amount must be an integer amount in öre")
        daily_amount = fields.get("daily_amount")
        if daily_amount is not None and not is_ore(daily_amount):
            raise ValidationError("daily_amount must be an integer amount in öre")

        if transfer_type == TRANSFER_DAILY:
            if not fields["transfer_days"]:
                raise ValidationError("Daily transfers need at least one transfer day")
            if not daily_amount:
                raise ValidationError("Daily transfers need a daily_amount")
            if not is_ore(daily_amount * transfer_days_in_month(fields["month"], fields["transfer_days"])):
                raise ValidationError("daily_amount is too large for a month of transfers")

        self.category_service.validate_pair(fields.get("huvudkategori_id"), fields.get("underkategori_id"))
        return fields

    def create_transfer(self, **fields: Any) -> int:
        """Create a planned transfer.

        Args:
            **fields: ``from_account_id``, ``to_account_id``, ``month`` and
                ``amount``, plus optional ``description``, ``transfer_type``,
                ``daily_amount``, ``transfer_days``, ``huvudkategori_id`` and
                ``underkategori_id``

        Returns:
            Transfer ID

        Raises:
            ValidationError: If the transfer is inconsistent
            NotFoundError: If an account or category is missing
        """
        fields.setdefault("amount", 0)
        fields = self._validate(fields)
        if fields["transfer_type"] == TRANSFER_DAILY and not fields["amount"]:
            fields["amount"] = fields["daily_amount"] * transfer_days_in_month(
                fields["month"], fields["transfer_days"]
            )
        transfer_id = self.db.create_planned_transfer(self.user_id, **fields)
        logger.info(
            "Created %s transfer %s -> %s for %s (id=%s)",
            fields["transfer_type"],
            fields["from_account_id"],
            fields["to_account_id"],
            fields["month"],
            transfer_id,
        )
        return transfer_id

    def get_transfer(self, transfer_id: int) -> Optional[PlannedTransfer]:
        return self.db.get_planned_transfer(self.user_id, transfer_id)

    def transferred_so_far(self, transfer: PlannedTransfer, month_key: Optional[str] = None) -> int:
        """Amount actually booked for ``transfer`` in its month, from its underkategori."""
        if transfer.underkategori_id is None:
            return 0
        first, last = month_bounds(month_key or transfer.month)
        transactions = self.db.list_transactions(self.user_id, start_date=first, end_date=last)
        return actual_transferred(transfer, transactions, month_key)

    def list_transfers(
        self, month: Optional[str] = None, account_id: Optional[int] = None
    ) -> list[PlannedTransfer]:
        if month is not None:
            try:
                month_bounds(month)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        return self.db.list_planned_transfers(self.user_id, month=month, account_id=account_id)

    def update_transfer(self, transfer_id: int, **changes: Any) -> PlannedTransfer:
        """Update a transfer; the merged result is validated as a whole."""
        current = self.get_transfer(transfer_id)
        if current is None:
            raise NotFoundError(not_found("Planned transfer", transfer_id))
        merged = {
            "from_account_id": current.from_account_id,
            "to_account_id": current.to_account_id,
            "amount": current.amount,
            "month": current.month,
            "description": current.description,
            "transfer_type": current.transfer_type,
            "daily_amount": current.daily_amount,
            "transfer_days": list(current.transfer_days),
            "huvudkategori_id": current.huvudkategori_id,
            "underkategori_id": current.underkategori_id,
        }
        unknown = set(changes) - set(merged)
        if unknown:
            raise ValidationError(f"Unknown transfer field(s): {', '.join(sorted(unknown))}")
        merged.update(changes)
        merged = self._validate(merged)
        self.db.update_planned_transfer(
            self.user_id, transfer_id, **{k: merged[k] for k in changes.keys() | {"transfer_days"}}
        )
        return self.get_transfer(transfer_id)

    def delete_transfer(self, transfer_id: int) -> None:
        if self.get_transfer(transfer_id) is None:
            raise NotFoundError(not_found("Planned transfer", transfer_id))
        self.db.delete_planned_transfer(self.user_id, transfer_id)
        logger.info("Deleted planned transfer %s", transfer_id)
