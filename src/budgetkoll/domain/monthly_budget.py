"""Monthly budget domain service."""

import logging
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import MonthlyBudget
from budgetkoll.domain.errors import ConflictError, NotFoundError, ValidationError, invalid_month_key, not_found
from budgetkoll.utils.amount_parser import is_ore
from budgetkoll.utils.date_parser import MONTH_KEY_PATTERN

logger = logging.getLogger(__name__)

INCOME_FIELDS = ("primary_income", "secondary_income", "child_benefit", "other_income")


class MonthlyBudgetService:
    """Service for the per-month income budget (one per user and month)."""

    def __init__(self, db: Database, user_id: str):
        self.db = db
        self.user_id = user_id

    @staticmethod
    def _check_month(month_key: str) -> None:
        if not isinstance(month_key, str) or not MONTH_KEY_PATTERN.match(month_key):
            raise ValidationError(invalid_month_key(month_key))

    @staticmethod
    def _clean(fields: dict[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - set(INCOME_FIELDS) - {"notes"}
        if unknown:
            raise ValidationError(f"Unknown budget field(s): {', '.join(sorted(unknown))}")
        for name in INCOME_FIELDS:
            if name in fields:
                value = fields[name]
                if value is None:
                    fields[name] = 0
                elif not is_ore(value):
                    raise ValidationError(f"{name} must be an integer amount in öre")
        return fields

    def create_budget(self, month_key: str, **fields: Any) -> int:
        """Create the budget for a month.

        Raises:
            ValidationError: If the month key or an amount is malformed
            ConflictError: If the month already has a budget
        """
        self._check_month(month_key)
        fields = self._clean(fields)
        if self.get_budget(month_key) is not None:
            raise ConflictError(f"Monthly budget for {month_key} already exists")
        budget_id = self.db.create_monthly_budget(self.user_id, month_key, **fields)
        logger.info("Created monthly budget %s (id=%s)", month_key, budget_id)
        return budget_id

    def get_budget(self, month_key: str) -> Optional[MonthlyBudget]:
        self._check_month(month_key)
        return self.db.get_monthly_budget(self.user_id, month_key)

    def list_budgets(self) -> list[MonthlyBudget]:
        return self.db.list_monthly_budgets(self.user_id)

    def update_budget(self, month_key: str, **changes: Any) -> MonthlyBudget:
        if self.get_budget(month_key) is None:
            raise NotFoundError(not_found("Monthly budget", month_key))
        changes = self._clean(changes)
        if changes:
            self.db.update_monthly_budget(self.user_id, month_key, **changes)
        return self.get_budget(month_key)

    def save_budget(self, month_key: str, **fields: Any) -> MonthlyBudget:
        """Create the month's budget or update the existing one."""
        if self.get_budget(month_key) is None:
            self.create_budget(month_key, **fields)
            return self.get_budget(month_key)
        return self.update_budget(month_key, **fields)

    def delete_budget(self, month_key: str) -> None:
        if self.get_budget(month_key) is None:
            raise NotFoundError(not_found("Monthly budget", month_key))
        self.db.delete_monthly_budget(self.user_id, month_key)
        logger.info("Deleted monthly budget %s", month_key)
