"""Monthly account balance reconciliation.

Each (month, account) row carries three figures in öre:

* ``calculated_balance``: derived from the month's categorized transactions
  and the planned transfers touching the account
* ``faktiskt_kontosaldo``: the balance the user says the account really had
* ``bankens_kontosaldo``: the balance the bank reported on its statement

The calculated figure is only written by recalculation; the other two are only
written by their own update paths. Divergence is reported, never acted on.
"""

import logging
from typing import Iterable, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import ImportedRow, MonthlyAccountBalance
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found
from budgetkoll.domain.planned_transfer import monthly_contribution
from budgetkoll.utils.amount_parser import is_ore
from budgetkoll.utils.date_parser import month_bounds, month_key_for

logger = logging.getLogger(__name__)

AUTO_UPDATE_BALANCE_SETTING = "autoUpdateBalance"


def closing_balances_by_month(rows: Iterable[ImportedRow]) -> dict[str, int]:
    """Closing bank balance per month from statement rows.

    The closing balance is the ``balance_after`` of the latest-dated row. Banks
    export newest first or oldest first; within one day the newest row is the
    first one in a newest-first file and the last one otherwise.
    """
    with_balance = [row for row in rows if row.balance_after is not None]
    if not with_balance:
        return {}
    newest_first = with_balance[0].date > with_balance[-1].date
    ordered = list(reversed(with_balance)) if newest_first else with_balance

    closing: dict[str, tuple] = {}
    for row in ordered:
        key = month_key_for(row.date)
        current = closing.get(key)
        if current is None or row.date >= current[0]:
            closing[key] = (row.date, row.balance_after)
    return {key: balance for key, (_, balance) in closing.items()}


class MonthlyBalanceService:
    """Service for calculating and reconciling monthly account balances."""

    def __init__(self, db: Database, user_id: str):
        """Initialize balance service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id

    @staticmethod
    def _check_month(month_key: str) -> None:
        try:
            month_bounds(month_key)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def _require_account(self, account_id: int) -> None:
        if self.db.get_account(self.user_id, account_id) is None:
            raise NotFoundError(not_found("Account", account_id))

    @staticmethod
    def _check_amount(name: str, value: Optional[int]) -> None:
        if value is not None and not is_ore(value):
            raise ValidationError(f"{name} must be an integer amount in öre or null")

    def calculate_balance(self, month_key: str, account_id: int) -> int:
        """Derive the account's balance figure for a month.

        Sum of the month's categorized transactions on the account, plus
        incoming planned transfers, minus outgoing ones.
        """
        self._check_month(month_key)
        start, end = month_bounds(month_key)
        transactions = self.db.list_transactions(
            self.user_id,
            start_date=start,
            end_date=end,
            account_id=account_id,
            categorized_only=True,
        )
        total = sum(t.amount for t in transactions)

        for transfer in self.db.list_planned_transfers(self.user_id, month=month_key, account_id=account_id):
            contribution = monthly_contribution(transfer, month_key)
            if transfer.to_account_id == account_id:
                total += contribution
            if transfer.from_account_id == account_id:
                total -= contribution
        return total

    def recalculate_month(self, month_key: str) -> list[MonthlyAccountBalance]:
        """Recompute ``calculated_balance`` for every account in a month.

        Actual and bank balances are left as they are.
        """
        self._check_month(month_key)
        balances = []
        for account in self.db.list_accounts(self.user_id):
            calculated = self.calculate_balance(month_key, account.id)
            balances.append(
                self.db.upsert_monthly_account_balance(
                    self.user_id, month_key, account.id, calculated_balance=calculated
                )
            )
        logger.info("Recalculated %s account balances for %s", len(balances), month_key)
        return balances

    def list_balances(self, month_key: Optional[str] = None) -> list[MonthlyAccountBalance]:
        if month_key is not None:
            self._check_month(month_key)
        return self.db.list_monthly_account_balances(self.user_id, month_key=month_key)

    def get_balance(self, month_key: str, account_id: int) -> Optional[MonthlyAccountBalance]:
        self._check_month(month_key)
        return self.db.get_monthly_account_balance(self.user_id, month_key, account_id)

    def save_balance(
        self,
        month_key: str,
        account_id: int,
        calculated_balance: Optional[int] = None,
        faktiskt_kontosaldo: Optional[int] = None,
        bankens_kontosaldo: Optional[int] = None,
    ) -> MonthlyAccountBalance:
        """Create or update a balance row with the given figures.

        Figures passed as None are left untouched (or default on creation).
        """
        self._check_month(month_key)
        self._require_account(account_id)
        fields = {}
        for name, value in (
            ("calculated_balance", calculated_balance),
            ("faktiskt_kontosaldo", faktiskt_kontosaldo),
            ("bankens_kontosaldo", bankens_kontosaldo),
        ):
            self._check_amount(name, value)
            if value is not None:
                fields[name] = value
        return self.db.upsert_monthly_account_balance(self.user_id, month_key, account_id, **fields)

    def set_faktiskt_kontosaldo(
        self, month_key: str, account_id: int, value: Optional[int]
    ) -> MonthlyAccountBalance:
        """Record (or clear, with None) the user's actual balance.

        The row is created if missing; ``calculated_balance`` is not touched.
        """
        self._check_month(month_key)
        self._require_account(account_id)
        self._check_amount("faktisktKontosaldo", value)
        balance = self.db.upsert_monthly_account_balance(
            self.user_id, month_key, account_id, faktiskt_kontosaldo=value
        )
        logger.info("Set faktiskt kontosaldo for account %s in %s", account_id, month_key)
        return balance

    def set_bankens_kontosaldo(
        self, month_key: str, account_id: int, value: Optional[int]
    ) -> MonthlyAccountBalance:
        """Record (or clear) the bank-reported balance."""
        self._check_month(month_key)
        self._require_account(account_id)
        self._check_amount("bankensKontosaldo", value)
        return self.db.upsert_monthly_account_balance(
            self.user_id, month_key, account_id, bankens_kontosaldo=value
        )

    def auto_update_enabled(self) -> bool:
        setting = self.db.get_user_setting(self.user_id, AUTO_UPDATE_BALANCE_SETTING)
        return setting is not None and setting.setting_value.strip().lower() == "true"

    def update_from_statement(self, account_id: int, rows: Iterable[ImportedRow]) -> dict[str, int]:
        """Store the statement's closing balance per month as the bank's balance.

        When the ``autoUpdateBalance`` setting is ``"true"`` the same figure is
        also recorded as the actual balance.

        Returns:
            Month key -> closing balance for every month updated
        """
        closing = closing_balances_by_month(rows)
        if not closing:
            return {}
        auto_update = self.auto_update_enabled()
        for month_key, balance in closing.items():
            fields = {"bankens_kontosaldo": balance}
            if auto_update:
                fields["faktiskt_kontosaldo"] = balance
            self.db.upsert_monthly_account_balance(self.user_id, month_key, account_id, **fields)
        logger.info(
            "Updated bank balances for account %s in %s month(s)%s",
            account_id,
            len(closing),
            " (actual balance too)" if auto_update else "",
        )
        return closing
