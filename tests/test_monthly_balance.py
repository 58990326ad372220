"""Tests for monthly account balance reconciliation."""

from datetime import date

import pytest

from budgetkoll.domain.entities import ImportedRow
from budgetkoll.domain.errors import NotFoundError, ValidationError
from budgetkoll.domain.monthly_balance import closing_balances_by_month


def row(day, balance, amount=0):
    return ImportedRow(row_num=0, date=day, description="", amount=amount, balance_after=balance)


def test_closing_balance_oldest_first():
    rows = [row(date(2025, 8, 1), 100), row(date(2025, 8, 31), 300), row(date(2025, 9, 2), 50)]

    assert closing_balances_by_month(rows) == {"2025-08": 300, "2025-09": 50}


def test_closing_balance_newest_first_same_day():
    rows = [row(date(2025, 8, 31), 300), row(date(2025, 8, 31), 400), row(date(2025, 8, 1), 100)]

    # In a newest-first file the first row of a day is the latest
    assert closing_balances_by_month(rows) == {"2025-08": 300}


def test_closing_balance_ignores_rows_without_balance():
    assert closing_balances_by_month([row(date(2025, 8, 1), None)]) == {}


class TestMonthlyBalanceService:
    def test_faktiskt_kontosaldo_does_not_touch_calculated(self, balance_service, sample_account):
        balance_service.save_balance("2025-08", sample_account.id, calculated_balance=150000)

        balance_service.set_faktiskt_kontosaldo("2025-08", sample_account.id, 123456)

        [stored] = balance_service.list_balances("2025-08")
        assert stored.faktiskt_kontosaldo == 123456
        assert stored.calculated_balance == 150000
        assert stored.difference == 123456 - 150000

    def test_faktiskt_kontosaldo_creates_row_and_clears(self, balance_service, sample_account):
        created = balance_service.set_faktiskt_kontosaldo("2025-08", sample_account.id, 5000)
        assert created.calculated_balance == 0

        cleared = balance_service.set_faktiskt_kontosaldo("2025-08", sample_account.id, None)
        assert cleared.faktiskt_kontosaldo is None
        assert cleared.difference is None

    def test_rejects_non_integer_amounts(self, balance_service, sample_account):
        with pytest.raises(ValidationError):
            balance_service.set_faktiskt_kontosaldo("2025-08", sample_account.id, 12.5)
        with pytest.raises(ValidationError):
            balance_service.set_faktiskt_kontosaldo("2025-8", sample_account.id, 1)
        with pytest.raises(NotFoundError):
            balance_service.set_faktiskt_kontosaldo("2025-08", 999, 1)

    def test_calculate_balance(
        self,
        balance_service,
        transaction_service,
        transfer_service,
        sample_account,
        savings_account,
        sample_categories,
    ):
        transaction_service.create_transaction(
            sample_account.id, date(2025, 8, 25), "Lön", 2500000, huvudkategori_id=sample_categories["Inkomst"]
        )
        transaction_service.create_transaction(
            sample_account.id, date(2025, 8, 28), "ICA", -100000, huvudkategori_id=sample_categories["Mat"]
        )
        # Uncategorized and other-month transactions do not count
        transaction_service.create_transaction(sample_account.id, date(2025, 8, 29), "Okänt", -5000)
        transaction_service.create_transaction(
            sample_account.id, date(2025, 9, 1), "ICA", -7000, huvudkategori_id=sample_categories["Mat"]
        )
        transfer_service.create_transfer(
            from_account_id=sample_account.id,
            to_account_id=savings_account.id,
            month="2025-08",
            transfer_type="daily",
            daily_amount=10000,
            transfer_days=[1],
        )

        assert balance_service.calculate_balance("2025-08", sample_account.id) == 2500000 - 100000 - 40000
        assert balance_service.calculate_balance("2025-08", savings_account.id) == 40000

    def test_recalculate_month_keeps_actual_figures(
        self, balance_service, transaction_service, sample_account, savings_account, sample_categories
    ):
        balance_service.set_faktiskt_kontosaldo("2025-08", sample_account.id, 777)
        transaction_service.create_transaction(
            sample_account.id, date(2025, 8, 3), "ICA", -100, huvudkategori_id=sample_categories["Mat"]
        )

        balances = balance_service.recalculate_month("2025-08")

        assert len(balances) == 2
        stored = balance_service.get_balance("2025-08", sample_account.id)
        assert stored.calculated_balance == -100
        assert stored.faktiskt_kontosaldo == 777

    def test_bankens_kontosaldo_set_and_cleared(self, balance_service, sample_account):
        balance = balance_service.set_bankens_kontosaldo("2025-08", sample_account.id, 1234500)
        assert balance.bankens_kontosaldo == 1234500
        assert balance.faktiskt_kontosaldo is None

        assert balance_service.set_bankens_kontosaldo("2025-08", sample_account.id, None).bankens_kontosaldo is None

        with pytest.raises(ValidationError):
            balance_service.set_bankens_kontosaldo("2025-08", sample_account.id, 10**20)
        with pytest.raises(NotFoundError):
            balance_service.set_bankens_kontosaldo("2025-08", 999, 100)
