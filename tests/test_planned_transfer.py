"""Tests for planned transfers."""

from datetime import date, datetime

import pytest

from budgetkoll.domain.entities import PlannedTransfer
from budgetkoll.domain.errors import NotFoundError, ValidationError
from budgetkoll.domain.planned_transfer import (
    estimated_to_date,
    format_transfer_days,
    monthly_contribution,
    parse_transfer_days,
    remaining,
    transfer_days_in_month,
)


def make_transfer(**overrides) -> PlannedTransfer:
    values = dict(
        id=1,
        user_id="user-1",
        from_account_id=1,
        to_account_id=2,
        amount=0,
        month="2025-08",
        description=None,
        transfer_type="monthly",
        daily_amount=None,
        transfer_days=(),
        huvudkategori_id=None,
        underkategori_id=None,
        created_at=datetime(2025, 8, 1),
    )
    values.update(overrides)
    return PlannedTransfer(**values)


def test_transfer_days_august_2025_mondays():
    assert transfer_days_in_month("2025-08", [1]) == 4


def test_transfer_days_multiple_weekdays():
    # August 2025 starts on a Friday: 5 Fridays, 5 Saturdays, 5 Sundays
    assert transfer_days_in_month("2025-08", [0, 5, 6]) == 15


def test_monthly_transfer_independent_of_month_length():
    transfer = make_transfer(amount=500000)

    for month_key in ("2025-02", "2025-08", "2024-02"):
        assert monthly_contribution(transfer, month_key) == 500000


def test_daily_transfer_contribution():
    transfer = make_transfer(transfer_type="daily", daily_amount=5000, transfer_days=(1,))

    assert monthly_contribution(transfer) == 4 * 5000


def test_estimated_and_remaining():
    transfer = make_transfer(transfer_type="daily", daily_amount=100, transfer_days=(1,))

    assert estimated_to_date(transfer, today=date(2025, 7, 31)) == 0
    assert estimated_to_date(transfer, today=date(2025, 8, 11)) == 200
    assert remaining(transfer, today=date(2025, 8, 11)) == 200
    assert estimated_to_date(transfer, today=date(2025, 9, 1)) == 400
    assert remaining(transfer, today=date(2025, 9, 1)) == 0
    assert remaining(make_transfer(amount=100)) == 0


def test_weekday_names():
    assert format_transfer_days([5, 1, 1]) == "Mån, Fre"
    assert parse_transfer_days("mån, Fredag") == [1, 5]
    assert parse_transfer_days("0,6") == [0, 6]
    with pytest.raises(ValueError):
        parse_transfer_days("7")
    with pytest.raises(ValueError):
        parse_transfer_days("funday")


class TestPlannedTransferService:
    def test_create_monthly(self, transfer_service, sample_account, savings_account):
        transfer_id = transfer_service.create_transfer(
            from_account_id=sample_account.id,
            to_account_id=savings_account.id,
            amount=300000,
            month="2025-08",
            description="Sparande",
        )
        transfer = transfer_service.get_transfer(transfer_id)

        assert transfer.transfer_type == "monthly"
        assert transfer.amount == 300000
        assert transfer.transfer_days == ()

    def test_create_daily_computes_amount(self, transfer_service, sample_account, savings_account):
        transfer_id = transfer_service.create_transfer(
            from_account_id=sample_account.id,
            to_account_id=savings_account.id,
            month="2025-08",
            transfer_type="daily",
            daily_amount=5000,
            transfer_days=[1],
        )

        assert transfer_service.get_transfer(transfer_id).amount == 20000

    @pytest.mark.parametrize(
        "overrides",
        [
            {"transfer_type": "weekly"},
            {"month": "2025-13"},
            {"amount": 12.5},
            {"transfer_type": "daily", "daily_amount": 100},
            {"transfer_type": "daily", "transfer_days": [1]},
            {"transfer_days": [9]},
        ],
    )
    def test_invalid_transfers(self, transfer_service, sample_account, savings_account, overrides):
        fields = dict(
            from_account_id=sample_account.id,
            to_account_id=savings_account.id,
            amount=100,
            month="2025-08",
        )
        fields.update(overrides)
        with pytest.raises(ValidationError):
            transfer_service.create_transfer(**fields)

    def test_same_account_rejected(self, transfer_service, sample_account):
        with pytest.raises(ValidationError):
            transfer_service.create_transfer(
                from_account_id=sample_account.id, to_account_id=sample_account.id, amount=1, month="2025-08"
            )

    def test_unknown_account(self, transfer_service, sample_account):
        with pytest.raises(NotFoundError):
            transfer_service.create_transfer(
                from_account_id=sample_account.id, to_account_id=999, amount=1, month="2025-08"
            )

    def test_list_by_month_and_update(self, transfer_service, sample_account, savings_account):
        august = transfer_service.create_transfer(
            from_account_id=sample_account.id, to_account_id=savings_account.id, amount=100, month="2025-08"
        )
        transfer_service.create_transfer(
            from_account_id=sample_account.id, to_account_id=savings_account.id, amount=100, month="2025-09"
        )

        assert [t.id for t in transfer_service.list_transfers(month="2025-08")] == [august]

        updated = transfer_service.update_transfer(
            august, transfer_type="daily", daily_amount=1000, transfer_days=[1, 5]
        )
        assert updated.transfer_days == (1, 5)
        assert monthly_contribution(updated) == 9 * 1000

        with pytest.raises(ValidationError):
            transfer_service.update_transfer(august, to_account_id=sample_account.id)

    def test_delete(self, transfer_service, sample_account, savings_account):
        transfer_id = transfer_service.create_transfer(
            from_account_id=sample_account.id, to_account_id=savings_account.id, amount=100, month="2025-08"
        )
        transfer_service.delete_transfer(transfer_id)

        assert transfer_service.get_transfer(transfer_id) is None
        with pytest.raises(NotFoundError):
            transfer_service.delete_transfer(transfer_id)

    def test_transferred_so_far_uses_underkategori(
        self, transfer_service, transaction_service, sample_account, savings_account, sample_categories
    ):
        buffert = dict(
            huvudkategori_id=sample_categories["Sparande"], underkategori_id=sample_categories["Sparande > Buffert"]
        )
        transfer_id = transfer_service.create_transfer(
            from_account_id=sample_account.id, to_account_id=savings_account.id, amount=500000, month="2025-08", **buffert
        )
        transaction_service.create_transaction(sample_account.id, date(2025, 8, 5), "Till buffert", -200000, **buffert)
        corrected = transaction_service.create_transaction(
            sample_account.id, date(2025, 8, 20), "Till buffert", -150000, **buffert
        )
        transaction_service.update_transaction(corrected, corrected_amount=-100000)
        transaction_service.create_transaction(sample_account.id, date(2025, 9, 1), "Till buffert", -999900, **buffert)

        transfer = transfer_service.get_transfer(transfer_id)

        assert transfer_service.transferred_so_far(transfer) == 300000
        assert transfer_service.transferred_so_far(transfer, "2025-09") == 999900

    def test_transferred_so_far_without_underkategori(self, transfer_service, sample_account, savings_account):
        transfer_id = transfer_service.create_transfer(
            from_account_id=sample_account.id, to_account_id=savings_account.id, amount=100, month="2025-08"
        )

        assert transfer_service.transferred_so_far(transfer_service.get_transfer(transfer_id)) == 0
