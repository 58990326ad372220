"""Tests for the SQLAlchemy database layer."""

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from budgetkoll.domain.errors import ConflictError
from budgetkoll.utils.amount_parser import MAX_ORE


def test_failed_commit_rolls_back(temp_db, account_service, monkeypatch):
    session = temp_db._get_session()

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        account_service.create_account(name="Trasigt konto")
    monkeypatch.undo()

    # The failed row must not ride along with the next commit
    account_service.create_account(name="Lönekonto")
    assert [a.name for a in account_service.list_accounts()] == ["Lönekonto"]


def test_integrity_error_becomes_conflict(temp_db, user_id):
    temp_db.create_account(user_id, "Lönekonto")

    with pytest.raises(ConflictError):
        temp_db.create_account(user_id, "Lönekonto")

    # Session is still usable afterwards
    assert [a.name for a in temp_db.list_accounts(user_id)] == ["Lönekonto"]


def test_schema_has_linking_columns(temp_db):
    tables = temp_db.describe_tables()

    assert {"linked_transaction_id", "corrected_amount", "savings_target_id"} <= set(tables["transactions"])
    assert "budget_posts" in tables


def test_amounts_hold_full_ore_range(transaction_service, sample_account):
    txn_id = transaction_service.create_transaction(sample_account.id, date(2025, 8, 1), "Stort", MAX_ORE)

    assert transaction_service.get_transaction(txn_id).amount == MAX_ORE
