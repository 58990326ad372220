"""Tests for account and account type services."""

from datetime import date

import pytest

from budgetkoll.domain.errors import ConflictError, DependencyError, NotFoundError, ValidationError


def test_create_and_list_accounts(account_service):
    first = account_service.create_account("Lönekonto", start_balance=150000)
    second = account_service.create_account("  Buffert  ")

    accounts = account_service.list_accounts()
    assert {a.id for a in accounts} == {first, second}
    assert account_service.get_account(first).start_balance == 150000
    assert account_service.get_account(second).name == "Buffert"


def test_duplicate_account_name(account_service):
    account_service.create_account("Lönekonto")
    with pytest.raises(ConflictError):
        account_service.create_account("Lönekonto")


def test_start_balance_must_be_integer_ore(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account("Lönekonto", start_balance=12.5)
    with pytest.raises(ValidationError):
        account_service.create_account("   ")


def test_accounts_are_scoped_per_user(temp_db, account_service):
    from budgetkoll.domain.account import AccountService

    temp_db.upsert_user("user-2")
    other = AccountService(temp_db, "user-2")
    account_id = account_service.create_account("Lönekonto")

    assert other.get_account(account_id) is None
    assert other.list_accounts() == []
    # Names only need to be unique per user
    other.create_account("Lönekonto")


def test_update_account(account_service, account_type_service):
    type_id = account_type_service.create_account_type("Sparkonto", "Långsiktigt")
    account_id = account_service.create_account("Buffert")

    account = account_service.update_account(account_id, name="Buffertkonto", account_type_id=type_id)

    assert account.name == "Buffertkonto"
    assert account.account_type_id == type_id
    with pytest.raises(NotFoundError):
        account_service.update_account(account_id, account_type_id=999)
    with pytest.raises(ValidationError):
        account_service.update_account(account_id, bank="Nordea")


def test_delete_account_blocked_by_transactions(account_service, transaction_service, sample_account):
    transaction_service.create_transaction(sample_account.id, date(2025, 8, 1), "ICA", -100)

    with pytest.raises(DependencyError):
        account_service.delete_account(sample_account.id)


def test_delete_account(account_service):
    account_id = account_service.create_account("Tillfälligt")
    account_service.delete_account(account_id)

    assert account_service.get_account(account_id) is None
    with pytest.raises(NotFoundError):
        account_service.delete_account(account_id)


def test_account_types(account_type_service, account_service):
    type_id = account_type_service.create_account_type("Sparkonto")
    with pytest.raises(ConflictError):
        account_type_service.create_account_type("Sparkonto")

    updated = account_type_service.update_account_type(type_id, description="För buffert")
    assert updated.description == "För buffert"

    account_id = account_service.create_account("Buffert", account_type_id=type_id)
    account_type_service.delete_account_type(type_id)

    assert account_type_service.list_account_types() == []
    assert account_service.get_account(account_id).account_type_id is None


def test_resolve_account(account_service, sample_account):
    from budgetkoll.utils.account_resolver import resolve_account

    assert resolve_account(account_service, "Lönekonto") == sample_account.id
    assert resolve_account(account_service, " lönekonto ") == sample_account.id
    assert resolve_account(account_service, str(sample_account.id)) == sample_account.id
    assert resolve_account(account_service, sample_account.id) == sample_account.id
    with pytest.raises(NotFoundError):
        resolve_account(account_service, "Saknas")
    with pytest.raises(NotFoundError):
        resolve_account(account_service, "999")
