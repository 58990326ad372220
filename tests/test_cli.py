"""Tests for the command line interface."""

import json

from budgetkoll.cli.commands.init_categories import INITIAL_CATEGORIES
from budgetkoll.cli.main import cli
from budgetkoll.domain.household import DEFAULT_INKOMSTKALLOR

USER_ARGS = ["--user", "user-1"]


def run(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *USER_ARGS, *args])


def test_init_categories(cli_runner, temp_db, category_service):
    expected = len(INITIAL_CATEGORIES) + sum(len(subs) for subs in INITIAL_CATEGORIES.values())

    result = run(cli_runner, temp_db, "init-categories")

    assert result.exit_code == 0
    assert f"Successfully created {expected} categories." in result.output
    assert f"Added {len(DEFAULT_INKOMSTKALLOR)} default income sources." in result.output

    temp_db.disconnect()
    assert len(category_service.list_huvudkategorier()) == len(INITIAL_CATEGORIES)


def test_init_categories_twice(cli_runner, temp_db):
    run(cli_runner, temp_db, "init-categories")

    result = run(cli_runner, temp_db, "init-categories")
    assert "Categories already exist" in result.output

    result = run(cli_runner, temp_db, "init-categories", "--force")
    assert result.exit_code == 0
    assert "Successfully created 0 categories." in result.output


def test_import_statement(cli_runner, temp_db, sample_account, statement_csv):
    result = run(cli_runner, temp_db, "import", str(statement_csv), "--account", "Lönekonto")

    assert result.exit_code == 0
    assert "Imported: 3 transactions" in result.output
    assert "Bank balance 2025-07: -15 000,00 kr" in result.output
    assert "Bank balance 2025-08: 8 765,44 kr" in result.output

    result = run(cli_runner, temp_db, "import", str(statement_csv), "--account", str(sample_account.id))
    assert "Imported: 0 transactions" in result.output
    assert "Skipped: 3 duplicates" in result.output


def test_import_unknown_account(cli_runner, temp_db, statement_csv):
    result = run(cli_runner, temp_db, "import", str(statement_csv), "--account", "Saknas")

    assert result.exit_code == 1
    assert "Account 'Saknas' not found" in result.output


def test_balance_set_and_show(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "balance", "set", "2025-08", "1 234,56", "--account", "Lönekonto")
    assert result.exit_code == 0
    assert "Faktiskt kontosaldo for 2025-08: 1 234,56 kr" in result.output

    result = run(cli_runner, temp_db, "balance", "show", "2025-08")
    assert result.exit_code == 0
    assert "Lönekonto" in result.output
    assert "1 234,56 kr" in result.output

    result = run(cli_runner, temp_db, "balance", "set", "2025-08", "--account", "Lönekonto", "--clear")
    assert "Faktiskt kontosaldo for 2025-08: -" in result.output


def test_balance_set_needs_amount_or_clear(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "balance", "set", "2025-08", "--account", "Lönekonto")

    assert result.exit_code == 1
    assert "Give either AMOUNT or --clear" in result.output


def test_balance_show_empty_month(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "balance", "show", "2025-08")

    assert result.exit_code == 0
    assert "No balances recorded for 2025-08." in result.output


def test_balance_recalculate(cli_runner, temp_db, sample_account, savings_account):
    result = run(cli_runner, temp_db, "balance", "recalculate", "2025-08")

    assert result.exit_code == 0
    assert "Recalculated 2 account balances for 2025-08." in result.output


def test_balance_invalid_month(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "balance", "recalculate", "2025-8")

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_transfer_days(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "transfer-days", "2025-08", "--days", "1", "--daily-amount", "50")

    assert result.exit_code == 0
    assert "2025-08: 4 transfer days (Mån)" in result.output
    assert "Monthly total: 200,00 kr" in result.output


def test_transfer_days_invalid(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "transfer-days", "2025-08", "--days", "8")

    assert result.exit_code == 1


def test_diagnose_table_structure(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "diagnose", "table-structure")

    assert result.exit_code == 0
    assert "monthly_account_balances:" in result.output
    assert "  - faktiskt_kontosaldo" in result.output


def test_diagnose_transaction(cli_runner, temp_db, sample_account, statement_csv):
    run(cli_runner, temp_db, "import", str(statement_csv), "--account", "Lönekonto")

    result = run(cli_runner, temp_db, "diagnose", "transaction", "2025-08", "--search", "ica")

    assert result.exit_code == 0
    assert "Found 1 transactions in 2025-08" in result.output
    assert "Bank category: Mat / Livsmedel" in result.output


def test_diagnose_legacy_state(cli_runner, temp_db, tmp_path):
    store_path = tmp_path / "store.json"
    state = {"allTransactions": [{"date": "2025-08-01", "description": "ICA", "amount": -12345}]}
    store_path.write_text(json.dumps({"budgetState": json.dumps(state)}), encoding="utf-8")

    result = run(cli_runner, temp_db, "diagnose", "legacy-state", "--store", str(store_path))

    assert result.exit_code == 0
    assert "1 transactions" in result.output
    assert "-123,45 kr" in result.output
