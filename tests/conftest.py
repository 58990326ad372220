"""Shared pytest fixtures for budgetkoll tests."""

import tempfile
import os
import pytest

from budgetkoll.config import AppConfig
from budgetkoll.database.factories import create_sqlite_database
from budgetkoll.domain.account import AccountService, AccountTypeService
from budgetkoll.domain.bank import BankCsvMappingService, BankService
from budgetkoll.domain.budget_post import BudgetPostService
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.category_rule import CategoryRuleService
from budgetkoll.domain.csv_import import CSVImportService
from budgetkoll.domain.household import HouseholdService
from budgetkoll.domain.monthly_balance import MonthlyBalanceService
from budgetkoll.domain.monthly_budget import MonthlyBudgetService
from budgetkoll.domain.planned_transfer import PlannedTransferService
from budgetkoll.domain.transaction import TransactionService
from budgetkoll.domain.user_settings import UserSettingsService

USER_ID = "user-1"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()
    db.upsert_user(USER_ID, email="anna@example.com", first_name="Anna")

    yield db

    # Cleanup
    db.disconnect()
    db.engine.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def account_type_service(temp_db):
    return AccountTypeService(temp_db, USER_ID)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, USER_ID)


@pytest.fixture
def bank_service(temp_db):
    return BankService(temp_db, USER_ID)


@pytest.fixture
def mapping_service(temp_db):
    return BankCsvMappingService(temp_db, USER_ID)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db, USER_ID)


@pytest.fixture
def rule_service(temp_db):
    return CategoryRuleService(temp_db, USER_ID)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, USER_ID)


@pytest.fixture
def import_service(temp_db):
    return CSVImportService(temp_db, USER_ID)


@pytest.fixture
def transfer_service(temp_db):
    return PlannedTransferService(temp_db, USER_ID)


@pytest.fixture
def balance_service(temp_db):
    return MonthlyBalanceService(temp_db, USER_ID)


@pytest.fixture
def budget_service(temp_db):
    return MonthlyBudgetService(temp_db, USER_ID)


@pytest.fixture
def post_service(temp_db):
    return BudgetPostService(temp_db, USER_ID)


@pytest.fixture
def household_service(temp_db):
    return HouseholdService(temp_db, USER_ID)


@pytest.fixture
def settings_service(temp_db):
    return UserSettingsService(temp_db, USER_ID)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    account_id = account_service.create_account(name="Lönekonto", start_balance=100000)
    return account_service.get_account(account_id)


@pytest.fixture
def savings_account(account_service):
    account_id = account_service.create_account(name="Sparkonto")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_categories(category_service):
    """Create a small category tree and return IDs keyed by "Main" / "Main > Sub"."""
    ids = {}
    for main, subs in {
        "Mat": ["Livsmedel", "Restaurang"],
        "Inkomst": ["Lön"],
        "Sparande": ["Buffert"],
    }.items():
        main_id = category_service.create_huvudkategori(main)
        ids[main] = main_id
        for sub in subs:
            ids[f"{main} > {sub}"] = category_service.create_underkategori(sub, main_id)
    return ids


@pytest.fixture
def app(temp_db):
    """Flask app trusting identity headers."""
    from budgetkoll.api.app import create_app

    config = AppConfig(auth_provider="header", secret_key="test")
    app = create_app(config, db=temp_db)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {"X-Auth-User-Id": USER_ID}


@pytest.fixture
def session_app(temp_db):
    """Flask app with cookie-session login."""
    from budgetkoll.api.app import create_app

    config = AppConfig(auth_provider="session", secret_key="test")
    app = create_app(config, db=temp_db)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def statement_csv(tmp_path):
    """Write a Swedish bank statement CSV and return its path."""
    content = "\n".join(
        [
            "Kontoutdrag Lönekonto",
            "Clearingnummer;8327-9",
            "",
            "Datum;Text;Belopp;Saldo;Kategori;Underkategori",
            "2025-08-28;ICA Maxi;-1 234,56;8 765,44;Mat;Livsmedel",
            "2025-08-25;Lön;25 000,00;10 000,00;Inkomst;Lön",
            "2025-07-30;Pressbyrån;-45,00;-15 000,00;Mat;Kafé",
        ]
    )
    path = tmp_path / "kontoutdrag.csv"
    path.write_text(content, encoding="utf-8")
    return path
