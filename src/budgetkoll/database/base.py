"""Abstract database interface.

Every operation is scoped by ``user_id``: a row owned by another user behaves
exactly like a missing row.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from budgetkoll.domain.entities import (
    User,
    AccountType,
    Account,
    Bank,
    BankCsvMapping,
    Huvudkategori,
    Underkategori,
    CategoryRule,
    Transaction,
    MonthlyBudget,
    MonthlyAccountBalance,
    PlannedTransfer,
    BudgetPost,
    FamilyMember,
    Inkomstkall,
    InkomstkallMedlem,
    UserSetting,
)


class Database(ABC):
    """Abstract database interface for budgetkoll."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        pass

    @abstractmethod
    def describe_tables(self) -> dict[str, list[str]]:
        """Map each table name to its column names."""
        pass

    # User operations
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def upsert_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> User:
        """Create the user or refresh its profile fields."""
        pass

    # Account type operations
    @abstractmethod
    def create_account_type(self, user_id: str, name: str, description: Optional[str] = None) -> int:
        """Create an account type. Returns account type ID."""
        pass

    @abstractmethod
    def get_account_type(self, user_id: str, account_type_id: int) -> Optional[AccountType]:
        """Get account type by ID."""
        pass

    @abstractmethod
    def list_account_types(self, user_id: str) -> list[AccountType]:
        """List account types ordered by name."""
        pass

    @abstractmethod
    def update_account_type(self, user_id: str, account_type_id: int, **fields: Any) -> None:
        """Update account type fields."""
        pass

    @abstractmethod
    def delete_account_type(self, user_id: str, account_type_id: int) -> None:
        """Delete an account type, detaching accounts that use it."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        user_id: str,
        name: str,
        account_type_id: Optional[int] = None,
        start_balance: int = 0,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, user_id: str, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, user_id: str) -> list[Account]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def update_account(self, user_id: str, account_id: int, **fields: Any) -> None:
        """Update account fields."""
        pass

    @abstractmethod
    def delete_account(self, user_id: str, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, user_id: str, account_id: int) -> int:
        """Count transactions booked on an account."""
        pass

    @abstractmethod
    def get_account_transfer_count(self, user_id: str, account_id: int) -> int:
        """Count planned transfers from or to an account."""
        pass

    # Bank operations
    @abstractmethod
    def create_bank(self, user_id: str, name: str) -> int:
        """Create a bank. Returns bank ID."""
        pass

    @abstractmethod
    def get_bank(self, user_id: str, bank_id: int) -> Optional[Bank]:
        """Get bank by ID."""
        pass

    @abstractmethod
    def list_banks(self, user_id: str) -> list[Bank]:
        """List banks ordered by name."""
        pass

    @abstractmethod
    def delete_bank(self, user_id: str, bank_id: int) -> None:
        """Delete a bank together with its CSV mappings."""
        pass

    # Bank CSV mapping operations
    @abstractmethod
    def create_bank_csv_mapping(
        self, user_id: str, bank_id: int, name: str, is_active: bool = True, **columns: Optional[str]
    ) -> int:
        """Create a CSV mapping for a bank. Returns mapping ID."""
        pass

    @abstractmethod
    def get_bank_csv_mapping(self, user_id: str, mapping_id: int) -> Optional[BankCsvMapping]:
        """Get CSV mapping by ID."""
        pass

    @abstractmethod
    def list_bank_csv_mappings(
        self, user_id: str, bank_id: Optional[int] = None
    ) -> list[BankCsvMapping]:
        """List CSV mappings, optionally filtered by bank."""
        pass

    @abstractmethod
    def update_bank_csv_mapping(self, user_id: str, mapping_id: int, **fields: Any) -> None:
        """Update CSV mapping fields."""
        pass

    @abstractmethod
    def deactivate_bank_csv_mappings(
        self, user_id: str, bank_id: int, except_mapping_id: Optional[int] = None
    ) -> int:
        """Mark every mapping of a bank inactive except one. Returns rows changed."""
        pass

    @abstractmethod
    def delete_bank_csv_mapping(self, user_id: str, mapping_id: int) -> None:
        """Delete a CSV mapping."""
        pass

    # Category operations
    @abstractmethod
    def create_huvudkategori(self, user_id: str, name: str) -> int:
        """Create a main category. Returns its ID."""
        pass

    @abstractmethod
    def get_huvudkategori(self, user_id: str, huvudkategori_id: int) -> Optional[Huvudkategori]:
        """Get main category by ID."""
        pass

    @abstractmethod
    def list_huvudkategorier(self, user_id: str) -> list[Huvudkategori]:
        """List main categories ordered by name."""
        pass

    @abstractmethod
    def update_huvudkategori(self, user_id: str, huvudkategori_id: int, **fields: Any) -> None:
        """Update main category fields."""
        pass

    @abstractmethod
    def delete_huvudkategori(self, user_id: str, huvudkategori_id: int) -> None:
        """Delete a main category and its subcategories."""
        pass

    @abstractmethod
    def create_underkategori(self, user_id: str, name: str, huvudkategori_id: int) -> int:
        """Create a subcategory. Returns its ID."""
        pass

    @abstractmethod
    def get_underkategori(self, user_id: str, underkategori_id: int) -> Optional[Underkategori]:
        """Get subcategory by ID."""
        pass

    @abstractmethod
    def list_underkategorier(
        self, user_id: str, huvudkategori_id: Optional[int] = None
    ) -> list[Underkategori]:
        """List subcategories, optionally filtered by main category."""
        pass

    @abstractmethod
    def update_underkategori(self, user_id: str, underkategori_id: int, **fields: Any) -> None:
        """Update subcategory fields."""
        pass

    @abstractmethod
    def delete_underkategori(self, user_id: str, underkategori_id: int) -> None:
        """Delete a subcategory."""
        pass

    @abstractmethod
    def get_category_usage_count(
        self,
        user_id: str,
        huvudkategori_id: Optional[int] = None,
        underkategori_id: Optional[int] = None,
    ) -> int:
        """Count transactions, rules and budget posts referencing a category."""
        pass

    # Category rule operations
    @abstractmethod
    def create_category_rule(self, user_id: str, **fields: Any) -> int:
        """Create a category rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_category_rule(self, user_id: str, rule_id: int) -> Optional[CategoryRule]:
        """Get category rule by ID."""
        pass

    @abstractmethod
    def list_category_rules(self, user_id: str, active_only: bool = False) -> list[CategoryRule]:
        """List category rules ordered by priority, then ID."""
        pass

    @abstractmethod
    def update_category_rule(self, user_id: str, rule_id: int, **fields: Any) -> None:
        """Update category rule fields."""
        pass

    @abstractmethod
    def delete_category_rule(self, user_id: str, rule_id: int) -> None:
        """Delete a category rule."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        user_id: str,
        unique_id: str,
        account_id: int,
        date: date,
        description: str,
        amount: int,
        **fields: Any,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, user_id: str, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def transaction_exists(self, account_id: int, unique_id: str) -> bool:
        """Check if a transaction with given unique_id exists for account."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        uncategorized: bool = False,
        categorized_only: bool = False,
    ) -> list[Transaction]:
        """List transactions with optional filters.

        Args:
            user_id: Owner of the transactions
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            account_id: Optional account ID filter
            uncategorized: If True, only return transactions without a huvudkategori
            categorized_only: If True, only return transactions with a huvudkategori
        """
        pass

    @abstractmethod
    def update_transaction(self, user_id: str, transaction_id: int, **fields: Any) -> None:
        """Update transaction fields. Passing ``None`` clears a nullable field."""
        pass

    @abstractmethod
    def delete_transaction(self, user_id: str, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    # Monthly budget operations
    @abstractmethod
    def create_monthly_budget(self, user_id: str, month_key: str, **fields: Any) -> int:
        """Create the budget for a month. Returns budget ID."""
        pass

    @abstractmethod
    def get_monthly_budget(self, user_id: str, month_key: str) -> Optional[MonthlyBudget]:
        """Get budget by month key."""
        pass

    @abstractmethod
    def list_monthly_budgets(self, user_id: str) -> list[MonthlyBudget]:
        """List budgets ordered by month key."""
        pass

    @abstractmethod
    def update_monthly_budget(self, user_id: str, month_key: str, **fields: Any) -> None:
        """Update budget fields."""
        pass

    @abstractmethod
    def delete_monthly_budget(self, user_id: str, month_key: str) -> None:
        """Delete the budget for a month."""
        pass

    # Monthly account balance operations
    @abstractmethod
    def list_monthly_account_balances(
        self, user_id: str, month_key: Optional[str] = None
    ) -> list[MonthlyAccountBalance]:
        """List balance rows, optionally for a single month."""
        pass

    @abstractmethod
    def get_monthly_account_balance(
        self, user_id: str, month_key: str, account_id: int
    ) -> Optional[MonthlyAccountBalance]:
        """Get the balance row for (month, account)."""
        pass

    @abstractmethod
    def upsert_monthly_account_balance(
        self, user_id: str, month_key: str, account_id: int, **fields: Any
    ) -> MonthlyAccountBalance:
        """Create or update the balance row for (month, account).

        Only the given fields are written; others keep their stored value.
        """
        pass

    # Planned transfer operations
    @abstractmethod
    def create_planned_transfer(self, user_id: str, **fields: Any) -> int:
        """Create a planned transfer. Returns its ID."""
        pass

    @abstractmethod
    def get_planned_transfer(self, user_id: str, transfer_id: int) -> Optional[PlannedTransfer]:
        """Get planned transfer by ID."""
        pass

    @abstractmethod
    def list_planned_transfers(
        self, user_id: str, month: Optional[str] = None, account_id: Optional[int] = None
    ) -> list[PlannedTransfer]:
        """List planned transfers, optionally by month and/or touching an account."""
        pass

    @abstractmethod
    def update_planned_transfer(self, user_id: str, transfer_id: int, **fields: Any) -> None:
        """Update planned transfer fields."""
        pass

    @abstractmethod
    def delete_planned_transfer(self, user_id: str, transfer_id: int) -> None:
        """Delete a planned transfer."""
        pass

    # Budget post operations
    @abstractmethod
    def create_budget_post(self, user_id: str, month_key: str, **fields: Any) -> int:
        """Create a budget post. Returns its ID."""
        pass

    @abstractmethod
    def get_budget_post(self, user_id: str, post_id: int) -> Optional[BudgetPost]:
        """Get budget post by ID."""
        pass

    @abstractmethod
    def list_budget_posts(self, user_id: str, month_key: Optional[str] = None) -> list[BudgetPost]:
        """List budget posts, optionally for a single month."""
        pass

    @abstractmethod
    def update_budget_post(self, user_id: str, post_id: int, **fields: Any) -> None:
        """Update budget post fields."""
        pass

    @abstractmethod
    def delete_budget_post(self, user_id: str, post_id: int) -> None:
        """Delete a budget post, detaching transactions that saved towards it."""
        pass

    # Household operations
    @abstractmethod
    def create_family_member(self, user_id: str, name: str, **fields: Any) -> int:
        """Create a family member. Returns its ID."""
        pass

    @abstractmethod
    def get_family_member(self, user_id: str, member_id: int) -> Optional[FamilyMember]:
        """Get family member by ID."""
        pass

    @abstractmethod
    def list_family_members(self, user_id: str) -> list[FamilyMember]:
        """List family members ordered by name."""
        pass

    @abstractmethod
    def update_family_member(self, user_id: str, member_id: int, **fields: Any) -> None:
        """Update family member fields."""
        pass

    @abstractmethod
    def delete_family_member(self, user_id: str, member_id: int) -> None:
        """Delete a family member and its income source links."""
        pass

    @abstractmethod
    def create_inkomstkall(self, user_id: str, text: str, is_default: bool = False) -> int:
        """Create an income source. Returns its ID."""
        pass

    @abstractmethod
    def get_inkomstkall(self, user_id: str, inkomstkall_id: int) -> Optional[Inkomstkall]:
        """Get income source by ID."""
        pass

    @abstractmethod
    def list_inkomstkallor(self, user_id: str) -> list[Inkomstkall]:
        """List income sources ordered by ID."""
        pass

    @abstractmethod
    def update_inkomstkall(self, user_id: str, inkomstkall_id: int, **fields: Any) -> None:
        """Update income source fields."""
        pass

    @abstractmethod
    def delete_inkomstkall(self, user_id: str, inkomstkall_id: int) -> None:
        """Delete an income source and its member links."""
        pass

    @abstractmethod
    def create_inkomstkall_medlem(
        self, user_id: str, family_member_id: int, inkomstkall_id: int, is_enabled: bool = True
    ) -> int:
        """Link a family member to an income source. Returns link ID."""
        pass

    @abstractmethod
    def get_inkomstkall_medlem(self, user_id: str, link_id: int) -> Optional[InkomstkallMedlem]:
        """Get member/income source link by ID."""
        pass

    @abstractmethod
    def list_inkomstkallor_medlem(self, user_id: str) -> list[InkomstkallMedlem]:
        """List member/income source links."""
        pass

    @abstractmethod
    def update_inkomstkall_medlem(self, user_id: str, link_id: int, **fields: Any) -> None:
        """Update link fields."""
        pass

    @abstractmethod
    def delete_inkomstkall_medlem(self, user_id: str, link_id: int) -> None:
        """Delete a member/income source link."""
        pass

    # User setting operations
    @abstractmethod
    def list_user_settings(self, user_id: str) -> list[UserSetting]:
        """List settings ordered by key."""
        pass

    @abstractmethod
    def get_user_setting(self, user_id: str, setting_key: str) -> Optional[UserSetting]:
        """Get a setting by key."""
        pass

    @abstractmethod
    def set_user_setting(self, user_id: str, setting_key: str, setting_value: str) -> UserSetting:
        """Create or replace a setting."""
        pass

    @abstractmethod
    def delete_user_setting(self, user_id: str, setting_key: str) -> None:
        """Delete a setting."""
        pass
