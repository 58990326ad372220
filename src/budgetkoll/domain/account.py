"""Account and account type domain services."""

import logging
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import Account as AccountEntity
from budgetkoll.domain.entities import AccountType as AccountTypeEntity
from budgetkoll.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    duplicate_name,
    not_found,
)
from budgetkoll.utils.amount_parser import is_ore

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str], entity: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"{entity} name must not be empty")
    return name


class AccountTypeService:
    """Service for managing account types."""

    def __init__(self, db: Database, user_id: str):
        """Initialize account type service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id

    def _check_unique(self, name: str, exclude_id: Optional[int] = None) -> None:
        for account_type in self.db.list_account_types(self.user_id):
            if account_type.id != exclude_id and account_type.name == name:
                raise ConflictError(duplicate_name("Account type", name))

    def create_account_type(self, name: str, description: Optional[str] = None) -> int:
        """Create an account type.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If the name is already used
        """
        name = _clean_name(name, "Account type")
        self._check_unique(name)
        account_type_id = self.db.create_account_type(self.user_id, name, description)
        logger.info("Created account type %s (id=%s)", name, account_type_id)
        return account_type_id

    def get_account_type(self, account_type_id: int) -> Optional[AccountTypeEntity]:
        """Get account type by ID."""
        return self.db.get_account_type(self.user_id, account_type_id)

    def list_account_types(self) -> list[AccountTypeEntity]:
        """List account types."""
        return self.db.list_account_types(self.user_id)

    def update_account_type(
        self,
        account_type_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> AccountTypeEntity:
        """Rename an account type or change its description.

        Raises:
            NotFoundError: If the account type does not exist
            ConflictError: If the new name is already used
        """
        if self.get_account_type(account_type_id) is None:
            raise NotFoundError(not_found("Account type", account_type_id))

        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = _clean_name(name, "Account type")
            self._check_unique(fields["name"], exclude_id=account_type_id)
        if description is not None:
            fields["description"] = description or None

        if fields:
            self.db.update_account_type(self.user_id, account_type_id, **fields)
        return self.get_account_type(account_type_id)

    def delete_account_type(self, account_type_id: int) -> None:
        """Delete an account type. Accounts using it keep existing without a type."""
        if self.get_account_type(account_type_id) is None:
            raise NotFoundError(not_found("Account type", account_type_id))
        self.db.delete_account_type(self.user_id, account_type_id)
        logger.info("Deleted account type %s", account_type_id)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database, user_id: str):
        """Initialize account service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id

    def _check_unique(self, name: str, exclude_id: Optional[int] = None) -> None:
        for acc in self.db.list_accounts(self.user_id):
            if acc.id != exclude_id and acc.name == name:
                raise ConflictError(duplicate_name("Account", name))

    def _check_account_type(self, account_type_id: Optional[int]) -> None:
        if account_type_id is not None and self.db.get_account_type(self.user_id, account_type_id) is None:
            raise NotFoundError(not_found("Account type", account_type_id))

    def create_account(
        self,
        name: str,
        account_type_id: Optional[int] = None,
        start_balance: int = 0,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name, unique per user
            account_type_id: Optional account type
            start_balance: Opening balance in öre

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or the balance is not whole öre
            ConflictError: If account name already exists
            NotFoundError: If the account type does not exist
        """
        name = _clean_name(name, "Account")
        if not is_ore(start_balance):
            raise ValidationError("start_balance must be an integer amount in öre")
        self._check_unique(name)
        self._check_account_type(account_type_id)

        account_id = self.db.create_account(
            self.user_id, name=name, account_type_id=account_type_id, start_balance=start_balance
        )
        logger.info("Created account %s (id=%s)", name, account_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(self.user_id, account_id)

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts.

        Returns:
            List of account entities
        """
        return self.db.list_accounts(self.user_id)

    def update_account(self, account_id: int, **changes: Any) -> AccountEntity:
        """Update an account's name, type or start balance.

        Args:
            account_id: Account ID
            **changes: Any of ``name``, ``account_type_id``, ``start_balance``

        Raises:
            NotFoundError: If the account or account type is not found
            ConflictError: If the new name already exists
            ValidationError: If an unknown field is given
        """
        if self.get_account(account_id) is None:
            raise NotFoundError(not_found("Account", account_id))

        unknown = set(changes) - {"name", "account_type_id", "start_balance"}
        if unknown:
            raise ValidationError(f"Unknown account field(s): {', '.join(sorted(unknown))}")

        if "name" in changes:
            changes["name"] = _clean_name(changes["name"], "Account")
            self._check_unique(changes["name"], exclude_id=account_id)
        if "account_type_id" in changes:
            self._check_account_type(changes["account_type_id"])
        if "start_balance" in changes:
            balance = changes["start_balance"]
            if not is_ore(balance):
                raise ValidationError("start_balance must be an integer amount in öre")

        if changes:
            self.db.update_account(self.user_id, account_id, **changes)
        return self.get_account(account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account.

        Args:
            account_id: Account ID to delete

        Raises:
            NotFoundError: If account not found
            DependencyError: If transactions or planned transfers reference it
        """
        if self.get_account(account_id) is None:
            raise NotFoundError(not_found("Account", account_id))

        transaction_count = self.db.get_account_transaction_count(self.user_id, account_id)
        transfer_count = self.db.get_account_transfer_count(self.user_id, account_id)
        if transaction_count > 0 or transfer_count > 0:
            raise DependencyError(account_delete_blocked(account_id, transaction_count, transfer_count))

        self.db.delete_account(self.user_id, account_id)
        logger.info("Deleted account %s", account_id)
