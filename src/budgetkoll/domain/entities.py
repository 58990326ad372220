"""Domain model entities for budgetkoll.

These are pure data classes representing business concepts, independent of
database schema. Monetary fields are integers in öre (1/100 SEK).
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Optional


@dataclass(frozen=True)
class User:
    """Authenticated user, keyed by the identity provider's subject."""

    id: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class AccountType:
    """Account type domain entity (e.g. "Sparkonto")."""

    id: int
    user_id: str
    name: str
    description: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    user_id: str
    name: str
    account_type_id: Optional[int]
    start_balance: int
    created_at: datetime


@dataclass(frozen=True)
class Bank:
    """Bank domain entity."""

    id: int
    user_id: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class BankCsvMapping:
    """Column assignments for one bank's statement export."""

    id: int
    user_id: str
    bank_id: int
    name: str
    date_column: Optional[str]
    description_column: Optional[str]
    amount_column: Optional[str]
    balance_column: Optional[str]
    bank_category_column: Optional[str]
    bank_sub_category_column: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Huvudkategori:
    """Main category in the app's own taxonomy."""

    id: int
    user_id: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Underkategori:
    """Subcategory belonging to a huvudkategori."""

    id: int
    user_id: str
    name: str
    huvudkategori_id: int
    created_at: datetime


@dataclass(frozen=True)
class CategoryRule:
    """Mapping from bank-reported categories or description text to app categories."""

    id: int
    user_id: str
    rule_name: str
    bank_category: Optional[str]
    bank_sub_category: Optional[str]
    transaction_name: Optional[str]
    transaction_direction: str
    huvudkategori_id: int
    underkategori_id: Optional[int]
    positive_transaction_type: str
    negative_transaction_type: str
    applicable_account_ids: tuple[int, ...]
    priority: int
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity. ``amount`` is signed öre."""

    id: int
    user_id: str
    unique_id: str
    account_id: int
    date: date
    description: str
    amount: int
    balance_after: Optional[int]
    type: str
    status: str
    bank_category: Optional[str]
    bank_sub_category: Optional[str]
    huvudkategori_id: Optional[int]
    underkategori_id: Optional[int]
    user_description: Optional[str]
    is_manually_changed: bool
    file_source: Optional[str]
    imported_at: datetime
    linked_transaction_id: Optional[int] = None
    corrected_amount: Optional[int] = None
    savings_target_id: Optional[int] = None

    @property
    def effective_amount(self) -> int:
        """The corrected amount when one is set, otherwise the booked amount."""
        return self.amount if self.corrected_amount is None else self.corrected_amount


@dataclass(frozen=True)
class MonthlyBudget:
    """Income figures for one budget month."""

    id: int
    user_id: str
    month_key: str
    primary_income: int
    secondary_income: int
    child_benefit: int
    other_income: int
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    @property
    def total_income(self) -> int:
        return (
            self.primary_income
            + self.secondary_income
            + self.child_benefit
            + self.other_income
        )


@dataclass(frozen=True)
class MonthlyAccountBalance:
    """Calculated vs. actual balance for one account in one month."""

    id: int
    user_id: str
    month_key: str
    account_id: int
    calculated_balance: int
    faktiskt_kontosaldo: Optional[int]
    bankens_kontosaldo: Optional[int]
    created_at: datetime
    updated_at: datetime

    @property
    def difference(self) -> Optional[int]:
        """Actual minus calculated, or None while no actual figure is recorded."""
        if self.faktiskt_kontosaldo is None:
            return None
        return self.faktiskt_kontosaldo - self.calculated_balance


@dataclass(frozen=True)
class PlannedTransfer:
    """Scheduled movement of money between two accounts."""

    id: int
    user_id: str
    from_account_id: int
    to_account_id: int
    amount: int
    month: str
    description: Optional[str]
    transfer_type: str
    daily_amount: Optional[int]
    transfer_days: tuple[int, ...]
    huvudkategori_id: Optional[int]
    underkategori_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class BudgetPost:
    """Planned cost or savings item for one budget month."""

    id: int
    user_id: str
    month_key: str
    type: str
    description: str
    amount: int
    account_id: Optional[int]
    huvudkategori_id: Optional[int]
    underkategori_id: Optional[int]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class FamilyMember:
    """Household member."""

    id: int
    user_id: str
    name: str
    role: Optional[str]
    contributes_to_budget: bool
    created_at: datetime


@dataclass(frozen=True)
class Inkomstkall:
    """Income source (e.g. "Lön", "Barnbidrag")."""

    id: int
    user_id: str
    text: str
    is_default: bool
    created_at: datetime


@dataclass(frozen=True)
class InkomstkallMedlem:
    """Link between a family member and an income source."""

    id: int
    user_id: str
    family_member_id: int
    inkomstkall_id: int
    is_enabled: bool
    created_at: datetime


@dataclass(frozen=True)
class UserSetting:
    """Key/value preference for a user."""

    id: int
    user_id: str
    setting_key: str
    setting_value: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ImportedRow:
    """One typed row parsed from a bank statement, before persistence."""

    row_num: int
    date: date
    description: str
    amount: int
    balance_after: Optional[int] = None
    bank_category: Optional[str] = None
    bank_sub_category: Optional[str] = None


@dataclass(frozen=True)
class UncategorizedBankCategory:
    """A bank category with no covering rule, plus what was seen under it."""

    bank_category: str
    occurrence_count: int
    sub_categories: tuple[str, ...] = field(default_factory=tuple)

    def rule_suggestions(self) -> list[tuple[str, Optional[str]]]:
        """One "category" suggestion, then one per distinct subcategory."""
        suggestions: list[tuple[str, Optional[str]]] = [(self.bank_category, None)]
        suggestions.extend((self.bank_category, sub) for sub in self.sub_categories)
        return suggestions
