"""Category rules: matching bank-reported categories to app categories.

The matching functions are pure and work on anything carrying the attributes
they read (``Transaction`` entities and ``ImportedRow`` records alike).
``CategoryRuleService`` owns persistence and batch application.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from budgetkoll.database.base import Database
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.entities import (
    CategoryRule,
    Huvudkategori,
    Transaction,
    UncategorizedBankCategory,
    Underkategori,
)
from budgetkoll.domain.errors import NotFoundError, ValidationError, not_found
from budgetkoll.utils.date_parser import month_bounds

logger = logging.getLogger(__name__)

WILDCARD = "*"
ALL_BANK_CATEGORIES = "Alla Bankkategorier"
ALL_BANK_SUB_CATEGORIES = "Alla Bankunderkategorier"

DIRECTIONS = ("all", "positive", "negative")
DEFAULT_TRANSACTION_TYPE = "Transaction"
DEFAULT_PRIORITY = 100

STATUS_RED = "red"
STATUS_YELLOW = "yellow"
STATUS_GREEN = "green"


def find_uncategorized_bank_categories(
    transactions: Iterable[Any], rules: Iterable[CategoryRule]
) -> list[UncategorizedBankCategory]:
    """Bank categories that no rule covers, in first-seen order.

    A bank category counts as covered when any rule's ``bank_category`` is the
    exact same string. Subcategories are not consulted, so a rule for the top
    category covers all of its subcategories.

    Args:
        transactions: Objects with ``bank_category`` and ``bank_sub_category``
        rules: Existing rules (active or not)

    Returns:
        One entry per uncovered bank category with its occurrence count and
        distinct subcategories
    """
    ruled = {rule.bank_category for rule in rules if rule.bank_category}

    counts: dict[str, int] = {}
    sub_categories: dict[str, dict[str, None]] = {}
    for txn in transactions:
        category = txn.bank_category
        if not category:
            continue
        counts[category] = counts.get(category, 0) + 1
        subs = sub_categories.setdefault(category, {})
        if txn.bank_sub_category:
            subs.setdefault(txn.bank_sub_category, None)

    return [
        UncategorizedBankCategory(
            bank_category=category,
            occurrence_count=count,
            sub_categories=tuple(sub_categories[category]),
        )
        for category, count in counts.items()
        if category not in ruled
    ]


def rule_applies_to_account(rule: CategoryRule, account_id: Optional[int]) -> bool:
    """Rules without an account list apply everywhere."""
    if not rule.applicable_account_ids:
        return True
    return account_id in rule.applicable_account_ids


def _direction_allows(rule: CategoryRule, amount: int) -> bool:
    if rule.transaction_direction == "positive":
        return amount >= 0
    if rule.transaction_direction == "negative":
        return amount < 0
    return True


def rule_matches(rule: CategoryRule, transaction: Any, account_id: Optional[int] = None) -> bool:
    """Check whether ``rule`` classifies ``transaction``.

    Args:
        rule: Rule to test
        transaction: Object with ``amount``, ``description``, ``bank_category``
            and ``bank_sub_category``
        account_id: Account the transaction is booked on; defaults to the
            transaction's own ``account_id``
    """
    if account_id is None:
        account_id = getattr(transaction, "account_id", None)
    if not rule_applies_to_account(rule, account_id):
        return False
    if not _direction_allows(rule, transaction.amount):
        return False

    if rule.bank_category == WILDCARD or rule.bank_sub_category == WILDCARD:
        return True

    any_bank_category = (
        rule.bank_category == ALL_BANK_CATEGORIES
        or rule.bank_sub_category == ALL_BANK_SUB_CATEGORIES
    )
    if rule.bank_category and not any_bank_category:
        if rule.bank_sub_category:
            return (
                transaction.bank_category == rule.bank_category
                and transaction.bank_sub_category == rule.bank_sub_category
            )
        return transaction.bank_category == rule.bank_category

    if rule.transaction_name:
        if rule.transaction_name == WILDCARD:
            return True
        text = (transaction.description or "").lower()
        return rule.transaction_name.lower() in text
    return False


def find_matching_rule(
    transaction: Any, rules: Sequence[CategoryRule], account_id: Optional[int] = None
) -> Optional[CategoryRule]:
    """First active rule, by ascending priority, that matches ``transaction``."""
    active = sorted((r for r in rules if r.is_active), key=lambda r: (r.priority, r.id))
    for rule in active:
        if rule_matches(rule, transaction, account_id):
            return rule
    return None


def rule_categorization(rule: CategoryRule, amount: int) -> dict[str, Any]:
    """Fields a matching rule writes onto a transaction."""
    if amount >= 0:
        txn_type = rule.positive_transaction_type or DEFAULT_TRANSACTION_TYPE
    else:
        txn_type = rule.negative_transaction_type or DEFAULT_TRANSACTION_TYPE
    fields: dict[str, Any] = {
        "huvudkategori_id": rule.huvudkategori_id,
        "type": txn_type,
        "is_manually_changed": False,
    }
    if rule.underkategori_id is not None:
        fields["underkategori_id"] = rule.underkategori_id
    if rule.huvudkategori_id is not None and rule.underkategori_id is not None:
        fields["status"] = STATUS_GREEN
    elif rule.huvudkategori_id is not None:
        fields["status"] = STATUS_YELLOW
    return fields


def bank_category_fallback(
    transaction: Any,
    huvudkategorier: Iterable[Huvudkategori],
    underkategorier: Iterable[Underkategori],
) -> Optional[dict[str, Any]]:
    """Match bank category/subcategory to app categories of the same name.

    Names compare case-insensitively after trimming. Both levels must match.
    """
    if not transaction.bank_category or not transaction.bank_sub_category:
        return None
    bank_category = transaction.bank_category.strip().lower()
    bank_sub_category = transaction.bank_sub_category.strip().lower()

    main = next((h for h in huvudkategorier if h.name.strip().lower() == bank_category), None)
    if main is None:
        return None
    sub = next(
        (
            u
            for u in underkategorier
            if u.huvudkategori_id == main.id and u.name.strip().lower() == bank_sub_category
        ),
        None,
    )
    if sub is None:
        return None
    return {
        "huvudkategori_id": main.id,
        "underkategori_id": sub.id,
        "status": STATUS_GREEN,
        "is_manually_changed": False,
    }


@dataclass
class RuleApplicationStats:
    """Counters from one batch rule application."""

    processed: int = 0
    updated: int = 0
    rules_applied: int = 0
    auto_approved: int = 0
    bank_matched: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "rulesApplied": self.rules_applied,
            "autoApproved": self.auto_approved,
            "bankMatched": self.bank_matched,
        }


class CategoryRuleService:
    """Service for managing and applying category rules."""

    def __init__(self, db: Database, user_id: str):
        """Initialize category rule service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id
        self.category_service = CategoryService(db, user_id)

    def _normalize(self, fields: dict[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - {
            "rule_name",
            "bank_category",
            "bank_sub_category",
            "transaction_name",
            "transaction_direction",
            "huvudkategori_id",
            "underkategori_id",
            "positive_transaction_type",
            "negative_transaction_type",
            "applicable_account_ids",
            "priority",
            "is_active",
        }
        if unknown:
            raise ValidationError(f"Unknown rule field(s): {', '.join(sorted(unknown))}")

        cleaned = dict(fields)
        for key in ("rule_name", "bank_category", "bank_sub_category", "transaction_name"):
            if key in cleaned and isinstance(cleaned[key], str):
                cleaned[key] = cleaned[key].strip() or None
        if "transaction_direction" in cleaned:
            direction = cleaned["transaction_direction"] or "all"
            if direction not in DIRECTIONS:
                raise ValidationError(
                    f"transaction_direction must be one of {', '.join(DIRECTIONS)}"
                )
            cleaned["transaction_direction"] = direction
        if "applicable_account_ids" in cleaned:
            ids = cleaned["applicable_account_ids"] or []
            for account_id in ids:
                if self.db.get_account(self.user_id, account_id) is None:
                    raise NotFoundError(not_found("Account", account_id))
            cleaned["applicable_account_ids"] = list(ids)
        if "priority" in cleaned:
            priority = cleaned["priority"]
            if isinstance(priority, bool) or not isinstance(priority, int):
                raise ValidationError("priority must be an integer")
        return cleaned

    def create_rule(self, **fields: Any) -> int:
        """Create a category rule.

        Raises:
            ValidationError: If the rule has neither a bank category nor a
                transaction name, or a field is malformed
            NotFoundError: If a referenced category or account is missing
        """
        fields = self._normalize(fields)
        if not fields.get("bank_category") and not fields.get("transaction_name"):
            raise ValidationError("A rule needs a bank category or a transaction name")
        if fields.get("huvudkategori_id") is None:
            raise ValidationError("A rule needs a huvudkategori")
        self.category_service.validate_pair(fields["huvudkategori_id"], fields.get("underkategori_id"))

        if not fields.get("rule_name"):
            parts = [fields.get("bank_category"), fields.get("bank_sub_category")]
            label = " / ".join(p for p in parts if p) or fields["transaction_name"]
            fields["rule_name"] = f"Regel: {label}"
        fields.setdefault("transaction_direction", "all")
        fields.setdefault("positive_transaction_type", DEFAULT_TRANSACTION_TYPE)
        fields.setdefault("negative_transaction_type", DEFAULT_TRANSACTION_TYPE)
        fields.setdefault("applicable_account_ids", [])
        fields.setdefault("priority", DEFAULT_PRIORITY)
        fields.setdefault("is_active", True)

        rule_id = self.db.create_category_rule(self.user_id, **fields)
        logger.info("Created category rule %s (id=%s)", fields["rule_name"], rule_id)
        return rule_id

    def get_rule(self, rule_id: int) -> Optional[CategoryRule]:
        return self.db.get_category_rule(self.user_id, rule_id)

    def list_rules(self, active_only: bool = False) -> list[CategoryRule]:
        return self.db.list_category_rules(self.user_id, active_only=active_only)

    def update_rule(self, rule_id: int, **changes: Any) -> CategoryRule:
        """Update a rule.

        Raises:
            NotFoundError: If the rule or a referenced category is missing
            ValidationError: If the result would match nothing
        """
        rule = self.get_rule(rule_id)
        if rule is None:
            raise NotFoundError(not_found("Category rule", rule_id))
        changes = self._normalize(changes)

        bank_category = changes.get("bank_category", rule.bank_category)
        transaction_name = changes.get("transaction_name", rule.transaction_name)
        if not bank_category and not transaction_name:
            raise ValidationError("A rule needs a bank category or a transaction name")
        if "huvudkategori_id" in changes or "underkategori_id" in changes:
            main_id = changes.get("huvudkategori_id", rule.huvudkategori_id)
            if main_id is None:
                raise ValidationError("A rule needs a huvudkategori")
            self.category_service.validate_pair(
                main_id, changes.get("underkategori_id", rule.underkategori_id)
            )
        if "rule_name" in changes and not changes["rule_name"]:
            raise ValidationError("Rule name must not be empty")

        if changes:
            self.db.update_category_rule(self.user_id, rule_id, **changes)
        return self.get_rule(rule_id)

    def delete_rule(self, rule_id: int) -> None:
        if self.get_rule(rule_id) is None:
            raise NotFoundError(not_found("Category rule", rule_id))
        self.db.delete_category_rule(self.user_id, rule_id)
        logger.info("Deleted category rule %s", rule_id)

    def uncategorized_bank_categories(
        self, month_key: Optional[str] = None, account_id: Optional[int] = None
    ) -> list[UncategorizedBankCategory]:
        """Bank categories seen on uncategorized transactions that no rule covers."""
        start = end = None
        if month_key is not None:
            try:
                start, end = month_bounds(month_key)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        transactions = self.db.list_transactions(
            self.user_id, start_date=start, end_date=end, account_id=account_id, uncategorized=True
        )
        return find_uncategorized_bank_categories(transactions, self.list_rules())

    def categorize(self, transaction: Any, account_id: Optional[int] = None) -> Optional[dict[str, Any]]:
        """Fields to set on a transaction from rules or the bank-category fallback."""
        rule = find_matching_rule(transaction, self.list_rules(active_only=True), account_id)
        if rule is not None:
            return rule_categorization(rule, transaction.amount)
        return bank_category_fallback(
            transaction,
            self.db.list_huvudkategorier(self.user_id),
            self.db.list_underkategorier(self.user_id),
        )

    def apply_rules(self, transactions: Optional[Iterable[Transaction]] = None) -> RuleApplicationStats:
        """Apply active rules to stored transactions.

        Green and manually changed transactions are left untouched.

        Args:
            transactions: Transactions to process; defaults to all of the user's

        Returns:
            Counters describing what was changed
        """
        if transactions is None:
            transactions = self.db.list_transactions(self.user_id)
        rules = self.list_rules(active_only=True)
        huvudkategorier = self.db.list_huvudkategorier(self.user_id)
        underkategorier = self.db.list_underkategorier(self.user_id)

        stats = RuleApplicationStats()
        for txn in transactions:
            stats.processed += 1
            if txn.status == STATUS_GREEN or txn.is_manually_changed:
                continue

            rule = find_matching_rule(txn, rules)
            if rule is not None:
                fields = rule_categorization(rule, txn.amount)
                stats.rules_applied += 1
            else:
                fields = bank_category_fallback(txn, huvudkategorier, underkategorier)
                if fields is None:
                    continue
                stats.bank_matched += 1

            changed = {k: v for k, v in fields.items() if getattr(txn, k) != v}
            if not changed:
                continue
            self.db.update_transaction(self.user_id, txn.id, **changed)
            stats.updated += 1
            if changed.get("status") == STATUS_GREEN:
                stats.auto_approved += 1

        logger.info(
            "Applied rules to %s transactions: %s updated (%s by rule, %s by bank category)",
            stats.processed,
            stats.updated,
            stats.rules_applied,
            stats.bank_matched,
        )
        return stats
