"""Budget posts: the planned cost and savings lines of a budget month."""

import logging
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.entities import BudgetPost
from budgetkoll.domain.errors import ConflictError, NotFoundError, ValidationError, invalid_month_key, not_found
from budgetkoll.utils.amount_parser import is_ore
from budgetkoll.utils.date_parser import MONTH_KEY_PATTERN, shift_month_key

logger = logging.getLogger(__name__)

POST_COST = "cost"
POST_SAVINGS = "savings"
POST_TYPES = (POST_COST, POST_SAVINGS)

EDITABLE_FIELDS = {
    "month_key",
    "type",
    "description",
    "amount",
    "account_id",
    "huvudkategori_id",
    "underkategori_id",
}


class BudgetPostService:
    """Service for budget posts."""

    def __init__(self, db: Database, user_id: str):
        self.db = db
        self.user_id = user_id
        self.category_service = CategoryService(db, user_id)

    @staticmethod
    def _check_month(month_key: Any) -> None:
        if not isinstance(month_key, str) or not MONTH_KEY_PATTERN.match(month_key):
            raise ValidationError(invalid_month_key(month_key))

    def _validate(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Validate a complete set of budget post fields."""
        self._check_month(fields.get("month_key"))
        if fields.get("type") not in POST_TYPES:
            raise ValidationError(f"type must be one of {', '.join(POST_TYPES)}")
        description = (fields.get("description") or "").strip()
        if not description:
            raise ValidationError("description is required")
        fields["description"] = description

        amount = fields.get("amount")
        if not is_ore(amount) or amount < 0:
            raise ValidationError("amount must be a non-negative integer amount in öre")

        account_id = fields.get("account_id")
        if account_id is not None and self.db.get_account(self.user_id, account_id) is None:
            raise NotFoundError(not_found("Account", account_id))
        self.category_service.validate_pair(fields.get("huvudkategori_id"), fields.get("underkategori_id"))
        return fields

    def create_post(self, month_key: str, type: str, description: str, amount: int, **fields: Any) -> int:
        """Create a budget post.

        Args:
            month_key: Budget month, ``YYYY-MM``
            type: ``cost`` or ``savings``
            description: Label shown in the budget
            amount: Planned amount in öre
            **fields: Optional ``account_id``, ``huvudkategori_id`` and
                ``underkategori_id``

        Returns:
            Budget post ID

        Raises:
            ValidationError: If a field is malformed
            NotFoundError: If the account or a category is missing
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown budget post field(s): {', '.join(sorted(unknown))}")
        fields = self._validate(
            {"month_key": month_key, "type": type, "description": description, "amount": amount, **fields}
        )
        month_key = fields.pop("month_key")
        post_id = self.db.create_budget_post(self.user_id, month_key, **fields)
        logger.info(
            "Created %s budget post '%s' for %s (id=%s)", fields["type"], fields["description"], month_key, post_id
        )
        return post_id

    def get_post(self, post_id: int) -> Optional[BudgetPost]:
        return self.db.get_budget_post(self.user_id, post_id)

    def list_posts(self, month_key: Optional[str] = None) -> list[BudgetPost]:
        if month_key is not None:
            self._check_month(month_key)
        return self.db.list_budget_posts(self.user_id, month_key=month_key)

    def update_post(self, post_id: int, **changes: Any) -> BudgetPost:
        """Update a budget post; the merged result is validated as a whole."""
        current = self.get_post(post_id)
        if current is None:
            raise NotFoundError(not_found("Budget post", post_id))
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown budget post field(s): {', '.join(sorted(unknown))}")
        merged = {name: getattr(current, name) for name in EDITABLE_FIELDS}
        merged.update(changes)
        merged = self._validate(merged)
        if changes:
            self.db.update_budget_post(self.user_id, post_id, **{k: merged[k] for k in changes})
        return self.get_post(post_id)

    def delete_post(self, post_id: int) -> None:
        if self.get_post(post_id) is None:
            raise NotFoundError(not_found("Budget post", post_id))
        self.db.delete_budget_post(self.user_id, post_id)
        logger.info("Deleted budget post %s", post_id)

    def month_summary(self, month_key: str) -> dict[str, int]:
        """Planned costs and savings for a month against its income.

        Returns:
            ``total_income`` (0 without a monthly budget), ``total_costs``,
            ``total_savings`` and ``remaining`` (income minus both)
        """
        posts = self.list_posts(month_key)
        budget = self.db.get_monthly_budget(self.user_id, month_key)
        total_income = budget.total_income if budget is not None else 0
        total_costs = sum(p.amount for p in posts if p.type == POST_COST)
        total_savings = sum(p.amount for p in posts if p.type == POST_SAVINGS)
        return {
            "total_income": total_income,
            "total_costs": total_costs,
            "total_savings": total_savings,
            "remaining": total_income - total_costs - total_savings,
        }

    def copy_month(self, month_key: str, source_month_key: Optional[str] = None) -> list[BudgetPost]:
        """Start a month from another month's posts (the previous month by default).

        Raises:
            ValidationError: If a month key is malformed
            ConflictError: If ``month_key`` already has posts
        """
        self._check_month(month_key)
        if source_month_key is None:
            source_month_key = shift_month_key(month_key, -1)
        if self.list_posts(month_key):
            raise ConflictError(f"Budget month {month_key} already has budget posts")
        for post in self.list_posts(source_month_key):
            self.db.create_budget_post(
                self.user_id,
                month_key,
                type=post.type,
                description=post.description,
                amount=post.amount,
                account_id=post.account_id,
                huvudkategori_id=post.huvudkategori_id,
                underkategori_id=post.underkategori_id,
            )
        copied = self.list_posts(month_key)
        logger.info("Copied %s budget posts from %s to %s", len(copied), source_month_key, month_key)
        return copied
