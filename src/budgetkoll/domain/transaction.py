"""Transaction domain service."""

import hashlib
import logging
from datetime import date, timedelta
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.budget_post import POST_SAVINGS
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.category_rule import STATUS_GREEN, STATUS_RED, STATUS_YELLOW
from budgetkoll.domain.entities import Transaction as TransactionEntity
from budgetkoll.domain.errors import ConflictError, NotFoundError, ValidationError, not_found
from budgetkoll.utils.amount_parser import is_ore
from budgetkoll.utils.date_parser import month_bounds

logger = logging.getLogger(__name__)

STATUSES = (STATUS_RED, STATUS_YELLOW, STATUS_GREEN)

# Transfers between own accounts may be booked a day apart
TRANSFER_MATCH_WINDOW = timedelta(days=1)

EDITABLE_FIELDS = {
    "date",
    "description",
    "amount",
    "balance_after",
    "type",
    "status",
    "bank_category",
    "bank_sub_category",
    "huvudkategori_id",
    "underkategori_id",
    "user_description",
    "is_manually_changed",
    "linked_transaction_id",
    "corrected_amount",
    "savings_target_id",
}


def generate_unique_id(
    account_id: int, txn_date: date, description: str, amount: int, balance_after: Optional[int], occurrence: int = 0
) -> str:
    """Stable identifier for an imported statement row.

    Rows that are otherwise identical on the same day (two coffees at the same
    café) are told apart by ``occurrence``, their position among equal rows in
    the file.
    """
    key = "|".join(
        [
            str(account_id),
            txn_date.isoformat(),
            description.strip(),
            str(amount),
            "" if balance_after is None else str(balance_after),
            str(occurrence),
        ]
    )
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def _require_int(name: str, value: Any, nullable: bool = False) -> None:
    if value is None and nullable:
        return
    if not is_ore(value):
        raise ValidationError(f"{name} must be an integer amount in öre")


def category_status(huvudkategori_id: Optional[int], underkategori_id: Optional[int]) -> str:
    """Status implied by a category pair: both set is green, main only yellow."""
    if huvudkategori_id is not None and underkategori_id is not None:
        return STATUS_GREEN
    if huvudkategori_id is not None:
        return STATUS_YELLOW
    return STATUS_RED


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database, user_id: str):
        """Initialize transaction service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id
        self.category_service = CategoryService(db, user_id)

    def create_transaction(
        self,
        account_id: int,
        date: date,
        description: str,
        amount: int,
        unique_id: Optional[str] = None,
        **fields: Any,
    ) -> int:
        """Create a transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            description: Text from the bank statement
            amount: Signed amount in öre
            unique_id: Unique ID per account; generated when omitted
            **fields: Optional extra columns (``balance_after``, ``type``,
                ``status``, ``bank_category``, ``bank_sub_category``,
                ``huvudkategori_id``, ``underkategori_id``,
                ``user_description``, ``file_source``, ``corrected_amount``,
                ``savings_target_id``)

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the account or a category doesn't exist
            ConflictError: If the transaction already exists
            ValidationError: If amounts are not integer öre
        """
        if self.db.get_account(self.user_id, account_id) is None:
            raise NotFoundError(not_found("Account", account_id))
        _require_int("amount", amount)
        _require_int("balance_after", fields.get("balance_after"), nullable=True)
        _require_int("corrected_amount", fields.get("corrected_amount"), nullable=True)
        if fields.get("status") is not None and fields["status"] not in STATUSES:
            raise ValidationError(f"status must be one of {', '.join(STATUSES)}")
        self.category_service.validate_pair(fields.get("huvudkategori_id"), fields.get("underkategori_id"))
        self._check_savings_target(fields.get("savings_target_id"))

        if unique_id is None:
            unique_id = generate_unique_id(
                account_id, date, description or "", amount, fields.get("balance_after")
            )
        if self.db.transaction_exists(account_id, unique_id):
            raise ConflictError(
                f"Transaction with unique_id '{unique_id}' already exists for account {account_id}"
            )

        return self.db.create_transaction(
            self.user_id,
            unique_id=unique_id,
            account_id=account_id,
            date=date,
            description=description or "",
            amount=amount,
            **{k: v for k, v in fields.items() if v is not None},
        )

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(self.user_id, transaction_id)

    def list_transactions(
        self,
        account_id: Optional[int] = None,
        month_key: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        uncategorized: bool = False,
    ) -> list[TransactionEntity]:
        """List transactions.

        ``month_key`` overrides ``start_date``/``end_date`` with that month's bounds.
        """
        if month_key is not None:
            try:
                start_date, end_date = month_bounds(month_key)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        return self.db.list_transactions(
            self.user_id,
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            uncategorized=uncategorized,
        )

    def _check_savings_target(self, post_id: Optional[int]) -> None:
        if post_id is None:
            return
        post = self.db.get_budget_post(self.user_id, post_id)
        if post is None:
            raise NotFoundError(not_found("Budget post", post_id))
        if post.type != POST_SAVINGS:
            raise ValidationError(f"Budget post {post_id} is not a savings post")

    def update_transaction(self, transaction_id: int, **changes: Any) -> TransactionEntity:
        """Update a transaction.

        Setting categories by hand marks the transaction as manually changed so
        later rule runs leave it alone, and moves its status to what the new
        category pair implies unless a status is given as well. Setting
        ``linked_transaction_id`` links (or, with None, unlinks) both sides.

        Raises:
            NotFoundError: If the transaction, a category or a linked row doesn't exist
            ValidationError: If a field is unknown or malformed
        """
        txn = self.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(not_found("Transaction", transaction_id))

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown transaction field(s): {', '.join(sorted(unknown))}")
        if "amount" in changes:
            _require_int("amount", changes["amount"])
        if "balance_after" in changes:
            _require_int("balance_after", changes["balance_after"], nullable=True)
        if "corrected_amount" in changes:
            _require_int("corrected_amount", changes["corrected_amount"], nullable=True)
        if "status" in changes and changes["status"] not in STATUSES:
            raise ValidationError(f"status must be one of {', '.join(STATUSES)}")
        if "savings_target_id" in changes:
            self._check_savings_target(changes["savings_target_id"])

        if "huvudkategori_id" in changes or "underkategori_id" in changes:
            main_id = changes.get("huvudkategori_id", txn.huvudkategori_id)
            sub_id = changes.get("underkategori_id", txn.underkategori_id)
            if main_id is None:
                # Clearing the main category clears the sub category too
                sub_id = None
                changes["underkategori_id"] = None
            self.category_service.validate_pair(main_id, sub_id)
            changes.setdefault("is_manually_changed", True)
            changes.setdefault("status", category_status(main_id, sub_id))

        link_given = "linked_transaction_id" in changes
        linked_id = changes.pop("linked_transaction_id", None)
        if link_given and linked_id is not None:
            self._require_link_partner(transaction_id, linked_id)

        if changes:
            self.db.update_transaction(self.user_id, transaction_id, **changes)
            logger.info("Updated transaction %s: %s", transaction_id, ", ".join(sorted(changes)))
        if link_given:
            if linked_id is None:
                self.unlink_transaction(transaction_id)
            else:
                self.link_transactions(transaction_id, linked_id)
        return self.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int) -> None:
        if self.get_transaction(transaction_id) is None:
            raise NotFoundError(not_found("Transaction", transaction_id))
        self.db.delete_transaction(self.user_id, transaction_id)
        logger.info("Deleted transaction %s", transaction_id)

    def _require_link_partner(self, transaction_id: int, other_id: int) -> TransactionEntity:
        if other_id == transaction_id:
            raise ValidationError("A transaction cannot be linked to itself")
        other = self.get_transaction(other_id)
        if other is None:
            raise NotFoundError(not_found("Transaction", other_id))
        return other

    def _detach(self, txn: TransactionEntity) -> None:
        """Clear the link on ``txn``'s current partner, if it still points back."""
        if txn.linked_transaction_id is None:
            return
        partner = self.get_transaction(txn.linked_transaction_id)
        if partner is not None and partner.linked_transaction_id == txn.id:
            self.db.update_transaction(
                self.user_id,
                partner.id,
                linked_transaction_id=None,
                status=category_status(partner.huvudkategori_id, partner.underkategori_id),
            )

    def link_transactions(self, transaction_id: int, other_id: int) -> tuple[TransactionEntity, TransactionEntity]:
        """Link two transactions as the two sides of one movement of money.

        Both sides point at each other, are marked yellow and manually
        changed. Earlier links on either side are dissolved first.

        Raises:
            NotFoundError: If either transaction doesn't exist
            ValidationError: If both IDs are the same
        """
        txn = self.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(not_found("Transaction", transaction_id))
        other = self._require_link_partner(transaction_id, other_id)

        for side, partner_id in ((txn, other_id), (other, transaction_id)):
            if side.linked_transaction_id not in (None, partner_id):
                self._detach(side)
        for side_id, partner_id in ((transaction_id, other_id), (other_id, transaction_id)):
            self.db.update_transaction(
                self.user_id,
                side_id,
                linked_transaction_id=partner_id,
                status=STATUS_YELLOW,
                is_manually_changed=True,
            )
        logger.info("Linked transactions %s and %s", transaction_id, other_id)
        return self.get_transaction(transaction_id), self.get_transaction(other_id)

    def unlink_transaction(self, transaction_id: int) -> TransactionEntity:
        """Dissolve a link from either side.

        Both sides fall back to the status their categories imply.
        """
        txn = self.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(not_found("Transaction", transaction_id))
        if txn.linked_transaction_id is None:
            return txn
        self._detach(txn)
        self.db.update_transaction(
            self.user_id,
            transaction_id,
            linked_transaction_id=None,
            status=category_status(txn.huvudkategori_id, txn.underkategori_id),
        )
        logger.info("Unlinked transaction %s", transaction_id)
        return self.get_transaction(transaction_id)

    def auto_match_transfers(self, month_key: Optional[str] = None) -> list[tuple[int, int]]:
        """Link transfers between the user's own accounts.

        A candidate is an unlinked, non-green, non-zero transaction. Two
        candidates match when they sit on different accounts, their amounts
        cancel out and their dates are at most a day apart. A pair is linked
        only when each side has exactly one match.

        Returns:
            The linked (outgoing, incoming) transaction ID pairs
        """
        candidates = [
            t
            for t in self.list_transactions(month_key=month_key)
            if t.linked_transaction_id is None and t.status != STATUS_GREEN and t.amount != 0
        ]

        def matches(txn: TransactionEntity) -> list[TransactionEntity]:
            return [
                other
                for other in candidates
                if other.account_id != txn.account_id
                and other.amount == -txn.amount
                and abs(other.date - txn.date) <= TRANSFER_MATCH_WINDOW
            ]

        pairs = []
        for txn in candidates:
            if txn.amount > 0:
                continue
            found = matches(txn)
            if len(found) != 1 or len(matches(found[0])) != 1:
                continue
            self.link_transactions(txn.id, found[0].id)
            pairs.append((txn.id, found[0].id))
        if pairs:
            logger.info("Matched %s transfer pair(s)", len(pairs))
        return pairs
