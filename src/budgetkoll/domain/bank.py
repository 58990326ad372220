"""Bank and bank CSV mapping domain services."""

import logging
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import Bank as BankEntity
from budgetkoll.domain.entities import BankCsvMapping as BankCsvMappingEntity
from budgetkoll.domain.errors import ConflictError, NotFoundError, ValidationError, duplicate_name, not_found

logger = logging.getLogger(__name__)

# Semantic field -> mapping column attribute
COLUMN_FIELDS = {
    "date": "date_column",
    "description": "description_column",
    "amount": "amount_column",
    "balance": "balance_column",
    "bank_category": "bank_category_column",
    "bank_sub_category": "bank_sub_category_column",
}

REQUIRED_FIELDS = ("date", "description", "amount")

# Column names used by Swedish bank exports when a bank has no mapping
DEFAULT_COLUMNS = {
    "date": "Datum",
    "description": "Text",
    "amount": "Belopp",
    "balance": "Saldo",
    "bank_category": "Kategori",
    "bank_sub_category": "Underkategori",
}


def mapping_columns(mapping: Optional[BankCsvMappingEntity]) -> dict[str, str]:
    """Return the semantic field -> header name assignments of a mapping.

    Fields the mapping leaves unset are omitted. Without a mapping the Swedish
    default column names are returned.
    """
    if mapping is None:
        return dict(DEFAULT_COLUMNS)
    columns = {}
    for field_name, attr in COLUMN_FIELDS.items():
        value = getattr(mapping, attr)
        if value:
            columns[field_name] = value
    return columns


class BankService:
    """Service for managing banks."""

    def __init__(self, db: Database, user_id: str):
        self.db = db
        self.user_id = user_id

    def create_bank(self, name: str) -> int:
        """Create a bank.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a bank with that name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Bank name must not be empty")
        if any(bank.name == name for bank in self.db.list_banks(self.user_id)):
            raise ConflictError(duplicate_name("Bank", name))
        bank_id = self.db.create_bank(self.user_id, name)
        logger.info("Created bank %s (id=%s)", name, bank_id)
        return bank_id

    def get_bank(self, bank_id: int) -> Optional[BankEntity]:
        return self.db.get_bank(self.user_id, bank_id)

    def list_banks(self) -> list[BankEntity]:
        return self.db.list_banks(self.user_id)

    def delete_bank(self, bank_id: int) -> None:
        """Delete a bank and every CSV mapping it owns."""
        if self.get_bank(bank_id) is None:
            raise NotFoundError(not_found("Bank", bank_id))
        self.db.delete_bank(self.user_id, bank_id)
        logger.info("Deleted bank %s", bank_id)


class BankCsvMappingService:
    """Service for managing how a bank's statement columns map to transaction fields.

    At most one mapping per bank is active. Creating or activating a mapping
    deactivates the bank's other mappings.
    """

    def __init__(self, db: Database, user_id: str):
        """Initialize mapping service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id

    def _require_bank(self, bank_id: int) -> None:
        if self.db.get_bank(self.user_id, bank_id) is None:
            raise NotFoundError(not_found("Bank", bank_id))

    @staticmethod
    def _validate_columns(columns: dict[str, Optional[str]]) -> dict[str, Optional[str]]:
        cleaned = {}
        for attr, value in columns.items():
            if attr not in COLUMN_FIELDS.values():
                raise ValidationError(f"Unknown mapping column '{attr}'")
            cleaned[attr] = value.strip() if isinstance(value, str) and value.strip() else None
        return cleaned

    def create_mapping(
        self,
        bank_id: int,
        name: str,
        is_active: bool = True,
        **columns: Optional[str],
    ) -> int:
        """Create a CSV mapping for a bank.

        Args:
            bank_id: Bank the mapping belongs to
            name: Mapping name (e.g. "Swedbank export 2024")
            is_active: Whether this becomes the bank's active mapping
            **columns: Header names keyed by column attribute (``date_column``,
                ``description_column``, ``amount_column``, ``balance_column``,
                ``bank_category_column``, ``bank_sub_category_column``)

        Returns:
            Mapping ID

        Raises:
            NotFoundError: If the bank doesn't exist
            ValidationError: If a required column is missing
        """
        self._require_bank(bank_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Mapping name must not be empty")
        columns = self._validate_columns(columns)
        missing = [f for f in REQUIRED_FIELDS if not columns.get(COLUMN_FIELDS[f])]
        if missing:
            raise ValidationError(f"Mapping is missing required columns: {', '.join(missing)}")

        mapping_id = self.db.create_bank_csv_mapping(
            self.user_id, bank_id, name, is_active=is_active, **columns
        )
        if is_active:
            self.db.deactivate_bank_csv_mappings(self.user_id, bank_id, except_mapping_id=mapping_id)
        logger.info("Created CSV mapping %s for bank %s (id=%s)", name, bank_id, mapping_id)
        return mapping_id

    def get_mapping(self, mapping_id: int) -> Optional[BankCsvMappingEntity]:
        return self.db.get_bank_csv_mapping(self.user_id, mapping_id)

    def list_mappings(self, bank_id: Optional[int] = None) -> list[BankCsvMappingEntity]:
        """List mappings, optionally for a single bank."""
        if bank_id is not None:
            self._require_bank(bank_id)
        return self.db.list_bank_csv_mappings(self.user_id, bank_id=bank_id)

    def get_active_mapping(self, bank_id: int) -> Optional[BankCsvMappingEntity]:
        """Return the bank's active mapping, or None."""
        for mapping in self.db.list_bank_csv_mappings(self.user_id, bank_id=bank_id):
            if mapping.is_active:
                return mapping
        return None

    def update_mapping(self, mapping_id: int, **changes: Any) -> BankCsvMappingEntity:
        """Update a mapping's name, columns or active flag.

        Raises:
            NotFoundError: If the mapping doesn't exist
            ValidationError: If the change would drop a required column
        """
        mapping = self.get_mapping(mapping_id)
        if mapping is None:
            raise NotFoundError(not_found("CSV mapping", mapping_id))

        fields: dict[str, Any] = {}
        if "name" in changes:
            name = (changes.pop("name") or "").strip()
            if not name:
                raise ValidationError("Mapping name must not be empty")
            fields["name"] = name
        is_active = changes.pop("is_active", None)
        if is_active is not None:
            fields["is_active"] = bool(is_active)
        fields.update(self._validate_columns(changes))

        for required in REQUIRED_FIELDS:
            attr = COLUMN_FIELDS[required]
            if attr in fields and not fields[attr]:
                raise ValidationError(f"Mapping is missing required columns: {required}")

        if fields:
            self.db.update_bank_csv_mapping(self.user_id, mapping_id, **fields)
        if fields.get("is_active"):
            self.db.deactivate_bank_csv_mappings(
                self.user_id, mapping.bank_id, except_mapping_id=mapping_id
            )
        return self.get_mapping(mapping_id)

    def delete_mapping(self, mapping_id: int) -> None:
        if self.get_mapping(mapping_id) is None:
            raise NotFoundError(not_found("CSV mapping", mapping_id))
        self.db.delete_bank_csv_mapping(self.user_id, mapping_id)
        logger.info("Deleted CSV mapping %s", mapping_id)
