"""Category domain service (huvudkategorier and underkategorier)."""

import logging
from typing import Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import Huvudkategori, Underkategori
from budgetkoll.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    duplicate_name,
    not_found,
)

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for managing the two-level app category taxonomy."""

    def __init__(self, db: Database, user_id: str):
        """Initialize category service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id

    @staticmethod
    def _clean(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name must not be empty")
        return name

    # Huvudkategorier
    def create_huvudkategori(self, name: str) -> int:
        """Create a main category.

        Raises:
            ConflictError: If a main category with the same name exists
        """
        name = self._clean(name)
        if self.get_huvudkategori_by_name(name) is not None:
            raise ConflictError(duplicate_name("Huvudkategori", name))
        category_id = self.db.create_huvudkategori(self.user_id, name)
        logger.info("Created huvudkategori %s (id=%s)", name, category_id)
        return category_id

    def get_huvudkategori(self, huvudkategori_id: int) -> Optional[Huvudkategori]:
        return self.db.get_huvudkategori(self.user_id, huvudkategori_id)

    def get_huvudkategori_by_name(self, name: str) -> Optional[Huvudkategori]:
        for category in self.db.list_huvudkategorier(self.user_id):
            if category.name == name:
                return category
        return None

    def list_huvudkategorier(self) -> list[Huvudkategori]:
        return self.db.list_huvudkategorier(self.user_id)

    def rename_huvudkategori(self, huvudkategori_id: int, name: str) -> Huvudkategori:
        """Rename a main category.

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If the new name is taken
        """
        if self.get_huvudkategori(huvudkategori_id) is None:
            raise NotFoundError(not_found("Huvudkategori", huvudkategori_id))
        name = self._clean(name)
        existing = self.get_huvudkategori_by_name(name)
        if existing is not None and existing.id != huvudkategori_id:
            raise ConflictError(duplicate_name("Huvudkategori", name))
        self.db.update_huvudkategori(self.user_id, huvudkategori_id, name=name)
        return self.get_huvudkategori(huvudkategori_id)

    def delete_huvudkategori(self, huvudkategori_id: int) -> None:
        """Delete a main category together with its subcategories.

        Raises:
            NotFoundError: If the category doesn't exist
            DependencyError: If transactions, rules or budget posts still use it
        """
        if self.get_huvudkategori(huvudkategori_id) is None:
            raise NotFoundError(not_found("Huvudkategori", huvudkategori_id))
        usage = self.db.get_category_usage_count(self.user_id, huvudkategori_id=huvudkategori_id)
        if usage:
            raise DependencyError(
                f"Cannot delete huvudkategori {huvudkategori_id}: "
                f"it is used by {usage} transaction(s), rule(s) or budget post(s)"
            )
        self.db.delete_huvudkategori(self.user_id, huvudkategori_id)
        logger.info("Deleted huvudkategori %s", huvudkategori_id)

    # Underkategorier
    def create_underkategori(self, name: str, huvudkategori_id: int) -> int:
        """Create a subcategory under a main category.

        Raises:
            NotFoundError: If the main category doesn't exist
            ConflictError: If the main category already has a subcategory with that name
        """
        name = self._clean(name)
        if self.get_huvudkategori(huvudkategori_id) is None:
            raise NotFoundError(not_found("Huvudkategori", huvudkategori_id))
        for sub in self.db.list_underkategorier(self.user_id, huvudkategori_id=huvudkategori_id):
            if sub.name == name:
                raise ConflictError(duplicate_name("Underkategori", name))
        category_id = self.db.create_underkategori(self.user_id, name, huvudkategori_id)
        logger.info("Created underkategori %s under %s (id=%s)", name, huvudkategori_id, category_id)
        return category_id

    def get_underkategori(self, underkategori_id: int) -> Optional[Underkategori]:
        return self.db.get_underkategori(self.user_id, underkategori_id)

    def list_underkategorier(self, huvudkategori_id: Optional[int] = None) -> list[Underkategori]:
        return self.db.list_underkategorier(self.user_id, huvudkategori_id=huvudkategori_id)

    def update_underkategori(
        self,
        underkategori_id: int,
        name: Optional[str] = None,
        huvudkategori_id: Optional[int] = None,
    ) -> Underkategori:
        """Rename a subcategory or move it to another main category."""
        current = self.get_underkategori(underkategori_id)
        if current is None:
            raise NotFoundError(not_found("Underkategori", underkategori_id))

        target_parent = huvudkategori_id if huvudkategori_id is not None else current.huvudkategori_id
        if self.get_huvudkategori(target_parent) is None:
            raise NotFoundError(not_found("Huvudkategori", target_parent))
        new_name = self._clean(name) if name is not None else current.name

        for sub in self.db.list_underkategorier(self.user_id, huvudkategori_id=target_parent):
            if sub.id != underkategori_id and sub.name == new_name:
                raise ConflictError(duplicate_name("Underkategori", new_name))

        self.db.update_underkategori(
            self.user_id, underkategori_id, name=new_name, huvudkategori_id=target_parent
        )
        return self.get_underkategori(underkategori_id)

    def delete_underkategori(self, underkategori_id: int) -> None:
        if self.get_underkategori(underkategori_id) is None:
            raise NotFoundError(not_found("Underkategori", underkategori_id))
        usage = self.db.get_category_usage_count(self.user_id, underkategori_id=underkategori_id)
        if usage:
            raise DependencyError(
                f"Cannot delete underkategori {underkategori_id}: "
                f"it is used by {usage} transaction(s), rule(s) or budget post(s)"
            )
        self.db.delete_underkategori(self.user_id, underkategori_id)
        logger.info("Deleted underkategori %s", underkategori_id)

    def validate_pair(
        self, huvudkategori_id: Optional[int], underkategori_id: Optional[int]
    ) -> None:
        """Check that a (main, sub) category pair exists and belongs together.

        Raises:
            NotFoundError: If either category is missing
            ValidationError: If a subcategory is given without its main category
                or belongs to another main category
        """
        if huvudkategori_id is not None and self.get_huvudkategori(huvudkategori_id) is None:
            raise NotFoundError(not_found("Huvudkategori", huvudkategori_id))
        if underkategori_id is None:
            return
        sub = self.get_underkategori(underkategori_id)
        if sub is None:
            raise NotFoundError(not_found("Underkategori", underkategori_id))
        if huvudkategori_id is None:
            raise ValidationError("An underkategori requires its huvudkategori")
        if sub.huvudkategori_id != huvudkategori_id:
            raise ValidationError(
                f"Underkategori {underkategori_id} does not belong to huvudkategori {huvudkategori_id}"
            )

    def get_category_tree(self) -> list[tuple[Huvudkategori, list[Underkategori]]]:
        """Main categories with their subcategories, ordered by name."""
        subs = self.db.list_underkategorier(self.user_id)
        return [
            (main, [sub for sub in subs if sub.huvudkategori_id == main.id])
            for main in self.db.list_huvudkategorier(self.user_id)
        ]
