"""Household domain service: family members and income sources."""

import logging
from typing import Any, Optional

from budgetkoll.database.base import Database
from budgetkoll.domain.entities import FamilyMember, Inkomstkall, InkomstkallMedlem
from budgetkoll.domain.errors import ConflictError, NotFoundError, ValidationError, duplicate_name, not_found

logger = logging.getLogger(__name__)

# Income sources every household starts with
DEFAULT_INKOMSTKALLOR = ("Lön", "Barnbidrag", "Övrigt")


class HouseholdService:
    """Service for family members, income sources and the links between them."""

    def __init__(self, db: Database, user_id: str):
        """Initialize household service.

        Args:
            db: Database instance
            user_id: Owner of every row this service touches
        """
        self.db = db
        self.user_id = user_id

    # Family members
    def create_family_member(
        self, name: str, role: Optional[str] = None, contributes_to_budget: bool = True
    ) -> int:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Family member name must not be empty")
        member_id = self.db.create_family_member(
            self.user_id, name, role=role, contributes_to_budget=bool(contributes_to_budget)
        )
        logger.info("Created family member %s (id=%s)", name, member_id)
        return member_id

    def get_family_member(self, member_id: int) -> Optional[FamilyMember]:
        return self.db.get_family_member(self.user_id, member_id)

    def list_family_members(self) -> list[FamilyMember]:
        return self.db.list_family_members(self.user_id)

    def update_family_member(self, member_id: int, **changes: Any) -> FamilyMember:
        if self.get_family_member(member_id) is None:
            raise NotFoundError(not_found("Family member", member_id))
        unknown = set(changes) - {"name", "role", "contributes_to_budget"}
        if unknown:
            raise ValidationError(f"Unknown family member field(s): {', '.join(sorted(unknown))}")
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Family member name must not be empty")
        if "contributes_to_budget" in changes:
            changes["contributes_to_budget"] = bool(changes["contributes_to_budget"])
        if changes:
            self.db.update_family_member(self.user_id, member_id, **changes)
        return self.get_family_member(member_id)

    def delete_family_member(self, member_id: int) -> None:
        """Delete a member; their income source links go with them."""
        if self.get_family_member(member_id) is None:
            raise NotFoundError(not_found("Family member", member_id))
        self.db.delete_family_member(self.user_id, member_id)
        logger.info("Deleted family member %s", member_id)

    # Income sources
    def create_inkomstkall(self, text: str, is_default: bool = False) -> int:
        """Create an income source.

        Raises:
            ConflictError: If a source with the same text exists
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Income source text must not be empty")
        if any(source.text == text for source in self.list_inkomstkallor()):
            raise ConflictError(duplicate_name("Inkomstkälla", text))
        source_id = self.db.create_inkomstkall(self.user_id, text, is_default=bool(is_default))
        logger.info("Created inkomstkälla %s (id=%s)", text, source_id)
        return source_id

    def get_inkomstkall(self, inkomstkall_id: int) -> Optional[Inkomstkall]:
        return self.db.get_inkomstkall(self.user_id, inkomstkall_id)

    def list_inkomstkallor(self) -> list[Inkomstkall]:
        return self.db.list_inkomstkallor(self.user_id)

    def update_inkomstkall(self, inkomstkall_id: int, **changes: Any) -> Inkomstkall:
        if self.get_inkomstkall(inkomstkall_id) is None:
            raise NotFoundError(not_found("Inkomstkälla", inkomstkall_id))
        unknown = set(changes) - {"text", "is_default"}
        if unknown:
            raise ValidationError(f"Unknown income source field(s): {', '.join(sorted(unknown))}")
        if "text" in changes:
            text = (changes["text"] or "").strip()
            if not text:
                raise ValidationError("Income source text must not be empty")
            for source in self.list_inkomstkallor():
                if source.id != inkomstkall_id and source.text == text:
                    raise ConflictError(duplicate_name("Inkomstkälla", text))
            changes["text"] = text
        if "is_default" in changes:
            changes["is_default"] = bool(changes["is_default"])
        if changes:
            self.db.update_inkomstkall(self.user_id, inkomstkall_id, **changes)
        return self.get_inkomstkall(inkomstkall_id)

    def delete_inkomstkall(self, inkomstkall_id: int) -> None:
        if self.get_inkomstkall(inkomstkall_id) is None:
            raise NotFoundError(not_found("Inkomstkälla", inkomstkall_id))
        self.db.delete_inkomstkall(self.user_id, inkomstkall_id)
        logger.info("Deleted inkomstkälla %s", inkomstkall_id)

    def ensure_default_inkomstkallor(self) -> list[int]:
        """Create the default income sources that are missing. Returns new IDs."""
        existing = {source.text for source in self.list_inkomstkallor()}
        return [
            self.create_inkomstkall(text, is_default=True)
            for text in DEFAULT_INKOMSTKALLOR
            if text not in existing
        ]

    # Member <-> income source links
    def create_link(self, family_member_id: int, inkomstkall_id: int, is_enabled: bool = True) -> int:
        """Link a member to an income source.

        Raises:
            NotFoundError: If the member or source doesn't exist
            ConflictError: If the link already exists
        """
        if self.get_family_member(family_member_id) is None:
            raise NotFoundError(not_found("Family member", family_member_id))
        if self.get_inkomstkall(inkomstkall_id) is None:
            raise NotFoundError(not_found("Inkomstkälla", inkomstkall_id))
        for link in self.list_links():
            if link.family_member_id == family_member_id and link.inkomstkall_id == inkomstkall_id:
                raise ConflictError(
                    f"Family member {family_member_id} is already linked to inkomstkälla {inkomstkall_id}"
                )
        return self.db.create_inkomstkall_medlem(
            self.user_id, family_member_id, inkomstkall_id, is_enabled=bool(is_enabled)
        )

    def get_link(self, link_id: int) -> Optional[InkomstkallMedlem]:
        return self.db.get_inkomstkall_medlem(self.user_id, link_id)

    def list_links(self, family_member_id: Optional[int] = None) -> list[InkomstkallMedlem]:
        links = self.db.list_inkomstkallor_medlem(self.user_id)
        if family_member_id is not None:
            links = [link for link in links if link.family_member_id == family_member_id]
        return links

    def update_link(self, link_id: int, is_enabled: bool) -> InkomstkallMedlem:
        if self.get_link(link_id) is None:
            raise NotFoundError(not_found("Income source link", link_id))
        self.db.update_inkomstkall_medlem(self.user_id, link_id, is_enabled=bool(is_enabled))
        return self.get_link(link_id)

    def delete_link(self, link_id: int) -> None:
        if self.get_link(link_id) is None:
            raise NotFoundError(not_found("Income source link", link_id))
        self.db.delete_inkomstkall_medlem(self.user_id, link_id)
