"""Tests for household members, income sources, monthly budgets and settings."""

import pytest

from budgetkoll.domain.errors import ConflictError, NotFoundError, ValidationError
from budgetkoll.domain.household import DEFAULT_INKOMSTKALLOR


class TestHousehold:
    def test_family_members(self, household_service):
        anna = household_service.create_family_member("Anna", role="Förälder")
        household_service.create_family_member("Olle", contributes_to_budget=False)

        assert [m.name for m in household_service.list_family_members()] == ["Anna", "Olle"]
        updated = household_service.update_family_member(anna, contributes_to_budget=False)
        assert updated.contributes_to_budget is False
        with pytest.raises(ValidationError):
            household_service.update_family_member(anna, age=40)
        with pytest.raises(ValidationError):
            household_service.create_family_member(" ")

    def test_default_income_sources_created_once(self, household_service):
        created = household_service.ensure_default_inkomstkallor()

        assert len(created) == len(DEFAULT_INKOMSTKALLOR)
        assert household_service.ensure_default_inkomstkallor() == []
        assert all(source.is_default for source in household_service.list_inkomstkallor())

    def test_duplicate_income_source(self, household_service):
        household_service.create_inkomstkall("Lön")
        with pytest.raises(ConflictError):
            household_service.create_inkomstkall("Lön")

    def test_links(self, household_service):
        member = household_service.create_family_member("Anna")
        source = household_service.create_inkomstkall("Lön")

        link_id = household_service.create_link(member, source)
        with pytest.raises(ConflictError):
            household_service.create_link(member, source)
        with pytest.raises(NotFoundError):
            household_service.create_link(member, 999)

        assert household_service.update_link(link_id, False).is_enabled is False
        assert [link.id for link in household_service.list_links(family_member_id=member)] == [link_id]

    def test_deleting_member_removes_links(self, household_service):
        member = household_service.create_family_member("Anna")
        source = household_service.create_inkomstkall("Lön")
        household_service.create_link(member, source)

        household_service.delete_family_member(member)

        assert household_service.list_links() == []
        assert household_service.get_inkomstkall(source) is not None


class TestMonthlyBudget:
    def test_create_and_total(self, budget_service):
        budget_service.create_budget("2025-08", primary_income=3000000, child_benefit=125000)

        budget = budget_service.get_budget("2025-08")
        assert budget.secondary_income == 0
        assert budget.total_income == 3125000

    def test_one_budget_per_month(self, budget_service):
        budget_service.create_budget("2025-08")
        with pytest.raises(ConflictError):
            budget_service.create_budget("2025-08")

    def test_save_budget_upserts(self, budget_service):
        created = budget_service.save_budget("2025-09", primary_income=100, notes="Semester")
        updated = budget_service.save_budget("2025-09", other_income=50)

        assert created.id == updated.id
        assert updated.total_income == 150
        assert updated.notes == "Semester"

    def test_validation(self, budget_service):
        with pytest.raises(ValidationError):
            budget_service.create_budget("2025-8")
        with pytest.raises(ValidationError):
            budget_service.create_budget("2025-08", primary_income=10.5)
        with pytest.raises(ValidationError):
            budget_service.create_budget("2025-08", rent=100)
        with pytest.raises(NotFoundError):
            budget_service.update_budget("2025-10", primary_income=1)


class TestUserSettings:
    def test_set_and_replace(self, settings_service):
        settings_service.set_setting("theme", "dark")
        settings_service.set_setting("theme", "light")

        assert settings_service.get_value("theme") == "light"
        assert len(settings_service.list_settings()) == 1

    def test_non_string_values(self, settings_service):
        assert settings_service.set_setting("showHidden", True).setting_value == "true"
        assert settings_service.set_setting("pageSize", 50).setting_value == "50"
        with pytest.raises(ValidationError):
            settings_service.set_setting("theme", None)

    def test_delete(self, settings_service):
        settings_service.set_setting("theme", "dark")
        settings_service.delete_setting("theme")

        assert settings_service.get_setting("theme") is None
        assert settings_service.get_value("theme", "auto") == "auto"
        with pytest.raises(NotFoundError):
            settings_service.delete_setting("theme")
