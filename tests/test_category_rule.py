"""Tests for category rules and rule application."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from budgetkoll.domain.category_rule import (
    ALL_BANK_CATEGORIES,
    bank_category_fallback,
    find_matching_rule,
    find_uncategorized_bank_categories,
    rule_categorization,
    rule_matches,
)
from budgetkoll.domain.entities import CategoryRule, Huvudkategori, Underkategori
from budgetkoll.domain.errors import NotFoundError, ValidationError

NOW = datetime(2025, 8, 1)


def make_rule(rule_id=1, **overrides) -> CategoryRule:
    values = dict(
        id=rule_id,
        user_id="user-1",
        rule_name="Regel",
        bank_category=None,
        bank_sub_category=None,
        transaction_name=None,
        transaction_direction="all",
        huvudkategori_id=10,
        underkategori_id=None,
        positive_transaction_type="Transaction",
        negative_transaction_type="Transaction",
        applicable_account_ids=(),
        priority=100,
        is_active=True,
        created_at=NOW,
    )
    values.update(overrides)
    return CategoryRule(**values)


def txn(description="", amount=-100, bank_category=None, bank_sub_category=None, account_id=1):
    return SimpleNamespace(
        description=description,
        amount=amount,
        bank_category=bank_category,
        bank_sub_category=bank_sub_category,
        account_id=account_id,
    )


class TestUncategorizedBankCategories:
    def test_category_without_rule_is_uncategorized(self):
        transactions = [txn(bank_category="Mat"), txn(bank_category="Hushåll")]
        result = find_uncategorized_bank_categories(transactions, [make_rule(bank_category="Mat")])

        assert [u.bank_category for u in result] == ["Hushåll"]

    def test_match_is_exact_and_case_sensitive(self):
        transactions = [txn(bank_category="Mat"), txn(bank_category="Mat ")]
        result = find_uncategorized_bank_categories(transactions, [make_rule(bank_category="mat")])

        assert [u.bank_category for u in result] == ["Mat", "Mat "]

    def test_rule_for_main_category_covers_subcategories(self):
        transactions = [txn(bank_category="Mat", bank_sub_category="Livsmedel")]
        rule = make_rule(bank_category="Mat", bank_sub_category="Restaurang")

        assert find_uncategorized_bank_categories(transactions, [rule]) == []

    def test_distinct_subcategories_in_first_seen_order(self):
        transactions = [
            txn(bank_category="Mat", bank_sub_category="Livsmedel"),
            txn(bank_category="Mat", bank_sub_category="Restaurang"),
            txn(bank_category="Mat", bank_sub_category="Livsmedel"),
            txn(bank_category="Mat"),
            txn(bank_category=None),
        ]
        [group] = find_uncategorized_bank_categories(transactions, [])

        assert group.occurrence_count == 4
        assert group.sub_categories == ("Livsmedel", "Restaurang")
        assert group.rule_suggestions() == [
            ("Mat", None),
            ("Mat", "Livsmedel"),
            ("Mat", "Restaurang"),
        ]


class TestRuleMatching:
    def test_wildcard_matches_everything(self):
        assert rule_matches(make_rule(bank_category="*"), txn(description="anything"))

    def test_bank_category_and_subcategory(self):
        rule = make_rule(bank_category="Mat", bank_sub_category="Livsmedel")

        assert rule_matches(rule, txn(bank_category="Mat", bank_sub_category="Livsmedel"))
        assert not rule_matches(rule, txn(bank_category="Mat", bank_sub_category="Restaurang"))

    def test_all_bank_categories_falls_back_to_text(self):
        rule = make_rule(bank_category=ALL_BANK_CATEGORIES, transaction_name="netflix")

        assert rule_matches(rule, txn(description="NETFLIX.COM", bank_category="Nöje"))
        assert not rule_matches(rule, txn(description="Spotify", bank_category="Nöje"))

    def test_direction_filter(self):
        rule = make_rule(transaction_name="swish", transaction_direction="positive")

        assert rule_matches(rule, txn(description="Swish från Eva", amount=5000))
        assert not rule_matches(rule, txn(description="Swish till Eva", amount=-5000))

    def test_account_restriction(self):
        rule = make_rule(transaction_name="hyra", applicable_account_ids=(2,))

        assert not rule_matches(rule, txn(description="Hyra", account_id=1))
        assert rule_matches(rule, txn(description="Hyra", account_id=2))

    def test_lowest_priority_wins_and_inactive_ignored(self):
        rules = [
            make_rule(1, transaction_name="ica", priority=50, is_active=False),
            make_rule(2, transaction_name="ica", priority=200),
            make_rule(3, transaction_name="ica maxi", priority=100),
        ]

        assert find_matching_rule(txn(description="ICA Maxi"), rules).id == 3

    def test_categorization_status_and_type(self):
        rule = make_rule(
            underkategori_id=11, positive_transaction_type="Income", negative_transaction_type="Expense"
        )

        assert rule_categorization(rule, 100)["type"] == "Income"
        fields = rule_categorization(rule, -100)
        assert fields["type"] == "Expense"
        assert fields["status"] == "green"
        assert rule_categorization(make_rule(), -1)["status"] == "yellow"

    def test_bank_category_fallback_needs_both_levels(self):
        mains = [Huvudkategori(id=1, user_id="u", name="Mat", created_at=NOW)]
        subs = [Underkategori(id=2, user_id="u", name="Livsmedel", huvudkategori_id=1, created_at=NOW)]

        fields = bank_category_fallback(txn(bank_category=" mat", bank_sub_category="LIVSMEDEL"), mains, subs)
        assert fields["huvudkategori_id"] == 1
        assert fields["underkategori_id"] == 2
        assert bank_category_fallback(txn(bank_category="Mat"), mains, subs) is None


class TestCategoryRuleService:
    def test_create_rule_defaults(self, rule_service, sample_categories):
        rule_id = rule_service.create_rule(
            bank_category="Mat", bank_sub_category="Livsmedel", huvudkategori_id=sample_categories["Mat"]
        )
        rule = rule_service.get_rule(rule_id)

        assert rule.rule_name == "Regel: Mat / Livsmedel"
        assert rule.transaction_direction == "all"
        assert rule.priority == 100
        assert rule.is_active

    def test_rule_needs_a_criterion(self, rule_service, sample_categories):
        with pytest.raises(ValidationError):
            rule_service.create_rule(huvudkategori_id=sample_categories["Mat"])

    def test_rule_rejects_mismatched_subcategory(self, rule_service, sample_categories):
        with pytest.raises(ValidationError):
            rule_service.create_rule(
                transaction_name="ica",
                huvudkategori_id=sample_categories["Inkomst"],
                underkategori_id=sample_categories["Mat > Livsmedel"],
            )

    def test_rule_rejects_unknown_account(self, rule_service, sample_categories):
        with pytest.raises(NotFoundError):
            rule_service.create_rule(
                transaction_name="ica", huvudkategori_id=sample_categories["Mat"], applicable_account_ids=[99]
            )

    def test_update_and_delete(self, rule_service, sample_categories):
        rule_id = rule_service.create_rule(transaction_name="ica", huvudkategori_id=sample_categories["Mat"])

        updated = rule_service.update_rule(rule_id, priority=5, is_active=False)
        assert updated.priority == 5
        assert not updated.is_active

        rule_service.delete_rule(rule_id)
        assert rule_service.get_rule(rule_id) is None
        with pytest.raises(NotFoundError):
            rule_service.delete_rule(rule_id)

    def test_uncategorized_bank_categories_by_month(
        self, rule_service, transaction_service, sample_account, sample_categories
    ):
        transaction_service.create_transaction(
            sample_account.id, date(2025, 8, 3), "ICA", -100, bank_category="Mat", bank_sub_category="Livsmedel"
        )
        transaction_service.create_transaction(
            sample_account.id, date(2025, 7, 3), "SJ", -100, bank_category="Resor"
        )

        result = rule_service.uncategorized_bank_categories(month_key="2025-08")
        assert [u.bank_category for u in result] == ["Mat"]

        rule_service.create_rule(bank_category="Mat", huvudkategori_id=sample_categories["Mat"])
        assert rule_service.uncategorized_bank_categories(month_key="2025-08") == []

    def test_apply_rules_skips_manual_and_green(
        self, rule_service, transaction_service, sample_account, sample_categories
    ):
        manual_id = transaction_service.create_transaction(sample_account.id, date(2025, 8, 1), "ICA Nära", -100)
        transaction_service.update_transaction(manual_id, huvudkategori_id=sample_categories["Sparande"])
        auto_id = transaction_service.create_transaction(sample_account.id, date(2025, 8, 2), "ICA Maxi", -200)
        other_id = transaction_service.create_transaction(sample_account.id, date(2025, 8, 3), "SJ", -300)

        rule_service.create_rule(
            transaction_name="ica",
            huvudkategori_id=sample_categories["Mat"],
            underkategori_id=sample_categories["Mat > Livsmedel"],
        )
        stats = rule_service.apply_rules()

        assert stats.processed == 3
        assert stats.updated == 1
        assert stats.auto_approved == 1
        assert transaction_service.get_transaction(auto_id).status == "green"
        assert transaction_service.get_transaction(manual_id).huvudkategori_id == sample_categories["Sparande"]
        assert transaction_service.get_transaction(other_id).huvudkategori_id is None

        # A second run changes nothing
        assert rule_service.apply_rules().updated == 0
