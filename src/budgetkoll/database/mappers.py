"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from budgetkoll.domain import entities as domain
from budgetkoll.database import models as orm


def user_to_domain(orm_user: orm.User) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        email=orm_user.email,
        first_name=orm_user.first_name,
        last_name=orm_user.last_name,
        created_at=orm_user.created_at,
    )


def account_type_to_domain(orm_type: orm.AccountType) -> domain.AccountType:
    """Convert SQLAlchemy AccountType model to domain AccountType entity."""
    return domain.AccountType(
        id=orm_type.id,
        user_id=orm_type.user_id,
        name=orm_type.name,
        description=orm_type.description,
        created_at=orm_type.created_at,
    )


def account_to_domain(orm_account: orm.Account) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        user_id=orm_account.user_id,
        name=orm_account.name,
        account_type_id=orm_account.account_type_id,
        start_balance=orm_account.start_balance or 0,
        created_at=orm_account.created_at,
    )


def bank_to_domain(orm_bank: orm.Bank) -> domain.Bank:
    """Convert SQLAlchemy Bank model to domain Bank entity."""
    return domain.Bank(
        id=orm_bank.id,
        user_id=orm_bank.user_id,
        name=orm_bank.name,
        created_at=orm_bank.created_at,
    )


def bank_csv_mapping_to_domain(orm_mapping: orm.BankCsvMapping) -> domain.BankCsvMapping:
    """Convert SQLAlchemy BankCsvMapping model to domain BankCsvMapping entity."""
    return domain.BankCsvMapping(
        id=orm_mapping.id,
        user_id=orm_mapping.user_id,
        bank_id=orm_mapping.bank_id,
        name=orm_mapping.name,
        date_column=orm_mapping.date_column,
        description_column=orm_mapping.description_column,
        amount_column=orm_mapping.amount_column,
        balance_column=orm_mapping.balance_column,
        bank_category_column=orm_mapping.bank_category_column,
        bank_sub_category_column=orm_mapping.bank_sub_category_column,
        is_active=bool(orm_mapping.is_active),
        created_at=orm_mapping.created_at,
        updated_at=orm_mapping.updated_at,
    )


def huvudkategori_to_domain(orm_category: orm.Huvudkategori) -> domain.Huvudkategori:
    """Convert SQLAlchemy Huvudkategori model to domain entity."""
    return domain.Huvudkategori(
        id=orm_category.id,
        user_id=orm_category.user_id,
        name=orm_category.name,
        created_at=orm_category.created_at,
    )


def underkategori_to_domain(orm_category: orm.Underkategori) -> domain.Underkategori:
    """Convert SQLAlchemy Underkategori model to domain entity."""
    return domain.Underkategori(
        id=orm_category.id,
        user_id=orm_category.user_id,
        name=orm_category.name,
        huvudkategori_id=orm_category.huvudkategori_id,
        created_at=orm_category.created_at,
    )


def category_rule_to_domain(orm_rule: orm.CategoryRule) -> domain.CategoryRule:
    """Convert SQLAlchemy CategoryRule model to domain CategoryRule entity."""
    return domain.CategoryRule(
        id=orm_rule.id,
        user_id=orm_rule.user_id,
        rule_name=orm_rule.rule_name,
        bank_category=orm_rule.bank_category,
        bank_sub_category=orm_rule.bank_sub_category,
        transaction_name=orm_rule.transaction_name,
        transaction_direction=orm_rule.transaction_direction,
        huvudkategori_id=orm_rule.huvudkategori_id,
        underkategori_id=orm_rule.underkategori_id,
        positive_transaction_type=orm_rule.positive_transaction_type,
        negative_transaction_type=orm_rule.negative_transaction_type,
        applicable_account_ids=tuple(orm_rule.applicable_account_ids or ()),
        priority=orm_rule.priority,
        is_active=bool(orm_rule.is_active),
        created_at=orm_rule.created_at,
    )


def transaction_to_domain(orm_transaction: orm.Transaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        unique_id=orm_transaction.unique_id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        amount=orm_transaction.amount,
        balance_after=orm_transaction.balance_after,
        type=orm_transaction.type,
        status=orm_transaction.status,
        bank_category=orm_transaction.bank_category,
        bank_sub_category=orm_transaction.bank_sub_category,
        huvudkategori_id=orm_transaction.huvudkategori_id,
        underkategori_id=orm_transaction.underkategori_id,
        user_description=orm_transaction.user_description,
        is_manually_changed=bool(orm_transaction.is_manually_changed),
        file_source=orm_transaction.file_source,
        imported_at=orm_transaction.imported_at,
        linked_transaction_id=orm_transaction.linked_transaction_id,
        corrected_amount=orm_transaction.corrected_amount,
        savings_target_id=orm_transaction.savings_target_id,
    )


def monthly_budget_to_domain(orm_budget: orm.MonthlyBudget) -> domain.MonthlyBudget:
    """Convert SQLAlchemy MonthlyBudget model to domain entity."""
    return domain.MonthlyBudget(
        id=orm_budget.id,
        user_id=orm_budget.user_id,
        month_key=orm_budget.month_key,
        primary_income=orm_budget.primary_income,
        secondary_income=orm_budget.secondary_income,
        child_benefit=orm_budget.child_benefit,
        other_income=orm_budget.other_income,
        notes=orm_budget.notes,
        created_at=orm_budget.created_at,
        updated_at=orm_budget.updated_at,
    )


def monthly_account_balance_to_domain(
    orm_balance: orm.MonthlyAccountBalance,
) -> domain.MonthlyAccountBalance:
    """Convert SQLAlchemy MonthlyAccountBalance model to domain entity."""
    return domain.MonthlyAccountBalance(
        id=orm_balance.id,
        user_id=orm_balance.user_id,
        month_key=orm_balance.month_key,
        account_id=orm_balance.account_id,
        calculated_balance=orm_balance.calculated_balance,
        faktiskt_kontosaldo=orm_balance.faktiskt_kontosaldo,
        bankens_kontosaldo=orm_balance.bankens_kontosaldo,
        created_at=orm_balance.created_at,
        updated_at=orm_balance.updated_at,
    )


def planned_transfer_to_domain(orm_transfer: orm.PlannedTransfer) -> domain.PlannedTransfer:
    """Convert SQLAlchemy PlannedTransfer model to domain entity."""
    return domain.PlannedTransfer(
        id=orm_transfer.id,
        user_id=orm_transfer.user_id,
        from_account_id=orm_transfer.from_account_id,
        to_account_id=orm_transfer.to_account_id,
        amount=orm_transfer.amount,
        month=orm_transfer.month,
        description=orm_transfer.description,
        transfer_type=orm_transfer.transfer_type,
        daily_amount=orm_transfer.daily_amount,
        transfer_days=tuple(orm_transfer.transfer_days or ()),
        huvudkategori_id=orm_transfer.huvudkategori_id,
        underkategori_id=orm_transfer.underkategori_id,
        created_at=orm_transfer.created_at,
    )


def budget_post_to_domain(orm_post: orm.BudgetPost) -> domain.BudgetPost:
    """Convert SQLAlchemy BudgetPost model to domain entity."""
    return domain.BudgetPost(
        id=orm_post.id,
        user_id=orm_post.user_id,
        month_key=orm_post.month_key,
        type=orm_post.type,
        description=orm_post.description,
        amount=orm_post.amount,
        account_id=orm_post.account_id,
        huvudkategori_id=orm_post.huvudkategori_id,
        underkategori_id=orm_post.underkategori_id,
        created_at=orm_post.created_at,
        updated_at=orm_post.updated_at,
    )


def family_member_to_domain(orm_member: orm.FamilyMember) -> domain.FamilyMember:
    """Convert SQLAlchemy FamilyMember model to domain entity."""
    return domain.FamilyMember(
        id=orm_member.id,
        user_id=orm_member.user_id,
        name=orm_member.name,
        role=orm_member.role,
        contributes_to_budget=bool(orm_member.contributes_to_budget),
        created_at=orm_member.created_at,
    )


def inkomstkall_to_domain(orm_source: orm.Inkomstkall) -> domain.Inkomstkall:
    """Convert SQLAlchemy Inkomstkall model to domain entity."""
    return domain.Inkomstkall(
        id=orm_source.id,
        user_id=orm_source.user_id,
        text=orm_source.text,
        is_default=bool(orm_source.is_default),
        created_at=orm_source.created_at,
    )


def inkomstkall_medlem_to_domain(orm_link: orm.InkomstkallMedlem) -> domain.InkomstkallMedlem:
    """Convert SQLAlchemy InkomstkallMedlem model to domain entity."""
    return domain.InkomstkallMedlem(
        id=orm_link.id,
        user_id=orm_link.user_id,
        family_member_id=orm_link.family_member_id,
        inkomstkall_id=orm_link.inkomstkall_id,
        is_enabled=bool(orm_link.is_enabled),
        created_at=orm_link.created_at,
    )


def user_setting_to_domain(orm_setting: orm.UserSetting) -> domain.UserSetting:
    """Convert SQLAlchemy UserSetting model to domain entity."""
    return domain.UserSetting(
        id=orm_setting.id,
        user_id=orm_setting.user_id,
        setting_key=orm_setting.setting_key,
        setting_value=orm_setting.setting_value,
        created_at=orm_setting.created_at,
        updated_at=orm_setting.updated_at,
    )
