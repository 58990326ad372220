"""SQLAlchemy models for budgetkoll database."""

from datetime import datetime, UTC
from sqlalchemy import (
    BigInteger,
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    JSON,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """User model, keyed by the identity provider's subject."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class AccountType(Base):
    """Account type model."""

    __tablename__ = "account_types"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_type_user_name"),)

    accounts = relationship("Account", back_populates="account_type")


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    account_type_id = Column(Integer, ForeignKey("account_types.id"), nullable=True)
    start_balance = Column(BigInteger, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_user_name"),)

    # Relationships
    account_type = relationship("AccountType", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account")


class Bank(Base):
    """Bank model."""

    __tablename__ = "banks"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    csv_mappings = relationship(
        "BankCsvMapping", back_populates="bank", cascade="all, delete-orphan"
    )


class BankCsvMapping(Base):
    """Statement column mapping for a bank."""

    __tablename__ = "bank_csv_mappings"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    name = Column(String, nullable=False)
    date_column = Column(String, nullable=True)
    description_column = Column(String, nullable=True)
    amount_column = Column(String, nullable=True)
    balance_column = Column(String, nullable=True)
    bank_category_column = Column(String, nullable=True)
    bank_sub_category_column = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    bank = relationship("Bank", back_populates="csv_mappings")


class Huvudkategori(Base):
    """Main category model."""

    __tablename__ = "huvudkategorier"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_huvudkategori_user_name"),)

    underkategorier = relationship(
        "Underkategori", back_populates="huvudkategori", cascade="all, delete-orphan"
    )


class Underkategori(Base):
    """Subcategory model."""

    __tablename__ = "underkategorier"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    huvudkategori_id = Column(Integer, ForeignKey("huvudkategorier.id"), nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("huvudkategori_id", "name", name="uq_underkategori_parent_name"),
    )

    huvudkategori = relationship("Huvudkategori", back_populates="underkategorier")


class CategoryRule(Base):
    """Category rule model."""

    __tablename__ = "category_rules"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    rule_name = Column(String, nullable=False)
    bank_category = Column(String, nullable=True)
    bank_sub_category = Column(String, nullable=True)
    transaction_name = Column(String, nullable=True)
    transaction_direction = Column(String, default="all", nullable=False)
    huvudkategori_id = Column(Integer, ForeignKey("huvudkategorier.id"), nullable=False)
    underkategori_id = Column(Integer, ForeignKey("underkategorier.id"), nullable=True)
    positive_transaction_type = Column(String, default="Transaction", nullable=False)
    negative_transaction_type = Column(String, default="Transaction", nullable=False)
    applicable_account_ids = Column(JSON, default=list, nullable=False)
    priority = Column(Integer, default=100, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class Transaction(Base):
    """Transaction model. Amounts are öre."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    unique_id = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(BigInteger, nullable=False)
    balance_after = Column(BigInteger, nullable=True)
    type = Column(String, default="Transaction", nullable=False)
    status = Column(String, default="red", nullable=False)
    bank_category = Column(String, nullable=True)
    bank_sub_category = Column(String, nullable=True)
    huvudkategori_id = Column(Integer, ForeignKey("huvudkategorier.id"), nullable=True)
    underkategori_id = Column(Integer, ForeignKey("underkategorier.id"), nullable=True)
    user_description = Column(String, nullable=True)
    is_manually_changed = Column(Boolean, default=False, nullable=False)
    file_source = Column(String, nullable=True)
    imported_at = Column(DateTime, default=_now, nullable=False)
    linked_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    corrected_amount = Column(BigInteger, nullable=True)
    savings_target_id = Column(Integer, ForeignKey("budget_posts.id"), nullable=True)

    # Unique constraint on account_id + unique_id
    __table_args__ = (UniqueConstraint("account_id", "unique_id", name="uq_account_unique_id"),)

    account = relationship("Account", back_populates="transactions")


class MonthlyBudget(Base):
    """Monthly budget model."""

    __tablename__ = "monthly_budgets"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    month_key = Column(String(7), nullable=False)
    primary_income = Column(BigInteger, default=0, nullable=False)
    secondary_income = Column(BigInteger, default=0, nullable=False)
    child_benefit = Column(BigInteger, default=0, nullable=False)
    other_income = Column(BigInteger, default=0, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "month_key", name="uq_budget_user_month"),)


class MonthlyAccountBalance(Base):
    """Per-month, per-account balance model."""

    __tablename__ = "monthly_account_balances"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    month_key = Column(String(7), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    calculated_balance = Column(BigInteger, default=0, nullable=False)
    faktiskt_kontosaldo = Column(BigInteger, nullable=True)
    bankens_kontosaldo = Column(BigInteger, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "month_key", "account_id", name="uq_balance_month_account"),
    )


class PlannedTransfer(Base):
    """Planned transfer model."""

    __tablename__ = "planned_transfers"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    from_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    to_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    amount = Column(BigInteger, default=0, nullable=False)
    month = Column(String(7), nullable=False)
    description = Column(String, nullable=True)
    transfer_type = Column(String, default="monthly", nullable=False)
    daily_amount = Column(BigInteger, nullable=True)
    transfer_days = Column(JSON, default=list, nullable=False)
    huvudkategori_id = Column(Integer, ForeignKey("huvudkategorier.id"), nullable=True)
    underkategori_id = Column(Integer, ForeignKey("underkategorier.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class BudgetPost(Base):
    """Budget post model: a cost or savings line for one month."""

    __tablename__ = "budget_posts"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    month_key = Column(String(7), nullable=False, index=True)
    type = Column(String, default="cost", nullable=False)
    description = Column(String, nullable=False)
    amount = Column(BigInteger, default=0, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    huvudkategori_id = Column(Integer, ForeignKey("huvudkategorier.id"), nullable=True)
    underkategori_id = Column(Integer, ForeignKey("underkategorier.id"), nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


class FamilyMember(Base):
    """Family member model."""

    __tablename__ = "family_members"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=True)
    contributes_to_budget = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    income_links = relationship(
        "InkomstkallMedlem", back_populates="family_member", cascade="all, delete-orphan"
    )


class Inkomstkall(Base):
    """Income source model."""

    __tablename__ = "inkomstkallor"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    text = Column(String, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "text", name="uq_inkomstkall_user_text"),)

    member_links = relationship(
        "InkomstkallMedlem", back_populates="inkomstkall", cascade="all, delete-orphan"
    )


class InkomstkallMedlem(Base):
    """Family member to income source link model."""

    __tablename__ = "inkomstkallor_medlem"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    family_member_id = Column(Integer, ForeignKey("family_members.id"), nullable=False)
    inkomstkall_id = Column(Integer, ForeignKey("inkomstkallor.id"), nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("family_member_id", "inkomstkall_id", name="uq_member_income_source"),
    )

    family_member = relationship("FamilyMember", back_populates="income_links")
    inkomstkall = relationship("Inkomstkall", back_populates="member_links")


class UserSetting(Base):
    """User setting model."""

    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    setting_key = Column(String, nullable=False)
    setting_value = Column(String, nullable=False, default="")
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "setting_key", name="uq_user_setting_key"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
