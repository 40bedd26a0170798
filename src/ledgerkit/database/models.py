"""SQLAlchemy models for ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(15, 2)


class Account(Base):
    """Chart-of-accounts model. Rows are deactivated, never deleted."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, nullable=False, index=True)
    code = Column(String(16), nullable=False)
    name = Column(String, nullable=False)
    category = Column(String(16), nullable=False)
    normal_balance = Column(String(8), nullable=False)
    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "code", name="uq_account_company_code"),)

    # Relationships
    parent = relationship("Account", remote_side=[id])
    rules = relationship("ClassificationRule", back_populates="account")


class ClassificationRule(Base):
    """Pattern rule resolving descriptions to an account."""

    __tablename__ = "classification_rules"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    pattern = Column(String, nullable=False)
    match_kind = Column(String(16), nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    account = relationship("Account", back_populates="rules")


class Period(Base):
    """Accounting period model."""

    __tablename__ = "periods"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(16), default="OPEN", nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "name", name="uq_period_company_name"),)

    # Relationships
    transactions = relationship("Transaction", back_populates="period")


class Transaction(Base):
    """Normalized bank transaction, stored as received."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("periods.id"), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    debit_amount = Column(MONEY, nullable=True)
    credit_amount = Column(MONEY, nullable=True)
    running_balance = Column(MONEY, nullable=True)
    bank_account_code = Column(String(16), nullable=False)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_transactions_period_date", "period_id", "date"),)

    # Relationships
    period = relationship("Period", back_populates="transactions")
    classification = relationship(
        "TransactionClassification",
        back_populates="transaction",
        uselist=False,
        cascade="all, delete-orphan",
    )


class TransactionClassification(Base):
    """Resolved account for one transaction (absent account means unclassified)."""

    __tablename__ = "transaction_classifications"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False, unique=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    source = Column(String(8), nullable=False)
    matched_rule_id = Column(Integer, ForeignKey("classification_rules.id"), nullable=True)
    counterparty = Column(String, nullable=True)
    classified_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="classification")
    account = relationship("Account")


class JournalEntry(Base):
    """Journal entry header."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, nullable=False, index=True)
    period_id = Column(Integer, ForeignKey("periods.id"), nullable=False)
    reference = Column(String, nullable=False)
    entry_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    origin = Column(String(8), default="SYSTEM", nullable=False)
    is_opening_balance = Column(Boolean, default=False, nullable=False)
    source_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, unique=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "reference", name="uq_entry_company_reference"),)

    # Relationships
    lines = relationship(
        "JournalEntryLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.id",
    )


class JournalEntryLine(Base):
    """Debit or credit line of a journal entry."""

    __tablename__ = "journal_entry_lines"

    id = Column(Integer, primary_key=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    debit_amount = Column(MONEY, nullable=True)
    credit_amount = Column(MONEY, nullable=True)
    description = Column(String, nullable=True)
    source_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)

    # Relationships
    entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
