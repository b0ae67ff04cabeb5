"""SQLAlchemy models for ledgerkit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

# Ten decimal places keep gas fees exact while staying inside SQLite's float range
Amount = Numeric(28, 10)


class Company(Base):
    """Company model."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    trading_name = Column(String, nullable=False)
    legal_name = Column(String, nullable=True)
    logo = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    bank_accounts = relationship("BankAccount", back_populates="company")
    wallets = relationship("DigitalWallet", back_populates="company")


class BankAccount(Base):
    """Bank account model."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    bank_name = Column(String, nullable=False)
    account_name = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    currency = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    company = relationship("Company", back_populates="bank_accounts")


class DigitalWallet(Base):
    """Digital wallet model (crypto or fiat)."""

    __tablename__ = "digital_wallets"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    wallet_name = Column(String, nullable=False)
    wallet_address = Column(String, nullable=True)
    blockchain = Column(String, nullable=True)
    currency = Column(String, nullable=False)
    # Comma-separated list, e.g. "ETH,USDT,USDC"
    currencies = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    company = relationship("Company", back_populates="wallets")


class InitialBalance(Base):
    """Manually entered starting balance, one per account."""

    __tablename__ = "initial_balances"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, nullable=False)
    account_type = Column(String, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    amount = Column(Amount, nullable=False)
    currency = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("account_id", "account_type", name="uq_initial_balance_account"),
    )


class Transaction(Base):
    """Ledger transaction model. Rows are soft-deleted only."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    account_id = Column(Integer, nullable=False)
    account_type = Column(String, nullable=False)
    date = Column(DateTime, nullable=False)
    currency = Column(String, nullable=False)
    net_amount = Column(Amount, nullable=False)
    incoming_amount = Column(Amount, nullable=True)
    outgoing_amount = Column(Amount, nullable=True)
    status = Column(String, default="CLEARED", nullable=False)
    reconciliation_status = Column(String, default="UNRECONCILED", nullable=False)
    category = Column(String, nullable=True)
    description = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    paid_by = Column(String, nullable=True)
    paid_to = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    linked_entry_type = Column(String, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_transactions_account", "account_id", "account_type"),
        Index("ix_transactions_reference", "account_id", "account_type", "reference", "currency"),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
