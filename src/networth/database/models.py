"""SQLAlchemy models for networth database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    Table,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(18, 2)
QUANTITY = Numeric(24, 8)


def _utc_now() -> datetime:
    return datetime.now(UTC)


transaction_labels = Table(
    "transaction_labels",
    Base.metadata,
    Column("transaction_id", Integer, ForeignKey("transactions.id"), primary_key=True),
    Column("label_id", Integer, ForeignKey("labels.id"), primary_key=True),
)


class BalanceType(Base):
    """Balance type label model."""

    __tablename__ = "balance_types"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    balance_group = Column(String, nullable=False, default="OTHER")
    balance_type_id = Column(Integer, ForeignKey("balance_types.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    excluded_at = Column(DateTime(timezone=True), nullable=True)
    auto_calculated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    balance_type = relationship("BalanceType")
    balances = relationship("AccountBalance", back_populates="account", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Asset(Base):
    """Asset model."""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    symbol = Column(String, nullable=True)
    balance_group = Column(String, nullable=False, default="OTHER")
    balance_type_id = Column(Integer, ForeignKey("balance_types.id"), nullable=True)
    kind = Column(String, nullable=False, default="WHOLE")
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    sold_at = Column(DateTime(timezone=True), nullable=True)
    excluded_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    balance_type = relationship("BalanceType")
    balances = relationship("AssetBalance", back_populates="asset", cascade="all, delete-orphan")


class AccountBalance(Base):
    """Account balance snapshot model."""

    __tablename__ = "account_balances"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    value = Column(MONEY, nullable=False)
    as_of = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    account = relationship("Account", back_populates="balances")


class AssetBalance(Base):
    """Asset balance snapshot model.

    Either ``value`` alone is set, or some of the book/market columns are.
    """

    __tablename__ = "asset_balances"

    id = Column(Integer, primary_key=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    value = Column(MONEY, nullable=True)
    book_value = Column(MONEY, nullable=True)
    market_value = Column(MONEY, nullable=True)
    quantity = Column(QUANTITY, nullable=True)
    book_price = Column(QUANTITY, nullable=True)
    market_price = Column(QUANTITY, nullable=True)
    as_of = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    asset = relationship("Asset", back_populates="balances")


class Label(Base):
    """Transaction label model."""

    __tablename__ = "labels"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    value = Column(MONEY, nullable=False)
    description = Column(String, nullable=True)
    excluded_at = Column(DateTime(timezone=True), nullable=True)
    pending_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    labels = relationship("Label", secondary=transaction_labels, lazy="selectin")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
