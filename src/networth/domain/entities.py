"""Domain model entities for networth.

These are pure data classes representing business concepts, independent of
database schema. Snapshot rows are resolved into one of two shapes when they
are read, so downstream code never has to branch on which columns happen to
be filled in.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union


class BalanceGroup(str, Enum):
    """Top-level grouping for net-worth rollups."""

    CASH = "CASH"
    DEBT = "DEBT"
    INVESTMENT = "INVESTMENT"
    OTHER = "OTHER"


class AssetKind(str, Enum):
    """How an asset is tracked."""

    WHOLE = "WHOLE"
    SHARES = "SHARES"


class Collection(str, Enum):
    """Record collections exposed by the store."""

    ACCOUNTS = "accounts"
    ASSETS = "assets"
    ACCOUNT_BALANCES = "account_balances"
    ASSET_BALANCES = "asset_balances"
    TRANSACTIONS = "transactions"
    BALANCE_TYPES = "balance_types"


class ChangeAction(str, Enum):
    """Kind of change carried by a notification."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class BalanceType:
    """User-defined sub-category label for accounts and assets."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: int
    name: str
    balance_group: BalanceGroup
    balance_type_id: Optional[int]
    created_at: datetime
    closed_at: Optional[datetime] = None
    excluded_at: Optional[datetime] = None
    auto_calculated_at: Optional[datetime] = None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None

    @property
    def is_excluded(self) -> bool:
        return self.excluded_at is not None

    @property
    def is_auto_calculated(self) -> bool:
        return self.auto_calculated_at is not None


@dataclass(frozen=True)
class Asset:
    """Asset domain entity."""

    id: int
    name: str
    balance_group: BalanceGroup
    balance_type_id: Optional[int]
    kind: AssetKind
    created_at: datetime
    symbol: Optional[str] = None
    sold_at: Optional[datetime] = None
    excluded_at: Optional[datetime] = None

    @property
    def is_sold(self) -> bool:
        return self.sold_at is not None

    @property
    def is_excluded(self) -> bool:
        return self.excluded_at is not None


@dataclass(frozen=True)
class SimpleSnapshot:
    """Point-in-time balance carrying a single value."""

    id: int
    owner_id: int
    value: Decimal
    as_of: datetime
    created_at: datetime

    @property
    def current_value(self) -> Decimal:
        return self.value


@dataclass(frozen=True)
class DetailedSnapshot:
    """Point-in-time asset balance with book/market values and optional shares."""

    id: int
    owner_id: int
    as_of: datetime
    created_at: datetime
    book_value: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    book_price: Optional[Decimal] = None
    market_price: Optional[Decimal] = None

    @property
    def current_value(self) -> Decimal:
        """Market value first, then book value, deriving from shares when needed."""
        if self.market_value is not None:
            return self.market_value
        if self.quantity is not None and self.market_price is not None:
            return self.quantity * self.market_price
        if self.book_value is not None:
            return self.book_value
        if self.quantity is not None and self.book_price is not None:
            return self.quantity * self.book_price
        return Decimal("0")


Snapshot = Union[SimpleSnapshot, DetailedSnapshot]


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: int
    account_id: int
    date: datetime
    value: Decimal
    created_at: datetime
    description: Optional[str] = None
    excluded_at: Optional[datetime] = None
    pending_at: Optional[datetime] = None
    labels: tuple[str, ...] = ()

    @property
    def is_excluded(self) -> bool:
        return self.excluded_at is not None

    @property
    def is_pending(self) -> bool:
        return self.pending_at is not None

    @property
    def counts_toward_totals(self) -> bool:
        """Excluded and pending transactions never contribute to sums."""
        return not self.is_excluded and not self.is_pending


@dataclass(frozen=True)
class ChangeEvent:
    """Notification emitted by the store after a committed write."""

    collection: Collection
    action: ChangeAction
    record: Any


@dataclass(frozen=True)
class TransactionRow:
    """Transaction listing row for display."""

    id: int
    date: datetime
    description: str
    labels: tuple[str, ...]
    account_id: Optional[int]
    account_name: str
    value: Decimal
    excluded: bool
    pending: bool


@dataclass(frozen=True)
class TransactionPage:
    """A page of transaction rows."""

    rows: tuple[TransactionRow, ...]
    page: int
    total_pages: int
    total_rows: int
