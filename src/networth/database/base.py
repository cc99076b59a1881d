"""Abstract database interface.

The aggregation code only relies on list_all, get_latest and subscribe; the
typed write operations are used by the domain services.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from networth.domain.entities import (
    Account,
    Asset,
    AssetKind,
    BalanceGroup,
    BalanceType,
    ChangeEvent,
    Collection,
    Snapshot,
    Transaction,
)
from networth.domain.errors import SubscriptionError

FILTER_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "is_null", "not_null")

ChangeHandler = Callable[[ChangeEvent], None]
StreamErrorHandler = Callable[[SubscriptionError], None]


@dataclass(frozen=True)
class Filter:
    """One condition of a list_all filter; conditions are ANDed together.

    ``field`` names a stored column (e.g. ``account_id``, ``date``,
    ``excluded_at``). ``value`` is ignored by ``is_null`` and ``not_null``
    and must be an iterable for ``in``.
    """

    field: str
    op: str
    value: Any = None


@dataclass(frozen=True)
class SubscriptionHandle:
    """Token returned by subscribe, passed back to unsubscribe."""

    collection: Collection
    token: int


class Database(ABC):
    """Abstract database interface for networth."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Generic reads
    @abstractmethod
    def list_all(
        self, collection: Collection, filters: Optional[Sequence[Filter]] = None
    ) -> list[Any]:
        """List every record of a collection matching all filters."""
        pass

    @abstractmethod
    def get(self, collection: Collection, record_id: int) -> Optional[Any]:
        """Get one record by ID."""
        pass

    @abstractmethod
    def get_latest(
        self, collection: Collection, parent_field: str, parent_id: int
    ) -> Optional[Snapshot]:
        """Get the newest snapshot of one owner (as_of, then created, then id, descending)."""
        pass

    # Change notifications
    @abstractmethod
    def subscribe(
        self,
        collection: Collection,
        handler: ChangeHandler,
        on_error: Optional[StreamErrorHandler] = None,
    ) -> SubscriptionHandle:
        """Register a handler called after every committed change to a collection.

        Args:
            collection: Collection to watch
            handler: Called with each ChangeEvent
            on_error: Called once if the change stream drops after it was
                established; the subscription is gone by then

        Raises:
            SubscriptionError: If the change stream cannot be established
        """
        pass

    @abstractmethod
    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Remove a handler registered with subscribe."""
        pass

    # Balance type operations
    @abstractmethod
    def get_or_create_balance_type(self, name: str) -> int:
        """Return the ID of the balance type with this name, creating it if needed.

        Names are compared case-insensitively after trimming whitespace.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        balance_group: BalanceGroup,
        balance_type_id: Optional[int] = None,
        auto_calculated_at: Optional[datetime] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def update_account(self, account_id: int, **changes: Any) -> Account:
        """Update account fields. Returns the updated account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account together with its snapshots and transactions."""
        pass

    # Asset operations
    @abstractmethod
    def create_asset(
        self,
        name: str,
        balance_group: BalanceGroup,
        kind: AssetKind = AssetKind.WHOLE,
        balance_type_id: Optional[int] = None,
        symbol: Optional[str] = None,
    ) -> int:
        """Create a new asset. Returns asset ID."""
        pass

    @abstractmethod
    def update_asset(self, asset_id: int, **changes: Any) -> Asset:
        """Update asset fields. Returns the updated asset."""
        pass

    @abstractmethod
    def delete_asset(self, asset_id: int) -> None:
        """Delete an asset together with its snapshots."""
        pass

    # Snapshot operations
    @abstractmethod
    def create_account_balance(self, account_id: int, value: Decimal, as_of: datetime) -> int:
        """Record an account balance snapshot. Returns snapshot ID."""
        pass

    @abstractmethod
    def create_asset_balance(
        self,
        asset_id: int,
        as_of: datetime,
        value: Optional[Decimal] = None,
        book_value: Optional[Decimal] = None,
        market_value: Optional[Decimal] = None,
        quantity: Optional[Decimal] = None,
        book_price: Optional[Decimal] = None,
        market_price: Optional[Decimal] = None,
    ) -> int:
        """Record an asset balance snapshot. Returns snapshot ID."""
        pass

    @abstractmethod
    def delete_balance(self, collection: Collection, balance_id: int) -> None:
        """Delete one account or asset snapshot."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        date: datetime,
        value: Decimal,
        description: Optional[str] = None,
        labels: Iterable[str] = (),
        excluded_at: Optional[datetime] = None,
        pending_at: Optional[datetime] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **changes: Any) -> Transaction:
        """Update transaction fields. Returns the updated transaction."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    # Typed convenience reads
    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        return self.list_all(Collection.ACCOUNTS)

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        return self.get(Collection.ACCOUNTS, account_id)

    def list_assets(self) -> list[Asset]:
        """List all assets."""
        return self.list_all(Collection.ASSETS)

    def get_asset(self, asset_id: int) -> Optional[Asset]:
        """Get asset by ID."""
        return self.get(Collection.ASSETS, asset_id)

    def list_balance_types(self) -> list[BalanceType]:
        """List all balance types."""
        return self.list_all(Collection.BALANCE_TYPES)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        return self.get(Collection.TRANSACTIONS, transaction_id)
