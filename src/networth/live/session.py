"""Session-scoped live aggregation over the record store.

A LiveSession loads every collection once, derives the balance rollup, cash
flow and performance table, then keeps them current from the store's change
notifications. Each change only revalues the accounts and assets it touches
before the cheap global sums are rebuilt.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from networth.database.base import Database, Filter, SubscriptionHandle
from networth.domain.cashflow import CashflowAverages, TrailingWindow, trailing_averages
from networth.domain.entities import ChangeAction, ChangeEvent, Collection
from networth.domain.errors import (
    AuthorizationError,
    StoreConnectionError,
    StoreError,
    SubscriptionError,
)
from networth.domain.ledger import Ledger
from networth.domain.performance import PerformanceRow, performance
from networth.domain.rollup import (
    ACCOUNT,
    ASSET,
    BalanceRollup,
    EntityValue,
    entity_values,
    rollup_values,
    value_account,
    value_asset,
)
from networth.live.queue import KeyedBatchQueue
from networth.utils.periods import utc_now

logger = logging.getLogger(__name__)

CONNECTION_LOST_NOTICE = "Connection to the store was lost; showing the last known values"
LIVE_UPDATES_NOTICE = "Live updates unavailable; values will not refresh automatically"
AUTH_REQUIRED_NOTICE = "Sign-in required"

EntityKey = tuple[str, int]
QueueKey = tuple[Collection, int]

_SNAPSHOT_OWNERS = {
    Collection.ACCOUNT_BALANCES: ("account_id", ACCOUNT),
    Collection.ASSET_BALANCES: ("asset_id", ASSET),
}


class SessionStatus(str, Enum):
    """Lifecycle of a live session."""

    LOADING = "loading"
    LIVE = "live"
    CONNECTION_ERROR = "connection-error"
    LIVE_UPDATES_UNAVAILABLE = "live-updates-unavailable"
    AUTH_REQUIRED = "auth-required"
    STOPPED = "stopped"


def queue_key(event: ChangeEvent) -> QueueKey:
    """Snapshot changes are keyed by owner so one refetch covers a burst of them."""
    owner = _SNAPSHOT_OWNERS.get(event.collection)
    if owner is not None:
        return (event.collection, event.record.owner_id)
    return (event.collection, event.record.id)


class LiveSession:
    """Live balance sheet, cash flow and performance for one signed-in session.

    All state lives on the instance; nothing is shared between sessions.
    Public attributes hold the last good aggregates and stay readable after
    a connection failure.
    """

    def __init__(
        self,
        db: Database,
        clock: Optional[Callable[[], datetime]] = None,
        credential: Optional[str] = None,
    ):
        """Initialize a live session.

        Args:
            db: Database instance
            clock: Returns the reference instant for cash flow and performance,
                defaults to the current UTC time
            credential: Opaque credential of the signed-in user, dropped when
                the store rejects it
        """
        self.db = db
        self.credential = credential
        self._clock = clock or utc_now
        self.ledger = Ledger()
        self.values: dict[EntityKey, EntityValue] = {}
        self.rollup: BalanceRollup = rollup_values([])
        self.cashflow: dict[TrailingWindow, CashflowAverages] = {}
        self.performance: list[PerformanceRow] = []
        self.status = SessionStatus.STOPPED
        self.notices: list[str] = []
        self._handles: list[SubscriptionHandle] = []
        self._events: dict[QueueKey, ChangeEvent] = {}
        self._queue: KeyedBatchQueue[QueueKey] = KeyedBatchQueue(self._process, name="live-session")
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # Lifecycle
    async def start(self) -> None:
        """Load everything, compute all aggregates, then subscribe to changes."""
        self._loop = asyncio.get_running_loop()
        self.status = SessionStatus.LOADING
        try:
            self.ledger = await self._load()
        except AuthorizationError as e:
            self._require_auth(e)
            return
        except StoreConnectionError as e:
            self._connection_lost(e)
            return

        self._recompute_all()
        self._subscribe()

    async def stop(self) -> None:
        """Unsubscribe and stop processing changes; aggregates stay readable."""
        self._unsubscribe_all()
        await self._queue.close()
        self._events.clear()
        self.status = SessionStatus.STOPPED

    async def reconnect(self, credential: Optional[str] = None) -> None:
        """Drop subscriptions, reload every collection and subscribe again."""
        if credential is not None:
            self.credential = credential
        await self.stop()
        self._queue = KeyedBatchQueue(self._process, name="live-session")
        self.notices.clear()
        await self.start()

    async def settle(self) -> None:
        """Wait until every change delivered so far has been applied."""
        await asyncio.sleep(0)
        await self._queue.join()

    async def _load(self) -> Ledger:
        collections = (
            Collection.ACCOUNTS,
            Collection.ASSETS,
            Collection.ACCOUNT_BALANCES,
            Collection.ASSET_BALANCES,
            Collection.TRANSACTIONS,
            Collection.BALANCE_TYPES,
        )
        results = await asyncio.gather(
            *(asyncio.to_thread(self.db.list_all, collection) for collection in collections)
        )
        records = dict(zip(collections, results))
        logger.debug("Loaded %s", {c.value: len(r) for c, r in records.items()})
        return Ledger.from_records(
            accounts=records[Collection.ACCOUNTS],
            assets=records[Collection.ASSETS],
            account_snapshots=records[Collection.ACCOUNT_BALANCES],
            asset_snapshots=records[Collection.ASSET_BALANCES],
            transactions=records[Collection.TRANSACTIONS],
            balance_types=records[Collection.BALANCE_TYPES],
        )

    def _subscribe(self) -> None:
        try:
            for collection in Collection:
                self._handles.append(self.db.subscribe(collection, self._on_change, self._on_stream_error))
        except SubscriptionError as e:
            logger.warning("Subscription to %s failed: %s", e.collection, e)
            self._unsubscribe_all()
            self.status = SessionStatus.LIVE_UPDATES_UNAVAILABLE
            self.notices.append(LIVE_UPDATES_NOTICE)
            return
        self.status = SessionStatus.LIVE

    def _unsubscribe_all(self) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            try:
                self.db.unsubscribe(handle)
            except StoreError as e:
                logger.warning("Unsubscribe from %s failed: %s", handle.collection.value, e)

    # Failure handling
    def _connection_lost(self, error: StoreConnectionError) -> None:
        logger.error(
            "Live session lost the store during %s on %s: %s",
            error.operation,
            error.collection,
            error,
        )
        self.status = SessionStatus.CONNECTION_ERROR
        self.notices.append(CONNECTION_LOST_NOTICE)

    def _stream_dropped(self, error: SubscriptionError) -> None:
        # One report covers every collection; the others follow the same drop
        if self.status is not SessionStatus.LIVE:
            return
        logger.warning("Change stream for %s dropped: %s", error.collection, error)
        self._unsubscribe_all()
        self.status = SessionStatus.LIVE_UPDATES_UNAVAILABLE
        self.notices.append(LIVE_UPDATES_NOTICE)

    def _require_auth(self, error: AuthorizationError) -> None:
        logger.warning("Store rejected the session credential: %s", error)
        self.credential = None
        self._unsubscribe_all()
        self._events.clear()
        self.status = SessionStatus.AUTH_REQUIRED
        self.notices.append(AUTH_REQUIRED_NOTICE)

    # Change intake
    def _on_change(self, event: ChangeEvent) -> None:
        """Store callback; may run on any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Dropping %s %s, session loop is gone", event.collection.value, event.action.value)
            return
        loop.call_soon_threadsafe(self._accept, event)

    def _on_stream_error(self, error: SubscriptionError) -> None:
        """Store callback for a change stream that dropped; may run on any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Dropping stream failure on %s, session loop is gone", error.collection)
            return
        loop.call_soon_threadsafe(self._stream_dropped, error)

    def _accept(self, event: ChangeEvent) -> None:
        if self.status is not SessionStatus.LIVE:
            logger.debug(
                "Ignoring %s %s while %s", event.collection.value, event.action.value, self.status.value
            )
            return
        key = queue_key(event)
        # The latest event for a key wins
        self._events[key] = event
        self._queue.enqueue(key)

    async def _process(self, key: QueueKey) -> None:
        event = self._events.pop(key, None)
        if event is None or self.status is not SessionStatus.LIVE:
            return
        try:
            affected = await self._apply(event)
        except AuthorizationError as e:
            self._require_auth(e)
            await self._queue.close()
            return
        except StoreConnectionError as e:
            self._connection_lost(e)
            return
        self._recompute(event.collection, affected)

    async def _apply(self, event: ChangeEvent) -> set[EntityKey]:
        """Fold one change into the ledger; returns the entities to revalue."""
        ledger = self.ledger
        record: Any = event.record
        deleted = event.action is ChangeAction.DELETE

        if event.collection in _SNAPSHOT_OWNERS:
            owner_field, kind = _SNAPSHOT_OWNERS[event.collection]
            owner_id = record.owner_id
            snapshots = await asyncio.to_thread(
                self.db.list_all, event.collection, [Filter(owner_field, "==", owner_id)]
            )
            owned = ledger.account_snapshots if kind == ACCOUNT else ledger.asset_snapshots
            if snapshots:
                owned[owner_id] = snapshots
            else:
                owned.pop(owner_id, None)
            return {(kind, owner_id)}

        if event.collection is Collection.ACCOUNTS:
            if deleted:
                ledger.accounts.pop(record.id, None)
            else:
                ledger.accounts[record.id] = record
            return {(ACCOUNT, record.id)}

        if event.collection is Collection.ASSETS:
            if deleted:
                ledger.assets.pop(record.id, None)
            else:
                ledger.assets[record.id] = record
            return {(ASSET, record.id)}

        if event.collection is Collection.TRANSACTIONS:
            affected = {(ACCOUNT, record.account_id)}
            previous = ledger.transactions.get(record.id)
            if previous is not None:
                affected.add((ACCOUNT, previous.account_id))
            if deleted:
                ledger.transactions.pop(record.id, None)
            else:
                ledger.transactions[record.id] = record
            return affected

        # Balance type renames change display names and may flip auto mode
        if deleted:
            ledger.balance_types.pop(record.id, None)
        else:
            ledger.balance_types[record.id] = record
        affected = {(ACCOUNT, a.id) for a in ledger.accounts.values() if a.balance_type_id == record.id}
        affected.update((ASSET, a.id) for a in ledger.assets.values() if a.balance_type_id == record.id)
        return affected

    # Recomputation
    def _revalue(self, key: EntityKey) -> None:
        kind, entity_id = key
        if kind == ACCOUNT:
            account = self.ledger.accounts.get(entity_id)
            if account is None:
                self.values.pop(key, None)
            else:
                self.values[key] = value_account(self.ledger, account)
        else:
            asset = self.ledger.assets.get(entity_id)
            if asset is None:
                self.values.pop(key, None)
            else:
                self.values[key] = value_asset(self.ledger, asset)

    def _recompute(self, collection: Collection, affected: set[EntityKey]) -> None:
        for key in affected:
            self._revalue(key)
        self.rollup = rollup_values(self.values.values())
        if collection is Collection.TRANSACTIONS:
            self._recompute_cashflow()
        if affected:
            self._recompute_performance()
        logger.debug(
            "Recomputed %d entit%s after %s change",
            len(affected),
            "y" if len(affected) == 1 else "ies",
            collection.value,
        )

    def _recompute_all(self) -> None:
        self.values = {value.key: value for value in entity_values(self.ledger)}
        self.rollup = rollup_values(self.values.values())
        self._recompute_cashflow()
        self._recompute_performance()

    def _recompute_cashflow(self) -> None:
        self.cashflow = trailing_averages(
            self.ledger.transactions.values(),
            reference=self._clock(),
            known_account_ids=set(self.ledger.accounts),
        )

    def _recompute_performance(self) -> None:
        self.performance = performance(
            self.ledger,
            reference=self._clock(),
            values=list(self.values.values()),
            current=self.rollup,
        )
