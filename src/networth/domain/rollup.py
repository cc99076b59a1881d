"""Balance rollup: per-entity current values, category totals and net worth."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from networth.domain.balance_mode import BalanceMode, account_current_value
from networth.domain.entities import Account, Asset, BalanceGroup, Snapshot, Transaction
from networth.domain.ledger import UNKNOWN_BALANCE_TYPE, Ledger
from networth.domain.snapshots import ZERO, latest_at_or_before, select_latest, snapshot_value

ACCOUNT = "account"
ASSET = "asset"


class BalanceSheetScope(str, Enum):
    """Balance sheet tabs."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


@dataclass(frozen=True)
class EntityValue:
    """Current value of one account or asset, with what the rollup needs to place it."""

    kind: str
    id: int
    name: str
    balance_group: BalanceGroup
    balance_type: str
    value: Decimal
    mode: Optional[BalanceMode]
    closed: bool
    excluded: bool

    @property
    def key(self) -> tuple[str, int]:
        return (self.kind, self.id)

    @property
    def included(self) -> bool:
        """Whether the value counts toward totals and net worth."""
        return not self.closed and not self.excluded


@dataclass(frozen=True)
class BalanceRollup:
    """Category totals, net worth and the balance-type drill-down."""

    totals_by_group: dict[BalanceGroup, Decimal]
    net_worth: Decimal
    breakdown: dict[BalanceGroup, dict[str, Decimal]]


def empty_totals() -> dict[BalanceGroup, Decimal]:
    return {group: ZERO for group in BalanceGroup}


def asset_current_value(snapshots: Sequence[Snapshot], as_of: Optional[datetime] = None) -> Decimal:
    """Current value of an asset: its latest snapshot's value, or zero."""
    if as_of is not None:
        return snapshot_value(latest_at_or_before(snapshots, as_of))
    return snapshot_value(select_latest(snapshots))


def account_entity_value(
    account: Account,
    balance_type_name: Optional[str],
    snapshots: Sequence[Snapshot],
    transactions: Sequence[Transaction],
    display_type: Optional[str] = None,
    as_of: Optional[datetime] = None,
) -> EntityValue:
    value, mode = account_current_value(account, balance_type_name, snapshots, transactions, as_of)
    return EntityValue(
        kind=ACCOUNT,
        id=account.id,
        name=account.name,
        balance_group=account.balance_group,
        balance_type=display_type or balance_type_name or UNKNOWN_BALANCE_TYPE,
        value=value,
        mode=mode,
        closed=account.is_closed,
        excluded=account.is_excluded,
    )


def asset_entity_value(
    asset: Asset, balance_type: str, snapshots: Sequence[Snapshot], as_of: Optional[datetime] = None
) -> EntityValue:
    return EntityValue(
        kind=ASSET,
        id=asset.id,
        name=asset.name,
        balance_group=asset.balance_group,
        balance_type=balance_type,
        value=asset_current_value(snapshots, as_of),
        mode=None,
        closed=asset.is_sold,
        excluded=asset.is_excluded,
    )


def value_account(
    ledger: Ledger,
    account: Account,
    transactions: Optional[Sequence[Transaction]] = None,
    as_of: Optional[datetime] = None,
) -> EntityValue:
    """Current value of one account, read from the ledger."""
    if transactions is None:
        transactions = ledger.transactions_for_account(account.id)
    return account_entity_value(
        account,
        ledger.balance_type_name(account.balance_type_id),
        ledger.snapshots_for_account(account.id),
        transactions,
        display_type=ledger.display_balance_type(account.balance_type_id),
        as_of=as_of,
    )


def value_asset(ledger: Ledger, asset: Asset, as_of: Optional[datetime] = None) -> EntityValue:
    """Current value of one asset, read from the ledger."""
    return asset_entity_value(
        asset,
        ledger.display_balance_type(asset.balance_type_id),
        ledger.snapshots_for_asset(asset.id),
        as_of,
    )


def entity_values(ledger: Ledger, as_of: Optional[datetime] = None) -> list[EntityValue]:
    """Current values of every asset and account, included or not.

    ``as_of`` values every record as it stood at that instant instead of
    by its latest snapshot.
    """
    by_account = ledger.transactions_by_account()
    values = [value_asset(ledger, asset, as_of) for asset in ledger.assets.values()]
    values.extend(
        value_account(ledger, account, by_account.get(account.id, []), as_of)
        for account in ledger.accounts.values()
    )
    return values


def rollup_values(values: Iterable[EntityValue]) -> BalanceRollup:
    """Accumulate category totals, net worth and breakdown from entity values.

    Closed or excluded accounts and sold or excluded assets are skipped.
    Debt values are negative by convention, so net worth nets them out.
    """
    totals = empty_totals()
    breakdown: dict[BalanceGroup, dict[str, Decimal]] = {group: {} for group in BalanceGroup}

    for entity in values:
        if not entity.included:
            continue
        totals[entity.balance_group] += entity.value
        by_type = breakdown[entity.balance_group]
        by_type[entity.balance_type] = by_type.get(entity.balance_type, ZERO) + entity.value

    net_worth = sum(totals.values(), ZERO)
    return BalanceRollup(totals_by_group=totals, net_worth=net_worth, breakdown=breakdown)


def rollup(ledger: Ledger) -> BalanceRollup:
    """Roll up every account and asset in the ledger."""
    return rollup_values(entity_values(ledger))


def in_scope(entity: EntityValue, scope: BalanceSheetScope) -> bool:
    """Whether an entity is listed on a balance sheet tab."""
    if scope is BalanceSheetScope.ALL:
        return True
    if scope is BalanceSheetScope.CLOSED:
        return entity.closed
    return entity.included


def scope_totals(values: Iterable[EntityValue], scope: BalanceSheetScope) -> dict[BalanceGroup, Decimal]:
    """Aggregate row of a balance sheet tab: the sum of what the tab lists.

    This is a display aggregate. Net worth and category totals always come
    from rollup_values, which never counts closed, sold or excluded records.
    """
    totals = empty_totals()
    for entity in values:
        if in_scope(entity, scope):
            totals[entity.balance_group] += entity.value
    return totals
