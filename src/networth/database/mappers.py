"""Mapper functions to convert between domain models and SQLAlchemy models.

Snapshot rows are resolved into their domain shape here, once, so nothing
downstream needs to know which columns a row happened to fill in.
"""

import logging
from datetime import datetime
from typing import Optional

from networth.domain import entities as domain
from networth.database.models import (
    Account as ORMAccount,
    AccountBalance as ORMAccountBalance,
    Asset as ORMAsset,
    AssetBalance as ORMAssetBalance,
    BalanceType as ORMBalanceType,
    Transaction as ORMTransaction,
)
from networth.utils.periods import to_utc

logger = logging.getLogger(__name__)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return to_utc(value) if value is not None else None


def balance_group_from_column(value: Optional[str], context: str) -> domain.BalanceGroup:
    """Parse a stored balance group, treating unknown values as OTHER."""
    try:
        return domain.BalanceGroup(value)
    except ValueError:
        logger.warning("Unknown balance group %r on %s, using OTHER", value, context)
        return domain.BalanceGroup.OTHER


def balance_type_to_domain(orm_type: ORMBalanceType) -> domain.BalanceType:
    """Convert SQLAlchemy BalanceType model to domain BalanceType entity."""
    return domain.BalanceType(
        id=orm_type.id,
        name=orm_type.name,
        created_at=_utc(orm_type.created_at),
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        balance_group=balance_group_from_column(orm_account.balance_group, f"account {orm_account.id}"),
        balance_type_id=orm_account.balance_type_id,
        created_at=_utc(orm_account.created_at),
        closed_at=_utc(orm_account.closed_at),
        excluded_at=_utc(orm_account.excluded_at),
        auto_calculated_at=_utc(orm_account.auto_calculated_at),
    )


def asset_to_domain(orm_asset: ORMAsset) -> domain.Asset:
    """Convert SQLAlchemy Asset model to domain Asset entity."""
    try:
        kind = domain.AssetKind(orm_asset.kind)
    except ValueError:
        logger.warning("Unknown asset kind %r on asset %s, using WHOLE", orm_asset.kind, orm_asset.id)
        kind = domain.AssetKind.WHOLE
    return domain.Asset(
        id=orm_asset.id,
        name=orm_asset.name,
        symbol=orm_asset.symbol,
        balance_group=balance_group_from_column(orm_asset.balance_group, f"asset {orm_asset.id}"),
        balance_type_id=orm_asset.balance_type_id,
        kind=kind,
        created_at=_utc(orm_asset.created_at),
        sold_at=_utc(orm_asset.sold_at),
        excluded_at=_utc(orm_asset.excluded_at),
    )


def account_balance_to_domain(orm_balance: ORMAccountBalance) -> domain.SimpleSnapshot:
    """Convert SQLAlchemy AccountBalance model to a simple snapshot."""
    return domain.SimpleSnapshot(
        id=orm_balance.id,
        owner_id=orm_balance.account_id,
        value=orm_balance.value,
        as_of=_utc(orm_balance.as_of),
        created_at=_utc(orm_balance.created_at),
    )


def asset_balance_to_domain(orm_balance: ORMAssetBalance) -> domain.Snapshot:
    """Convert SQLAlchemy AssetBalance model to a simple or detailed snapshot."""
    detailed_columns = (
        orm_balance.book_value,
        orm_balance.market_value,
        orm_balance.quantity,
        orm_balance.book_price,
        orm_balance.market_price,
    )
    if all(column is None for column in detailed_columns):
        return domain.SimpleSnapshot(
            id=orm_balance.id,
            owner_id=orm_balance.asset_id,
            value=orm_balance.value,
            as_of=_utc(orm_balance.as_of),
            created_at=_utc(orm_balance.created_at),
        )
    return domain.DetailedSnapshot(
        id=orm_balance.id,
        owner_id=orm_balance.asset_id,
        as_of=_utc(orm_balance.as_of),
        created_at=_utc(orm_balance.created_at),
        book_value=orm_balance.book_value,
        market_value=orm_balance.market_value,
        quantity=orm_balance.quantity,
        book_price=orm_balance.book_price,
        market_price=orm_balance.market_price,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    labels = sorted((label.name for label in orm_transaction.labels), key=str.casefold)
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=_utc(orm_transaction.date),
        value=orm_transaction.value,
        description=orm_transaction.description,
        excluded_at=_utc(orm_transaction.excluded_at),
        pending_at=_utc(orm_transaction.pending_at),
        labels=tuple(labels),
        created_at=_utc(orm_transaction.created_at),
    )
