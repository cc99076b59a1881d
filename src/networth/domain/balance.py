"""Balance snapshot domain service."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from networth.database.base import Database, Filter
from networth.domain.entities import AssetKind, Collection, Snapshot
from networth.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    asset_not_found,
    shares_value_mismatch,
)
from networth.domain.snapshots import select_latest
from networth.utils.periods import to_utc, utc_now

CENT = Decimal("0.01")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _check_finite(**values: Optional[Decimal]) -> None:
    for field, value in values.items():
        if value is not None and not Decimal(value).is_finite():
            raise ValidationError(f"{field} must be a finite number")


def reconcile_shares_value(
    field: str,
    value: Optional[Decimal],
    quantity: Optional[Decimal],
    price: Optional[Decimal],
) -> Optional[Decimal]:
    """Return the value implied by quantity x price, checking any given value against it."""
    if quantity is None or price is None:
        return value
    derived = _cents(quantity * price)
    if value is not None and _cents(value) != derived:
        raise ValidationError(shares_value_mismatch(field, derived, value))
    return derived


class BalanceService:
    """Service for recording and reading balance snapshots."""

    def __init__(self, db: Database):
        """Initialize balance service.

        Args:
            db: Database instance
        """
        self.db = db

    def record_account_balance(
        self, account_id: int, value: Decimal, as_of: Optional[datetime] = None
    ) -> int:
        """Record a new balance snapshot for an account.

        Snapshots are never edited; a changed balance is a new snapshot.

        Returns:
            Snapshot ID

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the value is not finite
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        _check_finite(value=value)
        return self.db.create_account_balance(
            account_id=account_id,
            value=value,
            as_of=to_utc(as_of) if as_of else utc_now(),
        )

    def record_asset_balance(
        self,
        asset_id: int,
        as_of: Optional[datetime] = None,
        value: Optional[Decimal] = None,
        book_value: Optional[Decimal] = None,
        market_value: Optional[Decimal] = None,
        quantity: Optional[Decimal] = None,
        book_price: Optional[Decimal] = None,
        market_price: Optional[Decimal] = None,
    ) -> int:
        """Record a new balance snapshot for an asset.

        Either a plain ``value`` or book/market details may be given, not both.
        For SHARES assets the book and market values are derived from
        quantity x price when omitted, and must agree with it when given.

        Returns:
            Snapshot ID

        Raises:
            NotFoundError: If the asset does not exist
            ValidationError: If the snapshot is empty, mixes shapes or
                violates the shares invariant
        """
        asset = self.db.get_asset(asset_id)
        if asset is None:
            raise NotFoundError(asset_not_found(asset_id))
        _check_finite(
            value=value,
            book_value=book_value,
            market_value=market_value,
            quantity=quantity,
            book_price=book_price,
            market_price=market_price,
        )

        share_fields = (quantity, book_price, market_price)
        detailed = (book_value, market_value) + share_fields
        if value is not None and any(v is not None for v in detailed):
            raise ValidationError("Give either a value or book/market details, not both")
        if asset.kind is AssetKind.WHOLE and any(v is not None for v in share_fields):
            raise ValidationError("Quantity and prices only apply to SHARES assets")

        if asset.kind is AssetKind.SHARES:
            market_value = reconcile_shares_value("Market value", market_value, quantity, market_price)
            book_value = reconcile_shares_value("Book value", book_value, quantity, book_price)

        if value is None and book_value is None and market_value is None:
            raise ValidationError("Snapshot needs a value, a book value or a market value")

        return self.db.create_asset_balance(
            asset_id=asset_id,
            as_of=to_utc(as_of) if as_of else utc_now(),
            value=value,
            book_value=book_value,
            market_value=market_value,
            quantity=quantity,
            book_price=book_price,
            market_price=market_price,
        )

    def account_history(self, account_id: int) -> list[Snapshot]:
        """All snapshots of an account, oldest first."""
        return self.db.list_all(
            Collection.ACCOUNT_BALANCES, [Filter("account_id", "==", account_id)]
        )

    def asset_history(self, asset_id: int) -> list[Snapshot]:
        """All snapshots of an asset, oldest first."""
        return self.db.list_all(Collection.ASSET_BALANCES, [Filter("asset_id", "==", asset_id)])

    def latest_account_balance(self, account_id: int) -> Optional[Snapshot]:
        """Newest snapshot of an account as chosen by the store."""
        return self.db.get_latest(Collection.ACCOUNT_BALANCES, "account_id", account_id)

    def latest_asset_balance(self, asset_id: int) -> Optional[Snapshot]:
        return select_latest(self.asset_history(asset_id))

    def delete_balance(self, collection: Collection, balance_id: int) -> None:
        """Remove a snapshot recorded by mistake."""
        self.db.delete_balance(collection, balance_id)
