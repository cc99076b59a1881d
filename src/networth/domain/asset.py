"""Asset domain service."""

from datetime import datetime
from typing import Optional

from networth.database.base import Database
from networth.domain.account import parse_balance_group
from networth.domain.entities import Asset as AssetEntity, AssetKind, BalanceGroup
from networth.domain.errors import NotFoundError, ValidationError, asset_not_found
from networth.utils.periods import to_utc, utc_now


def parse_asset_kind(value: str | AssetKind) -> AssetKind:
    if isinstance(value, AssetKind):
        return value
    try:
        return AssetKind(value.strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown asset kind '{value}'. Expected WHOLE or SHARES")


class AssetService:
    """Service for managing assets."""

    def __init__(self, db: Database):
        """Initialize asset service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_asset(
        self,
        name: str,
        balance_group: str | BalanceGroup,
        kind: str | AssetKind = AssetKind.WHOLE,
        balance_type: Optional[str] = None,
        symbol: Optional[str] = None,
    ) -> int:
        """Create a new asset.

        Asset names need not be unique: two houses can both be called "Home".

        Returns:
            Asset ID

        Raises:
            ValidationError: If the name is empty or the group or kind is unknown
        """
        name = name.strip()
        if not name:
            raise ValidationError("Asset name cannot be empty")
        group = parse_balance_group(balance_group)
        asset_kind = parse_asset_kind(kind)

        balance_type_id = None
        if balance_type:
            balance_type_id = self.db.get_or_create_balance_type(balance_type)

        return self.db.create_asset(
            name=name,
            balance_group=group,
            kind=asset_kind,
            balance_type_id=balance_type_id,
            symbol=symbol.strip().upper() if symbol else None,
        )

    def get_asset(self, asset_id: int) -> Optional[AssetEntity]:
        return self.db.get_asset(asset_id)

    def list_assets(self, include_sold: bool = True) -> list[AssetEntity]:
        assets = self.db.list_assets()
        if include_sold:
            return assets
        return [asset for asset in assets if not asset.is_sold]

    def _require(self, asset_id: int) -> AssetEntity:
        asset = self.db.get_asset(asset_id)
        if asset is None:
            raise NotFoundError(asset_not_found(asset_id))
        return asset

    def sell_asset(self, asset_id: int, when: Optional[datetime] = None) -> AssetEntity:
        """Mark an asset sold; it stops counting toward totals."""
        self._require(asset_id)
        return self.db.update_asset(asset_id, sold_at=to_utc(when) if when else utc_now())

    def unsell_asset(self, asset_id: int) -> AssetEntity:
        self._require(asset_id)
        return self.db.update_asset(asset_id, sold_at=None)

    def exclude_asset(self, asset_id: int) -> AssetEntity:
        self._require(asset_id)
        return self.db.update_asset(asset_id, excluded_at=utc_now())

    def include_asset(self, asset_id: int) -> AssetEntity:
        self._require(asset_id)
        return self.db.update_asset(asset_id, excluded_at=None)

    def delete_asset(self, asset_id: int) -> None:
        """Delete an asset and its snapshots."""
        self._require(asset_id)
        self.db.delete_asset(asset_id)
