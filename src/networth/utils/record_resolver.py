"""Utility for resolving account and asset names to IDs."""

from typing import Optional

from networth.domain.account import AccountService
from networth.domain.asset import AssetService
from networth.domain.errors import NotFoundError, ValidationError


def _as_id(reference: str | int) -> Optional[int]:
    if isinstance(reference, int):
        return reference
    try:
        return int(reference)
    except (ValueError, TypeError):
        return None


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    account_id = _as_id(account)
    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(f"Account ID {account_id} not found")
        return account_id

    for acc in account_service.list_accounts():
        if acc.name == account:
            return acc.id
    raise NotFoundError(f"Account '{account}' not found")


def resolve_asset(asset_service: AssetService, asset: str | int) -> int:
    """Resolve asset name or ID to asset ID.

    Asset names are not unique, so a name shared by several assets must be
    given as an ID instead.

    Raises:
        NotFoundError: If asset is not found
        ValidationError: If the name matches more than one asset
    """
    asset_id = _as_id(asset)
    if asset_id is not None:
        if asset_service.get_asset(asset_id) is None:
            raise NotFoundError(f"Asset ID {asset_id} not found")
        return asset_id

    matches = [a.id for a in asset_service.list_assets() if a.name == asset]
    if not matches:
        raise NotFoundError(f"Asset '{asset}' not found")
    if len(matches) > 1:
        ids = ", ".join(str(i) for i in matches)
        raise ValidationError(f"Asset name '{asset}' is ambiguous (IDs {ids}); use an ID")
    return matches[0]
