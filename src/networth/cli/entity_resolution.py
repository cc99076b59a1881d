"""CLI helpers for account and asset resolution."""

from __future__ import annotations

import click

from networth.cli.error_handling import handle_domain_error
from networth.domain.account import AccountService
from networth.domain.asset import AssetService
from networth.domain.errors import DomainError
from networth.utils.record_resolver import resolve_account, resolve_asset


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except DomainError as exc:
        handle_domain_error(ctx, exc)


def resolve_asset_or_exit(ctx: click.Context, asset_service: AssetService, asset: str | int) -> int:
    """Resolve asset name or ID, or exit with a CLI error."""
    try:
        return resolve_asset(asset_service, asset)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
