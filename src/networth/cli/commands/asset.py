"""Asset management commands."""

import click

from networth.cli.entity_resolution import resolve_asset_or_exit
from networth.cli.error_handling import handle_domain_error
from networth.cli.period_filters import resolve_cli_reference
from networth.domain.asset import AssetService
from networth.domain.entities import AssetKind, BalanceGroup
from networth.domain.errors import DomainError

GROUP_CHOICE = click.Choice([g.value for g in BalanceGroup], case_sensitive=False)
KIND_CHOICE = click.Choice([k.value for k in AssetKind], case_sensitive=False)


@click.group()
def asset_group():
    """Manage assets."""
    pass


@asset_group.command("create")
@click.argument("name", metavar="ASSET_NAME")
@click.option("--group", "balance_group", type=GROUP_CHOICE, required=True, help="Balance group")
@click.option("--kind", type=KIND_CHOICE, default=AssetKind.WHOLE.value, show_default=True, help="How the asset is tracked")
@click.option("--type", "balance_type", help="Balance type label (created if missing)")
@click.option("--symbol", help="Ticker symbol for SHARES assets")
@click.pass_context
def create_asset(
    ctx, name: str, balance_group: str, kind: str, balance_type: str | None, symbol: str | None
):
    """Create a new asset.

    Examples:
        networth asset create "Home" --group OTHER --type "Real estate"
        networth asset create "Index fund" --group INVESTMENT --kind SHARES --symbol VTI
    """
    db = ctx.obj["db"]
    service = AssetService(db)

    try:
        asset_id = service.create_asset(
            name=name,
            balance_group=balance_group,
            kind=kind,
            balance_type=balance_type,
            symbol=symbol,
        )
        click.echo(f"Created asset '{name.strip()}' (ID: {asset_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("list")
@click.option("--held-only", is_flag=True, help="Hide sold assets")
@click.pass_context
def list_assets(ctx, held_only: bool):
    """List all assets."""
    db = ctx.obj["db"]
    service = AssetService(db)

    assets = service.list_assets(include_sold=not held_only)
    if not assets:
        click.echo("No assets found.")
        return

    click.echo("\nAssets:")
    click.echo("-" * 72)
    for asset in assets:
        line = f"ID: {asset.id:3d} | {asset.name:20s} | {asset.balance_group.value:10s} | {asset.kind.value:6s}"
        if asset.symbol:
            line += f" | {asset.symbol}"
        if asset.is_sold:
            line += " | sold"
        if asset.is_excluded:
            line += " | excluded"
        click.echo(line)


@asset_group.command("sell")
@click.argument("asset", metavar="ASSET")
@click.option("--date", "when", help="Sale date (defaults to now)")
@click.option("--undo", is_flag=True, help="Mark the asset as held again")
@click.pass_context
def sell_asset(ctx, asset: str, when: str | None, undo: bool) -> None:
    """Mark an asset sold; it no longer counts toward net worth."""
    db = ctx.obj["db"]
    service = AssetService(db)
    asset_id = resolve_asset_or_exit(ctx, service, asset)
    sold_at = resolve_cli_reference(ctx, when)

    try:
        if undo:
            updated = service.unsell_asset(asset_id)
            click.echo(f"Asset '{updated.name}' marked as held")
        else:
            updated = service.sell_asset(asset_id, sold_at)
            click.echo(f"Asset '{updated.name}' marked as sold")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("exclude")
@click.argument("asset", metavar="ASSET")
@click.option("--undo", is_flag=True, help="Include the asset again")
@click.pass_context
def exclude_asset(ctx, asset: str, undo: bool) -> None:
    """Exclude an asset from totals, or include it again with --undo."""
    db = ctx.obj["db"]
    service = AssetService(db)
    asset_id = resolve_asset_or_exit(ctx, service, asset)

    try:
        if undo:
            updated = service.include_asset(asset_id)
            click.echo(f"Included asset '{updated.name}'")
        else:
            updated = service.exclude_asset(asset_id)
            click.echo(f"Excluded asset '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("delete")
@click.argument("asset", metavar="ASSET")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_asset(ctx, asset: str, yes: bool) -> None:
    """Delete an asset with its balances."""
    db = ctx.obj["db"]
    service = AssetService(db)
    asset_id = resolve_asset_or_exit(ctx, service, asset)
    asset_obj = service.get_asset(asset_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete asset '{asset_obj.name}' (ID: {asset_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_asset(asset_id)
        click.echo(f"Deleted asset '{asset_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register asset commands with main CLI."""
    cli.add_command(asset_group, name="asset")
