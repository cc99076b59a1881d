"""Balance snapshot commands."""

import click

from networth.cli.entity_resolution import resolve_account_or_exit, resolve_asset_or_exit
from networth.cli.error_handling import handle_domain_error
from networth.cli.period_filters import resolve_cli_reference
from networth.domain.account import AccountService
from networth.domain.asset import AssetService
from networth.domain.balance import BalanceService
from networth.domain.entities import DetailedSnapshot
from networth.domain.errors import DomainError
from networth.utils.amount_parser import parse_amount, parse_optional_amount
from networth.utils.formatting import format_currency


def _describe(snapshot) -> str:
    line = f"ID: {snapshot.id:4d} | {snapshot.as_of:%Y-%m-%d %H:%M} | {format_currency(snapshot.current_value):>16s}"
    if isinstance(snapshot, DetailedSnapshot):
        details = []
        if snapshot.quantity is not None:
            details.append(f"qty {snapshot.quantity.normalize():f}")
        if snapshot.book_value is not None:
            details.append(f"book {format_currency(snapshot.book_value)}")
        if snapshot.market_value is not None:
            details.append(f"market {format_currency(snapshot.market_value)}")
        if details:
            line += " | " + ", ".join(details)
    return line


@click.group()
def balance_group():
    """Record and inspect balance snapshots."""
    pass


@balance_group.command("account")
@click.argument("account", metavar="ACCOUNT")
@click.option("--value", required=True, help="Balance (e.g., 1500.00, or -250 for debt)")
@click.option("--as-of", "as_of", help="Balance date (defaults to now)")
@click.pass_context
def record_account_balance(ctx, account: str, value: str, as_of: str | None) -> None:
    """Record the balance of an account.

    Examples:
        networth balance account "Checking" --value 1500
        networth balance account "Visa" --value -250.75 --as-of 2024-10-01
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    when = resolve_cli_reference(ctx, as_of)

    try:
        amount = parse_amount(value)
        snapshot_id = BalanceService(db).record_account_balance(account_id, amount, when)
        click.echo(f"Recorded balance {format_currency(amount)} (ID: {snapshot_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@balance_group.command("asset")
@click.argument("asset", metavar="ASSET")
@click.option("--value", help="Plain value of the asset")
@click.option("--book-value", help="Book (cost) value")
@click.option("--market-value", help="Market value")
@click.option("--quantity", help="Number of shares (SHARES assets)")
@click.option("--book-price", help="Cost per share (SHARES assets)")
@click.option("--market-price", help="Market price per share (SHARES assets)")
@click.option("--as-of", "as_of", help="Balance date (defaults to now)")
@click.pass_context
def record_asset_balance(
    ctx,
    asset: str,
    value: str | None,
    book_value: str | None,
    market_value: str | None,
    quantity: str | None,
    book_price: str | None,
    market_price: str | None,
    as_of: str | None,
) -> None:
    """Record the value of an asset.

    Examples:
        networth balance asset "Home" --value 450000
        networth balance asset "Index fund" --quantity 10 --market-price 250 --book-price 200
    """
    db = ctx.obj["db"]
    asset_id = resolve_asset_or_exit(ctx, AssetService(db), asset)
    when = resolve_cli_reference(ctx, as_of)

    try:
        snapshot_id = BalanceService(db).record_asset_balance(
            asset_id,
            as_of=when,
            value=parse_optional_amount(value),
            book_value=parse_optional_amount(book_value),
            market_value=parse_optional_amount(market_value),
            quantity=parse_optional_amount(quantity),
            book_price=parse_optional_amount(book_price),
            market_price=parse_optional_amount(market_price),
        )
        click.echo(f"Recorded asset balance (ID: {snapshot_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@balance_group.command("history")
@click.option("--account", help="Account name or ID")
@click.option("--asset", help="Asset name or ID")
@click.pass_context
def history(ctx, account: str | None, asset: str | None) -> None:
    """Show the balance history of one account or asset."""
    if (account is None) == (asset is None):
        click.echo("Error: Specify exactly one of --account or --asset.", err=True)
        ctx.exit(1)

    db = ctx.obj["db"]
    service = BalanceService(db)
    if account is not None:
        snapshots = service.account_history(resolve_account_or_exit(ctx, AccountService(db), account))
    else:
        snapshots = service.asset_history(resolve_asset_or_exit(ctx, AssetService(db), asset))

    if not snapshots:
        click.echo("No balances recorded.")
        return

    for snapshot in reversed(snapshots):
        click.echo(_describe(snapshot))


def register_commands(cli):
    """Register balance commands with main CLI."""
    cli.add_command(balance_group, name="balance")
