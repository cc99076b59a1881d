"""Account management commands."""

import click

from networth.cli.entity_resolution import resolve_account_or_exit
from networth.cli.error_handling import handle_domain_error
from networth.cli.period_filters import resolve_cli_reference
from networth.domain.account import AccountService
from networth.domain.entities import BalanceGroup
from networth.domain.errors import DomainError

GROUP_CHOICE = click.Choice([g.value for g in BalanceGroup], case_sensitive=False)


def _flags(acc) -> str:
    flags = []
    if acc.is_closed:
        flags.append("closed")
    if acc.is_excluded:
        flags.append("excluded")
    if acc.is_auto_calculated:
        flags.append("auto")
    return ", ".join(flags)


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--group", "balance_group", type=GROUP_CHOICE, required=True, help="Balance group")
@click.option("--type", "balance_type", help="Balance type label (created if missing)")
@click.option("--auto", "auto_calculated", is_flag=True, help="Value the account by summing its transactions")
@click.pass_context
def create_account(ctx, name: str, balance_group: str, balance_type: str | None, auto_calculated: bool):
    """Create a new account.

    Examples:
        networth account create "Checking" --group CASH --type "Bank"
        networth account create "Visa" --group DEBT --type "Credit card" --auto
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(
            name=name,
            balance_group=balance_group,
            balance_type=balance_type,
            auto_calculated=auto_calculated,
        )
        click.echo(f"Created account '{name.strip()}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--open-only", is_flag=True, help="Hide closed accounts")
@click.pass_context
def list_accounts(ctx, open_only: bool):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(include_closed=not open_only)
    if not accounts:
        click.echo("No accounts found.")
        return

    types = {bt.id: bt.name for bt in db.list_balance_types()}
    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        type_name = types.get(acc.balance_type_id, "")
        line = f"ID: {acc.id:3d} | {acc.name:20s} | {acc.balance_group.value:10s} | {type_name:15s}"
        flags = _flags(acc)
        if flags:
            line += f" | {flags}"
        click.echo(line)


@account_group.command("rename")
@click.argument("account", metavar="ACCOUNT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def rename_account(ctx, account: str, new_name: str) -> None:
    """Rename an account.

    ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.rename_account(account_id, new_name)
        click.echo(f"Renamed account to '{new_name.strip()}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("set-type")
@click.argument("account", metavar="ACCOUNT")
@click.argument("balance_type", metavar="BALANCE_TYPE", required=False)
@click.pass_context
def set_type(ctx, account: str, balance_type: str | None) -> None:
    """Set or clear (when omitted) the balance type of an account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        updated = service.set_balance_type(account_id, balance_type)
        if balance_type:
            click.echo(f"Account '{updated.name}' balance type set to '{balance_type.strip()}'")
        else:
            click.echo(f"Cleared balance type of account '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("set-group")
@click.argument("account", metavar="ACCOUNT")
@click.argument("balance_group", metavar="GROUP", type=GROUP_CHOICE)
@click.pass_context
def set_group(ctx, account: str, balance_group: str) -> None:
    """Move an account to another balance group."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        updated = service.set_balance_group(account_id, balance_group)
        click.echo(f"Account '{updated.name}' moved to {updated.balance_group.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("close")
@click.argument("account", metavar="ACCOUNT")
@click.option("--date", "when", help="Closing date (defaults to now)")
@click.pass_context
def close_account(ctx, account: str, when: str | None) -> None:
    """Close an account; it no longer counts toward net worth."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    closed_at = resolve_cli_reference(ctx, when)

    try:
        updated = service.close_account(account_id, closed_at)
        click.echo(f"Closed account '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("reopen")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def reopen_account(ctx, account: str) -> None:
    """Reopen a closed account."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        updated = service.reopen_account(account_id)
        click.echo(f"Reopened account '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("exclude")
@click.argument("account", metavar="ACCOUNT")
@click.option("--undo", is_flag=True, help="Include the account again")
@click.pass_context
def exclude_account(ctx, account: str, undo: bool) -> None:
    """Exclude an account from totals, or include it again with --undo."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        if undo:
            updated = service.include_account(account_id)
            click.echo(f"Included account '{updated.name}'")
        else:
            updated = service.exclude_account(account_id)
            click.echo(f"Excluded account '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("auto")
@click.argument("account", metavar="ACCOUNT")
@click.option("--off", is_flag=True, help="Go back to manual balance snapshots")
@click.pass_context
def auto_account(ctx, account: str, off: bool) -> None:
    """Value an account by summing its transactions."""
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        updated = service.set_auto_calculated(account_id, enabled=not off)
        state = "off" if off else "on"
        click.echo(f"Auto-calculation {state} for account '{updated.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account with its balances and transactions.

    ACCOUNT can be an account name or ID.

    Examples:
        networth account delete "Checking"
        networth account delete 1 --yes
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
