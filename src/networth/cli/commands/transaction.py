"""Transaction management commands."""

import click

from networth.cli.entity_resolution import resolve_account_or_exit
from networth.cli.error_handling import handle_domain_error
from networth.cli.period_filters import as_of_option, period_option, resolve_cli_reference
from networth.domain.account import AccountService
from networth.domain.errors import DomainError
from networth.domain.transaction import KIND_FILTERS, TransactionService
from networth.utils.amount_parser import parse_amount, parse_optional_amount
from networth.utils.formatting import format_currency
from networth.utils.periods import parse_date


def _split_labels(labels: str | None) -> list[str] | None:
    if labels is None:
        return None
    return [label.strip() for label in labels.split(",") if label.strip()]


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--date", "txn_date", default="today", show_default=True, help="Transaction date")
@click.option("--value", required=True, help="Amount (positive for credits, negative for debits)")
@click.option("--description", help="Transaction description")
@click.option("--labels", help="Comma-separated labels")
@click.option("--excluded", is_flag=True, help="Exclude from totals and cash flow")
@click.option("--pending", is_flag=True, help="Mark as pending")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    txn_date: str,
    value: str,
    description: str | None,
    labels: str | None,
    excluded: bool,
    pending: bool,
) -> None:
    """Add a transaction.

    Examples:
        networth transaction add --account "Checking" --value 2500 --description "Salary"
        networth transaction add --account "Visa" --value -42.10 --date 2024-10-03 --labels food
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        transaction_id = TransactionService(db).create_transaction(
            account_id=account_id,
            date=parse_date(txn_date),
            value=parse_amount(value),
            description=description,
            labels=_split_labels(labels) or (),
            excluded=excluded,
            pending=pending,
        )
        click.echo(f"Created transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--date", "txn_date", help="Transaction date")
@click.option("--value", help="Amount")
@click.option("--description", help="Transaction description")
@click.option("--labels", help="Comma-separated labels (empty string clears them)")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    account: str | None,
    txn_date: str | None,
    value: str | None,
    description: str | None,
    labels: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided.
    """
    db = ctx.obj["db"]
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        TransactionService(db).update_transaction(
            transaction_id,
            account_id=account_id,
            date=parse_date(txn_date) if txn_date is not None else None,
            value=parse_optional_amount(value),
            description=description,
            labels=_split_labels(labels),
        )
        click.echo(f"Updated transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("exclude")
@click.argument("transaction_id", type=int)
@click.option("--undo", is_flag=True, help="Include the transaction again")
@click.pass_context
def exclude_transaction(ctx, transaction_id: int, undo: bool) -> None:
    """Exclude a transaction from totals and cash flow."""
    service = TransactionService(ctx.obj["db"])
    try:
        if undo:
            service.include_transaction(transaction_id)
            click.echo(f"Included transaction {transaction_id}")
        else:
            service.exclude_transaction(transaction_id)
            click.echo(f"Excluded transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("pending")
@click.argument("transaction_id", type=int)
@click.option("--cleared", is_flag=True, help="Mark the transaction as cleared")
@click.pass_context
def pending_transaction(ctx, transaction_id: int, cleared: bool) -> None:
    """Mark a transaction pending, or cleared with --cleared."""
    service = TransactionService(ctx.obj["db"])
    try:
        if cleared:
            service.mark_cleared(transaction_id)
            click.echo(f"Transaction {transaction_id} cleared")
        else:
            service.mark_pending(transaction_id)
            click.echo(f"Transaction {transaction_id} pending")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction."""
    service = TransactionService(ctx.obj["db"])
    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        service.delete_transaction(transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@period_option
@click.option("--kind", type=click.Choice(KIND_FILTERS, case_sensitive=False), default="all", show_default=True)
@click.option("--account", help="Account name or ID")
@click.option("--page", type=int, default=1, show_default=True)
@as_of_option
@click.pass_context
def list_transactions(
    ctx, period: str, kind: str, account: str | None, page: int, as_of: str | None
) -> None:
    """List transactions, newest first.

    Examples:
        networth transaction list --period this-month
        networth transaction list --kind debits --account "Visa" --page 2
    """
    db = ctx.obj["db"]
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    reference = resolve_cli_reference(ctx, as_of)

    try:
        listing = TransactionService(db).list_transactions(
            period=period, kind=kind, page=page, account_id=account_id, reference=reference
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not listing.rows:
        click.echo("No transactions found.")
        return

    for row in listing.rows:
        flags = []
        if row.excluded:
            flags.append("excluded")
        if row.pending:
            flags.append("pending")
        line = (
            f"{row.id:5d} | {row.date:%Y-%m-%d} | {row.account_name:15.15s} | "
            f"{row.description:30.30s} | {format_currency(row.value):>14s}"
        )
        if row.labels:
            line += f" | {', '.join(row.labels)}"
        if flags:
            line += f" [{', '.join(flags)}]"
        click.echo(line)
    click.echo(f"\nPage {listing.page} of {listing.total_pages} ({listing.total_rows} transactions)")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
