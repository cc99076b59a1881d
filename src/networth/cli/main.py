"""Main CLI entry point."""

import logging

import click

from networth.database.factories import DB_PATH_ENV, create_sqlite_database

# Import and register all commands at module level
from networth.cli.commands import (
    account,
    asset,
    balance,
    summary,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Networth - Personal balance sheet tracker.

    Record account and asset balances and transactions, then see category
    totals, net worth, trailing cash flow and historical performance.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
asset.register_commands(cli)
balance.register_commands(cli)
transaction.register_commands(cli)
summary.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
