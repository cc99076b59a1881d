"""CLI helpers for period and reference date options."""

from datetime import datetime

import click

from networth.domain.errors import ValidationError
from networth.utils.periods import PERIOD_TOKENS, parse_date

period_option = click.option(
    "--period",
    type=click.Choice(PERIOD_TOKENS + ("all",), case_sensitive=False),
    default="lifetime",
    show_default=True,
    help="Period window",
)

as_of_option = click.option(
    "--as-of",
    "as_of",
    help="Reference date for the computation (YYYY-MM-DD or 'today'); defaults to now",
)


def resolve_cli_reference(ctx: click.Context, as_of: str | None) -> datetime | None:
    """Parse an --as-of value, or exit with a CLI error."""
    if as_of is None:
        return None
    try:
        return parse_date(as_of)
    except ValidationError as e:
        click.echo(f"Error: Invalid reference date: {e}", err=True)
        ctx.exit(1)
