"""Summary commands: balance sheet, cash flow and performance."""

import click

from networth.cli.error_handling import handle_store_error
from networth.cli.period_filters import as_of_option, resolve_cli_reference
from networth.domain.cashflow import TrailingWindow
from networth.domain.errors import StoreError
from networth.domain.performance import GROUP_LABELS, NET_WORTH_LABEL, Anchor
from networth.domain.rollup import BalanceSheetScope
from networth.domain.summary import SummaryService
from networth.utils.formatting import format_currency

WINDOW_LABELS = {
    TrailingWindow.THREE_MONTHS: "3 months",
    TrailingWindow.SIX_MONTHS: "6 months",
    TrailingWindow.YEAR_TO_DATE: "Year to date",
    TrailingWindow.TWELVE_MONTHS: "12 months",
}

ANCHOR_LABELS = {
    Anchor.ONE_WEEK: "1W",
    Anchor.ONE_MONTH: "1M",
    Anchor.SIX_MONTHS: "6M",
    Anchor.YEAR_START: "YTD",
    Anchor.ONE_YEAR: "1Y",
    Anchor.FIVE_YEARS: "5Y",
    Anchor.EARLIEST: "Max",
}


def _build_report(ctx, as_of: str | None):
    reference = resolve_cli_reference(ctx, as_of)
    try:
        return SummaryService(ctx.obj["db"]).build_report(reference)
    except StoreError as e:
        handle_store_error(ctx, e)


@click.command("summary")
@click.option(
    "--scope",
    type=click.Choice([s.value for s in BalanceSheetScope], case_sensitive=False),
    default=BalanceSheetScope.OPEN.value,
    show_default=True,
    help="Which accounts and assets to list",
)
@click.option("--breakdown", is_flag=True, help="Show totals per balance type")
@as_of_option
@click.pass_context
def summary(ctx, scope: str, breakdown: bool, as_of: str | None) -> None:
    """Show the balance sheet and net worth.

    Net worth always leaves out closed, sold and excluded records; --scope
    only changes which entries are listed.

    Examples:
        networth summary
        networth summary --scope closed
        networth summary --breakdown
    """
    report = _build_report(ctx, as_of)
    sheet_scope = BalanceSheetScope(scope.lower())
    listed = report.listed(sheet_scope)

    if listed:
        click.echo(f"\n{sheet_scope.value.capitalize()} accounts and assets:")
        click.echo("-" * 72)
        for entity in listed:
            click.echo(
                f"{entity.kind:7s} | {entity.name:20.20s} | {entity.balance_group.value:10s} | "
                f"{format_currency(entity.value):>16s}"
            )
        click.echo("-" * 72)
        tab_totals = report.tab_totals(sheet_scope)
        for group, label in GROUP_LABELS.items():
            click.echo(f"{label:40s} {format_currency(tab_totals[group]):>20s}")
    else:
        click.echo("No accounts or assets found.")

    click.echo()
    click.echo(f"{NET_WORTH_LABEL:40s} {format_currency(report.rollup.net_worth):>20s}")

    if breakdown:
        click.echo("\nBy balance type:")
        for group, label in GROUP_LABELS.items():
            types = report.rollup.breakdown[group]
            if not types:
                continue
            click.echo(f"  {label}")
            for type_name, total in sorted(types.items()):
                click.echo(f"    {type_name:36s} {format_currency(total):>20s}")


@click.command("cashflow")
@as_of_option
@click.pass_context
def cashflow(ctx, as_of: str | None) -> None:
    """Show average monthly income, expenses and surplus."""
    report = _build_report(ctx, as_of)

    click.echo(f"\n{'Window':15s} {'Income':>16s} {'Expenses':>16s} {'Surplus':>16s}")
    click.echo("-" * 66)
    for window, label in WINDOW_LABELS.items():
        averages = report.cashflow[window]
        click.echo(
            f"{label:15s} {format_currency(averages.income):>16s} "
            f"{format_currency(averages.expenses):>16s} {format_currency(averages.surplus):>16s}"
        )


@click.command("performance")
@as_of_option
@click.pass_context
def performance(ctx, as_of: str | None) -> None:
    """Show how each group and net worth changed since past dates."""
    report = _build_report(ctx, as_of)

    header = f"{'':15s} {'Current':>16s}" + "".join(f" {label:>8s}" for label in ANCHOR_LABELS.values())
    click.echo(f"\n{header}")
    click.echo("-" * len(header))
    for row in report.performance:
        changes = row.formatted()
        click.echo(
            f"{row.label:15s} {format_currency(row.current):>16s}"
            + "".join(f" {changes[anchor]:>8s}" for anchor in ANCHOR_LABELS)
        )


def register_commands(cli):
    """Register summary commands with main CLI."""
    cli.add_command(summary)
    cli.add_command(cashflow)
    cli.add_command(performance)
