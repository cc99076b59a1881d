"""Historical performance: value now versus value at fixed anchors in the past."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta

from networth.domain.balance_mode import BalanceMode, sum_transactions
from networth.domain.entities import BalanceGroup
from networth.domain.ledger import Ledger
from networth.domain.rollup import ASSET, BalanceRollup, EntityValue, empty_totals, entity_values, rollup_values
from networth.domain.snapshots import ZERO, latest_at_or_before, snapshot_value
from networth.utils.formatting import format_percent
from networth.utils.periods import end_of_day_utc, to_utc, utc_now, year_start_utc

NET_WORTH_LABEL = "Net worth"

GROUP_LABELS = {
    BalanceGroup.CASH: "Cash",
    BalanceGroup.INVESTMENT: "Investments",
    BalanceGroup.OTHER: "Other assets",
    BalanceGroup.DEBT: "Debt",
}


class Anchor(str, Enum):
    """Historical baselines, from most recent to oldest."""

    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    SIX_MONTHS = "6m"
    YEAR_START = "ytd"
    ONE_YEAR = "1y"
    FIVE_YEARS = "5y"
    EARLIEST = "max"


@dataclass(frozen=True)
class PerformanceRow:
    """Current total and change against each anchor for one group or net worth."""

    label: str
    balance_group: Optional[BalanceGroup]
    current: Decimal
    anchor_totals: dict[Anchor, Decimal]
    changes: dict[Anchor, Optional[Decimal]]

    def formatted(self) -> dict[Anchor, str]:
        return {anchor: format_percent(change) for anchor, change in self.changes.items()}


def earliest_known_date(ledger: Ledger) -> Optional[datetime]:
    """Earliest snapshot date, falling back to the earliest transaction date."""
    dates = [to_utc(s.as_of) for s in ledger.all_snapshots()]
    if not dates:
        dates = [to_utc(t.date) for t in ledger.transactions.values() if t.counts_toward_totals]
    return min(dates, default=None)


def anchor_instants(reference: datetime, earliest: Optional[datetime]) -> dict[Anchor, datetime]:
    """Concrete instant of every anchor relative to ``reference``.

    Without any recorded history the earliest anchor falls back to one year ago.
    """
    reference = to_utc(reference)
    return {
        Anchor.ONE_WEEK: reference - timedelta(days=7),
        Anchor.ONE_MONTH: reference - relativedelta(months=1),
        Anchor.SIX_MONTHS: reference - relativedelta(months=6),
        Anchor.YEAR_START: year_start_utc(reference),
        Anchor.ONE_YEAR: reference - relativedelta(years=1),
        Anchor.FIVE_YEARS: reference - relativedelta(years=5),
        Anchor.EARLIEST: earliest if earliest is not None else reference - relativedelta(years=1),
    }


def percent_change(
    current: Decimal, anchor: Decimal, balance_group: Optional[BalanceGroup] = None
) -> Optional[Decimal]:
    """Percentage change from ``anchor`` to ``current``.

    Debt is compared on the amount owed, so paying a balance down reads as
    a negative change. A zero baseline gives 0 when the current value is
    also zero, and None (not applicable) otherwise.
    """
    if balance_group is BalanceGroup.DEBT:
        current, anchor = abs(current), abs(anchor)
    if anchor == 0:
        return ZERO if current == 0 else None
    return (current - anchor) / abs(anchor) * 100


def entity_value_at(ledger: Ledger, entity: EntityValue, cutoff: datetime) -> Decimal:
    """Value of one entity as of ``cutoff``."""
    if entity.kind == ASSET:
        return snapshot_value(latest_at_or_before(ledger.snapshots_for_asset(entity.id), cutoff))

    snapshots = ledger.snapshots_for_account(entity.id)
    if entity.mode is BalanceMode.TRANSACTION_SUM and not snapshots:
        return sum_transactions(ledger.transactions_for_account(entity.id), cutoff=cutoff)
    return snapshot_value(latest_at_or_before(snapshots, cutoff))


def anchor_totals(
    ledger: Ledger, values: list[EntityValue], cutoff: datetime
) -> dict[BalanceGroup, Decimal]:
    """Per-group totals of included entities as of ``cutoff``."""
    totals = empty_totals()
    for entity in values:
        if not entity.included:
            continue
        totals[entity.balance_group] += entity_value_at(ledger, entity, cutoff)
    return totals


def performance(
    ledger: Ledger,
    reference: Optional[datetime] = None,
    values: Optional[list[EntityValue]] = None,
    current: Optional[BalanceRollup] = None,
) -> list[PerformanceRow]:
    """Build the performance table: one row per group followed by net worth.

    Args:
        ledger: Records to read snapshot histories from
        reference: Anchor for "now", defaults to now. When given, current
            values are taken as of the end of its UTC day, so later snapshots
            and transactions do not leak into the current column
        values: Precomputed entity values, computed from the ledger if omitted
        current: Precomputed rollup, computed from the values if omitted

    Returns:
        Rows for CASH, INVESTMENT, OTHER, DEBT and net worth, in that order
    """
    as_of = end_of_day_utc(reference) if reference is not None else None
    reference = to_utc(reference) if reference is not None else utc_now()
    if values is None:
        values = entity_values(ledger, as_of)
    if current is None:
        current = rollup_values(values)

    anchors = anchor_instants(reference, earliest_known_date(ledger))
    totals_at = {
        anchor: anchor_totals(ledger, values, end_of_day_utc(instant))
        for anchor, instant in anchors.items()
    }

    rows: list[PerformanceRow] = []
    for group in GROUP_LABELS:
        group_totals = {anchor: totals[group] for anchor, totals in totals_at.items()}
        rows.append(
            PerformanceRow(
                label=GROUP_LABELS[group],
                balance_group=group,
                current=current.totals_by_group[group],
                anchor_totals=group_totals,
                changes={
                    anchor: percent_change(current.totals_by_group[group], total, group)
                    for anchor, total in group_totals.items()
                },
            )
        )

    net_totals = {anchor: sum(totals.values(), ZERO) for anchor, totals in totals_at.items()}
    rows.append(
        PerformanceRow(
            label=NET_WORTH_LABEL,
            balance_group=None,
            current=current.net_worth,
            anchor_totals=net_totals,
            changes={
                anchor: percent_change(current.net_worth, total)
                for anchor, total in net_totals.items()
            },
        )
    )
    return rows
