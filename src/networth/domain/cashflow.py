"""Trailing cash-flow averages."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Collection, Iterable, Optional

from networth.domain.entities import Transaction
from networth.domain.snapshots import ZERO, finite_or_zero
from networth.utils.periods import add_months_utc, month_start_utc, to_utc, utc_now, year_start_utc

logger = logging.getLogger(__name__)


class TrailingWindow(str, Enum):
    """Lookback windows for monthly averages."""

    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    YEAR_TO_DATE = "ytd"
    TWELVE_MONTHS = "1y"


_FIXED_MONTHS = {
    TrailingWindow.THREE_MONTHS: 3,
    TrailingWindow.SIX_MONTHS: 6,
    TrailingWindow.TWELVE_MONTHS: 12,
}


@dataclass(frozen=True)
class CashflowAverages:
    """Monthly averages; expenses stay negative."""

    income: Decimal = ZERO
    expenses: Decimal = ZERO
    surplus: Decimal = ZERO


def window_start(window: TrailingWindow, reference: datetime) -> datetime:
    """Inclusive start of a trailing window, on a UTC month boundary."""
    if window is TrailingWindow.YEAR_TO_DATE:
        return year_start_utc(reference)
    months = _FIXED_MONTHS[window]
    return add_months_utc(month_start_utc(reference), -(months - 1))


def window_months(window: TrailingWindow, reference: datetime) -> int:
    """Divisor for a window; year-to-date uses the 1-based UTC month number."""
    if window is TrailingWindow.YEAR_TO_DATE:
        return to_utc(reference).month
    return _FIXED_MONTHS[window]


def window_sums(
    transactions: Iterable[Transaction], start: datetime
) -> tuple[Decimal, Decimal]:
    """Sum income and expenses of transactions dated on or after ``start``."""
    income = ZERO
    expenses = ZERO
    for txn in transactions:
        if not txn.counts_toward_totals:
            continue
        if to_utc(txn.date) < start:
            continue
        value = finite_or_zero(txn.value, context=f"transaction {txn.id}")
        if value >= 0:
            income += value
        else:
            expenses += value
    return income, expenses


def trailing_averages(
    transactions: Iterable[Transaction],
    reference: Optional[datetime] = None,
    known_account_ids: Optional[Collection[int]] = None,
) -> dict[TrailingWindow, CashflowAverages]:
    """Monthly income, expense and surplus averages for every trailing window.

    Args:
        transactions: Transactions to aggregate
        reference: Anchor instant, defaults to now
        known_account_ids: When given, transactions of any other account are
            skipped as orphans

    Returns:
        Averages keyed by window
    """
    reference = to_utc(reference) if reference is not None else utc_now()
    txns = list(transactions)
    if known_account_ids is not None:
        orphans = [t for t in txns if t.account_id not in known_account_ids]
        for txn in orphans:
            logger.warning(
                "Skipping transaction %s of unknown account %s", txn.id, txn.account_id
            )
        txns = [t for t in txns if t.account_id in known_account_ids]

    averages: dict[TrailingWindow, CashflowAverages] = {}
    for window in TrailingWindow:
        income, expenses = window_sums(txns, window_start(window, reference))
        months = Decimal(window_months(window, reference))
        averages[window] = CashflowAverages(
            income=income / months,
            expenses=expenses / months,
            surplus=(income + expenses) / months,
        )
    return averages
