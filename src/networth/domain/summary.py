"""Summary domain service: balance sheet, cash flow and performance."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from networth.database.base import Database
from networth.domain.cashflow import CashflowAverages, TrailingWindow, trailing_averages
from networth.domain.entities import BalanceGroup, Collection
from networth.domain.ledger import Ledger
from networth.domain.performance import PerformanceRow, performance
from networth.domain.rollup import (
    BalanceRollup,
    BalanceSheetScope,
    EntityValue,
    entity_values,
    in_scope,
    rollup_values,
    scope_totals,
)
from networth.utils.periods import end_of_day_utc, to_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryReport:
    """Everything the summary view shows, computed from one ledger load."""

    reference: datetime
    values: tuple[EntityValue, ...]
    rollup: BalanceRollup
    cashflow: dict[TrailingWindow, CashflowAverages]
    performance: tuple[PerformanceRow, ...]

    def listed(self, scope: BalanceSheetScope) -> list[EntityValue]:
        """Entities shown on a balance sheet tab."""
        return [value for value in self.values if in_scope(value, scope)]

    def tab_totals(self, scope: BalanceSheetScope) -> dict[BalanceGroup, Decimal]:
        return scope_totals(self.values, scope)


class SummaryService:
    """Service for building summary models from the store."""

    def __init__(self, db: Database):
        """Initialize summary service.

        Args:
            db: Database instance
        """
        self.db = db

    def load_ledger(self) -> Ledger:
        """Read every collection the aggregations need."""
        ledger = Ledger.from_records(
            accounts=self.db.list_all(Collection.ACCOUNTS),
            assets=self.db.list_all(Collection.ASSETS),
            account_snapshots=self.db.list_all(Collection.ACCOUNT_BALANCES),
            asset_snapshots=self.db.list_all(Collection.ASSET_BALANCES),
            transactions=self.db.list_all(Collection.TRANSACTIONS),
            balance_types=self.db.list_all(Collection.BALANCE_TYPES),
        )
        logger.debug(
            "Loaded %d accounts, %d assets and %d transactions",
            len(ledger.accounts),
            len(ledger.assets),
            len(ledger.transactions),
        )
        return ledger

    def entity_values(self, ledger: Optional[Ledger] = None) -> list[EntityValue]:
        """Current value of every account and asset."""
        return entity_values(ledger if ledger is not None else self.load_ledger())

    def balance_rollup(self, ledger: Optional[Ledger] = None) -> BalanceRollup:
        """Category totals, net worth and balance-type breakdown."""
        return rollup_values(self.entity_values(ledger))

    def scope_totals(
        self, scope: BalanceSheetScope, ledger: Optional[Ledger] = None
    ) -> dict[BalanceGroup, Decimal]:
        """Aggregate row of one balance sheet tab."""
        return scope_totals(self.entity_values(ledger), scope)

    def cashflow(
        self, reference: Optional[datetime] = None, ledger: Optional[Ledger] = None
    ) -> dict[TrailingWindow, CashflowAverages]:
        """Trailing monthly income, expense and surplus averages."""
        ledger = ledger if ledger is not None else self.load_ledger()
        return trailing_averages(
            ledger.transactions.values(),
            reference=reference,
            known_account_ids=set(ledger.accounts),
        )

    def performance(
        self, reference: Optional[datetime] = None, ledger: Optional[Ledger] = None
    ) -> list[PerformanceRow]:
        """Per-group and net-worth change against each historical anchor."""
        return performance(ledger if ledger is not None else self.load_ledger(), reference)

    def build_report(self, reference: Optional[datetime] = None) -> SummaryReport:
        """Compute the full summary from a single load of the store.

        An explicit reference values every record as it stood at the end of
        that UTC day, so a past date reproduces the report of that day.
        """
        as_of = end_of_day_utc(reference) if reference is not None else None
        reference = to_utc(reference) if reference is not None else utc_now()
        ledger = self.load_ledger()
        values = entity_values(ledger, as_of)
        current = rollup_values(values)
        return SummaryReport(
            reference=reference,
            values=tuple(values),
            rollup=current,
            cashflow=self.cashflow(reference, ledger),
            performance=tuple(performance(ledger, reference, values, current)),
        )
