"""Tests for the summary domain service against a real store."""

from decimal import Decimal

import pytest

from networth.domain.cashflow import TrailingWindow
from networth.domain.entities import BalanceGroup
from networth.domain.performance import NET_WORTH_LABEL, Anchor
from networth.domain.rollup import BalanceSheetScope

from conftest import REFERENCE, utc


@pytest.fixture
def household(account_service, asset_service, balance_service, transaction_service):
    """A checking account, an excluded savings account, a card and a fund."""
    checking = account_service.create_account("Checking", "CASH", balance_type="Bank")
    savings = account_service.create_account("Old savings", "CASH", balance_type="Bank")
    card = account_service.create_account("Visa", "DEBT", balance_type="Credit card")
    fund = asset_service.create_asset("Index fund", "INVESTMENT", kind="SHARES", balance_type="Brokerage")

    balance_service.record_account_balance(checking, Decimal("2000"), utc(2024, 9, 15))
    balance_service.record_account_balance(checking, Decimal("2500"), utc(2024, 10, 14))
    balance_service.record_account_balance(savings, Decimal("1000"), utc(2024, 9, 1))
    account_service.exclude_account(savings)
    balance_service.record_account_balance(card, Decimal("-500"), utc(2024, 9, 15))
    balance_service.record_asset_balance(
        fund, as_of=utc(2024, 9, 15), quantity=Decimal("10"), market_price=Decimal("100")
    )

    transaction_service.create_transaction(checking, utc(2024, 9, 15), Decimal("1200"))
    transaction_service.create_transaction(checking, utc(2024, 9, 15), Decimal("-600"))
    return {"checking": checking, "savings": savings, "card": card, "fund": fund}


def test_balance_rollup(summary_service, household):
    rollup = summary_service.balance_rollup()

    assert rollup.totals_by_group[BalanceGroup.CASH] == Decimal("2500")
    assert rollup.totals_by_group[BalanceGroup.DEBT] == Decimal("-500")
    assert rollup.totals_by_group[BalanceGroup.INVESTMENT] == Decimal("1000")
    assert rollup.net_worth == Decimal("3000")
    assert rollup.breakdown[BalanceGroup.DEBT] == {"Credit card": Decimal("-500")}


def test_scope_totals(summary_service, household):
    assert summary_service.scope_totals(BalanceSheetScope.OPEN)[BalanceGroup.CASH] == Decimal("2500")
    assert summary_service.scope_totals(BalanceSheetScope.ALL)[BalanceGroup.CASH] == Decimal("3500")
    assert summary_service.scope_totals(BalanceSheetScope.CLOSED)[BalanceGroup.CASH] == Decimal("0")


def test_cashflow(summary_service, household):
    averages = summary_service.cashflow(REFERENCE)

    assert averages[TrailingWindow.THREE_MONTHS].income == Decimal("400")
    assert averages[TrailingWindow.THREE_MONTHS].expenses == Decimal("-200")
    assert averages[TrailingWindow.THREE_MONTHS].surplus == Decimal("200")


def test_build_report_is_consistent(summary_service, household):
    report = summary_service.build_report(REFERENCE)

    assert report.reference == REFERENCE
    assert report.rollup.net_worth == Decimal("3000")
    assert {v.name for v in report.listed(BalanceSheetScope.OPEN)} == {"Checking", "Visa", "Index fund"}
    assert {v.name for v in report.listed(BalanceSheetScope.ALL)} == {
        "Checking",
        "Old savings",
        "Visa",
        "Index fund",
    }
    assert report.tab_totals(BalanceSheetScope.ALL)[BalanceGroup.CASH] == Decimal("3500")

    net_worth = {row.label: row for row in report.performance}[NET_WORTH_LABEL]
    assert net_worth.current == report.rollup.net_worth
    # 2000 - 500 + 1000 a month ago
    assert net_worth.anchor_totals[Anchor.ONE_MONTH] == Decimal("2500")
    assert net_worth.formatted()[Anchor.ONE_MONTH] == "+20%"


def test_empty_store(summary_service):
    report = summary_service.build_report(REFERENCE)

    assert report.values == ()
    assert report.rollup.net_worth == Decimal("0")
    assert all(a.income == Decimal("0") for a in report.cashflow.values())


def test_build_report_for_a_past_date(summary_service, household):
    report = summary_service.build_report(utc(2024, 10, 1))

    # The Oct 14th snapshot of checking is not known yet on Oct 1st
    assert report.rollup.totals_by_group[BalanceGroup.CASH] == Decimal("2000")
    assert report.rollup.net_worth == Decimal("2500")
    net_worth = {row.label: row for row in report.performance}[NET_WORTH_LABEL]
    assert net_worth.current == Decimal("2500")
