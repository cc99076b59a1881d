"""Tests for the live recomputation session."""

import asyncio
import logging
from decimal import Decimal

import pytest

from networth.domain.cashflow import TrailingWindow
from networth.domain.entities import BalanceGroup, ChangeAction, ChangeEvent, Collection
from networth.domain.errors import AuthorizationError, StoreConnectionError, SubscriptionError
from networth.live import LiveSession, SessionStatus
from networth.live.session import (
    AUTH_REQUIRED_NOTICE,
    CONNECTION_LOST_NOTICE,
    LIVE_UPDATES_NOTICE,
    queue_key,
)

from conftest import REFERENCE, make_balance_type, make_snapshot, make_transaction, utc


@pytest.fixture
def seeded(account_service, balance_service):
    checking = account_service.create_account("Checking", "CASH")
    card = account_service.create_account("Visa", "DEBT")
    balance_service.record_account_balance(checking, Decimal("2500"), utc(2024, 10, 1))
    balance_service.record_account_balance(card, Decimal("-500"), utc(2024, 10, 1))
    return {"checking": checking, "card": card}


def _session(db, **kwargs):
    return LiveSession(db, clock=lambda: REFERENCE, **kwargs)


def _raise(error):
    def raiser(*args, **kwargs):
        raise error

    return raiser


def test_queue_key_groups_snapshots_by_owner():
    first = ChangeEvent(Collection.ACCOUNT_BALANCES, ChangeAction.CREATE, make_snapshot(7, 1, utc(2024, 1, 1)))
    second = ChangeEvent(Collection.ACCOUNT_BALANCES, ChangeAction.CREATE, make_snapshot(7, 2, utc(2024, 1, 2)))
    txn = ChangeEvent(Collection.TRANSACTIONS, ChangeAction.UPDATE, make_transaction(7, 5, utc(2024, 1, 1), id=42))

    assert queue_key(first) == queue_key(second) == (Collection.ACCOUNT_BALANCES, 7)
    assert queue_key(txn) == (Collection.TRANSACTIONS, 42)


def test_start_computes_everything(temp_db, seeded):
    async def scenario():
        session = _session(temp_db)
        await session.start()
        try:
            assert session.status is SessionStatus.LIVE
            assert session.rollup.net_worth == Decimal("2000")
            assert set(session.cashflow) == set(TrailingWindow)
            assert session.performance[-1].current == Decimal("2000")
        finally:
            await session.stop()
        assert session.status is SessionStatus.STOPPED

    asyncio.run(scenario())


def test_new_snapshot_updates_rollup(temp_db, seeded, balance_service):
    async def scenario():
        session = _session(temp_db)
        await session.start()
        balance_service.record_account_balance(seeded["checking"], Decimal("3000"), utc(2024, 10, 10))
        # A backdated snapshot must not displace the newer one
        balance_service.record_account_balance(seeded["checking"], Decimal("10"), utc(2024, 1, 1))
        await session.settle()

        assert session.values[("account", seeded["checking"])].value == Decimal("3000")
        assert session.rollup.totals_by_group[BalanceGroup.CASH] == Decimal("3000")
        assert session.rollup.net_worth == Decimal("2500")
        assert len(session.ledger.snapshots_for_account(seeded["checking"])) == 3
        await session.stop()

    asyncio.run(scenario())


def test_transaction_changes_update_cashflow_and_auto_accounts(temp_db, account_service, transaction_service):
    async def scenario():
        session = _session(temp_db)
        await session.start()
        wallet = account_service.create_account("Wallet", "CASH", auto_calculated=True)
        txn_id = transaction_service.create_transaction(wallet, utc(2024, 9, 20), Decimal("1200"))
        transaction_service.create_transaction(wallet, utc(2024, 9, 21), Decimal("-300"))
        await session.settle()

        assert session.values[("account", wallet)].value == Decimal("900")
        assert session.cashflow[TrailingWindow.THREE_MONTHS].income == Decimal("400")

        transaction_service.exclude_transaction(txn_id)
        await session.settle()
        assert session.values[("account", wallet)].value == Decimal("-300")
        assert session.cashflow[TrailingWindow.THREE_MONTHS].income == Decimal("0")
        await session.stop()

    asyncio.run(scenario())


def test_closing_and_deleting_accounts(temp_db, seeded, account_service):
    async def scenario():
        session = _session(temp_db)
        await session.start()

        account_service.close_account(seeded["card"])
        await session.settle()
        assert session.rollup.net_worth == Decimal("2500")
        assert session.values[("account", seeded["card"])].closed

        account_service.delete_account(seeded["checking"])
        await session.settle()
        assert ("account", seeded["checking"]) not in session.values
        assert seeded["checking"] not in session.ledger.account_snapshots
        assert session.rollup.net_worth == Decimal("0")
        await session.stop()

    asyncio.run(scenario())


def test_balance_type_rename_reaches_breakdown(temp_db, account_service, balance_service):
    async def scenario():
        checking = account_service.create_account("Checking", "CASH", balance_type="Bank")
        balance_service.record_account_balance(checking, Decimal("100"), utc(2024, 10, 1))
        session = _session(temp_db)
        await session.start()

        account_service.set_balance_type(checking, "Current account")
        await session.settle()
        assert session.rollup.breakdown[BalanceGroup.CASH] == {"Current account": Decimal("100")}
        await session.stop()

    asyncio.run(scenario())


def _cash_performance(session):
    return next(row for row in session.performance if row.balance_group is BalanceGroup.CASH)


def test_rename_to_auto_calculated_type_updates_performance(
    temp_db, account_service, balance_service, transaction_service
):
    async def scenario():
        checking = account_service.create_account("Checking", "CASH", balance_type="Bank")
        balance_service.record_account_balance(checking, Decimal("100"), utc(2024, 10, 1))
        transaction_service.create_transaction(checking, utc(2024, 10, 2), Decimal("700"))
        session = _session(temp_db)
        await session.start()
        assert _cash_performance(session).current == Decimal("100")

        type_id = temp_db.get_account(checking).balance_type_id
        renamed = make_balance_type(type_id, "Auto-calculated")
        session._on_change(ChangeEvent(Collection.BALANCE_TYPES, ChangeAction.UPDATE, renamed))
        await session.settle()

        assert session.rollup.totals_by_group[BalanceGroup.CASH] == Decimal("700")
        assert _cash_performance(session).current == Decimal("700")
        await session.stop()

    asyncio.run(scenario())


def test_burst_of_snapshots_is_fetched_once(temp_db, seeded, balance_service, monkeypatch):
    async def scenario():
        session = _session(temp_db)
        await session.start()

        fetches = []
        list_all = temp_db.list_all

        def counting_list_all(collection, filters=None):
            fetches.append(collection)
            return list_all(collection, filters)

        passes = []
        recompute = session._recompute

        def counting_recompute(collection, affected):
            passes.append(collection)
            recompute(collection, affected)

        monkeypatch.setattr(temp_db, "list_all", counting_list_all)
        monkeypatch.setattr(session, "_recompute", counting_recompute)

        for day, value in ((2, "2600"), (3, "2700"), (4, "2800")):
            balance_service.record_account_balance(seeded["checking"], Decimal(value), utc(2024, 10, day))
        await session.settle()

        assert fetches == [Collection.ACCOUNT_BALANCES]
        assert passes == [Collection.ACCOUNT_BALANCES]
        assert session.rollup.net_worth == Decimal("2300")
        await session.stop()

    asyncio.run(scenario())


def test_dropped_change_stream_degrades_to_static_view(temp_db, seeded, balance_service):
    async def scenario():
        session = _session(temp_db)
        await session.start()

        temp_db.disconnect()
        await session.settle()
        assert session.status is SessionStatus.LIVE_UPDATES_UNAVAILABLE
        assert session.notices == [LIVE_UPDATES_NOTICE]

        balance_service.record_account_balance(seeded["checking"], Decimal("3000"), utc(2024, 10, 10))
        await session.settle()
        assert session.rollup.net_worth == Decimal("2000")

        await session.reconnect()
        assert session.status is SessionStatus.LIVE
        assert session.notices == []
        assert session.rollup.net_worth == Decimal("2500")
        await session.stop()

    asyncio.run(scenario())


def test_connection_failure_on_load(temp_db, seeded, monkeypatch):
    monkeypatch.setattr(temp_db, "list_all", _raise(StoreConnectionError("down", "accounts", "list_all")))

    async def scenario():
        session = _session(temp_db)
        await session.start()
        assert session.status is SessionStatus.CONNECTION_ERROR
        assert session.notices == [CONNECTION_LOST_NOTICE]
        assert session.rollup.net_worth == Decimal("0")

    asyncio.run(scenario())


def test_connection_lost_keeps_last_values(temp_db, seeded, balance_service, monkeypatch):
    async def scenario():
        session = _session(temp_db)
        await session.start()
        monkeypatch.setattr(
            temp_db, "list_all", _raise(StoreConnectionError("down", "account_balances", "list_all"))
        )

        balance_service.record_account_balance(seeded["checking"], Decimal("9999"), utc(2024, 10, 10))
        await session.settle()

        assert session.status is SessionStatus.CONNECTION_ERROR
        assert CONNECTION_LOST_NOTICE in session.notices
        assert session.rollup.net_worth == Decimal("2000")

        monkeypatch.undo()
        await session.reconnect()
        assert session.status is SessionStatus.LIVE
        assert session.notices == []
        assert session.rollup.net_worth == Decimal("9499")
        await session.stop()

    asyncio.run(scenario())


def test_subscription_failure_degrades_to_static_view(temp_db, seeded, balance_service, monkeypatch):
    monkeypatch.setattr(
        temp_db, "subscribe", _raise(SubscriptionError("stream refused", "transactions", "subscribe"))
    )

    async def scenario():
        session = _session(temp_db)
        await session.start()
        assert session.status is SessionStatus.LIVE_UPDATES_UNAVAILABLE
        assert session.notices == [LIVE_UPDATES_NOTICE]
        assert session.rollup.net_worth == Decimal("2000")

        balance_service.record_account_balance(seeded["checking"], Decimal("1"), utc(2024, 10, 10))
        await session.settle()
        assert session.rollup.net_worth == Decimal("2000")

    asyncio.run(scenario())


def test_rejected_credential_requires_sign_in(temp_db, seeded, balance_service, monkeypatch):
    async def scenario():
        session = _session(temp_db, credential="token-1")
        await session.start()
        monkeypatch.setattr(
            temp_db, "list_all", _raise(AuthorizationError("expired", "account_balances", "list_all"))
        )

        balance_service.record_account_balance(seeded["checking"], Decimal("1"), utc(2024, 10, 10))
        await session.settle()

        assert session.status is SessionStatus.AUTH_REQUIRED
        assert session.credential is None
        assert session.notices == [AUTH_REQUIRED_NOTICE]

        # No longer subscribed: further writes are not picked up
        monkeypatch.undo()
        balance_service.record_account_balance(seeded["card"], Decimal("-1"), utc(2024, 10, 10))
        await session.settle()
        assert session.rollup.net_worth == Decimal("2000")

        await session.reconnect(credential="token-2")
        assert session.status is SessionStatus.LIVE
        assert session.credential == "token-2"
        assert session.rollup.net_worth == Decimal("0")
        await session.stop()

    asyncio.run(scenario())


def test_authorization_failure_on_load(temp_db, monkeypatch):
    monkeypatch.setattr(temp_db, "list_all", _raise(AuthorizationError("denied", "accounts", "list_all")))

    async def scenario():
        session = _session(temp_db, credential="token")
        await session.start()
        assert session.status is SessionStatus.AUTH_REQUIRED
        assert session.credential is None

    asyncio.run(scenario())


def test_stopped_session_ignores_changes(temp_db, seeded, balance_service):
    async def scenario():
        session = _session(temp_db)
        await session.start()
        await session.stop()

        balance_service.record_account_balance(seeded["checking"], Decimal("1"), utc(2024, 10, 10))
        await asyncio.sleep(0)
        assert session.rollup.net_worth == Decimal("2000")

    asyncio.run(scenario())


def test_changes_while_not_live_are_logged(temp_db, seeded, caplog):
    caplog.set_level(logging.DEBUG, logger="networth.live.session")

    async def scenario():
        session = _session(temp_db)
        await session.start()
        await session.stop()

        snapshot = make_snapshot(seeded["checking"], 1, REFERENCE)
        session._on_change(ChangeEvent(Collection.ACCOUNT_BALANCES, ChangeAction.CREATE, snapshot))
        await asyncio.sleep(0)

    asyncio.run(scenario())
    assert "Ignoring account_balances create while stopped" in caplog.text
