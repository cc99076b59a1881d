"""Shared pytest fixtures for networth tests."""

import itertools
import os
import tempfile
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from networth.database.factories import create_sqlite_database
from networth.domain.account import AccountService
from networth.domain.asset import AssetService
from networth.domain.balance import BalanceService
from networth.domain.entities import (
    Account,
    Asset,
    AssetKind,
    BalanceGroup,
    BalanceType,
    DetailedSnapshot,
    SimpleSnapshot,
    Transaction,
)
from networth.domain.summary import SummaryService
from networth.domain.transaction import TransactionService

# Fixed "now" shared by the aggregation tests
REFERENCE = datetime(2024, 10, 15, 12, 0, tzinfo=UTC)

_ids = itertools.count(1000)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, second, tzinfo=UTC)


def make_account(id, group=BalanceGroup.CASH, name=None, balance_type_id=None, **flags) -> Account:
    return Account(
        id=id,
        name=name or f"Account {id}",
        balance_group=group,
        balance_type_id=balance_type_id,
        created_at=utc(2020, 1, 1),
        **flags,
    )


def make_asset(id, group=BalanceGroup.OTHER, name=None, balance_type_id=None, **flags) -> Asset:
    return Asset(
        id=id,
        name=name or f"Asset {id}",
        balance_group=group,
        balance_type_id=balance_type_id,
        kind=flags.pop("kind", AssetKind.WHOLE),
        created_at=utc(2020, 1, 1),
        **flags,
    )


def make_snapshot(owner_id, value, as_of, created_at=None, id=None) -> SimpleSnapshot:
    return SimpleSnapshot(
        id=id if id is not None else next(_ids),
        owner_id=owner_id,
        value=Decimal(str(value)),
        as_of=as_of,
        created_at=created_at or as_of,
    )


def make_detailed(owner_id, as_of, id=None, **values) -> DetailedSnapshot:
    return DetailedSnapshot(
        id=id if id is not None else next(_ids),
        owner_id=owner_id,
        as_of=as_of,
        created_at=as_of,
        **{k: Decimal(str(v)) for k, v in values.items()},
    )


def make_transaction(account_id, value, date, id=None, **flags) -> Transaction:
    return Transaction(
        id=id if id is not None else next(_ids),
        account_id=account_id,
        date=date,
        value=Decimal(str(value)),
        created_at=date,
        **flags,
    )


def make_balance_type(id, name) -> BalanceType:
    return BalanceType(id=id, name=name, created_at=utc(2020, 1, 1))


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def asset_service(temp_db):
    """Create an AssetService with a temporary database."""
    return AssetService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    """Create a BalanceService with a temporary database."""
    return BalanceService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def summary_service(temp_db):
    """Create a SummaryService with a temporary database."""
    return SummaryService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample cash account for testing."""
    account_id = account_service.create_account(
        name="Checking", balance_group="CASH", balance_type="Bank"
    )
    return account_service.get_account(account_id)


@pytest.fixture
def sample_asset(asset_service):
    """Create a sample SHARES asset for testing."""
    asset_id = asset_service.create_asset(
        name="Index Fund", balance_group="INVESTMENT", kind="SHARES", symbol="vti"
    )
    return asset_service.get_asset(asset_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
