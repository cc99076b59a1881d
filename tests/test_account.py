"""Tests for account service and commands."""

import pytest

from networth.cli.main import cli
from networth.domain.entities import BalanceGroup
from networth.domain.errors import ConflictError, NotFoundError, ValidationError
from networth.utils.record_resolver import resolve_account

from conftest import utc


def test_create_account_with_type(account_service, temp_db):
    account_id = account_service.create_account("  Savings ", "cash", balance_type="Bank")
    account = account_service.get_account(account_id)

    assert account.name == "Savings"
    assert account.balance_group is BalanceGroup.CASH
    assert [bt.name for bt in temp_db.list_balance_types()] == ["Bank"]
    assert not account.is_auto_calculated


def test_create_account_validation(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account("   ", "CASH")
    with pytest.raises(ValidationError, match="Unknown balance group"):
        account_service.create_account("Loan", "LIABILITY")


def test_create_duplicate_account(account_service, sample_account):
    with pytest.raises(ConflictError, match="already exists"):
        account_service.create_account("Checking", "CASH")


def test_accounts_share_balance_type(account_service, sample_account):
    other_id = account_service.create_account("Savings", "CASH", balance_type="bank")
    assert account_service.get_account(other_id).balance_type_id == sample_account.balance_type_id


def test_close_and_reopen(account_service, sample_account):
    closed = account_service.close_account(sample_account.id, utc(2024, 3, 1))
    assert closed.closed_at == utc(2024, 3, 1)
    assert account_service.list_accounts(include_closed=False) == []

    reopened = account_service.reopen_account(sample_account.id)
    assert not reopened.is_closed


def test_exclude_and_auto_flags(account_service, sample_account):
    assert account_service.exclude_account(sample_account.id).is_excluded
    assert not account_service.include_account(sample_account.id).is_excluded
    assert account_service.set_auto_calculated(sample_account.id, True).is_auto_calculated
    assert not account_service.set_auto_calculated(sample_account.id, False).is_auto_calculated


def test_rename_to_taken_name(account_service, sample_account):
    account_service.create_account("Savings", "CASH")
    with pytest.raises(ConflictError):
        account_service.rename_account(sample_account.id, "Savings")


def test_operations_on_missing_account(account_service):
    with pytest.raises(NotFoundError):
        account_service.close_account(404)
    with pytest.raises(NotFoundError):
        account_service.delete_account(404)


def test_resolve_account_by_name_and_id(account_service, sample_account):
    assert resolve_account(account_service, "Checking") == sample_account.id
    assert resolve_account(account_service, str(sample_account.id)) == sample_account.id
    with pytest.raises(NotFoundError, match="Account 'Nope' not found"):
        resolve_account(account_service, "Nope")
    with pytest.raises(NotFoundError, match="Account ID 404 not found"):
        resolve_account(account_service, 404)


def test_account_create_command(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "account", "create", "Visa", "--group", "debt", "--type", "Credit card"],
    )

    assert result.exit_code == 0
    assert "Created account 'Visa'" in result.output
    assert "ID:" in result.output


def test_account_list_empty(cli_runner, temp_db):
    """Test listing accounts when none exist."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_with_data(cli_runner, temp_db, sample_account):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])

    assert result.exit_code == 0
    assert "Checking" in result.output
    assert "Bank" in result.output
    assert "CASH" in result.output


def test_account_create_duplicate(cli_runner, temp_db, sample_account):
    """Test creating duplicate account name fails."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Checking", "--group", "CASH"]
    )

    assert result.exit_code == 1
    assert "already exists" in result.output.lower()


def test_account_close_by_name(cli_runner, temp_db, sample_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "close", "Checking", "--date", "2024-03-01"]
    )

    assert result.exit_code == 0
    assert "Closed account 'Checking'" in result.output
    assert temp_db.get_account(sample_account.id).is_closed


def test_account_unknown_reference(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "exclude", "Nope"])

    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_account_delete_confirmation(cli_runner, temp_db, sample_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "delete", "Checking"], input="n\n"
    )
    assert "Deletion cancelled." in result.output
    assert temp_db.get_account(sample_account.id) is not None

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "delete", "Checking", "--yes"]
    )
    assert result.exit_code == 0
    assert "Deleted account 'Checking'" in result.output
    assert temp_db.get_account(sample_account.id) is None


def test_account_set_type_and_group(cli_runner, temp_db, sample_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "set-type", "Checking", "Joint"]
    )
    assert result.exit_code == 0
    assert "balance type set to 'Joint'" in result.output
    type_id = temp_db.get_account(sample_account.id).balance_type_id
    assert {t.id: t.name for t in temp_db.list_balance_types()}[type_id] == "Joint"

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "set-type", "Checking"])
    assert result.exit_code == 0
    assert "Cleared balance type" in result.output
    assert temp_db.get_account(sample_account.id).balance_type_id is None

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "set-group", "Checking", "investment"]
    )
    assert result.exit_code == 0
    assert "moved to INVESTMENT" in result.output
    assert temp_db.get_account(sample_account.id).balance_group is BalanceGroup.INVESTMENT
