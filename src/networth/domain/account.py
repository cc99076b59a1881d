"""Account domain service."""

from datetime import datetime
from typing import Optional

from networth.database.base import Database
from networth.domain.entities import Account as AccountEntity, BalanceGroup
from networth.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_name,
    unknown_balance_group,
)
from networth.utils.periods import to_utc, utc_now


def parse_balance_group(value: str | BalanceGroup) -> BalanceGroup:
    """Parse a balance group name such as "cash" or "DEBT"."""
    if isinstance(value, BalanceGroup):
        return value
    try:
        return BalanceGroup(value.strip().upper())
    except ValueError:
        raise ValidationError(unknown_balance_group(value))


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        name: str,
        balance_group: str | BalanceGroup,
        balance_type: Optional[str] = None,
        auto_calculated: bool = False,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            balance_group: CASH, DEBT, INVESTMENT or OTHER
            balance_type: Optional balance type label, created if it does not exist
            auto_calculated: If True, the account value is the sum of its transactions

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or the group is unknown
            ConflictError: If account name already exists
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty")
        group = parse_balance_group(balance_group)

        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(duplicate_name("Account", name))

        balance_type_id = None
        if balance_type:
            balance_type_id = self.db.get_or_create_balance_type(balance_type)

        return self.db.create_account(
            name=name,
            balance_group=group,
            balance_type_id=balance_type_id,
            auto_calculated_at=utc_now() if auto_calculated else None,
        )

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self, include_closed: bool = True) -> list[AccountEntity]:
        """List accounts, optionally hiding closed ones."""
        accounts = self.db.list_accounts()
        if include_closed:
            return accounts
        return [acc for acc in accounts if not acc.is_closed]

    def _require(self, account_id: int) -> AccountEntity:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def rename_account(self, account_id: int, name: str) -> AccountEntity:
        """Rename an account.

        Raises:
            NotFoundError: If account not found
            ConflictError: If name already exists
        """
        self._require(account_id)
        name = name.strip()
        for acc in self.db.list_accounts():
            if acc.id != account_id and acc.name == name:
                raise ConflictError(duplicate_name("Account", name))
        return self.db.update_account(account_id, name=name)

    def set_balance_type(self, account_id: int, balance_type: Optional[str]) -> AccountEntity:
        """Assign a balance type label, or clear it with None."""
        self._require(account_id)
        balance_type_id = self.db.get_or_create_balance_type(balance_type) if balance_type else None
        return self.db.update_account(account_id, balance_type_id=balance_type_id)

    def set_balance_group(self, account_id: int, balance_group: str | BalanceGroup) -> AccountEntity:
        self._require(account_id)
        return self.db.update_account(account_id, balance_group=parse_balance_group(balance_group))

    def close_account(self, account_id: int, when: Optional[datetime] = None) -> AccountEntity:
        """Mark an account closed; it stops counting toward totals."""
        self._require(account_id)
        return self.db.update_account(account_id, closed_at=to_utc(when) if when else utc_now())

    def reopen_account(self, account_id: int) -> AccountEntity:
        self._require(account_id)
        return self.db.update_account(account_id, closed_at=None)

    def exclude_account(self, account_id: int) -> AccountEntity:
        """Exclude an account from totals while keeping it visible."""
        self._require(account_id)
        return self.db.update_account(account_id, excluded_at=utc_now())

    def include_account(self, account_id: int) -> AccountEntity:
        self._require(account_id)
        return self.db.update_account(account_id, excluded_at=None)

    def set_auto_calculated(self, account_id: int, enabled: bool) -> AccountEntity:
        """Switch an account between manual snapshots and transaction sums."""
        self._require(account_id)
        return self.db.update_account(
            account_id, auto_calculated_at=utc_now() if enabled else None
        )

    def delete_account(self, account_id: int) -> None:
        """Delete an account along with its snapshots and transactions.

        Raises:
            NotFoundError: If account not found
        """
        self._require(account_id)
        self.db.delete_account(account_id)
