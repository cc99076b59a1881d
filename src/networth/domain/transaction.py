"""Transaction domain service."""

import logging
import math
from datetime import UTC, datetime, time
from decimal import Decimal
from typing import Any, Iterable, Optional

from networth.database.base import Database, Filter
from networth.domain.balance_mode import sum_transactions
from networth.domain.entities import (
    Collection,
    Transaction as TransactionEntity,
    TransactionPage,
    TransactionRow,
)
from networth.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)
from networth.utils.periods import resolve_period, to_utc, utc_day, utc_now

logger = logging.getLogger(__name__)

PAGE_SIZE = 50

KIND_FILTERS = ("all", "credits", "debits", "excluded")


def _day_start(instant: datetime) -> datetime:
    return datetime.combine(utc_day(instant), time.min, tzinfo=UTC)


def _matches_kind(row: TransactionRow, kind: str) -> bool:
    if kind == "credits":
        return row.value > 0
    if kind == "debits":
        return row.value < 0
    if kind == "excluded":
        return row.excluded
    return True


def listing_sort_key(row: TransactionRow) -> tuple:
    """Newest UTC day first, then larger value first, then id ascending."""
    return (-utc_day(row.date).toordinal(), -row.value, row.id)


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_transaction(
        self,
        account_id: int,
        date: datetime,
        value: Decimal,
        description: Optional[str] = None,
        labels: Iterable[str] = (),
        excluded: bool = False,
        pending: bool = False,
    ) -> int:
        """Create a transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            value: Signed amount (credits positive, debits negative)
            description: Optional description
            labels: Label names, created if they do not exist
            excluded: Create the transaction already excluded from totals
            pending: Create the transaction as pending

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If account doesn't exist
            ValidationError: If the value is not finite
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if not Decimal(value).is_finite():
            raise ValidationError("Transaction value must be a finite number")

        now = utc_now()
        transaction_id = self.db.create_transaction(
            account_id=account_id,
            date=to_utc(date),
            value=value,
            description=description.strip() if description else None,
            labels=labels,
            excluded_at=now if excluded else None,
            pending_at=now if pending else None,
        )
        self._record_auto_balance(account_id, to_utc(date))
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def _require(self, transaction_id: int) -> TransactionEntity:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        date: Optional[datetime] = None,
        value: Optional[Decimal] = None,
        description: Optional[str] = None,
        labels: Optional[Iterable[str]] = None,
    ) -> TransactionEntity:
        """Update transaction fields.

        Only the arguments that are not None are changed.

        Raises:
            NotFoundError: If the transaction or the new account doesn't exist
            ValidationError: If the value is not finite
        """
        before = self._require(transaction_id)

        changes: dict[str, Any] = {}
        if account_id is not None:
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))
            changes["account_id"] = account_id
        if date is not None:
            changes["date"] = to_utc(date)
        if value is not None:
            if not Decimal(value).is_finite():
                raise ValidationError("Transaction value must be a finite number")
            changes["value"] = value
        if description is not None:
            changes["description"] = description.strip() or None
        if labels is not None:
            changes["labels"] = list(labels)
        if not changes:
            return before

        return self._apply(before, **changes)

    def _apply(self, before: TransactionEntity, **changes: Any) -> TransactionEntity:
        after = self.db.update_transaction(before.id, **changes)
        if before.account_id != after.account_id:
            self._record_auto_balance(before.account_id, to_utc(after.date))
        self._record_auto_balance(after.account_id, to_utc(after.date))
        return after

    def exclude_transaction(self, transaction_id: int) -> TransactionEntity:
        """Exclude a transaction from sums and cash flow."""
        return self._apply(self._require(transaction_id), excluded_at=utc_now())

    def include_transaction(self, transaction_id: int) -> TransactionEntity:
        return self._apply(self._require(transaction_id), excluded_at=None)

    def mark_pending(self, transaction_id: int) -> TransactionEntity:
        return self._apply(self._require(transaction_id), pending_at=utc_now())

    def mark_cleared(self, transaction_id: int) -> TransactionEntity:
        return self._apply(self._require(transaction_id), pending_at=None)

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction.

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        txn = self._require(transaction_id)
        self.db.delete_transaction(transaction_id)
        self._record_auto_balance(txn.account_id, utc_now())

    def _record_auto_balance(self, account_id: int, as_of: datetime) -> Optional[int]:
        """Snapshot the transaction sum of an account flagged auto-calculated.

        Gives such accounts a balance history that historical anchors can read.
        """
        account = self.db.get_account(account_id)
        if account is None or not account.is_auto_calculated:
            return None
        transactions = self.db.list_all(
            Collection.TRANSACTIONS, [Filter("account_id", "==", account_id)]
        )
        total = sum_transactions(transactions)
        logger.debug("Recording auto-calculated balance %s for account %s", total, account_id)
        return self.db.create_account_balance(account_id=account_id, value=total, as_of=as_of)

    def list_transactions(
        self,
        period: str = "lifetime",
        kind: str = "all",
        page: int = 1,
        account_id: Optional[int] = None,
        reference: Optional[datetime] = None,
        page_size: int = PAGE_SIZE,
    ) -> TransactionPage:
        """List transactions for display.

        Rows are filtered by the period window (compared on the UTC day of
        each transaction) and by kind: ``credits`` (value > 0), ``debits``
        (value < 0), ``excluded`` or ``all``. They are ordered newest day
        first, then by value descending, then by id.

        Args:
            period: Period token understood by resolve_period
            kind: One of KIND_FILTERS
            page: 1-based page number, clamped to the available pages
            account_id: Optional account to restrict the listing to
            reference: Anchor instant for the period, defaults to now
            page_size: Rows per page

        Returns:
            TransactionPage; an empty listing still has one page

        Raises:
            ValidationError: If the period or kind is unknown
        """
        kind = kind.strip().lower()
        if kind not in KIND_FILTERS:
            raise ValidationError(
                f"Unknown transaction kind: '{kind}'. Supported kinds: {', '.join(KIND_FILTERS)}"
            )
        window = resolve_period(period, reference)

        filters = []
        if account_id is not None:
            filters.append(Filter("account_id", "==", account_id))
        transactions = self.db.list_all(Collection.TRANSACTIONS, filters)
        account_names = {acc.id: acc.name for acc in self.db.list_accounts()}

        rows = []
        for txn in transactions:
            row = TransactionRow(
                id=txn.id,
                date=to_utc(txn.date),
                description=(txn.description or "").strip(),
                labels=txn.labels,
                account_id=txn.account_id,
                account_name=account_names.get(txn.account_id, ""),
                value=txn.value,
                excluded=txn.is_excluded,
                pending=txn.is_pending,
            )
            if window.contains(_day_start(row.date)) and _matches_kind(row, kind):
                rows.append(row)
        rows.sort(key=listing_sort_key)

        total_pages = max(1, math.ceil(len(rows) / page_size))
        page = min(max(page, 1), total_pages)
        start = (page - 1) * page_size
        return TransactionPage(
            rows=tuple(rows[start:start + page_size]),
            page=page,
            total_pages=total_pages,
            total_rows=len(rows),
        )
