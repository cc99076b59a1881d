"""Decide whether an account's value comes from snapshots or its transactions."""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from networth.domain.entities import Account, Snapshot, Transaction
from networth.domain.snapshots import ZERO, finite_or_zero, latest_at_or_before, select_latest, snapshot_value
from networth.utils.periods import to_utc

AUTO_CALCULATED_NAME = "autocalculated"

_NON_LETTERS = re.compile(r"[^a-z]")


class BalanceMode(str, Enum):
    """Source of an account's current value."""

    SNAPSHOT = "snapshot"
    TRANSACTION_SUM = "transaction-sum"


class AutoReason(str, Enum):
    """Which rule put an account into transaction-sum mode."""

    FLAG = "flag"
    BALANCE_TYPE = "balance-type"
    INFERRED = "inferred"
    NONE = "none"


def normalize_balance_type_name(name: Optional[str]) -> str:
    """Lower-case a balance type name and drop everything but letters."""
    return _NON_LETTERS.sub("", (name or "").lower())


def is_auto_calculated_name(name: Optional[str]) -> bool:
    """True for "Auto-calculated", "auto calculated", "AUTOCALCULATED", ..."""
    return normalize_balance_type_name(name) == AUTO_CALCULATED_NAME


def resolve_auto_reason(
    account: Account,
    balance_type_name: Optional[str],
    snapshot_count: int,
    transaction_count: int,
) -> AutoReason:
    """Return the first rule that applies, in priority order."""
    if account.is_auto_calculated:
        return AutoReason.FLAG
    if is_auto_calculated_name(balance_type_name):
        return AutoReason.BALANCE_TYPE
    if snapshot_count == 0 and transaction_count > 0:
        return AutoReason.INFERRED
    return AutoReason.NONE


def resolve_mode(
    account: Account,
    balance_type_name: Optional[str],
    snapshot_count: int,
    transaction_count: int,
) -> BalanceMode:
    """Resolve the balance mode of an account.

    Args:
        account: Account to resolve
        balance_type_name: Name of the account's balance type, if any
        snapshot_count: Number of balance snapshots the account owns
        transaction_count: Number of transactions the account owns

    Returns:
        BalanceMode.TRANSACTION_SUM when the account is flagged, carries the
        auto-calculated balance type, or only ever received transactions;
        BalanceMode.SNAPSHOT otherwise
    """
    reason = resolve_auto_reason(account, balance_type_name, snapshot_count, transaction_count)
    if reason is AutoReason.NONE:
        return BalanceMode.SNAPSHOT
    return BalanceMode.TRANSACTION_SUM


def sum_transactions(
    transactions: Iterable[Transaction], cutoff: Optional[datetime] = None
) -> Decimal:
    """Sum transactions that count toward totals.

    The auto-calculated timestamp is deliberately not used as a lower bound:
    the whole history is summed. ``cutoff`` only limits the sum to
    transactions dated at or before a point in time, for historical anchors.
    """
    total = ZERO
    for txn in transactions:
        if not txn.counts_toward_totals:
            continue
        if cutoff is not None and to_utc(txn.date) > cutoff:
            continue
        total += finite_or_zero(txn.value, context=f"transaction {txn.id}")
    return total


def account_current_value(
    account: Account,
    balance_type_name: Optional[str],
    snapshots: Sequence[Snapshot],
    transactions: Sequence[Transaction],
    as_of: Optional[datetime] = None,
) -> tuple[Decimal, BalanceMode]:
    """Current value of an account together with the mode that produced it.

    With ``as_of`` the value is the one the account had at that instant:
    later snapshots and transactions are ignored.
    """
    mode = resolve_mode(account, balance_type_name, len(snapshots), len(transactions))
    if mode is BalanceMode.TRANSACTION_SUM:
        return sum_transactions(transactions, cutoff=as_of), mode
    if as_of is not None:
        return snapshot_value(latest_at_or_before(snapshots, as_of)), mode
    return snapshot_value(select_latest(snapshots)), mode
