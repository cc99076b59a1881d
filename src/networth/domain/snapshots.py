"""Latest-snapshot selection for accounts and assets."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from networth.domain.entities import Snapshot
from networth.utils.periods import to_utc

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def snapshot_sort_key(snapshot: Snapshot) -> tuple[datetime, datetime, int]:
    """Total order for snapshots: as_of, then created, then id."""
    return (to_utc(snapshot.as_of), to_utc(snapshot.created_at), snapshot.id)


def select_latest(snapshots: Iterable[Snapshot]) -> Optional[Snapshot]:
    """Select the snapshot representing "now" for one owner.

    The newest ``as_of`` wins; ties fall back to the newest ``created``
    timestamp and finally to the highest id, so bulk-imported rows with
    identical timestamps still resolve deterministically.

    Returns:
        The winning snapshot, or None when there are none
    """
    return max(snapshots, key=snapshot_sort_key, default=None)


def latest_at_or_before(snapshots: Iterable[Snapshot], cutoff: datetime) -> Optional[Snapshot]:
    """Latest snapshot whose ``as_of`` is at or before ``cutoff``."""
    cutoff = to_utc(cutoff)
    return select_latest(s for s in snapshots if to_utc(s.as_of) <= cutoff)


def finite_or_zero(value: Any, context: str = "value") -> Decimal:
    """Coerce a numeric value to a finite Decimal, treating anomalies as zero."""
    if value is None:
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning("Skipping non-numeric %s: %r", context, value)
        return ZERO
    if not amount.is_finite():
        logger.warning("Skipping non-finite %s: %r", context, value)
        return ZERO
    return amount


def snapshot_value(snapshot: Optional[Snapshot]) -> Decimal:
    """Current value of a snapshot, or zero when there is none."""
    if snapshot is None:
        return ZERO
    try:
        value = snapshot.current_value
    except (InvalidOperation, TypeError):
        value = None
    return finite_or_zero(value, context=f"snapshot {snapshot.id}")


def group_by_owner(snapshots: Iterable[Snapshot]) -> dict[int, list[Snapshot]]:
    """Index snapshots by owning account or asset id."""
    grouped: dict[int, list[Snapshot]] = {}
    for snapshot in snapshots:
        grouped.setdefault(snapshot.owner_id, []).append(snapshot)
    return grouped
