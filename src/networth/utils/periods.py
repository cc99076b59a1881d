"""Period window and date parsing utilities.

All month and year arithmetic is done on UTC calendar months, anchored to the
first instant of the UTC month that contains the reference time. Windows are
half-open: the start is inclusive and the end is exclusive, so consecutive
windows partition time without gaps.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from networth.domain.errors import ValidationError

PERIOD_TOKENS = (
    "this-month",
    "last-month",
    "last-3-months",
    "last-6-months",
    "last-12-months",
    "year-to-date",
    "last-year",
    "lifetime",
)

_TRAILING_MONTHS = {
    "last-3-months": 3,
    "last-6-months": 6,
    "last-12-months": 12,
}


@dataclass(frozen=True)
class PeriodRange:
    """Half-open ``[start, end)`` range; ``None`` means unbounded."""

    start: Optional[datetime]
    end: Optional[datetime]

    def contains(self, instant: datetime) -> bool:
        instant = to_utc(instant)
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None and instant >= self.end:
            return False
        return True


def to_utc(instant: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def month_start_utc(reference: datetime) -> datetime:
    """First instant of the UTC month containing ``reference``."""
    reference = to_utc(reference)
    return datetime(reference.year, reference.month, 1, tzinfo=UTC)


def add_months_utc(month_start: datetime, months: int) -> datetime:
    """Shift a UTC month start by whole months, staying on day 1."""
    shifted = month_start + relativedelta(months=months)
    return datetime(shifted.year, shifted.month, 1, tzinfo=UTC)


def year_start_utc(reference: datetime) -> datetime:
    reference = to_utc(reference)
    return datetime(reference.year, 1, 1, tzinfo=UTC)


def end_of_day_utc(instant: datetime) -> datetime:
    """Last representable instant of the UTC calendar day of ``instant``."""
    instant = to_utc(instant)
    return datetime.combine(instant.date(), time.max, tzinfo=UTC)


def resolve_period(token: str, reference: Optional[datetime] = None) -> PeriodRange:
    """Map a named period token to a concrete UTC range.

    Args:
        token: One of PERIOD_TOKENS (``all`` is accepted as an alias of ``lifetime``)
        reference: Anchor instant, defaults to now

    Returns:
        PeriodRange with an inclusive start and exclusive end

    Raises:
        ValidationError: If the token is not recognised
    """
    token = token.strip().lower()
    reference = to_utc(reference) if reference is not None else utc_now()
    this_month = month_start_utc(reference)

    if token == "this-month":
        return PeriodRange(this_month, None)

    if token == "last-month":
        return PeriodRange(add_months_utc(this_month, -1), this_month)

    if token in _TRAILING_MONTHS:
        months = _TRAILING_MONTHS[token]
        return PeriodRange(add_months_utc(this_month, -(months - 1)), None)

    if token == "year-to-date":
        return PeriodRange(year_start_utc(reference), None)

    if token == "last-year":
        this_year = year_start_utc(reference)
        return PeriodRange(this_year - relativedelta(years=1), this_year)

    if token in ("lifetime", "all"):
        return PeriodRange(None, None)

    raise ValidationError(
        f"Unknown period: '{token}'. Supported periods: {', '.join(PERIOD_TOKENS)}"
    )


def parse_date(date_str: str) -> datetime:
    """Parse a date string into an aware UTC datetime.

    Supports absolute dates ("2024-01-15", "January 15, 2024",
    "2024-01-15T12:30:00Z") and the relative words "now", "today",
    "yesterday" and "tomorrow". Plain dates resolve to midnight UTC.

    Raises:
        ValidationError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    now = utc_now()
    today = datetime.combine(now.date(), time.min, tzinfo=UTC)

    relative_dates = {
        "now": now,
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        parsed = date_parser.parse(date_str)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Could not parse date '{date_str}': {e}")
    return to_utc(parsed)


def utc_day(instant: datetime) -> date:
    """UTC calendar day of an instant."""
    return to_utc(instant).date()
