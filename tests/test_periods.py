"""Tests for period windows and date parsing."""

from datetime import UTC, datetime, timedelta, timezone

import click
import pytest

from networth.cli.period_filters import resolve_cli_reference
from networth.domain.errors import ValidationError
from networth.utils.periods import (
    PeriodRange,
    add_months_utc,
    end_of_day_utc,
    month_start_utc,
    parse_date,
    resolve_period,
    to_utc,
)

from conftest import REFERENCE, utc


@pytest.mark.parametrize(
    "token,start,end",
    [
        ("this-month", utc(2024, 10, 1), None),
        ("last-month", utc(2024, 9, 1), utc(2024, 10, 1)),
        ("last-3-months", utc(2024, 8, 1), None),
        ("last-6-months", utc(2024, 5, 1), None),
        ("last-12-months", utc(2023, 11, 1), None),
        ("year-to-date", utc(2024, 1, 1), None),
        ("last-year", utc(2023, 1, 1), utc(2024, 1, 1)),
        ("lifetime", None, None),
        ("all", None, None),
    ],
)
def test_resolve_period(token, start, end):
    assert resolve_period(token, REFERENCE) == PeriodRange(start, end)


def test_resolve_period_crosses_year_boundary():
    reference = utc(2024, 1, 20)
    assert resolve_period("last-month", reference) == PeriodRange(utc(2023, 12, 1), utc(2024, 1, 1))
    assert resolve_period("last-3-months", reference).start == utc(2023, 11, 1)


def test_resolve_period_normalizes_token():
    assert resolve_period("  This-Month ", REFERENCE).start == utc(2024, 10, 1)


def test_resolve_period_converts_aware_reference_to_utc():
    # 01:00 on Nov 1st at +05:00 is still October in UTC
    reference = datetime(2024, 11, 1, 1, 0, tzinfo=timezone(timedelta(hours=5)))
    assert resolve_period("this-month", reference).start == utc(2024, 10, 1)


def test_resolve_period_treats_naive_reference_as_utc():
    assert resolve_period("this-month", datetime(2024, 10, 15)).start == utc(2024, 10, 1)


def test_resolve_period_unknown_token():
    with pytest.raises(ValidationError) as excinfo:
        resolve_period("last-fortnight", REFERENCE)
    assert "Supported periods" in str(excinfo.value)


def test_period_range_is_half_open():
    window = resolve_period("last-month", REFERENCE)
    assert window.contains(utc(2024, 9, 1))
    assert window.contains(utc(2024, 9, 30, 23, 59))
    assert not window.contains(utc(2024, 10, 1))
    assert not window.contains(utc(2024, 8, 31, 23, 59))


def test_unbounded_range_contains_everything():
    assert PeriodRange(None, None).contains(utc(1970, 1, 1))


def test_month_helpers():
    assert month_start_utc(REFERENCE) == utc(2024, 10, 1)
    assert add_months_utc(utc(2024, 3, 1), -1) == utc(2024, 2, 1)
    assert add_months_utc(utc(2024, 12, 1), 1) == utc(2025, 1, 1)


def test_end_of_day_utc():
    cutoff = end_of_day_utc(utc(2024, 10, 8, 9, 30))
    assert cutoff.date() == utc(2024, 10, 8).date()
    assert cutoff > utc(2024, 10, 8, 23, 59, 59)
    assert cutoff < utc(2024, 10, 9)


def test_to_utc():
    assert to_utc(datetime(2024, 1, 1)).tzinfo is UTC
    shifted = to_utc(datetime(2024, 1, 1, 5, 0, tzinfo=timezone(timedelta(hours=5))))
    assert shifted == utc(2024, 1, 1)


def test_parse_absolute_date():
    assert parse_date("2024-01-15") == utc(2024, 1, 15)


def test_parse_date_with_offset():
    assert parse_date("2024-01-15T12:30:00+02:00") == utc(2024, 1, 15, 10, 30)


def test_parse_relative_dates():
    today = datetime.now(UTC).date()
    assert parse_date("today").date() == today
    assert parse_date("yesterday").date() == today - timedelta(days=1)
    assert parse_date("tomorrow").date() == today + timedelta(days=1)


def test_parse_invalid_date():
    with pytest.raises(ValidationError):
        parse_date("not a date")


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_resolve_cli_reference_passes_none_through():
    assert resolve_cli_reference(_ctx(), None) is None


def test_resolve_cli_reference_rejects_bad_date(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_reference(_ctx(), "someday")

    assert excinfo.value.exit_code == 1
    assert "Invalid reference date" in capsys.readouterr().err
