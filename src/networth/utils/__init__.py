"""Utility functions for networth."""

from networth.utils.amount_parser import parse_amount
from networth.utils.formatting import format_currency, format_percent
from networth.utils.periods import parse_date, resolve_period

__all__ = ["parse_amount", "format_currency", "format_percent", "parse_date", "resolve_period"]
