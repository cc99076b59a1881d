"""Database layer for networth application."""

from networth.database.base import Database, Filter, SubscriptionHandle
from networth.database.factories import create_sqlite_database

__all__ = ["Database", "Filter", "SubscriptionHandle", "create_sqlite_database"]
