"""Database layer for ledgerkit application."""

from ledgerkit.database.base import Database
from ledgerkit.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
