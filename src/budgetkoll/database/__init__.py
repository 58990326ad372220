"""Database layer for budgetkoll application."""

from budgetkoll.database.base import Database
from budgetkoll.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
