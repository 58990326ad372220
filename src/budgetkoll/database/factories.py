"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from budgetkoll.database.sqlalchemy_db import SQLAlchemyDatabase


def default_sqlite_path() -> str:
    """Return ``~/.budgetkoll/budgetkoll.db``, creating the directory."""
    db_dir = Path.home() / ".budgetkoll"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "budgetkoll.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BUDGETKOLL_DB_PATH
            environment variable, then defaults to ~/.budgetkoll/budgetkoll.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("BUDGETKOLL_DB_PATH")

    if database_path is None:
        database_path = default_sqlite_path()

    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_database(
    database_url: Optional[str] = None, database_path: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create a database from a SQLAlchemy URL, falling back to SQLite.

    Args:
        database_url: SQLAlchemy URL (e.g. a PostgreSQL URL). If None, checks
            BUDGETKOLL_DATABASE_URL.
        database_path: SQLite file used when no URL is configured

    Returns:
        SQLAlchemyDatabase instance
    """
    if database_url is None:
        database_url = os.environ.get("BUDGETKOLL_DATABASE_URL")

    if database_url:
        return SQLAlchemyDatabase(database_url)
    return create_sqlite_database(database_path)
