"""Builds the shop's SQLite database from a path, the environment or the default location."""

import os
from pathlib import Path
from typing import Optional

from repairshop.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "REPAIRSHOP_DB_PATH"
DEFAULT_DB_DIR = Path.home() / ".repairshop"


def default_database_path() -> str:
    """Return the per-user shop database, creating its directory on first use."""
    DEFAULT_DB_DIR.mkdir(parents=True, exist_ok=True)
    return str(DEFAULT_DB_DIR / "repairshop.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Open the shop database.

    Args:
        database_path: SQLite file holding customers, jobs, quotes and invoices.
            Falls back to $REPAIRSHOP_DB_PATH, then ~/.repairshop/repairshop.db.
    """
    path = database_path or os.environ.get(DB_PATH_ENV) or default_database_path()
    return SQLAlchemyDatabase(f"sqlite:///{path}")
