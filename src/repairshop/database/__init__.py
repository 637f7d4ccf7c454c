"""Database layer for repairshop application."""

from repairshop.database.base import Database
from repairshop.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
