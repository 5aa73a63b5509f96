"""Database layer for propfin application."""

from propfin.database.base import Database, DataSourceError
from propfin.database.factories import create_sqlite_database

__all__ = ["Database", "DataSourceError", "create_sqlite_database"]
