"""Database connection and schema management."""

from design_search.db.backend import Cursor, Database, Row
from design_search.db.sqlite_backend import SQLiteBackend

__all__ = ["Cursor", "Database", "Row", "SQLiteBackend"]
