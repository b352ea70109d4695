"""aiosqlite implementation of the Database protocol."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import sqlite_vec

if TYPE_CHECKING:
    import aiosqlite

    from design_search.db.backend import Cursor, Row

logger = logging.getLogger(__name__)


def fold(value: object) -> object:
    """Unicode case folding for SQL comparisons; SQLite's lower() only folds ASCII."""
    return value.casefold() if isinstance(value, str) else value


class SQLiteCursor:
    """Wraps aiosqlite.Cursor to satisfy the Cursor protocol."""

    def __init__(self, cursor: aiosqlite.Cursor) -> None:
        """Initialize with an aiosqlite cursor."""
        self._cursor = cursor

    @property
    def rowcount(self) -> int:
        """Rows touched by a DELETE/UPDATE, -1 when unknown."""
        rc = self._cursor.rowcount
        return rc if rc is not None else -1

    async def fetchone(self) -> Row | None:
        """Next row, or None when exhausted."""
        return await self._cursor.fetchone()

    async def fetchall(self) -> list[Row]:
        """All remaining rows."""
        return list(await self._cursor.fetchall())


class SQLiteBackend:
    """One aiosqlite connection with the search SQL functions installed.

    ``vector_enabled`` is False until ``load_vector_extension`` succeeds; the
    vector index then reports itself unavailable and search runs lexical-only.
    """

    def __init__(self, conn: aiosqlite.Connection, *, vector_enabled: bool = False) -> None:
        """Initialize with an open aiosqlite connection."""
        self._conn = conn
        self.vector_enabled = vector_enabled

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Run one statement."""
        return SQLiteCursor(await self._conn.execute(sql, params))

    async def executescript(self, sql: str) -> None:
        """Run a multi-statement script (schema DDL)."""
        await self._conn.executescript(sql)

    async def commit(self) -> None:
        """Commit pending writes."""
        await self._conn.commit()

    async def close(self) -> None:
        """Release the connection."""
        await self._conn.close()

    # -- Setup --

    async def register_functions(self) -> None:
        """Install ``fold`` used by lexical matching and category filters."""
        await self._conn.create_function("fold", 1, fold, deterministic=True)

    async def load_vector_extension(self) -> bool:
        """Load sqlite-vec through its native load() API. Returns vector_enabled."""
        raw = self._conn._conn

        def _load() -> None:
            raw.enable_load_extension(True)
            try:
                sqlite_vec.load(raw)
            finally:
                raw.enable_load_extension(False)

        try:
            await self._conn._execute(_load)  # type: ignore[no-untyped-call]
        except Exception:
            logger.warning("sqlite-vec extension not available — vector search disabled")
            self.vector_enabled = False
        else:
            logger.debug("sqlite-vec extension loaded")
            self.vector_enabled = True
        return self.vector_enabled

    async def apply_schema(self) -> None:
        """Create tables and indexes if missing."""
        from design_search.db.schema import apply_schema

        await apply_schema(self)

    # -- Maintenance --

    async def vacuum(self) -> str:
        """Run PRAGMA optimize and VACUUM. Returns a status line with the file size."""
        await self._conn.execute("PRAGMA optimize")
        await self._conn.executescript("VACUUM;")

        cursor = await self._conn.execute("PRAGMA database_list")
        db_row = await cursor.fetchone()
        if not db_row or not db_row[2]:
            return "Vacuum complete."
        try:
            size = os.path.getsize(db_row[2])
        except OSError:
            logger.debug("Could not stat database file %s", db_row[2])
            return "Vacuum complete."
        if size < 1024 * 1024:
            return f"Vacuum complete. Database size: {size / 1024:.1f} KB"
        return f"Vacuum complete. Database size: {size / (1024 * 1024):.1f} MB"
