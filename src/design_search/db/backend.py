"""Database seam shared by the artifact store, lexical matcher and vector index.

Everything above ``db/`` talks to these protocols with ``?`` placeholders and
SQLite-flavored SQL. Besides the stock SQL functions, implementations must
provide ``fold(text)`` (Unicode case folding) and, when ``vector_enabled``
is set, sqlite-vec's ``vec_distance_cosine``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Row(Protocol):
    """A result row addressable by column name or position."""

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """Result of Database.execute()."""

    @property
    def rowcount(self) -> int:
        """Rows touched by a DELETE/UPDATE, -1 when unknown."""
        ...

    async def fetchone(self) -> Row | None:
        """Next row, or None when exhausted."""
        ...

    async def fetchall(self) -> list[Row]:
        """All remaining rows."""
        ...


@runtime_checkable
class Database(Protocol):
    """Async connection holding the templates, projects and artifact_vectors tables."""

    vector_enabled: bool

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Run one statement."""
        ...

    async def executescript(self, sql: str) -> None:
        """Run a multi-statement script (schema DDL)."""
        ...

    async def commit(self) -> None:
        """Commit pending writes."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...
