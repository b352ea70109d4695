"""Database connection management with sqlite-vec."""

import logging
from pathlib import Path

import aiosqlite

from design_search.config import get_db_path
from design_search.db.sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


async def create_connection(db_path: Path | str | None = None) -> SQLiteBackend:
    """Create and initialize a database connection.

    For in-memory databases, pass ":memory:". Vector search is disabled (but
    the database stays usable) when the sqlite-vec extension cannot load.
    """
    db_path = str(db_path or get_db_path())

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row

    # Enable WAL mode for better concurrent read performance
    await conn.execute("PRAGMA journal_mode=WAL")

    db = SQLiteBackend(conn)
    await db.register_functions()
    await db.load_vector_extension()
    await db.apply_schema()
    logger.debug("Opened %s (vector search %s)", db_path, "on" if db.vector_enabled else "off")
    return db
