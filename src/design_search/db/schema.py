"""DDL and migrations for the design-search database."""

from design_search.db.backend import Database

SCHEMA_VERSION = 1

# categories and tags are JSON arrays; filters and lexical matching read them
# through json_each().
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS artifact_seq (
    next_seq INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS templates (
    id TEXT PRIMARY KEY,
    seq INTEGER NOT NULL,
    title TEXT NOT NULL,
    slug TEXT,
    description TEXT NOT NULL DEFAULT '',
    artifact_type TEXT NOT NULL,
    aspect_ratio TEXT,
    categories TEXT NOT NULL DEFAULT '[]',
    tags TEXT NOT NULL DEFAULT '[]',
    popularity INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'active',
    thumbnail_url TEXT,
    has_embedding INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_templates_seq ON templates(seq);
CREATE INDEX IF NOT EXISTS idx_templates_status ON templates(status);

CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    seq INTEGER NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    artifact_type TEXT NOT NULL DEFAULT 'custom',
    aspect_ratio TEXT,
    categories TEXT NOT NULL DEFAULT '[]',
    tags TEXT NOT NULL DEFAULT '[]',
    owner_id TEXT,
    starred INTEGER NOT NULL DEFAULT 0,
    thumbnail TEXT,
    has_embedding INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_projects_seq ON projects(seq);
CREATE INDEX IF NOT EXISTS idx_projects_owner ON projects(owner_id);

-- seq is re-issued on every upsert (delete then insert), so a larger seq
-- means a more recently indexed vector.
CREATE TABLE IF NOT EXISTS artifact_vectors (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    artifact_id TEXT NOT NULL,
    source_kind TEXT NOT NULL,
    embedding BLOB NOT NULL,
    dim INTEGER NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    artifact_type TEXT,
    aspect_ratio TEXT,
    categories TEXT NOT NULL DEFAULT '[]',
    indexed_at TEXT NOT NULL,
    UNIQUE(artifact_id, source_kind)
);

CREATE INDEX IF NOT EXISTS idx_vectors_artifact ON artifact_vectors(artifact_id);
"""

INIT_SEQ_SQL = """
INSERT INTO artifact_seq (next_seq)
SELECT 1 WHERE NOT EXISTS (SELECT 1 FROM artifact_seq);
"""


async def apply_schema(db: Database) -> None:
    """Apply the database schema."""
    await db.executescript(SCHEMA_SQL)
    await db.execute(INIT_SEQ_SQL)

    cursor = await db.execute("SELECT version FROM schema_version")
    row = await cursor.fetchone()
    if row is None:
        await db.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

    await db.commit()
