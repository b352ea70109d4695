"""Query helpers for common database operations."""

import json
from datetime import UTC, datetime
from typing import Any

from design_search.db.backend import Database, Row
from design_search.models.artifact import (
    AspectRatio,
    ProjectRecord,
    ProjectType,
    SourceKind,
    TemplateRecord,
    TemplateStatus,
)

TABLES = {SourceKind.TEMPLATE: "templates", SourceKind.PROJECT: "projects"}
ID_PREFIXES = {SourceKind.TEMPLATE: "tpl", SourceKind.PROJECT: "prj"}


async def next_seq(db: Database) -> int:
    """Get and increment the store-wide insertion counter."""
    cursor = await db.execute("SELECT next_seq FROM artifact_seq")
    row = await cursor.fetchone()
    if row is None:
        raise RuntimeError("artifact_seq table is empty")
    seq = row[0]
    await db.execute("UPDATE artifact_seq SET next_seq = ?", (seq + 1,))
    return int(seq)


def make_artifact_id(source_kind: SourceKind, seq: int) -> str:
    """Format a generated id, e.g. ``tpl-00007``."""
    return f"{ID_PREFIXES[source_kind]}-{seq:05d}"


def row_to_template(row: Row) -> TemplateRecord:
    """Convert a database row to a TemplateRecord."""
    return TemplateRecord(
        id=row["id"],
        seq=row["seq"],
        title=row["title"],
        slug=row["slug"],
        description=row["description"],
        artifact_type=row["artifact_type"],
        aspect_ratio=AspectRatio(row["aspect_ratio"]) if row["aspect_ratio"] else None,
        categories=json.loads(row["categories"]),
        tags=json.loads(row["tags"]),
        popularity=row["popularity"],
        status=TemplateStatus(row["status"]),
        thumbnail_url=row["thumbnail_url"],
        has_embedding=bool(row["has_embedding"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_project(row: Row) -> ProjectRecord:
    """Convert a database row to a ProjectRecord."""
    return ProjectRecord(
        id=row["id"],
        seq=row["seq"],
        title=row["title"],
        description=row["description"],
        artifact_type=ProjectType(row["artifact_type"]),
        aspect_ratio=AspectRatio(row["aspect_ratio"]) if row["aspect_ratio"] else None,
        categories=json.loads(row["categories"]),
        tags=json.loads(row["tags"]),
        owner_id=row["owner_id"],
        starred=bool(row["starred"]),
        thumbnail=row["thumbnail"],
        has_embedding=bool(row["has_embedding"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_artifact(row: Row, source_kind: SourceKind) -> TemplateRecord | ProjectRecord:
    """Convert a row from either collection."""
    if source_kind == SourceKind.TEMPLATE:
        return row_to_template(row)
    return row_to_project(row)


async def insert_template(db: Database, template: TemplateRecord) -> None:
    """Insert a new template."""
    await db.execute(
        """INSERT INTO templates
        (id, seq, title, slug, description, artifact_type, aspect_ratio, categories, tags,
         popularity, status, thumbnail_url, has_embedding, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            template.id,
            template.seq,
            template.title,
            template.slug,
            template.description,
            template.artifact_type,
            _enum_value(template.aspect_ratio),
            json.dumps(template.categories),
            json.dumps(template.tags),
            template.popularity,
            template.status.value,
            template.thumbnail_url,
            int(template.has_embedding),
            _iso(template.created_at),
            _iso(template.updated_at),
        ),
    )
    await db.commit()


async def update_template(db: Database, template: TemplateRecord) -> None:
    """Update an existing template. seq and created_at never change."""
    await db.execute(
        """UPDATE templates SET
        title=?, slug=?, description=?, artifact_type=?, aspect_ratio=?, categories=?, tags=?,
        popularity=?, status=?, thumbnail_url=?, has_embedding=?, updated_at=?
        WHERE id=?""",
        (
            template.title,
            template.slug,
            template.description,
            template.artifact_type,
            _enum_value(template.aspect_ratio),
            json.dumps(template.categories),
            json.dumps(template.tags),
            template.popularity,
            template.status.value,
            template.thumbnail_url,
            int(template.has_embedding),
            _iso(template.updated_at),
            template.id,
        ),
    )
    await db.commit()


async def insert_project(db: Database, project: ProjectRecord) -> None:
    """Insert a new project."""
    await db.execute(
        """INSERT INTO projects
        (id, seq, title, description, artifact_type, aspect_ratio, categories, tags,
         owner_id, starred, thumbnail, has_embedding, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            project.id,
            project.seq,
            project.title,
            project.description,
            project.artifact_type.value,
            _enum_value(project.aspect_ratio),
            json.dumps(project.categories),
            json.dumps(project.tags),
            project.owner_id,
            int(project.starred),
            project.thumbnail,
            int(project.has_embedding),
            _iso(project.created_at),
            _iso(project.updated_at),
        ),
    )
    await db.commit()


async def update_project(db: Database, project: ProjectRecord) -> None:
    """Update an existing project. seq and created_at never change."""
    await db.execute(
        """UPDATE projects SET
        title=?, description=?, artifact_type=?, aspect_ratio=?, categories=?, tags=?,
        owner_id=?, starred=?, thumbnail=?, has_embedding=?, updated_at=?
        WHERE id=?""",
        (
            project.title,
            project.description,
            project.artifact_type.value,
            _enum_value(project.aspect_ratio),
            json.dumps(project.categories),
            json.dumps(project.tags),
            project.owner_id,
            int(project.starred),
            project.thumbnail,
            int(project.has_embedding),
            _iso(project.updated_at),
            project.id,
        ),
    )
    await db.commit()


async def get_artifact(
    db: Database, artifact_id: str, source_kind: SourceKind
) -> TemplateRecord | ProjectRecord | None:
    """Get a single artifact by id from the given collection."""
    table = TABLES[source_kind]
    cursor = await db.execute(f"SELECT * FROM {table} WHERE id = ?", (artifact_id,))  # noqa: S608
    row = await cursor.fetchone()
    return row_to_artifact(row, source_kind) if row else None


async def find_by_ids(
    db: Database, artifact_ids: list[str], source_kind: SourceKind
) -> list[TemplateRecord | ProjectRecord]:
    """Batch-fetch artifacts by id from one collection. Missing ids are skipped."""
    if not artifact_ids:
        return []
    table = TABLES[source_kind]
    placeholders = ",".join("?" for _ in artifact_ids)
    cursor = await db.execute(
        f"SELECT * FROM {table} WHERE id IN ({placeholders})",  # noqa: S608
        list(artifact_ids),
    )
    return [row_to_artifact(row, source_kind) for row in await cursor.fetchall()]


async def delete_artifact(db: Database, artifact_id: str, source_kind: SourceKind) -> bool:
    """Hard-delete an artifact. Returns True if a row was removed."""
    table = TABLES[source_kind]
    cursor = await db.execute(f"DELETE FROM {table} WHERE id = ?", (artifact_id,))  # noqa: S608
    await db.commit()
    return cursor.rowcount > 0


async def set_has_embedding(
    db: Database, artifact_id: str, source_kind: SourceKind, has_embedding: bool
) -> None:
    """Flip the has_embedding flag for one artifact."""
    table = TABLES[source_kind]
    await db.execute(
        f"UPDATE {table} SET has_embedding = ? WHERE id = ?",  # noqa: S608
        (int(has_embedding), artifact_id),
    )
    await db.commit()


async def get_db_stats(db: Database) -> dict[str, Any]:
    """Return document, searchable and vector counts per collection."""
    stats: dict[str, Any] = {}

    cursor = await db.execute(
        "SELECT COUNT(*) AS total,"
        " COALESCE(SUM(status = 'active'), 0) AS searchable,"
        " COALESCE(SUM(status = 'active' AND has_embedding = 0), 0) AS pending"
        " FROM templates"
    )
    row = await cursor.fetchone()
    if row is None:
        raise RuntimeError("COUNT query returned no rows")
    stats["templates"] = {
        "total": row["total"],
        "searchable": row["searchable"],
        "pending": row["pending"],
    }

    cursor = await db.execute(
        "SELECT COUNT(*) AS total,"
        " COALESCE(SUM(starred = 1 OR artifact_type != 'custom'), 0) AS searchable,"
        " COALESCE(SUM((starred = 1 OR artifact_type != 'custom') AND has_embedding = 0), 0)"
        " AS pending"
        " FROM projects"
    )
    row = await cursor.fetchone()
    if row is None:
        raise RuntimeError("COUNT query returned no rows")
    stats["projects"] = {
        "total": row["total"],
        "searchable": row["searchable"],
        "pending": row["pending"],
    }

    cursor = await db.execute(
        "SELECT source_kind, COUNT(*) AS cnt FROM artifact_vectors"
        " GROUP BY source_kind ORDER BY source_kind"
    )
    stats["vectors"] = {row["source_kind"]: row["cnt"] for row in await cursor.fetchall()}
    return stats


def now() -> datetime:
    """Current UTC time, the timestamp written on create and update."""
    return datetime.now(UTC)


def _iso(value: datetime | None) -> str:
    return (value or now()).isoformat()


def _enum_value(value: AspectRatio | None) -> str | None:
    return value.value if value is not None else None
