"""CRUD operations for templates and projects."""

import logging
from typing import Any, cast

from design_search.db.backend import Database
from design_search.db.queries import (
    delete_artifact,
    find_by_ids,
    get_artifact,
    get_db_stats,
    insert_project,
    insert_template,
    make_artifact_id,
    next_seq,
    now,
    row_to_project,
    row_to_template,
    set_has_embedding,
    update_project,
    update_template,
)
from design_search.models.artifact import (
    AspectRatio,
    ProjectRecord,
    ProjectType,
    SourceKind,
    TemplateRecord,
    TemplateStatus,
)

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "seq", "source_kind", "created_at"}

_PENDING_TEMPLATES_SQL = (
    "SELECT * FROM templates WHERE status = 'active' AND has_embedding = 0 ORDER BY seq LIMIT ?"
)
_PENDING_PROJECTS_SQL = (
    "SELECT * FROM projects WHERE (starred = 1 OR artifact_type != 'custom')"
    " AND has_embedding = 0 ORDER BY seq LIMIT ?"
)
_SEARCHABLE_TEMPLATES_SQL = "SELECT * FROM templates WHERE status = 'active' ORDER BY seq"
_SEARCHABLE_PROJECTS_SQL = (
    "SELECT * FROM projects WHERE starred = 1 OR artifact_type != 'custom' ORDER BY seq"
)
_ORPHANED_VECTORS_SQL = """
    SELECT v.artifact_id, v.source_kind FROM artifact_vectors v
    WHERE (v.source_kind = 'template' AND NOT EXISTS (
        SELECT 1 FROM templates t WHERE t.id = v.artifact_id AND t.status = 'active'))
    OR (v.source_kind = 'project' AND NOT EXISTS (
        SELECT 1 FROM projects p WHERE p.id = v.artifact_id
        AND (p.starred = 1 OR p.artifact_type != 'custom')))
    ORDER BY v.seq
"""


class ArtifactStore:
    """Document store for the two searchable collections."""

    def __init__(self, db: Database):
        """Initialize with a database connection."""
        self.db = db

    async def create_template(
        self,
        title: str,
        *,
        artifact_type: str = "social",
        description: str = "",
        slug: str | None = None,
        aspect_ratio: AspectRatio | str | None = None,
        categories: list[str] | None = None,
        tags: list[str] | None = None,
        popularity: int = 0,
        status: TemplateStatus | str = TemplateStatus.ACTIVE,
        thumbnail_url: str | None = None,
        template_id: str | None = None,
    ) -> TemplateRecord:
        """Create a new template. The id is generated unless given."""
        seq = await next_seq(self.db)
        created = now()
        template = TemplateRecord.model_validate(
            {
                "id": template_id or make_artifact_id(SourceKind.TEMPLATE, seq),
                "seq": seq,
                "title": title,
                "slug": slug,
                "description": description,
                "artifact_type": artifact_type,
                "aspect_ratio": aspect_ratio,
                "categories": categories or [],
                "tags": tags or [],
                "popularity": popularity,
                "status": status,
                "thumbnail_url": thumbnail_url,
                "created_at": created,
                "updated_at": created,
            }
        )
        await insert_template(self.db, template)
        logger.info("Created template %s: %s", template.id, title)
        return template

    async def create_project(
        self,
        title: str,
        *,
        artifact_type: ProjectType | str = ProjectType.CUSTOM,
        description: str = "",
        aspect_ratio: AspectRatio | str | None = None,
        categories: list[str] | None = None,
        tags: list[str] | None = None,
        owner_id: str | None = None,
        starred: bool = False,
        thumbnail: str | None = None,
        project_id: str | None = None,
    ) -> ProjectRecord:
        """Create a new project. The id is generated unless given."""
        seq = await next_seq(self.db)
        created = now()
        project = ProjectRecord.model_validate(
            {
                "id": project_id or make_artifact_id(SourceKind.PROJECT, seq),
                "seq": seq,
                "title": title,
                "description": description,
                "artifact_type": artifact_type,
                "aspect_ratio": aspect_ratio,
                "categories": categories or [],
                "tags": tags or [],
                "owner_id": owner_id,
                "starred": starred,
                "thumbnail": thumbnail,
                "created_at": created,
                "updated_at": created,
            }
        )
        await insert_project(self.db, project)
        logger.info("Created project %s: %s", project.id, title)
        return project

    async def update_template(self, template_id: str, **changes: Any) -> TemplateRecord:
        """Apply field changes to a template. Resets has_embedding for re-vectorization."""
        existing = await get_artifact(self.db, template_id, SourceKind.TEMPLATE)
        if existing is None:
            raise ValueError(f"Template {template_id} not found")
        updated = cast(TemplateRecord, _apply_changes(existing, changes))
        await update_template(self.db, updated)
        logger.info("Updated template %s", template_id)
        return updated

    async def update_project(self, project_id: str, **changes: Any) -> ProjectRecord:
        """Apply field changes to a project. Resets has_embedding for re-vectorization."""
        existing = await get_artifact(self.db, project_id, SourceKind.PROJECT)
        if existing is None:
            raise ValueError(f"Project {project_id} not found")
        updated = cast(ProjectRecord, _apply_changes(existing, changes))
        await update_project(self.db, updated)
        logger.info("Updated project %s", project_id)
        return updated

    async def delete(self, artifact_id: str, source_kind: SourceKind) -> bool:
        """Delete an artifact. Returns False if it did not exist."""
        deleted = await delete_artifact(self.db, artifact_id, source_kind)
        if deleted:
            logger.info("Deleted %s %s", source_kind.value, artifact_id)
        return deleted

    async def get(
        self, artifact_id: str, source_kind: SourceKind
    ) -> TemplateRecord | ProjectRecord | None:
        """Get a single artifact."""
        return await get_artifact(self.db, artifact_id, source_kind)

    async def find_by_ids(
        self, artifact_ids: list[str], source_kind: SourceKind
    ) -> list[TemplateRecord | ProjectRecord]:
        """Batch-fetch artifacts from one collection in a single query."""
        return await find_by_ids(self.db, artifact_ids, source_kind)

    async def mark_embedding(
        self, artifact_id: str, source_kind: SourceKind, has_embedding: bool = True
    ) -> None:
        """Mark an artifact as having (or not having) an embedding."""
        await set_has_embedding(self.db, artifact_id, source_kind, has_embedding)

    async def pending_embeddings(self, limit: int = 100) -> list[TemplateRecord | ProjectRecord]:
        """Searchable artifacts still waiting for an embedding, oldest first."""
        cursor = await self.db.execute(_PENDING_TEMPLATES_SQL, (limit,))
        pending: list[TemplateRecord | ProjectRecord] = [
            row_to_template(row) for row in await cursor.fetchall()
        ]
        cursor = await self.db.execute(_PENDING_PROJECTS_SQL, (limit,))
        pending.extend(row_to_project(row) for row in await cursor.fetchall())
        pending.sort(key=lambda a: a.seq)
        return pending[:limit]

    async def all_searchable(self) -> list[TemplateRecord | ProjectRecord]:
        """Every artifact currently offered to search, in insertion order."""
        cursor = await self.db.execute(_SEARCHABLE_TEMPLATES_SQL)
        found: list[TemplateRecord | ProjectRecord] = [
            row_to_template(row) for row in await cursor.fetchall()
        ]
        cursor = await self.db.execute(_SEARCHABLE_PROJECTS_SQL)
        found.extend(row_to_project(row) for row in await cursor.fetchall())
        found.sort(key=lambda a: a.seq)
        return found

    async def orphaned_vectors(self) -> list[tuple[str, SourceKind]]:
        """Indexed vectors whose record was deleted or is no longer searchable."""
        cursor = await self.db.execute(_ORPHANED_VECTORS_SQL)
        return [(row[0], SourceKind(row[1])) for row in await cursor.fetchall()]

    async def counts(self) -> dict[str, Any]:
        """Document, searchable, pending and vector counts."""
        return await get_db_stats(self.db)


def _apply_changes(
    existing: TemplateRecord | ProjectRecord, changes: dict[str, Any]
) -> TemplateRecord | ProjectRecord:
    blocked = _IMMUTABLE_FIELDS & changes.keys()
    if blocked:
        raise ValueError(f"Cannot change {', '.join(sorted(blocked))}")
    unknown = changes.keys() - type(existing).model_fields.keys()
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")

    data = existing.model_dump()
    data.update(changes)
    data["updated_at"] = now()
    data["has_embedding"] = False  # Needs re-embedding
    return type(existing).model_validate(data)
