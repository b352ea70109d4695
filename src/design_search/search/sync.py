"""Write-side sync: keep the vector index in line with document writes."""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from design_search.errors import DependencyUnavailable, VectorizationFailed
from design_search.models.artifact import (
    ProjectRecord,
    SourceKind,
    TemplateRecord,
    VectorMetadata,
)
from design_search.search.embeddings import EmbeddingProvider
from design_search.search.vector import VectorIndex
from design_search.store.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)


class IndexSync:
    """Embeds and upserts saved artifacts, removes deleted ones.

    The ``schedule_*`` hooks are fire-and-forget relative to the write that
    triggered them. A failed vectorization is logged and leaves the record's
    ``has_embedding`` flag unset so ``reindex`` picks it up later.
    """

    def __init__(
        self,
        store: ArtifactStore,
        index: VectorIndex,
        embedder: EmbeddingProvider | None,
    ) -> None:
        """Initialize with the document store, vector index and embedder."""
        self.store = store
        self.index = index
        self.embedder = embedder
        self._tasks: set[asyncio.Task[Any]] = set()

    async def index_upsert(
        self,
        artifact_id: str,
        source_kind: SourceKind,
        text: str,
        metadata: VectorMetadata,
    ) -> None:
        """Embed ``text`` and store it for the artifact. Raises VectorizationFailed."""
        if self.embedder is None:
            raise VectorizationFailed("No embedding provider configured")
        try:
            embedding = await self.embedder.embed(text)
        except DependencyUnavailable as e:
            raise VectorizationFailed(f"Could not embed {source_kind} {artifact_id}") from e

        await self.index.upsert(artifact_id, source_kind, embedding, metadata)
        await self.store.mark_embedding(artifact_id, source_kind, True)

    async def index_remove(self, artifact_id: str, source_kind: SourceKind | None = None) -> int:
        """Drop the artifact's vector. Absent ids are a no-op."""
        return await self.index.remove(artifact_id, source_kind)

    async def template_saved(self, template: TemplateRecord) -> bool:
        """Sync one template after create or update. Returns True if it is now indexed."""
        return await self._artifact_saved(template)

    async def project_saved(self, project: ProjectRecord) -> bool:
        """Sync one project after create or update. Returns True if it is now indexed."""
        return await self._artifact_saved(project)

    async def artifact_deleted(self, artifact_id: str, source_kind: SourceKind) -> int:
        """Sync a hard delete of the source record."""
        removed = await self.index_remove(artifact_id, source_kind)
        if removed:
            logger.info("Removed vector for deleted %s %s", source_kind.value, artifact_id)
        return removed

    async def _artifact_saved(self, artifact: TemplateRecord | ProjectRecord) -> bool:
        if not artifact.is_searchable:
            # Archived templates and un-starred custom projects leave the index
            await self.index.remove(artifact.id, artifact.source_kind)
            return False
        try:
            await self.index_upsert(
                artifact.id,
                artifact.source_kind,
                artifact.embedding_text,
                VectorMetadata.from_artifact(artifact),
            )
        except VectorizationFailed:
            logger.warning(
                "Failed to vectorize %s %s, queued for retry",
                artifact.source_kind.value,
                artifact.id,
                exc_info=True,
            )
            return False
        return True

    def schedule_template_saved(self, template: TemplateRecord) -> asyncio.Task[Any]:
        """Run ``template_saved`` in the background."""
        return self._spawn(self.template_saved(template), f"template {template.id}")

    def schedule_project_saved(self, project: ProjectRecord) -> asyncio.Task[Any]:
        """Run ``project_saved`` in the background."""
        return self._spawn(self.project_saved(project), f"project {project.id}")

    def schedule_deleted(self, artifact_id: str, source_kind: SourceKind) -> asyncio.Task[Any]:
        """Run ``artifact_deleted`` in the background."""
        return self._spawn(
            self.artifact_deleted(artifact_id, source_kind), f"{source_kind.value} {artifact_id}"
        )

    @property
    def pending(self) -> int:
        """Number of background sync tasks still in flight."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight background sync to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def prune(self) -> int:
        """Remove vectors whose record was deleted or is no longer searchable."""
        pruned = 0
        for artifact_id, source_kind in await self.store.orphaned_vectors():
            pruned += await self.index.remove(artifact_id, source_kind)
        if pruned:
            logger.info("Pruned %d stale vector(s)", pruned)
        return pruned

    async def reindex(self, force: bool = False) -> tuple[int, int, int]:
        """Prune stale vectors, then vectorize artifacts missing an embedding.

        With force, every searchable artifact is re-vectorized. Returns
        (processed, succeeded, pruned).
        """
        pruned = await self.prune()
        if force:
            artifacts = await self.store.all_searchable()
        else:
            artifacts = await self.store.pending_embeddings(limit=10000)

        succeeded = 0
        for artifact in artifacts:
            if await self._artifact_saved(artifact):
                succeeded += 1
        return len(artifacts), succeeded, pruned

    def _spawn(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(self._guard(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _guard(coro: Coroutine[Any, Any, Any], label: str) -> None:
        try:
            await coro
        except Exception:
            logger.warning("Background index sync failed for %s", label, exc_info=True)
