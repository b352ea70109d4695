"""search_maintain MCP tool — index maintenance operations."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from design_search.db.sqlite_backend import SQLiteBackend
from design_search.models.artifact import SourceKind
from design_search.search.embeddings import EmbeddingProvider
from design_search.search.sync import IndexSync
from design_search.store.artifact_store import ArtifactStore
from design_search.tools.formatters import format_stats

logger = logging.getLogger(__name__)

_ACTIONS = {"stats", "rebuild_embeddings", "remove", "vacuum"}


def register_search_maintain(mcp: FastMCP) -> None:
    """Register the search_maintain tool with the MCP server."""

    @mcp.tool()
    async def search_maintain(
        action: Annotated[
            str,
            Field(description="Maintenance action: stats, rebuild_embeddings, remove, vacuum"),
        ],
        artifact_id: Annotated[
            str | None, Field(description="Required for remove")
        ] = None,
        source_kind: Annotated[
            SourceKind | None,
            Field(description="For remove: template or project (all kinds when omitted)"),
        ] = None,
        force: Annotated[
            bool,
            Field(description="For rebuild_embeddings: re-embed ALL (not just pending)"),
        ] = False,
        ctx: Context | None = None,
    ) -> str:
        """Administrative maintenance for the search index.

        Requires DS_MANAGER=TRUE environment variable.

        Actions:
        - stats: Document counts, searchable counts, pending vectorizations, vectors
        - rebuild_embeddings: Prune stale vectors, retry pending vectorizations (force=True for all)
        - remove: Drop the vector for one artifact (requires artifact_id)
        - vacuum: Optimize database (PRAGMA optimize + VACUUM)
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        if action not in _ACTIONS:
            return f"Unknown action '{action}'. Use: {', '.join(sorted(_ACTIONS))}"

        lifespan = ctx.lifespan_context
        db: SQLiteBackend = lifespan["db"]
        store: ArtifactStore = lifespan["store"]
        sync: IndexSync = lifespan["sync"]
        embedder: EmbeddingProvider | None = lifespan["embedder"]

        if action == "stats":
            return format_stats(await store.counts())
        elif action == "rebuild_embeddings":
            return await _action_rebuild_embeddings(sync, embedder, force)
        elif action == "remove":
            return await _action_remove(sync, artifact_id, source_kind)
        elif action == "vacuum":
            return await db.vacuum()

        return "Action not implemented."


async def _action_rebuild_embeddings(
    sync: IndexSync, embedder: EmbeddingProvider | None, force: bool
) -> str:
    """Prune stale vectors and re-embed. force=True re-embeds all searchable, otherwise only pending."""
    if embedder is None or not await embedder.is_available():
        return "Embedding service is not available. Cannot rebuild embeddings."

    processed, succeeded, pruned = await sync.reindex(force=force)
    pruned_note = f" Pruned {pruned} stale vector(s)." if pruned else ""
    if not processed:
        return f"No artifacts need embedding.{pruned_note}"

    mode = "all searchable artifacts" if force else "pending artifacts"
    return (
        f"Rebuild embeddings ({mode}): {processed} processed,"
        f" {succeeded} succeeded, {processed - succeeded} failed.{pruned_note}"
    )


async def _action_remove(
    sync: IndexSync, artifact_id: str | None, source_kind: SourceKind | None
) -> str:
    """Drop an artifact's vector. Absent ids are not an error."""
    if not artifact_id:
        return "Error: artifact_id is required for remove."
    removed = await sync.index_remove(artifact_id, source_kind)
    if not removed:
        return f"No vector stored for {artifact_id}."
    logger.info("Removed %d vector(s) for %s", removed, artifact_id)
    return f"Removed {removed} vector(s) for {artifact_id}."
