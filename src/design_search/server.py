"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from design_search.config import (
    get_db_path,
    get_embedding_dim,
    get_embedding_provider,
    get_log_level,
    get_score_threshold,
    is_manager_mode,
)
from design_search.db.connection import create_connection
from design_search.search.embeddings import create_embedder
from design_search.search.engine import RetrievalEngine
from design_search.search.sync import IndexSync
from design_search.search.vector import VectorIndex
from design_search.store.artifact_store import ArtifactStore
from design_search.tools.search_maintain import register_search_maintain
from design_search.tools.template_search import register_template_search
from design_search.tools.template_similar import register_template_similar


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Own the database, embedding client, index, sync and engine lifecycles."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level().upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path)

    provider = get_embedding_provider()
    embedder = create_embedder(provider)
    index = VectorIndex(db, dim=get_embedding_dim())
    store = ArtifactStore(db)
    sync = IndexSync(store, index, embedder)
    engine = RetrievalEngine(db, embedder, index, score_threshold=get_score_threshold())

    if embedder is None:
        logger.warning("Unknown embedding provider %r — lexical-only mode", provider)
    elif not db.vector_enabled:
        logger.warning("sqlite-vec unavailable — lexical-only mode")
    elif await embedder.is_available():
        logger.info("Embedding provider %s available — vector search enabled", provider)
    else:
        logger.warning("Embedding provider %s unavailable — lexical-only until it returns", provider)

    try:
        yield {
            "db": db,
            "store": store,
            "embedder": embedder,
            "index": index,
            "sync": sync,
            "engine": engine,
        }
    finally:
        await sync.drain()
        if embedder is not None:
            await embedder.close()
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
This server finds design templates for a request. It searches two \
collections: curated templates and user projects that are eligible as \
templates (starred, or not of the default custom type).

SEARCHING — pick the right tool:
- template_search: Free-text request ("minimal summer sale story"). Blends \
semantic similarity with keyword matches on title, categories and tags. \
Narrow with category, aspect_ratio (1:1, 4:5, 9:16, 16:9) or artifact_type.
- template_similar: "More like this" for a template or project id.

Results list [id] kind/type | title, then the blended score and its parts. \
Items matched by both signals rank first among equal scores. When results \
are marked partial, the embedding service was unavailable and only keyword \
matches were used.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "design-search",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_template_search(mcp)
    register_template_similar(mcp)

    if is_manager_mode():
        register_search_maintain(mcp)

    return mcp
