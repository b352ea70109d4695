"""template_search MCP tool — hybrid vector + lexical template search."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from design_search.config import get_text_weight, get_vector_weight
from design_search.errors import DependencyUnavailable, InvalidQuery
from design_search.models.artifact import AspectRatio
from design_search.models.search import build_filters, build_query
from design_search.search.engine import RetrievalEngine
from design_search.tools.formatters import format_response

logger = logging.getLogger(__name__)


def register_template_search(mcp: FastMCP) -> None:
    """Register the template_search tool with the MCP server."""

    @mcp.tool()
    async def template_search(
        query: Annotated[str, Field(description="What the design should be about")],
        category: Annotated[
            str | None, Field(description="Only artifacts in this category")
        ] = None,
        aspect_ratio: Annotated[
            AspectRatio | None, Field(description="Only artifacts for this canvas: 1:1, 4:5, 9:16, 16:9")
        ] = None,
        artifact_type: Annotated[
            str | None,
            Field(description="Only artifacts of this type (e.g. social, presentation, print)"),
        ] = None,
        limit: Annotated[
            int, Field(description="Maximum results to return (1-100)", ge=1, le=100)
        ] = 20,
        vector_weight: Annotated[
            float | None, Field(description="Weight of semantic similarity (default 0.7)", ge=0.0)
        ] = None,
        text_weight: Annotated[
            float | None, Field(description="Weight of keyword matches (default 0.3)", ge=0.0)
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Find templates and template-eligible projects for a design request.

        Blends embedding similarity with case-insensitive keyword matches on
        title, categories and tags. Items found by both signals rank above
        single-signal items of equal score. If the embedding service is down,
        keyword results are still returned and flagged as partial.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        engine: RetrievalEngine = ctx.lifespan_context["engine"]

        try:
            search_query = build_query(
                text=query,
                filters=build_filters(
                    category=category, aspect_ratio=aspect_ratio, artifact_type=artifact_type
                ),
                limit=limit,
                weights={
                    "vector": get_vector_weight() if vector_weight is None else vector_weight,
                    "text": get_text_weight() if text_weight is None else text_weight,
                },
            )
            response = await engine.search(search_query)
        except (InvalidQuery, DependencyUnavailable) as e:
            return f"Error: {e}"

        return format_response(response)
