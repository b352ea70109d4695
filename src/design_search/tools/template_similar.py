"""template_similar MCP tool — nearest neighbours of an existing artifact."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from design_search.errors import DependencyUnavailable, InvalidQuery
from design_search.models.artifact import AspectRatio, SourceKind
from design_search.models.search import build_filters
from design_search.search.engine import RetrievalEngine
from design_search.tools.formatters import format_response

logger = logging.getLogger(__name__)


def register_template_similar(mcp: FastMCP) -> None:
    """Register the template_similar tool with the MCP server."""

    @mcp.tool()
    async def template_similar(
        artifact_id: Annotated[
            str, Field(description="Template or project to start from (e.g. tpl-00012)")
        ],
        source_kind: Annotated[
            SourceKind | None,
            Field(description="template or project; looked up in that order when omitted"),
        ] = None,
        limit: Annotated[
            int, Field(description="Maximum results to return (1-100)", ge=1, le=100)
        ] = 10,
        category: Annotated[
            str | None, Field(description="Only artifacts in this category")
        ] = None,
        aspect_ratio: Annotated[
            AspectRatio | None, Field(description="Only artifacts for this canvas: 1:1, 4:5, 9:16, 16:9")
        ] = None,
        artifact_type: Annotated[
            str | None, Field(description="Only artifacts of this type")
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Find artifacts that look like a given template or project.

        Uses the artifact's stored embedding (or re-embeds it) and never
        returns the artifact itself.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        engine: RetrievalEngine = ctx.lifespan_context["engine"]

        try:
            filters = build_filters(
                category=category, aspect_ratio=aspect_ratio, artifact_type=artifact_type
            )
            response = await engine.similar(
                artifact_id, source_kind=source_kind, limit=limit, filters=filters
            )
        except (InvalidQuery, DependencyUnavailable) as e:
            return f"Error: {e}"

        return format_response(response, header=f"Similar to {artifact_id}")
