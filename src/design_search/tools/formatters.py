"""Compact output formatters for MCP tool responses."""

from typing import Any

from design_search.models.artifact import ProjectRecord, TemplateRecord
from design_search.models.search import RankedResult, SearchResponse


def format_artifact_header(artifact: TemplateRecord | ProjectRecord) -> str:
    """Format: [tpl-00012] template/social | Title (1:1)."""
    kind = artifact.source_kind.value
    line = f"[{artifact.id}] {kind}/{artifact.artifact_type} | {artifact.title}"
    if artifact.aspect_ratio:
        line += f" ({artifact.aspect_ratio.value})"
    return line


def format_artifact_meta(artifact: TemplateRecord | ProjectRecord) -> str:
    """Format: categories: a, b | #tag1 #tag2."""
    parts: list[str] = []
    if artifact.categories:
        parts.append("categories: " + ", ".join(artifact.categories))
    if artifact.tags:
        parts.append(" ".join(f"#{t}" for t in artifact.tags))
    return " | ".join(parts)


def format_scores(result: RankedResult) -> str:
    """Format: score 0.650 (vector 0.350 + text 0.300)."""
    return (
        f"score {result.combined_score:.3f}"
        f" (vector {result.vector_score:.3f} + text {result.text_score:.3f})"
    )


def format_result(result: RankedResult) -> str:
    """Header + scores + optional description and meta."""
    artifact = result.artifact
    lines = [format_artifact_header(artifact), f"  {format_scores(result)}"]
    if artifact.description:
        lines.append(f"  {artifact.description}")
    meta = format_artifact_meta(artifact)
    if meta:
        lines.append(f"  {meta}")
    return "\n".join(lines)


def format_response(response: SearchResponse, header: str | None = None) -> str:
    """Count + match source + degraded note + results joined by blank lines."""
    if not response.results:
        if response.degraded:
            return "No results found. Note: one retrieval path was unavailable."
        return "No results found."

    lines: list[str] = []
    if header:
        lines.append(header)
    lines.append(f"{len(response.results)} result(s) via {response.match_source}")
    if response.degraded:
        lines.append("Note: one retrieval path was unavailable. Results are partial.")
    lines.append("")
    lines.append("\n\n".join(format_result(r) for r in response.results))
    return "\n".join(lines)


def format_stats(stats: dict[str, Any]) -> str:
    """Document and vector counts, one collection per line."""
    lines = ["Search index stats:"]
    for kind in ("templates", "projects"):
        counts = stats.get(kind, {})
        lines.append(
            f"  {kind}: {counts.get('total', 0)} total, {counts.get('searchable', 0)} searchable,"
            f" {counts.get('pending', 0)} pending vectorization"
        )
    vectors = stats.get("vectors", {})
    if vectors:
        by_kind = ", ".join(f"{kind} {count}" for kind, count in vectors.items())
        lines.append(f"  vectors: {sum(vectors.values())} ({by_kind})")
    else:
        lines.append("  vectors: 0")
    return "\n".join(lines)
