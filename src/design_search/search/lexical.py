"""Case-insensitive substring matching over titles, categories and tags."""

import logging

from design_search.db.backend import Database
from design_search.errors import DependencyUnavailable
from design_search.models.artifact import ArtifactFilters, SourceKind
from design_search.models.search import TextHit
from design_search.search.filters import filter_clause

logger = logging.getLogger(__name__)


def _match_clause(alias: str) -> str:
    return (
        f"(instr(fold({alias}.title), ?) > 0"
        f" OR EXISTS (SELECT 1 FROM json_each({alias}.categories) WHERE instr(fold(value), ?) > 0)"
        f" OR EXISTS (SELECT 1 FROM json_each({alias}.tags) WHERE instr(fold(value), ?) > 0))"
    )


async def lexical_search(
    db: Database,
    text: str,
    filters: ArtifactFilters | None = None,
    limit: int = 20,
) -> list[TextHit]:
    """Find searchable templates and projects whose title, categories or tags contain ``text``.

    Hits come back in store insertion order across both collections; there is
    no relevance model beyond "matched". Raises DependencyUnavailable if the
    document store cannot be scanned.
    """
    needle = text.strip().casefold()
    if not needle:
        return []

    tpl_where, tpl_params = filter_clause(filters, "t")
    prj_where, prj_params = filter_clause(filters, "p")

    sql = f"""
        SELECT id, source_kind FROM (
            SELECT t.id AS id, 'template' AS source_kind, t.seq AS seq
            FROM templates t
            WHERE t.status = 'active' AND {_match_clause("t")}{tpl_where}
            UNION ALL
            SELECT p.id AS id, 'project' AS source_kind, p.seq AS seq
            FROM projects p
            WHERE (p.starred = 1 OR p.artifact_type != 'custom')
            AND {_match_clause("p")}{prj_where}
        )
        ORDER BY seq
        LIMIT ?
    """  # noqa: S608
    params: list[str | int] = [
        needle,
        needle,
        needle,
        *tpl_params,
        needle,
        needle,
        needle,
        *prj_params,
        limit,
    ]

    try:
        cursor = await db.execute(sql, params)
        rows = await cursor.fetchall()
    except Exception as e:
        logger.warning("Lexical search failed for query: %s", text, exc_info=True)
        raise DependencyUnavailable("Document store unavailable for lexical search") from e

    return [TextHit(row[0], SourceKind(row[1])) for row in rows]
