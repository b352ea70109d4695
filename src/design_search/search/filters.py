"""SQL predicates for artifact filters.

The vector index and the lexical matcher both compile filters through
``filter_clause`` so that neither path can return an item the other one
would have excluded. Both ``artifact_vectors`` and the document tables
expose the same ``artifact_type``, ``aspect_ratio`` and ``categories``
columns.
"""

from design_search.models.artifact import ArtifactFilters


def filter_clause(filters: ArtifactFilters | None, alias: str) -> tuple[str, list[str]]:
    """Return ``(" AND ...", params)`` for the given filters, or ``("", [])``."""
    if filters is None or filters.is_empty:
        return "", []

    sql = ""
    params: list[str] = []
    if filters.category:
        sql += (
            f" AND EXISTS (SELECT 1 FROM json_each({alias}.categories) c"
            " WHERE fold(c.value) = ?)"
        )
        params.append(filters.category.casefold())
    if filters.aspect_ratio:
        sql += f" AND {alias}.aspect_ratio = ?"
        params.append(filters.aspect_ratio.value)
    if filters.artifact_type:
        sql += f" AND {alias}.artifact_type = ?"
        params.append(filters.artifact_type)
    return sql, params
