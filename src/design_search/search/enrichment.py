"""Resolve fused candidate ids back into full documents."""

import asyncio
import logging
from collections.abc import Sequence

from design_search.db.backend import Database
from design_search.db.queries import find_by_ids
from design_search.errors import StaleReference
from design_search.models.artifact import ProjectRecord, SourceKind, TemplateRecord
from design_search.models.search import CandidateItem, RankedResult

logger = logging.getLogger(__name__)


async def enrich(db: Database, candidates: Sequence[CandidateItem]) -> list[RankedResult]:
    """Hydrate candidates with one batched lookup per collection.

    Candidates whose document was deleted or is no longer searchable are
    dropped. The fused order of the survivors is preserved.
    """
    if not candidates:
        return []

    template_ids = [c.artifact_id for c in candidates if c.source_kind == SourceKind.TEMPLATE]
    project_ids = [c.artifact_id for c in candidates if c.source_kind == SourceKind.PROJECT]

    templates, projects = await asyncio.gather(
        find_by_ids(db, template_ids, SourceKind.TEMPLATE),
        find_by_ids(db, project_ids, SourceKind.PROJECT),
    )
    found: dict[tuple[str, SourceKind], TemplateRecord | ProjectRecord] = {
        (doc.id, doc.source_kind): doc for doc in [*templates, *projects]
    }

    results: list[RankedResult] = []
    for candidate in candidates:
        doc = found.get(candidate.key)
        if doc is None or not doc.is_searchable:
            stale = StaleReference(candidate.artifact_id, candidate.source_kind.value)
            logger.debug("Dropping ranked result: %s", stale)
            continue
        results.append(
            RankedResult(
                artifact=doc,
                source_kind=candidate.source_kind,
                combined_score=candidate.combined_score,
                vector_score=candidate.vector_score or 0.0,
                text_score=candidate.text_score or 0.0,
            )
        )
    return results
