"""Weighted score fusion of vector and lexical candidate streams.

``fuse`` is a pure function: two ordered input sequences in, one ordered
output sequence out, no shared state. Scoring follows the hybrid template
search of the design tool:

* vector hit:  ``vector_score = raw_similarity * weights.vector``
* text hit at position ``i`` of ``N``:  ``text_score = (1 - i/N) * weights.text``
* ``combined_score = vector_score + text_score``

Weights are deliberately not normalized, so ``{vector: 0, text: 0}`` yields
no results rather than a division by zero.
"""

import math
from collections.abc import Sequence
from dataclasses import replace

from design_search.errors import InvalidQuery
from design_search.models.artifact import SourceKind
from design_search.models.search import CandidateItem, SearchWeights, TextHit, VectorHit

# Scores closer than this are treated as ties.
SCORE_PRECISION = 9


def text_rank_score(position: int, total: int, weight: float) -> float:
    """Convert a 0-indexed lexical rank into a weighted score in ``(0, weight]``."""
    return (1 - position / total) * weight


def fuse(
    vector_hits: Sequence[VectorHit],
    text_hits: Sequence[TextHit],
    weights: SearchWeights,
    limit: int | None = None,
) -> list[CandidateItem]:
    """Merge both streams by ``(artifact_id, source_kind)`` and rank by combined score.

    Ordering: combined score descending; at equal score, items found by both
    paths first; then the vector path's own order (similarity, then recency);
    then lexical order. An item is dropped when every path that produced it
    has weight 0; a genuine similarity of 0 under a positive weight is kept.
    """
    if limit is not None and limit < 1:
        raise InvalidQuery("limit must be a positive integer")

    entries: dict[tuple[str, SourceKind], CandidateItem] = {}

    for rank, vhit in enumerate(vector_hits):
        key = (vhit.artifact_id, vhit.source_kind)
        if key in entries:
            continue
        entries[key] = CandidateItem(
            artifact_id=vhit.artifact_id,
            source_kind=vhit.source_kind,
            vector_score=vhit.score * weights.vector,
            vector_rank=rank,
        )

    total = len(text_hits)
    for position, thit in enumerate(text_hits):
        key = (thit.artifact_id, thit.source_kind)
        score = text_rank_score(position, total, weights.text)
        existing = entries.get(key)
        if existing is None:
            entries[key] = CandidateItem(
                artifact_id=thit.artifact_id,
                source_kind=thit.source_kind,
                text_score=score,
                text_rank=position,
            )
        elif existing.text_score is None:
            entries[key] = replace(existing, text_score=score, text_rank=position)

    ranked = [item for item in entries.values() if _weighted(item, weights)]
    ranked.sort(key=_rank_key)
    return ranked if limit is None else ranked[:limit]


def _weighted(item: CandidateItem, weights: SearchWeights) -> bool:
    return (item.vector_score is not None and weights.vector > 0) or (
        item.text_score is not None and weights.text > 0
    )


def _rank_key(item: CandidateItem) -> tuple[float, int, float, float, str, str]:
    return (
        -round(item.combined_score, SCORE_PRECISION),
        0 if item.corroborated else 1,
        item.vector_rank if item.vector_rank is not None else math.inf,
        item.text_rank if item.text_rank is not None else math.inf,
        item.source_kind.value,
        item.artifact_id,
    )
