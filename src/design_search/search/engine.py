"""Hybrid retrieval: vector and lexical paths, weighted fusion, enrichment."""

import asyncio
import logging
import math

from design_search.config import get_score_threshold
from design_search.db.backend import Database
from design_search.db.queries import get_artifact
from design_search.errors import DependencyUnavailable, InvalidQuery
from design_search.models.artifact import (
    ArtifactFilters,
    ProjectRecord,
    SourceKind,
    TemplateRecord,
)
from design_search.models.search import (
    SearchQuery,
    SearchResponse,
    SearchWeights,
    TextHit,
    VectorHit,
)
from design_search.search.embeddings import EmbeddingProvider
from design_search.search.enrichment import enrich
from design_search.search.fusion import fuse
from design_search.search.lexical import lexical_search
from design_search.search.vector import VectorIndex

logger = logging.getLogger(__name__)

# Each path fetches this many candidates per requested result before fusion
OVERFETCH_FACTOR = 1.5


class RetrievalEngine:
    """Runs both retrieval paths concurrently and fuses them into one ranking.

    Collaborators are injected; the engine owns none of their lifecycles.
    """

    def __init__(
        self,
        db: Database,
        embedder: EmbeddingProvider | None,
        index: VectorIndex,
        score_threshold: float | None = None,
    ) -> None:
        """Initialize with the document store, an embedder (None disables vectors) and the index."""
        self.db = db
        self.embedder = embedder
        self.index = index
        self.score_threshold = score_threshold

    def _threshold(self, override: float | None) -> float:
        if override is not None:
            return override
        if self.score_threshold is not None:
            return self.score_threshold
        return get_score_threshold()

    async def search(self, query: SearchQuery) -> SearchResponse:
        """Rank templates and eligible projects for a free-text query.

        One failed path degrades the response to the other path's results.
        Raises DependencyUnavailable when every executed path fails.
        """
        fetch_limit = math.ceil(query.limit * OVERFETCH_FACTOR)
        threshold = self._threshold(query.score_threshold)

        run_vector = query.weights.vector > 0
        run_text = query.weights.text > 0
        if not run_vector and not run_text:
            return SearchResponse(query=query.text)

        vector_outcome, text_outcome = await asyncio.gather(
            self._vector_path(query.text, query.filters, fetch_limit, threshold)
            if run_vector
            else _skipped(),
            lexical_search(self.db, query.text, query.filters, fetch_limit)
            if run_text
            else _skipped(),
            return_exceptions=True,
        )

        vector_hits = _outcome(vector_outcome, "vector")
        text_hits = _outcome(text_outcome, "lexical")

        vector_failed = run_vector and vector_hits is None
        text_failed = run_text and text_hits is None
        if (vector_failed or not run_vector) and (text_failed or not run_text):
            cause = next(
                (o for o in (vector_outcome, text_outcome) if isinstance(o, BaseException)), None
            )
            raise DependencyUnavailable("All retrieval paths failed") from cause

        candidates = fuse(vector_hits or [], text_hits or [], query.weights, limit=query.limit)
        results = await enrich(self.db, candidates)

        if results:
            if vector_hits is not None and text_hits is not None:
                match_source = "hybrid"
            elif vector_hits is not None:
                match_source = "vector"
            else:
                match_source = "text"
        else:
            match_source = "none"

        return SearchResponse(
            query=query.text,
            results=results,
            degraded=vector_failed or text_failed,
            match_source=match_source,
        )

    async def similar(
        self,
        artifact_id: str,
        source_kind: SourceKind | None = None,
        limit: int = 10,
        filters: ArtifactFilters | None = None,
        score_threshold: float | None = None,
    ) -> SearchResponse:
        """Rank artifacts nearest to an existing one, excluding the artifact itself.

        Uses the stored vector when present, otherwise re-embeds the record.
        Raises InvalidQuery for an unknown base artifact.
        """
        if limit < 1:
            raise InvalidQuery("limit must be a positive integer")

        base = await self._resolve(artifact_id, source_kind)
        if base is None:
            raise InvalidQuery(f"Artifact {artifact_id} not found")

        embedding = await self.index.get_vector(base.id, base.source_kind)
        if embedding is None:
            if self.embedder is None:
                raise DependencyUnavailable("No stored vector and no embedding provider configured")
            embedding = await self.embedder.embed(base.embedding_text)

        hits = await self.index.query(
            embedding,
            filters,
            limit=math.ceil(limit * OVERFETCH_FACTOR),
            score_threshold=self._threshold(score_threshold),
            exclude=(base.id, base.source_kind),
        )
        candidates = fuse(hits, [], SearchWeights(vector=1.0, text=0.0), limit=limit)
        results = await enrich(self.db, candidates)
        return SearchResponse(
            query=artifact_id,
            results=results,
            match_source="vector" if results else "none",
        )

    async def _resolve(
        self, artifact_id: str, source_kind: SourceKind | None
    ) -> TemplateRecord | ProjectRecord | None:
        kinds = [source_kind] if source_kind else [SourceKind.TEMPLATE, SourceKind.PROJECT]
        for kind in kinds:
            found = await get_artifact(self.db, artifact_id, kind)
            if found is not None:
                return found
        return None

    async def _vector_path(
        self,
        text: str,
        filters: ArtifactFilters,
        limit: int,
        threshold: float,
    ) -> list[VectorHit]:
        if self.embedder is None:
            raise DependencyUnavailable("No embedding provider configured")
        embedding = await self.embedder.embed(text)
        return await self.index.query(embedding, filters, limit=limit, score_threshold=threshold)


async def _skipped() -> None:
    return None


def _outcome(
    outcome: list[VectorHit] | list[TextHit] | BaseException | None, path: str
) -> list | None:
    """Unwrap one gathered path result. None means skipped or unavailable."""
    if isinstance(outcome, DependencyUnavailable):
        logger.warning("%s path unavailable, degrading: %s", path.capitalize(), outcome)
        return None
    if isinstance(outcome, BaseException):
        raise outcome
    return outcome
