"""Vector index over artifact embeddings, scored by sqlite-vec cosine distance."""

import json
import logging
import struct
from datetime import UTC, datetime

from design_search.db.backend import Database
from design_search.errors import DependencyUnavailable, VectorizationFailed
from design_search.models.artifact import ArtifactFilters, SourceKind, VectorMetadata
from design_search.models.search import VectorHit
from design_search.search.filters import filter_clause

logger = logging.getLogger(__name__)


class VectorIndex:
    """Stores one embedding per ``(artifact_id, source_kind)`` with a metadata snapshot.

    Scores are cosine similarity clamped into [0, 1]. Equal scores are
    ordered newest-indexed first.
    """

    def __init__(self, db: Database, dim: int | None = None) -> None:
        """Initialize with a database connection and an optional fixed dimension."""
        self.db = db
        self.dim = dim

    async def upsert(
        self,
        artifact_id: str,
        source_kind: SourceKind,
        embedding: list[float],
        metadata: VectorMetadata,
    ) -> None:
        """Insert or replace the vector for an artifact. Repeated calls never duplicate."""
        if not embedding:
            raise VectorizationFailed(f"Empty embedding for {source_kind} {artifact_id}")
        if self.dim is not None and len(embedding) != self.dim:
            raise VectorizationFailed(
                f"Embedding for {source_kind} {artifact_id} has {len(embedding)} dimensions,"
                f" expected {self.dim}"
            )

        # Delete then insert so the row gets a fresh seq (recency tie-break)
        await self.db.execute(
            "DELETE FROM artifact_vectors WHERE artifact_id = ? AND source_kind = ?",
            (artifact_id, source_kind.value),
        )
        await self.db.execute(
            """INSERT INTO artifact_vectors
            (artifact_id, source_kind, embedding, dim, title, artifact_type, aspect_ratio,
             categories, indexed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                artifact_id,
                source_kind.value,
                _serialize_f32(embedding),
                len(embedding),
                metadata.title,
                metadata.artifact_type,
                metadata.aspect_ratio.value if metadata.aspect_ratio else None,
                json.dumps(metadata.categories),
                datetime.now(UTC).isoformat(),
            ),
        )
        await self.db.commit()

    async def remove(self, artifact_id: str, source_kind: SourceKind | None = None) -> int:
        """Delete vectors for an id (one kind, or every kind). No-op if absent.

        Returns the number of vectors removed.
        """
        if source_kind is None:
            cursor = await self.db.execute(
                "DELETE FROM artifact_vectors WHERE artifact_id = ?", (artifact_id,)
            )
        else:
            cursor = await self.db.execute(
                "DELETE FROM artifact_vectors WHERE artifact_id = ? AND source_kind = ?",
                (artifact_id, source_kind.value),
            )
        await self.db.commit()
        return max(cursor.rowcount, 0)

    async def get_vector(self, artifact_id: str, source_kind: SourceKind) -> list[float] | None:
        """Return the stored embedding for an artifact, or None."""
        cursor = await self.db.execute(
            "SELECT embedding FROM artifact_vectors WHERE artifact_id = ? AND source_kind = ?",
            (artifact_id, source_kind.value),
        )
        row = await cursor.fetchone()
        return _deserialize_f32(row[0]) if row else None

    async def query(
        self,
        embedding: list[float],
        filters: ArtifactFilters | None = None,
        limit: int = 20,
        score_threshold: float = 0.0,
        exclude: tuple[str, SourceKind] | None = None,
    ) -> list[VectorHit]:
        """Return up to ``limit`` hits scoring at least ``score_threshold``.

        Filters are applied before ranking. Raises DependencyUnavailable when
        the index cannot be queried (extension missing, dimension mismatch,
        database error).
        """
        if self.dim is not None and len(embedding) != self.dim:
            raise DependencyUnavailable(
                f"Query vector has {len(embedding)} dimensions, index expects {self.dim}"
            )

        dim = len(embedding)
        where, params = filter_clause(filters, "a")
        if exclude is not None:
            where += " AND NOT (a.artifact_id = ? AND a.source_kind = ?)"
            params.extend([exclude[0], exclude[1].value])

        sql = f"""
            SELECT artifact_id, source_kind, score FROM (
                SELECT a.artifact_id, a.source_kind, a.seq,
                    MIN(1.0, MAX(0.0, 1.0 - CASE WHEN a.dim = ?
                        THEN vec_distance_cosine(a.embedding, ?) END)) AS score
                FROM artifact_vectors a
                WHERE a.dim = ?{where}
            )
            WHERE score >= ?
            ORDER BY score DESC, seq DESC
            LIMIT ?
        """  # noqa: S608

        try:
            cursor = await self.db.execute(
                sql,
                [dim, _serialize_f32(embedding), dim, *params, score_threshold, limit],
            )
            rows = await cursor.fetchall()
        except Exception as e:
            logger.warning("Vector index query failed", exc_info=True)
            raise DependencyUnavailable("Vector index unavailable") from e

        return [VectorHit(row[0], SourceKind(row[1]), float(row[2])) for row in rows]

    async def count(self) -> int:
        """Number of vectors in the index."""
        cursor = await self.db.execute("SELECT COUNT(*) FROM artifact_vectors")
        row = await cursor.fetchone()
        return int(row[0]) if row else 0


def _serialize_f32(vec: list[float]) -> bytes:
    """Serialize a list of floats to a compact binary format for sqlite-vec."""
    return struct.pack(f"{len(vec)}f", *vec)


def _deserialize_f32(blob: bytes) -> list[float]:
    return list(struct.unpack(f"{len(blob) // 4}f", blob))
