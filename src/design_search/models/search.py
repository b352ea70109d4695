"""Search-related models."""

from dataclasses import dataclass

from pydantic import BaseModel, Field, ValidationError, field_validator

from design_search.config import get_text_weight, get_vector_weight
from design_search.errors import InvalidQuery
from design_search.models.artifact import Artifact, ArtifactFilters, SourceKind


class SearchWeights(BaseModel):
    """Per-signal weights. Not normalized: both may be zero, and they need not sum to 1."""

    vector: float = Field(default_factory=get_vector_weight, ge=0.0)
    text: float = Field(default_factory=get_text_weight, ge=0.0)


class SearchQuery(BaseModel):
    """Parameters for a hybrid template search."""

    text: str
    filters: ArtifactFilters = Field(default_factory=ArtifactFilters)
    limit: int = Field(default=20, ge=1)
    weights: SearchWeights = Field(default_factory=SearchWeights)
    score_threshold: float | None = Field(default=None, ge=0.0, le=1.0)

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("query text must not be empty")
        return stripped


def build_query(**fields: object) -> SearchQuery:
    """Validate raw query fields, raising InvalidQuery instead of ValidationError."""
    try:
        return SearchQuery.model_validate(fields)
    except ValidationError as e:
        raise InvalidQuery(_describe(e)) from e


def build_filters(**fields: object) -> ArtifactFilters:
    """Validate raw filter fields, raising InvalidQuery instead of ValidationError."""
    try:
        return ArtifactFilters.model_validate({k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise InvalidQuery(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "query"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


@dataclass(frozen=True)
class VectorHit:
    """One vector-index match, in index order (score desc, newest first)."""

    artifact_id: str
    source_kind: SourceKind
    score: float


@dataclass(frozen=True)
class TextHit:
    """One lexical match, in store insertion order."""

    artifact_id: str
    source_kind: SourceKind


@dataclass(frozen=True)
class CandidateItem:
    """A scored reference to a retrievable artifact within one fusion pass.

    ``vector_score``/``text_score`` are None when the item did not come from
    that path. Ranks record the item's position in each input stream and are
    only used for tie-breaking.
    """

    artifact_id: str
    source_kind: SourceKind
    vector_score: float | None = None
    text_score: float | None = None
    vector_rank: int | None = None
    text_rank: int | None = None

    @property
    def key(self) -> tuple[str, SourceKind]:
        """Identity within a fusion pass."""
        return (self.artifact_id, self.source_kind)

    @property
    def combined_score(self) -> float:
        """Sum of the weighted signals; never persisted."""
        return (self.vector_score or 0.0) + (self.text_score or 0.0)

    @property
    def corroborated(self) -> bool:
        """True when both the vector and the lexical path produced this item."""
        return self.vector_score is not None and self.text_score is not None


class RankedResult(BaseModel):
    """A single enriched result with scoring and provenance."""

    artifact: Artifact
    source_kind: SourceKind
    combined_score: float
    vector_score: float = 0.0
    text_score: float = 0.0


class SearchResponse(BaseModel):
    """Ranked results plus how they were produced."""

    query: str = ""
    results: list[RankedResult] = Field(default_factory=list)
    degraded: bool = False
    match_source: str = "none"  # "hybrid", "vector", "text", "none"
