"""Artifact models: templates and template-eligible projects."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class SourceKind(StrEnum):
    """Which backing collection an artifact id resolves against."""

    TEMPLATE = "template"
    PROJECT = "project"


class AspectRatio(StrEnum):
    """Canvas aspect ratios a template can be authored for."""

    SQUARE = "1:1"
    PORTRAIT = "4:5"
    STORY = "9:16"
    WIDESCREEN = "16:9"


class TemplateStatus(StrEnum):
    """Template lifecycle state. Only active templates are searchable."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class ProjectType(StrEnum):
    """Project kinds. Custom projects are only searchable when starred."""

    PRESENTATION = "presentation"
    SOCIAL = "social"
    PRINT = "print"
    CUSTOM = "custom"


class _ArtifactBase(BaseModel):
    id: str
    title: str
    description: str = ""
    artifact_type: str
    aspect_ratio: AspectRatio | None = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    has_embedding: bool = False
    seq: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def embedding_text(self) -> str:
        """Synthetic document used for generating embeddings."""
        parts = [
            self.title,
            self.description,
            self.artifact_type,
            self.aspect_ratio.value if self.aspect_ratio else None,
            *self.categories,
            *self.tags,
        ]
        return " ".join(p for p in parts if p).lower()


class TemplateRecord(_ArtifactBase):
    """A design template."""

    source_kind: Literal[SourceKind.TEMPLATE] = SourceKind.TEMPLATE
    slug: str | None = None
    artifact_type: str = "social"
    popularity: int = 0
    status: TemplateStatus = TemplateStatus.ACTIVE
    thumbnail_url: str | None = None

    @property
    def is_searchable(self) -> bool:
        """Only active templates are offered to search."""
        return self.status == TemplateStatus.ACTIVE


class ProjectRecord(_ArtifactBase):
    """A user project, searchable as a template when eligible."""

    source_kind: Literal[SourceKind.PROJECT] = SourceKind.PROJECT
    artifact_type: ProjectType = ProjectType.CUSTOM
    owner_id: str | None = None
    starred: bool = False
    thumbnail: str | None = None

    @property
    def is_searchable(self) -> bool:
        """Template-eligible: starred, or not of the default custom type."""
        return self.starred or self.artifact_type != ProjectType.CUSTOM


Artifact = Annotated[TemplateRecord | ProjectRecord, Field(discriminator="source_kind")]


class ArtifactFilters(BaseModel):
    """Field-level constraints applied identically to the vector and lexical paths."""

    category: str | None = None
    aspect_ratio: AspectRatio | None = None
    artifact_type: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when no constraint is set."""
        return self.category is None and self.aspect_ratio is None and self.artifact_type is None


class VectorMetadata(BaseModel):
    """Filterable metadata snapshot stored alongside each vector."""

    title: str = ""
    artifact_type: str | None = None
    aspect_ratio: AspectRatio | None = None
    categories: list[str] = Field(default_factory=list)

    @classmethod
    def from_artifact(cls, artifact: TemplateRecord | ProjectRecord) -> "VectorMetadata":
        """Snapshot the filterable fields of an artifact."""
        return cls(
            title=artifact.title,
            artifact_type=str(artifact.artifact_type),
            aspect_ratio=artifact.aspect_ratio,
            categories=list(artifact.categories),
        )
