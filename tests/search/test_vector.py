"""Tests for the vector index."""

import pytest

from design_search.errors import DependencyUnavailable, VectorizationFailed
from design_search.models.artifact import (
    ArtifactFilters,
    AspectRatio,
    SourceKind,
    VectorMetadata,
)
from design_search.search.vector import VectorIndex

T = SourceKind.TEMPLATE
P = SourceKind.PROJECT


def _meta(**kwargs) -> VectorMetadata:
    defaults = {"title": "x", "artifact_type": "social", "categories": []}
    defaults.update(kwargs)
    return VectorMetadata(**defaults)


@pytest.mark.asyncio
async def test_upsert_is_idempotent(index):
    await index.upsert("tpl-1", T, [1.0, 0.0, 0.0], _meta())
    await index.upsert("tpl-1", T, [1.0, 0.0, 0.0], _meta())
    assert await index.count() == 1


@pytest.mark.asyncio
async def test_upsert_replaces_vector(index):
    await index.upsert("tpl-1", T, [1.0, 0.0, 0.0], _meta())
    await index.upsert("tpl-1", T, [0.0, 1.0, 0.0], _meta())
    assert await index.get_vector("tpl-1", T) == pytest.approx([0.0, 1.0, 0.0])


@pytest.mark.asyncio
async def test_same_id_different_kind_are_separate(index):
    await index.upsert("a1", T, [1.0, 0.0], _meta())
    await index.upsert("a1", P, [1.0, 0.0], _meta())
    assert await index.count() == 2

    removed = await index.remove("a1", T)
    assert removed == 1
    assert await index.get_vector("a1", P) is not None


@pytest.mark.asyncio
async def test_remove_without_kind_removes_all(index):
    await index.upsert("a1", T, [1.0, 0.0], _meta())
    await index.upsert("a1", P, [1.0, 0.0], _meta())
    assert await index.remove("a1") == 2
    assert await index.count() == 0


@pytest.mark.asyncio
async def test_remove_missing_is_noop(index):
    assert await index.remove("does-not-exist", T) == 0


@pytest.mark.asyncio
async def test_empty_embedding_rejected(index):
    with pytest.raises(VectorizationFailed):
        await index.upsert("tpl-1", T, [], _meta())


@pytest.mark.asyncio
async def test_fixed_dimension_enforced(db):
    index = VectorIndex(db, dim=3)
    with pytest.raises(VectorizationFailed):
        await index.upsert("tpl-1", T, [1.0, 0.0], _meta())
    with pytest.raises(DependencyUnavailable):
        await index.query([1.0, 0.0])


@pytest.mark.asyncio
async def test_query_orders_by_similarity(index):
    await index.upsert("far", T, [0.0, 1.0, 0.0], _meta())
    await index.upsert("near", T, [1.0, 0.1, 0.0], _meta())
    await index.upsert("exact", T, [1.0, 0.0, 0.0], _meta())

    hits = await index.query([1.0, 0.0, 0.0], limit=10)
    assert [h.artifact_id for h in hits] == ["exact", "near", "far"]
    assert hits[0].score == pytest.approx(1.0, abs=1e-6)
    assert hits[2].score == pytest.approx(0.0, abs=1e-6)


@pytest.mark.asyncio
async def test_scores_clamped_to_unit_interval(index):
    await index.upsert("opposite", T, [-1.0, 0.0], _meta())
    hits = await index.query([1.0, 0.0], limit=10)
    assert len(hits) == 1
    assert hits[0].score == 0.0


@pytest.mark.asyncio
async def test_equal_scores_newest_first(index):
    await index.upsert("old", T, [1.0, 0.0], _meta())
    await index.upsert("new", T, [1.0, 0.0], _meta())

    hits = await index.query([1.0, 0.0], limit=10)
    assert [h.artifact_id for h in hits] == ["new", "old"]

    # Re-upserting makes it the most recent
    await index.upsert("old", T, [1.0, 0.0], _meta())
    hits = await index.query([1.0, 0.0], limit=10)
    assert [h.artifact_id for h in hits] == ["old", "new"]


@pytest.mark.asyncio
async def test_score_threshold(index):
    await index.upsert("match", T, [1.0, 0.0], _meta())
    await index.upsert("orthogonal", T, [0.0, 1.0], _meta())

    hits = await index.query([1.0, 0.0], score_threshold=0.5)
    assert [h.artifact_id for h in hits] == ["match"]


@pytest.mark.asyncio
async def test_limit(index):
    for i in range(5):
        await index.upsert(f"tpl-{i}", T, [1.0, float(i)], _meta())
    hits = await index.query([1.0, 0.0], limit=2)
    assert len(hits) == 2


@pytest.mark.asyncio
async def test_filters_applied_before_limit(index):
    # The best raw match is filtered out; the filtered item must still come back
    await index.upsert("square", T, [1.0, 0.0], _meta(aspect_ratio=AspectRatio.SQUARE))
    await index.upsert("story", T, [0.6, 0.8], _meta(aspect_ratio=AspectRatio.STORY))

    hits = await index.query(
        [1.0, 0.0], ArtifactFilters(aspect_ratio=AspectRatio.STORY), limit=1
    )
    assert [h.artifact_id for h in hits] == ["story"]


@pytest.mark.asyncio
async def test_category_filter_case_insensitive(index):
    await index.upsert("a", T, [1.0, 0.0], _meta(categories=["Marketing", "Sale"]))
    await index.upsert("b", T, [1.0, 0.0], _meta(categories=["Events"]))

    hits = await index.query([1.0, 0.0], ArtifactFilters(category="marketing"))
    assert [h.artifact_id for h in hits] == ["a"]


@pytest.mark.asyncio
async def test_category_filter_non_ascii(index):
    await index.upsert("a", T, [1.0, 0.0], _meta(categories=["Événements"]))
    await index.upsert("b", T, [1.0, 0.0], _meta(categories=["Soldes"]))

    for category in ("Événements", "ÉVÉNEMENTS", "événements"):
        hits = await index.query([1.0, 0.0], ArtifactFilters(category=category))
        assert [h.artifact_id for h in hits] == ["a"]


@pytest.mark.asyncio
async def test_artifact_type_filter(index):
    await index.upsert("deck", P, [1.0, 0.0], _meta(artifact_type="presentation"))
    await index.upsert("post", T, [1.0, 0.0], _meta(artifact_type="social"))

    hits = await index.query([1.0, 0.0], ArtifactFilters(artifact_type="presentation"))
    assert [(h.artifact_id, h.source_kind) for h in hits] == [("deck", P)]


@pytest.mark.asyncio
async def test_exclude(index):
    await index.upsert("base", T, [1.0, 0.0], _meta())
    await index.upsert("base", P, [1.0, 0.0], _meta())
    await index.upsert("other", T, [0.9, 0.1], _meta())

    hits = await index.query([1.0, 0.0], exclude=("base", T))
    assert ("base", T) not in [(h.artifact_id, h.source_kind) for h in hits]
    assert ("base", P) in [(h.artifact_id, h.source_kind) for h in hits]


@pytest.mark.asyncio
async def test_other_dimensions_ignored(index):
    await index.upsert("three", T, [1.0, 0.0, 0.0], _meta())
    await index.upsert("two", T, [1.0, 0.0], _meta())

    hits = await index.query([1.0, 0.0], limit=10)
    assert [h.artifact_id for h in hits] == ["two"]


@pytest.mark.asyncio
async def test_query_on_unreachable_database(unreachable_db):
    index = VectorIndex(unreachable_db)
    with pytest.raises(DependencyUnavailable, match="Vector index unavailable"):
        await index.query([1.0, 0.0])
