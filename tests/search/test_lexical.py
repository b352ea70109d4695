"""Tests for the lexical matcher."""

import pytest

from design_search.errors import DependencyUnavailable
from design_search.models.artifact import (
    ArtifactFilters,
    AspectRatio,
    ProjectType,
    SourceKind,
    TemplateStatus,
)
from design_search.search.lexical import lexical_search


@pytest.mark.asyncio
async def test_matches_title_case_insensitive(db, store):
    tpl = await store.create_template("Summer SALE Flyer")
    hits = await lexical_search(db, "sale")
    assert [(h.artifact_id, h.source_kind) for h in hits] == [(tpl.id, SourceKind.TEMPLATE)]


@pytest.mark.asyncio
async def test_matches_categories_and_tags(db, store):
    by_category = await store.create_template("Plain", categories=["Black Friday"])
    by_tag = await store.create_template("Other", tags=["friday-deals"])
    await store.create_template("Unrelated", description="friday in the description only")

    hits = await lexical_search(db, "FRIDAY")
    assert [h.artifact_id for h in hits] == [by_category.id, by_tag.id]


@pytest.mark.asyncio
async def test_description_is_not_matched(db, store):
    await store.create_template("Poster", description="acme brand colors")
    assert await lexical_search(db, "acme") == []


@pytest.mark.asyncio
async def test_insertion_order_across_collections(db, store):
    t1 = await store.create_template("Brand kit one")
    p1 = await store.create_project("Brand kit two", starred=True)
    t2 = await store.create_template("Brand kit three")

    hits = await lexical_search(db, "brand kit")
    assert [h.artifact_id for h in hits] == [t1.id, p1.id, t2.id]
    assert [h.source_kind for h in hits] == [
        SourceKind.TEMPLATE,
        SourceKind.PROJECT,
        SourceKind.TEMPLATE,
    ]


@pytest.mark.asyncio
async def test_only_searchable_records(db, store):
    await store.create_template("Logo draft", status=TemplateStatus.DRAFT)
    await store.create_template("Logo archived", status=TemplateStatus.ARCHIVED)
    await store.create_project("Logo custom")
    starred = await store.create_project("Logo starred", starred=True)
    typed = await store.create_project("Logo deck", artifact_type=ProjectType.PRESENTATION)

    hits = await lexical_search(db, "logo")
    assert [h.artifact_id for h in hits] == [starred.id, typed.id]


@pytest.mark.asyncio
async def test_filters(db, store):
    await store.create_template("Sale square", aspect_ratio=AspectRatio.SQUARE)
    story = await store.create_template(
        "Sale story", aspect_ratio=AspectRatio.STORY, categories=["Retail"]
    )
    await store.create_template("Sale story plain", aspect_ratio=AspectRatio.STORY)

    hits = await lexical_search(
        db, "sale", ArtifactFilters(aspect_ratio=AspectRatio.STORY, category="retail")
    )
    assert [h.artifact_id for h in hits] == [story.id]


@pytest.mark.asyncio
async def test_limit(db, store):
    for i in range(5):
        await store.create_template(f"Menu {i}")
    hits = await lexical_search(db, "menu", limit=3)
    assert len(hits) == 3


@pytest.mark.asyncio
async def test_blank_text_matches_nothing(db, store):
    await store.create_template("Anything")
    assert await lexical_search(db, "   ") == []


@pytest.mark.asyncio
async def test_like_wildcards_are_literal(db, store):
    await store.create_template("Fifty percent")
    assert await lexical_search(db, "%") == []


@pytest.mark.asyncio
async def test_non_ascii_case_insensitive(db, store):
    tpl = await store.create_template("ÉTÉ Sale", categories=["Événements"])

    assert [h.artifact_id for h in await lexical_search(db, "ÉTÉ")] == [tpl.id]
    assert [h.artifact_id for h in await lexical_search(db, "été")] == [tpl.id]
    assert [h.artifact_id for h in await lexical_search(db, "ÉVÉNEMENTS")] == [tpl.id]


@pytest.mark.asyncio
async def test_non_ascii_category_filter(db, store):
    tpl = await store.create_template("Summer sale", categories=["Événements"])
    await store.create_template("Winter sale", categories=["Soldes"])

    hits = await lexical_search(db, "sale", ArtifactFilters(category="Événements"))
    assert [h.artifact_id for h in hits] == [tpl.id]
    hits = await lexical_search(db, "sale", ArtifactFilters(category="événements"))
    assert [h.artifact_id for h in hits] == [tpl.id]


@pytest.mark.asyncio
async def test_store_failure_is_dependency_unavailable(unreachable_db):
    with pytest.raises(DependencyUnavailable, match="lexical search"):
        await lexical_search(unreachable_db, "poster")
    assert len(unreachable_db.statements) == 1


@pytest.mark.asyncio
async def test_blank_text_never_touches_store(unreachable_db):
    assert await lexical_search(unreachable_db, "   ") == []
    assert unreachable_db.statements == []
