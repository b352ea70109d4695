"""Tests for weighted score fusion."""

import pytest

from design_search.errors import InvalidQuery
from design_search.models.artifact import SourceKind
from design_search.models.search import SearchWeights, TextHit, VectorHit
from design_search.search.fusion import fuse, text_rank_score

T = SourceKind.TEMPLATE
P = SourceKind.PROJECT

DEFAULT = SearchWeights(vector=0.7, text=0.3)


def _ids(items):
    return [i.artifact_id for i in items]


# --- text_rank_score ---


def test_text_rank_score_first_position_gets_full_weight():
    assert text_rank_score(0, 2, 0.3) == pytest.approx(0.3)


def test_text_rank_score_decreases_with_position():
    assert text_rank_score(1, 2, 0.3) == pytest.approx(0.15)
    assert text_rank_score(3, 4, 1.0) == pytest.approx(0.25)


# --- documented examples ---


def test_vector_only_example():
    """A=0.9, B=0.6 with vector weight 0.7 -> 0.63, 0.42."""
    fused = fuse([VectorHit("A", T, 0.9), VectorHit("B", T, 0.6)], [], DEFAULT)
    assert _ids(fused) == ["A", "B"]
    assert fused[0].combined_score == pytest.approx(0.63)
    assert fused[1].combined_score == pytest.approx(0.42)


def test_text_only_example():
    """Lexical [B, A] with text weight 0.3 -> 0.3, 0.15."""
    fused = fuse([], [TextHit("B", T), TextHit("A", T)], DEFAULT)
    assert _ids(fused) == ["B", "A"]
    assert fused[0].text_score == pytest.approx(0.3)
    assert fused[1].text_score == pytest.approx(0.15)


def test_merged_example_is_single_entry():
    fused = fuse([VectorHit("A", T, 0.5)], [TextHit("A", T)], DEFAULT)
    assert len(fused) == 1
    item = fused[0]
    assert item.vector_score == pytest.approx(0.35)
    assert item.text_score == pytest.approx(0.3)
    assert item.combined_score == pytest.approx(0.65)
    assert item.corroborated


# --- edge cases ---


def test_both_empty_returns_empty():
    assert fuse([], [], DEFAULT) == []


def test_zero_weights_returns_empty():
    fused = fuse(
        [VectorHit("A", T, 0.9)],
        [TextHit("B", T)],
        SearchWeights(vector=0.0, text=0.0),
    )
    assert fused == []


def test_zero_weight_path_contributes_nothing():
    fused = fuse(
        [VectorHit("A", T, 0.9)],
        [TextHit("B", T)],
        SearchWeights(vector=0.0, text=1.0),
    )
    assert _ids(fused) == ["B"]


def test_zero_similarity_kept_under_positive_weight():
    fused = fuse(
        [VectorHit("A", T, 0.4), VectorHit("B", T, 0.0)],
        [],
        SearchWeights(vector=1.0, text=0.0),
    )
    assert _ids(fused) == ["A", "B"]
    assert fused[1].combined_score == 0.0


def test_unnormalized_weights_are_not_rescaled():
    fused = fuse([VectorHit("A", T, 0.5)], [TextHit("A", T)], SearchWeights(vector=2.0, text=1.0))
    assert fused[0].combined_score == pytest.approx(2.0)


def test_limit_truncates():
    hits = [VectorHit(f"t{i}", T, 0.9 - i * 0.1) for i in range(5)]
    assert _ids(fuse(hits, [], DEFAULT, limit=2)) == ["t0", "t1"]


def test_non_positive_limit_is_invalid():
    with pytest.raises(InvalidQuery):
        fuse([], [], DEFAULT, limit=0)


# --- identity ---


def test_same_id_different_kind_stays_separate():
    fused = fuse([VectorHit("x1", T, 0.8)], [TextHit("x1", P)], DEFAULT)
    assert len(fused) == 2
    assert {i.source_kind for i in fused} == {T, P}
    assert not any(i.corroborated for i in fused)


def test_duplicate_vector_hit_keeps_first():
    fused = fuse([VectorHit("A", T, 0.9), VectorHit("A", T, 0.1)], [], DEFAULT)
    assert len(fused) == 1
    assert fused[0].vector_score == pytest.approx(0.63)


# --- ordering ---


def test_combined_score_is_non_increasing():
    vector_hits = [VectorHit(f"v{i}", T, 0.95 - i * 0.07) for i in range(8)]
    text_hits = [TextHit(f"v{i}", T) for i in (6, 2, 7)] + [TextHit("p1", P), TextHit("p2", P)]
    fused = fuse(vector_hits, text_hits, DEFAULT)
    scores = [i.combined_score for i in fused]
    assert scores == sorted(scores, reverse=True)


def test_corroborated_outranks_single_path_at_equal_score():
    # single: 1.0 * 0.5 = 0.5; both: 0.5 * 0.5 + first-of-one text 0.25 = 0.5
    weights = SearchWeights(vector=0.5, text=0.25)
    fused = fuse(
        [VectorHit("single", T, 1.0), VectorHit("both", T, 0.5)],
        [TextHit("both", T)],
        weights,
    )
    assert fused[0].combined_score == pytest.approx(fused[1].combined_score)
    assert _ids(fused) == ["both", "single"]


def test_equal_vector_scores_keep_index_order():
    """The index returns newest first at equal similarity; fusion keeps that."""
    fused = fuse([VectorHit("newer", T, 0.8), VectorHit("older", T, 0.8)], [], DEFAULT)
    assert _ids(fused) == ["newer", "older"]


def test_empty_vector_list_orders_by_text_score():
    text_hits = [TextHit(f"t{i}", T) for i in range(4)]
    fused = fuse([], text_hits, DEFAULT)
    assert _ids(fused) == ["t0", "t1", "t2", "t3"]
    assert all(i.vector_score is None for i in fused)


def test_empty_text_list_orders_by_vector_score():
    fused = fuse([VectorHit("a", T, 0.6), VectorHit("b", P, 0.9)], [], DEFAULT)
    assert _ids(fused) == ["b", "a"]
    assert all(i.text_score is None for i in fused)


def test_fusion_is_deterministic():
    vector_hits = [VectorHit("a", T, 0.7), VectorHit("b", P, 0.7), VectorHit("c", T, 0.5)]
    text_hits = [TextHit("c", T), TextHit("d", P)]
    first = fuse(vector_hits, text_hits, DEFAULT)
    second = fuse(vector_hits, text_hits, DEFAULT)
    assert first == second
