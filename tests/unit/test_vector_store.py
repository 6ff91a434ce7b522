import math

import pytest

from ragloop.retrieval.vector_store import InMemoryVectorIndex, cosine_similarity
from ragloop.types import Segment


def _segment(position: int, text: str = "") -> Segment:
    return Segment(
        segment_id=f"doc-seg-{position:04d}",
        doc_id="doc",
        filename="doc.txt",
        position=position,
        text=text or f"segment {position}",
        start=0,
    )


@pytest.mark.parametrize(
    "vector", [[1.0, 0.0, 0.0], [0.3, -1.2, 4.5], [1e-3, 2e-3, -5e-4]]
)
def test_cosine_of_vector_with_itself_is_one(vector: list[float]) -> None:
    assert math.isclose(cosine_similarity(vector, vector), 1.0, rel_tol=1e-9)


def test_cosine_is_symmetric() -> None:
    a = [0.2, 0.7, -0.1]
    b = [0.9, -0.3, 0.4]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_cosine_with_zero_vector_is_zero() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0


def test_search_orders_by_score_and_honors_k() -> None:
    index = InMemoryVectorIndex()
    index.add(_segment(0), [1.0, 0.0])
    index.add(_segment(1), [0.6, 0.8])
    index.add(_segment(2), [0.0, 1.0])
    index.add(_segment(3), [0.8, 0.6])

    matches = index.search([1.0, 0.0], k=2, min_score=-1.0)

    assert [match.segment.position for match in matches] == [0, 3]
    assert matches[0].score >= matches[1].score


def test_threshold_applies_before_top_k_cut() -> None:
    index = InMemoryVectorIndex()
    index.add(_segment(0), [1.0, 0.0])
    index.add(_segment(1), [0.0, 1.0])
    index.add(_segment(2), [-1.0, 0.0])

    matches = index.search([1.0, 0.0], k=3, min_score=0.5)

    assert len(matches) == 1
    assert all(match.score >= 0.5 for match in matches)


def test_search_returns_nothing_when_no_entry_clears_threshold() -> None:
    index = InMemoryVectorIndex()
    index.add(_segment(0), [0.0, 1.0])

    assert index.search([1.0, 0.0], k=5, min_score=0.7) == []


def test_ties_are_broken_by_insertion_order() -> None:
    index = InMemoryVectorIndex()
    for position in range(4):
        index.add(_segment(position), [1.0, 1.0])

    matches = index.search([1.0, 1.0], k=3, min_score=0.0)

    assert [match.entry.ordinal for match in matches] == [0, 1, 2]


def test_search_results_never_increase_in_score() -> None:
    index = InMemoryVectorIndex()
    vectors = [[math.cos(i / 3), math.sin(i / 3)] for i in range(12)]
    index.add_many([_segment(i) for i in range(12)], vectors)

    matches = index.search([1.0, 0.2], k=8, min_score=-0.5)

    assert len(matches) <= 8
    scores = [match.score for match in matches]
    assert scores == sorted(scores, reverse=True)
    assert all(score >= -0.5 for score in scores)


def test_add_many_rejects_length_mismatch() -> None:
    index = InMemoryVectorIndex()
    with pytest.raises(ValueError):
        index.add_many([_segment(0)], [[1.0], [2.0]])
    assert len(index) == 0
