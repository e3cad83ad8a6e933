"""Unit tests for review rating summaries."""

import pytest
from services.store_service.services.review_ops import summarize_ratings


@pytest.mark.unit
def test_summarize_ratings_counts_each_star():
    stats = summarize_ratings([5, 5, 4, 1])

    assert stats.count == 4
    assert stats.average == 3.75
    assert stats.distribution == {1: 1, 2: 0, 3: 0, 4: 1, 5: 2}


@pytest.mark.unit
def test_summarize_ratings_empty():
    stats = summarize_ratings([])

    assert stats.count == 0
    assert stats.average == 0
    assert stats.distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}


@pytest.mark.unit
def test_summaries_do_not_share_distribution():
    summarize_ratings([3])
    assert summarize_ratings([]).distribution[3] == 0
