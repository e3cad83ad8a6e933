"""Unit tests for frequently-bought-together generation."""

import pytest
from services.store_service.models import RecommendationType
from services.store_service.services.recommendation_ops import (
    build_frequently_bought_edges,
    count_co_occurrences,
)


@pytest.mark.unit
def test_pairs_bought_together_twice_become_bidirectional_edges():
    """Orders (A,B), (A,B), (A,C): A<->B scored 2, A-C below threshold."""
    order_items = [
        ("o1", "A"),
        ("o1", "B"),
        ("o2", "A"),
        ("o2", "B"),
        ("o3", "A"),
        ("o3", "C"),
    ]
    counts = count_co_occurrences(order_items)
    assert counts[("A", "B")] == 2
    assert counts[("A", "C")] == 1

    edges = build_frequently_bought_edges(counts)
    pairs = {(e.product_id, e.recommended_product_id): e for e in edges}

    assert set(pairs) == {("A", "B"), ("B", "A")}
    assert pairs[("A", "B")].score == 2
    assert pairs[("B", "A")].score == 2
    assert all(
        e.recommendation_type == RecommendationType.FREQUENTLY_BOUGHT
        and not e.is_manual
        for e in edges
    )


@pytest.mark.unit
def test_single_line_orders_and_missing_products_are_ignored():
    counts = count_co_occurrences(
        [("o1", "A"), ("o2", "A"), ("o2", None), ("o3", "B")]
    )
    assert not counts


@pytest.mark.unit
def test_self_pairs_never_become_edges():
    counts = count_co_occurrences([("o1", "A"), ("o1", "A"), ("o2", "A"), ("o2", "A")])
    assert counts[("A", "A")] == 2
    assert build_frequently_bought_edges(counts) == []


@pytest.mark.unit
def test_threshold_is_configurable():
    counts = count_co_occurrences([("o1", "A"), ("o1", "C")])
    assert build_frequently_bought_edges(counts) == []
    assert len(build_frequently_bought_edges(counts, min_count=1)) == 2
