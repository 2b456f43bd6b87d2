"""
Tests for the in-memory vector index.
"""

import numpy as np
import pytest

from advanced_memory.vector.index import InMemoryVectorIndex


@pytest.fixture
def index():
    index = InMemoryVectorIndex(dimension=3)
    index.add(
        ["a", "b", "c"],
        np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]]),
    )
    return index


class TestInMemoryVectorIndex:
    def test_len_and_contains(self, index):
        assert len(index) == 3
        assert "a" in index
        assert "z" not in index

    def test_search_orders_by_similarity(self, index):
        results = index.search(np.array([1.0, 0.0, 0.0]), top_k=2)
        assert [item_id for item_id, _ in results] == ["a", "c"]
        assert results[0][1] == pytest.approx(1.0)

    def test_search_restricted_to_ids(self, index):
        results = index.search(np.array([1.0, 0.0, 0.0]), top_k=5, ids=["b", "missing"])
        assert [item_id for item_id, _ in results] == ["b"]

    def test_readd_replaces_vector(self, index):
        index.add(["b"], np.array([[1.0, 0.0, 0.0]]))
        assert len(index) == 3
        np.testing.assert_array_equal(index.get("b"), [1.0, 0.0, 0.0])

    def test_remove_keeps_positions_consistent(self, index):
        assert index.remove("a") is True
        assert index.remove("a") is False
        assert len(index) == 2
        np.testing.assert_array_equal(index.get("c"), [1.0, 1.0, 0.0])
        assert set(index.similarities(np.array([0.0, 1.0, 0.0]))) == {"b", "c"}

    def test_mismatched_lengths(self, index):
        with pytest.raises(ValueError):
            index.add(["x", "y"], np.ones((1, 3)))

    def test_empty_index(self):
        index = InMemoryVectorIndex(dimension=3)
        assert index.similarities(np.ones(3)) == {}
        assert index.search(np.ones(3), top_k=3) == []
        assert index.get("missing") is None

    def test_clear(self, index):
        index.clear()
        assert len(index) == 0
        assert index.search(np.ones(3), top_k=3) == []

    def test_restore_snapshot(self, index):
        state = index.snapshot()
        index.add(["b", "d"], np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]))
        index.remove("a")

        index.restore(state)

        assert len(index) == 3
        assert "d" not in index
        np.testing.assert_array_equal(index.get("a"), [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(index.get("b"), [0.0, 1.0, 0.0])
