"""Unit tests for the HNSW graph."""

import numpy as np
import pytest

from semantic_rag.core.domain.exceptions import DimensionMismatchError
from semantic_rag.core.index import HNSWIndex

pytestmark = pytest.mark.unit


def _build(vectors, **kwargs):
    index = HNSWIndex(dimensions=vectors.shape[1], seed=7, **kwargs)
    for i, vector in enumerate(vectors):
        index.insert(f"n{i}", vector)
    return index


class TestConstruction:
    def test_empty_index(self):
        index = HNSWIndex(dimensions=3)

        assert len(index) == 0
        assert index.entry_point is None
        assert index.search([1, 0, 0], k=5) == []

    def test_first_insert_has_no_neighbors(self):
        index = HNSWIndex(dimensions=2)
        node = index.insert("a", [1.0, 0.0])

        assert "a" in index
        assert all(links == [] for links in node.neighbors.values())

    def test_m_below_two_rejected(self):
        with pytest.raises(ValueError):
            HNSWIndex(dimensions=2, m=1)

    def test_entry_point_has_highest_level(self, rng):
        index = _build(rng.normal(size=(200, 8)))
        levels = [index.get_node(f"n{i}").level for i in range(200)]

        assert index.entry_point.level == max(levels)

    def test_levels_bounded(self, rng):
        index = _build(rng.normal(size=(200, 4)))

        for i in range(200):
            assert 0 <= index.get_node(f"n{i}").level <= HNSWIndex.MAX_LEVEL

    def test_neighbor_lists_stay_bounded(self, rng):
        """Neighbor lists are pruned back to m once they grow past 2m."""
        index = _build(rng.normal(size=(150, 4)), m=4, ef_construction=20)

        for i in range(150):
            node = index.get_node(f"n{i}")
            for links in node.neighbors.values():
                assert len(links) <= 8

    def test_neighbors_only_on_node_layers(self, rng):
        index = _build(rng.normal(size=(100, 4)))

        for i in range(100):
            node = index.get_node(f"n{i}")
            assert set(node.neighbors) <= set(range(node.level + 1))

    def test_reinsert_replaces_node(self):
        index = HNSWIndex(dimensions=2, seed=1)
        index.insert("a", [1.0, 0.0])
        index.insert("b", [0.0, 1.0])
        index.insert("a", [0.5, 0.5])

        assert len(index) == 2
        np.testing.assert_allclose(index.get_node("a").embedding, [0.5, 0.5])

    def test_insert_dimension_mismatch(self):
        index = HNSWIndex(dimensions=3)

        with pytest.raises(DimensionMismatchError):
            index.insert("a", [1.0, 0.0])
        assert len(index) == 0


class TestSearch:
    def test_exact_match_found_first(self, rng):
        vectors = rng.normal(size=(100, 8))
        index = _build(vectors)

        distance, node_id = index.search(vectors[42], k=1)[0]

        assert node_id == "n42"
        assert distance == pytest.approx(0.0)

    def test_results_sorted_by_distance(self, rng):
        index = _build(rng.normal(size=(100, 8)))
        results = index.search(rng.normal(size=8), k=10)
        distances = [d for d, _ in results]

        assert distances == sorted(distances)

    def test_candidate_width(self, rng):
        index = _build(rng.normal(size=(300, 4)), ef_search=10)

        assert len(index.search(rng.normal(size=4), k=20)) <= 40
        assert len(index.search(rng.normal(size=4), k=2)) <= 10

    def test_recall_against_exact_search(self, rng):
        """At default parameters the graph finds at least 90% of the true top-10."""
        vectors = rng.normal(size=(400, 8))
        index = _build(vectors)
        queries = rng.normal(size=(20, 8))

        hits = 0
        for query in queries:
            exact = np.argsort(np.linalg.norm(vectors - query, axis=1))[:10]
            expected = {f"n{i}" for i in exact}
            found = {node_id for _, node_id in index.search(query, k=10)[:10]}
            hits += len(expected & found)

        assert hits / (10 * len(queries)) >= 0.9

    def test_search_dimension_mismatch(self, rng):
        index = _build(rng.normal(size=(10, 4)))

        with pytest.raises(DimensionMismatchError):
            index.search([1.0, 0.0], k=3)


class TestRemoval:
    def test_remove_keeps_stale_edges(self, rng):
        """Removal does not repair edges pointing at the removed node."""
        index = _build(rng.normal(size=(20, 4)))
        removed = index.get_node("n19")
        neighbor_ids = list(removed.neighbors[0])

        assert index.remove("n19") is True
        assert "n19" not in index
        assert any("n19" in index.get_node(n).neighbors[0] for n in neighbor_ids)

    def test_search_skips_removed_nodes(self, rng):
        vectors = rng.normal(size=(50, 4))
        index = _build(vectors)
        index.remove("n10")

        results = index.search(vectors[10], k=5)

        assert results
        assert "n10" not in {node_id for _, node_id in results}

    def test_remove_entry_point(self, rng):
        index = _build(rng.normal(size=(30, 4)))
        old_entry = index.entry_point.id
        index.remove(old_entry)

        assert index.entry_point is not None
        assert index.entry_point.id != old_entry
        assert index.search(rng.normal(size=4), k=3)

    def test_remove_unknown(self):
        assert HNSWIndex(dimensions=2).remove("missing") is False

    def test_clear(self, rng):
        index = _build(rng.normal(size=(10, 4)))
        index.clear()

        assert len(index) == 0
        assert index.entry_point is None
