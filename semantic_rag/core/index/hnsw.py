"""Hierarchical Navigable Small World graph for approximate nearest neighbors.

The graph holds one node per document. Each node lives on layers
``0..level`` and keeps a list of neighbor ids per layer. Searches start
at the entry point (the node with the highest level), descend greedily
through the upper layers and finish with a wide beam search on layer 0.

Removal drops the node but leaves edges that point at it in place.
Traversal skips ids that no longer resolve to a node, so callers must
still check results against their own document map.
"""

import bisect
import heapq
import logging
import math
import random
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from ..domain.exceptions import DimensionMismatchError
from .similarity import euclidean_distance

logger = logging.getLogger(__name__)

# (distance, node id) pairs, ordered by distance
Candidate = tuple[float, str]


@dataclass
class HNSWNode:
    """A graph node.

    Attributes:
        id: Document id this node indexes.
        embedding: Copy of the document vector.
        level: Highest layer the node lives on.
        neighbors: Layer -> ordered neighbor ids.
    """

    id: str
    embedding: np.ndarray
    level: int
    neighbors: dict[int, list[str]] = field(default_factory=dict)


class HNSWIndex:
    """Multi-layer proximity graph over the embeddings of one collection.

    Writers are serialized by an internal lock. Readers take no lock and
    may observe a node that is only partially linked.
    """

    MAX_LEVEL = 16

    def __init__(
        self,
        dimensions: int,
        m: int = 16,
        ef_construction: int = 200,
        ef_search: int = 50,
        seed: int | None = None,
    ) -> None:
        """Initialize an empty graph.

        Args:
            dimensions: Required vector length.
            m: Max neighbors per layer (lists are pruned back to m past 2m).
            ef_construction: Candidate-list width while inserting.
            ef_search: Candidate-list width while querying layer 0.
            seed: Optional seed for the level generator.
        """
        if m < 2:
            raise ValueError("m must be at least 2")
        self.dimensions = dimensions
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_search
        self.ml = 1 / math.log(m)
        self._nodes: dict[str, HNSWNode] = {}
        self._rng = random.Random(seed)
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> HNSWNode | None:
        return self._nodes.get(node_id)

    # ------------------------------------------------------------------ levels

    def _random_level(self) -> int:
        # Geometric with p = 1/m per extra layer, i.e. floor(-ln(U) * ml)
        level = 0
        while self._rng.random() < 1 / self.m and level < self.MAX_LEVEL:
            level += 1
        return level

    def _find_entry_point(self) -> HNSWNode | None:
        entry: HNSWNode | None = None
        for node in self._nodes.values():
            if entry is None or node.level > entry.level:
                entry = node
        return entry

    @property
    def entry_point(self) -> HNSWNode | None:
        """Highest-level node, or None for an empty graph."""
        return self._find_entry_point()

    # ------------------------------------------------------------------ layers

    def _check_dimensions(self, vector: np.ndarray) -> None:
        if vector.shape != (self.dimensions,):
            raise DimensionMismatchError(
                f"Expected a vector of length {self.dimensions}, got {vector.size}",
                context={"expected": self.dimensions, "actual": int(vector.size)},
            )

    def _search_layer(
        self,
        query: np.ndarray,
        entry_id: str,
        level: int,
        ef: int,
    ) -> list[Candidate]:
        """Greedy beam search on one layer.

        Returns up to ``ef`` (distance, id) pairs sorted by distance.
        """
        entry = self._nodes.get(entry_id)
        if entry is None:
            return []

        entry_distance = euclidean_distance(query, entry.embedding)
        visited = {entry_id}
        candidates: list[Candidate] = [(entry_distance, entry_id)]
        results: list[Candidate] = [(entry_distance, entry_id)]

        while candidates:
            distance, current_id = heapq.heappop(candidates)
            if len(results) >= ef and distance > results[-1][0]:
                break

            current = self._nodes.get(current_id)
            if current is None:
                continue

            for neighbor_id in current.neighbors.get(level, []):
                if neighbor_id in visited:
                    continue
                visited.add(neighbor_id)

                neighbor = self._nodes.get(neighbor_id)
                if neighbor is None:
                    # stale edge to a removed node
                    continue

                neighbor_distance = euclidean_distance(query, neighbor.embedding)
                if len(results) < ef or neighbor_distance < results[-1][0]:
                    heapq.heappush(candidates, (neighbor_distance, neighbor_id))
                    bisect.insort(results, (neighbor_distance, neighbor_id))
                    if len(results) > ef:
                        results.pop()

        return results

    def _select_neighbors(self, base: np.ndarray, candidate_ids: list[str], m: int) -> list[str]:
        scored: list[Candidate] = []
        for candidate_id in candidate_ids:
            node = self._nodes.get(candidate_id)
            distance = math.inf if node is None else euclidean_distance(base, node.embedding)
            scored.append((distance, candidate_id))
        scored.sort()
        return [candidate_id for _, candidate_id in scored[:m]]

    # ------------------------------------------------------------------ writes

    def insert(self, node_id: str, embedding: Sequence[float]) -> HNSWNode:
        """Link a new node into the graph.

        An existing node with the same id is removed first.

        Raises:
            DimensionMismatchError: If the vector has the wrong length.
        """
        vector = np.asarray(embedding, dtype=np.float64)
        self._check_dimensions(vector)

        with self._write_lock:
            self._nodes.pop(node_id, None)

            level = self._random_level()
            node = HNSWNode(
                id=node_id,
                embedding=vector,
                level=level,
                neighbors={layer: [] for layer in range(level + 1)},
            )

            entry = self._find_entry_point()
            if entry is None:
                self._nodes[node_id] = node
                return node

            for layer in range(entry.level, -1, -1):
                found = self._search_layer(vector, entry.id, layer, self.ef_construction)

                if layer <= level:
                    selected = found[: self.m]
                    node.neighbors[layer] = [neighbor_id for _, neighbor_id in selected]
                    for _, neighbor_id in selected:
                        self._link_back(neighbor_id, node_id, layer)

                if found:
                    entry = self._nodes.get(found[0][1], entry)

            self._nodes[node_id] = node
            logger.debug("Inserted node %s at level %d (graph size %d)", node_id, level, len(self))
            return node

    def _link_back(self, neighbor_id: str, node_id: str, layer: int) -> None:
        neighbor = self._nodes.get(neighbor_id)
        if neighbor is None or layer > neighbor.level:
            return

        links = neighbor.neighbors.setdefault(layer, [])
        links.append(node_id)
        if len(links) > self.m * 2:
            neighbor.neighbors[layer] = self._select_neighbors(neighbor.embedding, links, self.m)

    def remove(self, node_id: str) -> bool:
        """Drop a node without repairing edges that point at it."""
        with self._write_lock:
            return self._nodes.pop(node_id, None) is not None

    def clear(self) -> None:
        with self._write_lock:
            self._nodes.clear()

    # ------------------------------------------------------------------ reads

    def search(self, query: Sequence[float], k: int) -> list[Candidate]:
        """Approximate nearest neighbors of ``query``.

        Returns the layer-0 candidate set, ``max(ef_search, 2k)`` wide at
        most, as (euclidean distance, id) pairs sorted by distance. Ids may
        belong to nodes removed since the search started.

        Raises:
            DimensionMismatchError: If the query has the wrong length.
        """
        vector = np.asarray(query, dtype=np.float64)
        self._check_dimensions(vector)

        entry = self._find_entry_point()
        if entry is None:
            return []

        current_id = entry.id
        for layer in range(entry.level, 0, -1):
            nearest = self._search_layer(vector, current_id, layer, 1)
            if nearest:
                current_id = nearest[0][1]

        return self._search_layer(vector, current_id, 0, max(self.ef_search, k * 2))
