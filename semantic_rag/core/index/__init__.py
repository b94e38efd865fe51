"""Nearest-neighbor indexing and scoring primitives."""

from .brute_force import brute_force_search
from .hnsw import HNSWIndex, HNSWNode
from .lexical import keyword_score, keyword_search
from .similarity import cosine_similarity, euclidean_distance

__all__ = [
    "HNSWIndex",
    "HNSWNode",
    "brute_force_search",
    "cosine_similarity",
    "euclidean_distance",
    "keyword_score",
    "keyword_search",
]
