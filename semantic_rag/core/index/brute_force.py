"""Exact linear-scan search for small collections."""

from collections.abc import Iterable

from ..domain import Document, DocumentFilter, SearchResult
from .similarity import VectorLike, cosine_similarity, euclidean_distance


def brute_force_search(
    documents: Iterable[Document],
    query: VectorLike,
    k: int,
    filter: DocumentFilter | None = None,
) -> list[SearchResult]:
    """Score every document against the query and keep the best ``k``.

    Args:
        documents: Candidate documents.
        query: Query embedding.
        k: Number of results to return.
        filter: Optional predicate; documents failing it are skipped.

    Returns:
        Results sorted by cosine similarity, highest first.
    """
    results = [
        SearchResult(
            document=doc,
            score=cosine_similarity(query, doc.embedding),
            distance=euclidean_distance(query, doc.embedding),
        )
        for doc in documents
        if filter is None or filter(doc)
    ]
    results.sort(key=lambda r: r.score, reverse=True)
    return results[:k]
