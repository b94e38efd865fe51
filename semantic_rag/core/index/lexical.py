"""Term-frequency keyword scoring used by hybrid search."""

import math
from collections.abc import Iterable

from ..domain import Document, DocumentFilter, SearchResult


def keyword_score(query_terms: list[str], content: str, collection_size: int) -> float:
    """TF-IDF shaped score of lower-cased ``content`` for the query terms.

    Each term that occurs contributes
    ``(occurrences / len(content)) * ln(collection_size / (occurrences + 1))``.
    """
    if not content:
        return 0.0

    text = content.lower()
    score = 0.0
    for term in query_terms:
        occurrences = text.count(term)
        if occurrences:
            tf = occurrences / len(text)
            score += tf * math.log(collection_size / (occurrences + 1))
    return score


def keyword_search(
    documents: Iterable[Document],
    collection_size: int,
    query: str,
    k: int,
    filter: DocumentFilter | None = None,
) -> list[SearchResult]:
    """Rank documents by keyword score.

    Documents without a positive score are left out of the result set.
    Distance is always reported as 0.
    """
    query_terms = query.lower().split()
    if not query_terms:
        return []

    results: list[SearchResult] = []
    for doc in documents:
        if filter is not None and not filter(doc):
            continue
        score = keyword_score(query_terms, doc.content, collection_size)
        if score > 0:
            results.append(SearchResult(document=doc, score=score, distance=0.0))

    results.sort(key=lambda r: r.score, reverse=True)
    return results[:k]
