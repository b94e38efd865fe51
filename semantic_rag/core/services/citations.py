"""Citation extraction and confidence scoring for generated answers.

Both are plain word-overlap heuristics over the retrieved passages.
"""

import re

from ..domain import Citation, SearchResult

MIN_FRAGMENT_LENGTH = 20
MIN_KEYWORD_LENGTH = 5
MIN_RELEVANCE = 0.3
DEDUP_PREFIX_LENGTH = 50
MAX_CITATIONS = 5

_FRAGMENT_BOUNDARY = re.compile(r"[.!?]")


def extract_citations(answer: str, results: list[SearchResult]) -> list[Citation]:
    """Find passage fragments whose distinctive words show up in the answer.

    A fragment is a sentence-like piece of at least 20 characters. Its
    relevance is the share of its words longer than four characters that
    appear verbatim in the answer; fragments above 0.3 are kept. Fragments
    sharing a 50-character prefix are collapsed to the most relevant one.
    """
    answer_lower = answer.lower()
    best: dict[str, Citation] = {}

    for result in results:
        source = result.document.source or "Unknown"

        for raw in _FRAGMENT_BOUNDARY.split(result.document.content):
            fragment = raw.strip()
            if len(fragment) < MIN_FRAGMENT_LENGTH:
                continue

            keywords = [w for w in fragment.lower().split() if len(w) >= MIN_KEYWORD_LENGTH]
            matching = [w for w in keywords if w in answer_lower]
            relevance = len(matching) / max(len(keywords), 1)

            if relevance > MIN_RELEVANCE:
                key = fragment[:DEDUP_PREFIX_LENGTH]
                existing = best.get(key)
                if existing is None or existing.relevance < relevance:
                    best[key] = Citation(content=fragment, source=source, relevance=relevance)

    citations = sorted(best.values(), key=lambda c: c.relevance, reverse=True)
    return citations[:MAX_CITATIONS]


def calculate_confidence(results: list[SearchResult], answer: str) -> float:
    """Blend retrieval quality and answer shape into a score in [0, 1].

    ``0.4 * mean score + 0.2 * (1 - variance) + 0.2 * length factor
    + 0.2 * source count factor``, where the length factor saturates at
    500 characters and the source factor at three sources. No sources
    means zero confidence.
    """
    if not results:
        return 0.0

    scores = [r.score for r in results]
    mean = sum(scores) / len(scores)
    variance = sum((s - mean) ** 2 for s in scores) / len(scores)

    variance_factor = max(0.0, 1 - variance)
    length_factor = min(len(answer) / 500, 1.0)
    source_factor = min(len(results) / 3, 1.0)

    confidence = mean * 0.4 + variance_factor * 0.2 + length_factor * 0.2 + source_factor * 0.2
    return min(max(confidence, 0.0), 1.0)
