"""LLM relevance reranking for retrieved candidates.

Each candidate is shown to the chat model, which rates its relevance to the
query from 0 to 10. The rating is blended with the retrieval score so a
single noisy judgment cannot overturn strong retrieval evidence.
"""

import asyncio
import logging
import re

from ..domain import ChatMessage, SearchResult
from ..ports.llm_port import LLMPort
from .prompts import RERANK_PROMPT

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def parse_relevance(text: str, default: float = 5.0) -> float:
    """Pull the first number out of a model reply, clamped to 0-10."""
    match = _NUMBER.search(text or "")
    if not match:
        return default
    return min(max(float(match.group()), 0.0), 10.0)


class LLMReranker:
    """Re-scores search results with per-candidate LLM judgments.

    ``score = (llm_score / 10) * llm_weight + retrieval_score * (1 - llm_weight)``
    """

    CONTENT_PREVIEW_LENGTH = 500

    def __init__(self, llm: LLMPort, llm_weight: float = 0.4, concurrent: bool = False):
        """Initialize the reranker.

        Args:
            llm: Chat provider used for relevance judgments.
            llm_weight: Share of the blended score given to the LLM rating.
            concurrent: Issue the per-candidate calls concurrently instead of
                one after another. Output is identical either way.
        """
        self.llm = llm
        self.llm_weight = llm_weight
        self.concurrent = concurrent

    async def _score(self, query: str, result: SearchResult) -> float:
        try:
            reply = await self.llm.generate(
                RERANK_PROMPT.format(query=query),
                [
                    ChatMessage(
                        role="user",
                        content=f'Document: "{result.document.content[: self.CONTENT_PREVIEW_LENGTH]}"',
                    )
                ],
            )
        except Exception as e:
            logger.warning(
                "Rerank failed for %s, keeping retrieval score: %s",
                result.document.id,
                e,
                extra={"stage": "rerank"},
            )
            return result.score

        rating = parse_relevance(reply)
        return (rating / 10) * self.llm_weight + result.score * (1 - self.llm_weight)

    async def rerank(
        self,
        query: str,
        results: list[SearchResult],
        top_k: int = 5,
    ) -> list[SearchResult]:
        """Re-score up to ``2 * top_k`` candidates and keep the best ``top_k``.

        With ``top_k`` or fewer candidates there is nothing to choose
        between, so they come back unchanged with their retrieval scores
        and no model calls are made.

        Args:
            query: The user's question.
            results: Candidates from retrieval, best first.
            top_k: Number of results to return.

        Returns:
            The best ``top_k`` results, best first. Reranked entries are new
            SearchResult objects carrying blended scores.
        """
        if len(results) <= top_k:
            return list(results)

        candidates = results[: top_k * 2]

        if self.concurrent:
            scores = await asyncio.gather(*(self._score(query, r) for r in candidates))
        else:
            scores = [await self._score(query, r) for r in candidates]

        reranked = [
            SearchResult(document=r.document, score=score, distance=r.distance)
            for r, score in zip(candidates, scores)
        ]
        reranked.sort(key=lambda r: r.score, reverse=True)

        logger.debug(
            "Re-ranked %d candidates. Top score: %.3f", len(reranked), reranked[0].score
        )
        return reranked[:top_k]
