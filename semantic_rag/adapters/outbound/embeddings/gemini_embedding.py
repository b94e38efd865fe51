"""Gemini embedding adapter using the google-genai SDK."""

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from google import genai

from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import (
    EmbeddingAPIError,
    EmbeddingError,
    EmbeddingRateLimitError,
    MissingAPIKeyError,
)
from ....core.ports.embedding_port import EmbeddingPort
from .._errors import is_rate_limit

logger = logging.getLogger(__name__)

# Constants
EMBEDDING_BATCH_SIZE = 100
MAX_EMBEDDING_RETRIES = 3


class GeminiEmbeddingAdapter(EmbeddingPort):
    """Embeds text with the Gemini embedding API.

    Queries and documents use different task types so the provider can
    optimize each side of the retrieval pair.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-embedding-001",
        dimensions: int = 768,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self._dimensions = dimensions
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self._client: "genai.Client | None" = None

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_client(self) -> "genai.Client":
        """Lazy load the genai client."""
        if self._client is None:
            if not self.api_key:
                raise MissingAPIKeyError(
                    "Google API key not set. Set GOOGLE_API_KEY in your .env file.",
                    context={"provider": "gemini", "model": self.model_name},
                )
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.info("Gemini embeddings initialized for model: %s", self.model_name)
        return self._client

    async def embed_query(self, text: str) -> list[float]:
        embeddings = await self._embed_texts([text], task_type="RETRIEVAL_QUERY")
        if not embeddings:
            raise EmbeddingAPIError("Embedding API returned no vector for query")
        return embeddings[0]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), EMBEDDING_BATCH_SIZE):
            batch = texts[i : i + EMBEDDING_BATCH_SIZE]
            all_embeddings.extend(await self._embed_texts(batch, task_type="RETRIEVAL_DOCUMENT"))
        return all_embeddings

    async def _embed_texts(self, texts: list[str], task_type: str) -> list[list[float]]:
        from google.genai import types

        client = self._get_client()
        config = types.EmbedContentConfig(
            task_type=task_type,
            output_dimensionality=self._dimensions,
        )

        for attempt in range(MAX_EMBEDDING_RETRIES):
            await self.rate_limiter.acquire()
            try:
                result = await client.aio.models.embed_content(
                    model=self.model_name,
                    contents=texts,
                    config=config,
                )
                return [list(embedding.values) for embedding in result.embeddings or []]
            except Exception as e:
                rate_limited = is_rate_limit(e)
                if attempt == MAX_EMBEDDING_RETRIES - 1:
                    error_class: type[EmbeddingError] = (
                        EmbeddingRateLimitError if rate_limited else EmbeddingAPIError
                    )
                    raise error_class(
                        f"Failed to embed {len(texts)} texts after {MAX_EMBEDDING_RETRIES} attempts",
                        cause=e,
                        context={"model": self.model_name, "task_type": task_type},
                    ) from e
                wait_time = 2**attempt
                logger.warning("Embedding call failed (%s), retrying in %ss", e, wait_time)
                await asyncio.sleep(wait_time)
        return []
