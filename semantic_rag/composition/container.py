"""Composition root wiring adapters to the core services."""

from __future__ import annotations

import logging
from functools import lru_cache

from ..adapters.outbound.embeddings import (
    GeminiEmbeddingAdapter,
    SentenceTransformerEmbeddingAdapter,
)
from ..adapters.outbound.llm import GeminiLLMAdapter
from ..common.rate_limiter import RateLimiter
from ..config import settings
from ..core.domain.exceptions import InvalidConfigurationError
from ..core.ports.embedding_port import EmbeddingPort
from ..core.ports.llm_port import LLMPort
from ..core.services import IndexingService, RagService, VectorStoreService

logger = logging.getLogger(__name__)


@lru_cache
def get_embedder() -> EmbeddingPort:
    provider = settings.embedding_provider.lower()
    logger.info("Initializing %s embedding provider...", provider)

    if provider == "gemini":
        return GeminiEmbeddingAdapter(
            api_key=settings.google_api_key,
            model_name=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            rate_limiter=RateLimiter(settings.embedding_requests_per_minute),
        )
    if provider == "local":
        return SentenceTransformerEmbeddingAdapter(settings.local_embedding_model)

    raise InvalidConfigurationError(
        f"Unknown embedding provider: {settings.embedding_provider}",
        context={"embedding_provider": settings.embedding_provider},
    )


@lru_cache
def get_llm() -> LLMPort | None:
    if not settings.google_api_key:
        logger.warning("GOOGLE_API_KEY not configured - chat provider unavailable")
        return None

    logger.info("Initializing GeminiLLMAdapter...")
    return GeminiLLMAdapter(
        api_key=settings.google_api_key,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        rate_limiter=RateLimiter(settings.llm_requests_per_minute),
    )


@lru_cache
def get_vector_store() -> VectorStoreService:
    logger.info("Initializing VectorStoreService with in-memory HNSW index...")
    embedder = get_embedder()
    # local models report their own size
    default_dimensions = (
        settings.embedding_dimensions if isinstance(embedder, GeminiEmbeddingAdapter) else None
    )
    return VectorStoreService(
        embedder=embedder,
        default_dimensions=default_dimensions,
        m=settings.hnsw_m,
        ef_construction=settings.hnsw_ef_construction,
        ef_search=settings.hnsw_ef_search,
        brute_force_threshold=settings.brute_force_threshold,
    )


@lru_cache
def get_rag_service() -> RagService:
    logger.info("Initializing RagService...")
    return RagService(get_vector_store(), get_llm())


@lru_cache
def get_indexing_service() -> IndexingService:
    return IndexingService(
        get_vector_store(),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )
