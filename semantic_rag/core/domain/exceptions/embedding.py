"""Embedding exceptions."""

from .base import SemanticRagError


class EmbeddingError(SemanticRagError):
    """Failed to generate embeddings."""

    error_code = "SR_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "SR_EMB_002"


class EmbeddingRateLimitError(EmbeddingError):
    """Embedding API rate limit exceeded."""

    error_code = "SR_EMB_003"
    status_code = 429
