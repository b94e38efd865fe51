"""Engine exceptions, grouped by the layer that raises them.

    from semantic_rag.core.domain.exceptions import CollectionNotFoundError
"""

from .base import SemanticRagError
from .configuration import ConfigurationError, InvalidConfigurationError, MissingAPIKeyError
from .embedding import EmbeddingAPIError, EmbeddingError, EmbeddingRateLimitError
from .llm import (
    LLMConnectionError,
    LLMError,
    LLMGenerationError,
    LLMNotConfiguredError,
    LLMRateLimitError,
)
from .validation import EmptyQueryError, QueryTooLongError, ValidationError
from .vector_store import (
    CollectionNotFoundError,
    DimensionMismatchError,
    DocumentNotFoundError,
    VectorStoreError,
)

__all__ = [
    "SemanticRagError",
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    "VectorStoreError",
    "CollectionNotFoundError",
    "DimensionMismatchError",
    "DocumentNotFoundError",
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingRateLimitError",
    "LLMError",
    "LLMNotConfiguredError",
    "LLMConnectionError",
    "LLMRateLimitError",
    "LLMGenerationError",
    "ValidationError",
    "EmptyQueryError",
    "QueryTooLongError",
]
