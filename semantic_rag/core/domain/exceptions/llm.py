"""LLM exceptions."""

from .base import SemanticRagError


class LLMError(SemanticRagError):
    """Base error for LLM operations."""

    error_code = "SR_LLM_001"


class LLMNotConfiguredError(LLMError):
    """No chat provider is available for answer generation."""

    error_code = "SR_LLM_002"
    status_code = 503


class LLMConnectionError(LLMError):
    """Failed to connect to LLM provider.

    Common causes:
    - Invalid API key
    - Network issues
    - Service unavailable
    """

    error_code = "SR_LLM_003"
    status_code = 503


class LLMRateLimitError(LLMError):
    """Rate limit exceeded on LLM provider."""

    error_code = "SR_LLM_004"
    status_code = 429


class LLMGenerationError(LLMError):
    """Failed to generate LLM response.

    Common causes:
    - Content filtered by safety settings
    - Token limit exceeded
    - Invalid prompt format
    """

    error_code = "SR_LLM_005"
