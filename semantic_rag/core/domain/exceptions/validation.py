"""Validation exceptions."""

from .base import SemanticRagError


class ValidationError(SemanticRagError):
    """Input validation failed."""

    error_code = "SR_VAL_001"
    status_code = 400


class EmptyQueryError(ValidationError):
    """Query cannot be empty or whitespace only."""

    error_code = "SR_VAL_002"


class QueryTooLongError(ValidationError):
    """Query exceeds maximum allowed length."""

    error_code = "SR_VAL_003"
