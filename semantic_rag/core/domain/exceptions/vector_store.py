"""Vector store exceptions."""

from .base import SemanticRagError


class VectorStoreError(SemanticRagError):
    """Base error for vector store operations."""

    error_code = "SR_VEC_001"
    status_code = 503


class CollectionNotFoundError(VectorStoreError):
    """Requested collection does not exist."""

    error_code = "SR_VEC_002"
    status_code = 404


class DimensionMismatchError(VectorStoreError):
    """Vector length does not match the expected dimension.

    Raised when:
    - A document embedding does not match its collection's dimensions
    - A query vector does not match the collection's dimensions
    - Two vectors of different lengths are compared
    """

    error_code = "SR_VEC_003"
    status_code = 400


class DocumentNotFoundError(VectorStoreError):
    """Requested document does not exist in the collection."""

    error_code = "SR_VEC_004"
    status_code = 404
