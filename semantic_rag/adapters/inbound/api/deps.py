"""FastAPI dependency providers.

Routers depend on these functions so tests can swap them through
``app.dependency_overrides``.
"""

from ....composition.container import (
    get_rag_service,
    get_vector_store,
)

__all__ = ["get_rag_service", "get_vector_store"]
