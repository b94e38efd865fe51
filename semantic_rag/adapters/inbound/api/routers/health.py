"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ..... import __version__
from .....core.services import VectorStoreService
from ..deps import get_vector_store
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        HealthResponse with current status, version and collection count.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        collections=len(vector_store.list_collections()),
    )
