"""RAG query endpoints, including a server-sent events stream."""

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from .....core.domain import ChatMessage, RAGConfig
from .....core.services import RagService
from ..deps import get_rag_service
from ..models import (
    CitationModel,
    ErrorResponse,
    RagContextModel,
    RagQueryRequest,
    RagResponseModel,
    SearchResultModel,
    metadata_filter,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/rag",
    tags=["rag"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Collection not found"},
        503: {"model": ErrorResponse, "description": "No chat provider configured"},
    },
)


def _config(request: RagQueryRequest) -> RAGConfig:
    return RAGConfig(
        collection_name=request.collection_name,
        top_k=request.top_k,
        min_score=request.min_score,
        reranking=request.reranking,
        max_context_length=request.max_context_length,
        query_expansion=request.query_expansion,
        include_metadata=request.include_metadata,
        metadata_filter=metadata_filter(request.filter),
    )


def _history(request: RagQueryRequest) -> list[ChatMessage]:
    return [ChatMessage(role=m.role, content=m.content) for m in request.messages]


@router.post("/query", response_model=RagResponseModel)
async def query(
    request: RagQueryRequest,
    rag: RagService = Depends(get_rag_service),
) -> RagResponseModel:
    """Answer a question from a collection with citations and confidence."""
    response = await rag.query(request.question, _config(request), _history(request))

    return RagResponseModel(
        answer=response.answer,
        context=RagContextModel(
            sources=[SearchResultModel.from_domain(r) for r in response.context.sources],
            query=response.context.query,
            enhanced_query=response.context.enhanced_query,
        ),
        citations=[CitationModel.from_domain(c) for c in response.citations],
        confidence=response.confidence,
    )


@router.post("/stream")
async def stream(
    request: RagQueryRequest,
    rag: RagService = Depends(get_rag_service),
) -> StreamingResponse:
    """Stream ``context``, ``answer`` and ``done`` events as server-sent events."""
    events = rag.stream_query(request.question, _config(request), _history(request))

    # Errors raised before the first event become regular error responses
    first = await anext(events)

    async def body() -> AsyncIterator[str]:
        yield f"event: {first.type}\ndata: {json.dumps(first.data, default=str)}\n\n"
        async for event in events:
            yield f"event: {event.type}\ndata: {json.dumps(event.data, default=str)}\n\n"

    return StreamingResponse(
        body(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
