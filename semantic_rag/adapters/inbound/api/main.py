"""FastAPI application for the semantic retrieval API."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....config import settings
from ....config.logging import setup_logging
from ....core.domain.exceptions import SemanticRagError
from ...common.exception_handler import (
    format_exception_json,
    get_http_status_code,
    log_exception,
)
from .deps import get_vector_store
from .routers import collections, health, rag

logger = logging.getLogger(__name__)

# Error bodies carry stack traces when set
DEBUG_MODE = settings.debug


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup and drop collections on shutdown."""
    setup_logging(settings.log_level, log_file=settings.log_file, json_format=settings.log_json)
    logger.info("Semantic RAG API starting up...")
    logger.info("API docs available at /docs")
    logger.info("Debug mode: %s", "ENABLED" if DEBUG_MODE else "DISABLED")

    yield

    logger.info("Semantic RAG API shutting down...")
    # Only close a store that was actually built
    if get_vector_store.cache_info().currsize:
        get_vector_store().close()


app = FastAPI(
    title="Semantic RAG API",
    description=(
        "In-memory vector collections with HNSW search, hybrid keyword "
        "retrieval and retrieval-augmented answers with citations."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(collections.router)
app.include_router(rag.router)


@app.exception_handler(SemanticRagError)
@app.exception_handler(Exception)
async def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Render an error as the structured error body, traces only in debug mode.

    Engine errors carry their own status; anything else maps through
    ``get_http_status_code``.
    """
    log_exception(exc, extra_context={"path": request.url.path, "method": request.method})
    body = (
        exc.to_dict(include_trace=DEBUG_MODE)
        if isinstance(exc, SemanticRagError)
        else format_exception_json(exc, include_trace=DEBUG_MODE)
    )
    return JSONResponse(status_code=get_http_status_code(exc), content=body)


__all__ = ["app"]
