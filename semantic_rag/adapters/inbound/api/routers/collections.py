"""Collection, document and search endpoints."""

import logging

from fastapi import APIRouter, Depends, Response, status

from .....core.domain.exceptions import (
    CollectionNotFoundError,
    DocumentNotFoundError,
    ValidationError,
)
from .....core.services import VectorStoreService
from ..deps import get_vector_store
from ..models import (
    AddDocumentRequest,
    AddDocumentsRequest,
    CollectionInfo,
    CreateCollectionRequest,
    DocumentModel,
    ErrorResponse,
    SearchRequest,
    SearchResultModel,
    metadata_filter,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/collections",
    tags=["collections"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Collection not found"},
    },
)


def _info(vector_store: VectorStoreService, name: str) -> CollectionInfo:
    stats = vector_store.get_collection_stats(name)
    if stats is None:
        raise CollectionNotFoundError(f"Collection {name} not found", context={"collection": name})
    return CollectionInfo(name=name, **stats)


@router.post("", response_model=CollectionInfo, status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: CreateCollectionRequest,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> CollectionInfo:
    vector_store.create_collection(request.name, request.dimensions)
    return _info(vector_store, request.name)


@router.get("", response_model=list[CollectionInfo])
async def list_collections(
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> list[CollectionInfo]:
    return [_info(vector_store, name) for name in vector_store.list_collections()]


@router.get("/{name}", response_model=CollectionInfo)
async def get_collection(
    name: str,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> CollectionInfo:
    return _info(vector_store, name)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    name: str,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> Response:
    if not vector_store.delete_collection(name):
        raise CollectionNotFoundError(f"Collection {name} not found", context={"collection": name})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{name}/documents",
    response_model=list[DocumentModel],
    status_code=status.HTTP_201_CREATED,
)
async def add_documents(
    name: str,
    request: AddDocumentsRequest,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> list[DocumentModel]:
    """Add documents; items without an embedding are embedded server-side."""
    documents = await vector_store.add_documents(
        name, [item.model_dump() for item in request.documents]
    )
    logger.info("Added %d documents to %s", len(documents), name)
    return [DocumentModel.from_domain(doc) for doc in documents]


@router.put("/{name}/documents/{doc_id}", response_model=DocumentModel)
async def put_document(
    name: str,
    doc_id: str,
    request: AddDocumentRequest,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> DocumentModel:
    """Insert a single document, replacing any document with the same id."""
    if request.id != doc_id:
        raise ValidationError("Document id in path and body differ", context={"path": doc_id})
    document = await vector_store.add_document(
        name, doc_id, request.content, request.metadata, request.embedding
    )
    return DocumentModel.from_domain(document)


@router.get("/{name}/documents/{doc_id}", response_model=DocumentModel)
async def get_document(
    name: str,
    doc_id: str,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> DocumentModel:
    document = vector_store.get_document(name, doc_id)
    if document is None:
        raise DocumentNotFoundError(
            f"Document {doc_id} not found in {name}",
            context={"collection": name, "id": doc_id},
        )
    return DocumentModel.from_domain(document)


@router.delete("/{name}/documents/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    name: str,
    doc_id: str,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> Response:
    if not vector_store.delete_document(name, doc_id):
        raise DocumentNotFoundError(
            f"Document {doc_id} not found in {name}",
            context={"collection": name, "id": doc_id},
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{name}/search", response_model=list[SearchResultModel])
async def search(
    name: str,
    request: SearchRequest,
    vector_store: VectorStoreService = Depends(get_vector_store),
) -> list[SearchResultModel]:
    """Search by text (semantic or hybrid) or by raw vector."""
    doc_filter = metadata_filter(request.filter)

    if request.embedding is not None:
        results = vector_store.search_by_vector(name, request.embedding, request.k, doc_filter)
    elif request.query is None:
        raise ValidationError("Either query or embedding is required")
    elif request.hybrid:
        results = await vector_store.hybrid_search(
            name,
            request.query,
            request.k,
            semantic_weight=request.semantic_weight,
            keyword_weight=request.keyword_weight,
            filter=doc_filter,
        )
    else:
        results = await vector_store.search(name, request.query, request.k, doc_filter)

    return [SearchResultModel.from_domain(r) for r in results]
