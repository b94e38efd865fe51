"""In-memory vector store with per-collection HNSW graphs.

Each collection owns a document map and an HNSW graph. Small collections
are searched exactly by linear scan; past ``brute_force_threshold``
documents the graph is used instead.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..domain import Collection, Document, DocumentFilter, SearchResult
from ..domain.exceptions import (
    CollectionNotFoundError,
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    InvalidConfigurationError,
)
from ..index import HNSWIndex, brute_force_search, cosine_similarity, keyword_search
from ..ports.embedding_port import EmbeddingPort
from ..ports.vector_store_port import VectorStorePort

logger = logging.getLogger(__name__)


@dataclass
class _CollectionState:
    collection: Collection
    index: HNSWIndex


class VectorStoreService(VectorStorePort):
    """Owns the collection registry and routes searches.

    The registry lives on the instance: create one store per process (or
    per test) and pass it to whatever needs it. ``close()`` drops every
    collection.
    """

    DEFAULT_SEMANTIC_WEIGHT = 0.7
    DEFAULT_KEYWORD_WEIGHT = 0.3

    def __init__(
        self,
        embedder: EmbeddingPort | None = None,
        default_dimensions: int | None = None,
        m: int = 16,
        ef_construction: int = 200,
        ef_search: int = 50,
        brute_force_threshold: int = 1000,
        seed: int | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            embedder: Provider used when documents or queries arrive as text.
            default_dimensions: Dimensions for collections created without one.
                Falls back to the embedder's dimensions.
            m: HNSW max neighbors per layer.
            ef_construction: HNSW insertion beam width.
            ef_search: HNSW query beam width.
            brute_force_threshold: Collections with at most this many
                documents are searched exactly.
            seed: Seed for the HNSW level generator, for reproducible graphs.
        """
        self.embedder = embedder
        self.default_dimensions = default_dimensions
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_search
        self.brute_force_threshold = brute_force_threshold
        self.seed = seed
        self._collections: dict[str, _CollectionState] = {}

    # ============== Collection Management ==============

    def _resolve_dimensions(self, dimensions: int | None) -> int:
        if dimensions is not None:
            resolved = dimensions
        elif self.default_dimensions is not None:
            resolved = self.default_dimensions
        elif self.embedder is not None:
            resolved = self.embedder.dimensions
        else:
            raise InvalidConfigurationError(
                "Collection dimensions not given and no embedding provider configured"
            )
        if resolved <= 0:
            raise InvalidConfigurationError(
                f"Collection dimensions must be positive, got {resolved}",
                context={"dimensions": resolved},
            )
        return resolved

    def create_collection(self, name: str, dimensions: int | None = None) -> Collection:
        """Create a collection, or return the existing one with that name."""
        existing = self._collections.get(name)
        if existing is not None:
            return existing.collection

        resolved = self._resolve_dimensions(dimensions)
        collection = Collection(name=name, dimensions=resolved)
        index = HNSWIndex(
            dimensions=resolved,
            m=self.m,
            ef_construction=self.ef_construction,
            ef_search=self.ef_search,
            seed=self.seed,
        )
        self._collections[name] = _CollectionState(collection=collection, index=index)

        logger.info(
            "Created collection: %s (%d dimensions)", name, resolved, extra={"collection": name}
        )
        return collection

    def delete_collection(self, name: str) -> bool:
        state = self._collections.pop(name, None)
        if state is None:
            return False
        state.index.clear()
        logger.info("Deleted collection: %s", name, extra={"collection": name})
        return True

    def list_collections(self) -> list[str]:
        return list(self._collections)

    def get_collection(self, name: str) -> Collection | None:
        state = self._collections.get(name)
        return state.collection if state else None

    def get_collection_stats(self, name: str) -> dict[str, int] | None:
        """Document count and dimensions, or None for an unknown collection."""
        state = self._collections.get(name)
        if state is None:
            return None
        return {
            "count": len(state.collection.documents),
            "dimensions": state.collection.dimensions,
        }

    def close(self) -> None:
        """Drop every collection and its graph."""
        for state in self._collections.values():
            state.index.clear()
        self._collections.clear()

    def _get_state(self, name: str) -> _CollectionState:
        state = self._collections.get(name)
        if state is None:
            raise CollectionNotFoundError(
                f"Collection {name} not found",
                context={"collection": name},
            )
        return state

    def _require_embedder(self) -> EmbeddingPort:
        if self.embedder is None:
            raise ConfigurationError("No embedding provider configured")
        return self.embedder

    @staticmethod
    def _check_dimensions(collection: Collection, embedding: list[float]) -> None:
        if len(embedding) != collection.dimensions:
            raise DimensionMismatchError(
                f"Embedding dimensions mismatch: expected {collection.dimensions}, "
                f"got {len(embedding)}",
                context={
                    "collection": collection.name,
                    "expected": collection.dimensions,
                    "actual": len(embedding),
                },
            )

    # ============== Document Operations ==============

    def _insert(
        self,
        state: _CollectionState,
        doc_id: str,
        content: str,
        metadata: dict[str, Any] | None,
        embedding: list[float],
    ) -> Document:
        document = Document(
            id=doc_id,
            content=content,
            embedding=[float(x) for x in embedding],
            metadata=dict(metadata or {}),
        )
        state.index.insert(doc_id, document.embedding)
        state.collection.documents[doc_id] = document
        return document

    async def add_document(
        self,
        collection_name: str,
        doc_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
        embedding: list[float] | None = None,
    ) -> Document:
        """Add one document.

        The content is embedded when no vector is supplied. Adding an id
        that already exists replaces the previous document.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
            DimensionMismatchError: If the vector has the wrong length.
        """
        state = self._get_state(collection_name)

        if embedding is None:
            vectors = await self._require_embedder().embed_documents([content])
            if len(vectors) != 1:
                raise EmbeddingError(
                    "Embedding provider returned no vector",
                    context={"collection": collection_name, "id": doc_id},
                )
            embedding = vectors[0]

        self._check_dimensions(state.collection, embedding)
        return self._insert(state, doc_id, content, metadata, embedding)

    async def add_documents(
        self, collection_name: str, documents: list[dict[str, Any]]
    ) -> list[Document]:
        """Add a batch of ``{id, content, metadata?, embedding?}`` items.

        Missing vectors are embedded in one batch call. Every vector is
        checked before anything is inserted, so a bad item leaves the
        collection untouched.
        """
        state = self._get_state(collection_name)
        if not documents:
            return []

        missing = [i for i, item in enumerate(documents) if item.get("embedding") is None]
        embeddings: list[list[float] | None] = [item.get("embedding") for item in documents]

        if missing:
            vectors = await self._require_embedder().embed_documents(
                [documents[i]["content"] for i in missing]
            )
            if len(vectors) != len(missing):
                raise EmbeddingError(
                    "Embedding provider returned a different number of vectors",
                    context={"expected": len(missing), "actual": len(vectors)},
                )
            for i, vector in zip(missing, vectors):
                embeddings[i] = vector

        for embedding in embeddings:
            self._check_dimensions(state.collection, embedding)

        added = [
            self._insert(state, item["id"], item["content"], item.get("metadata"), embedding)
            for item, embedding in zip(documents, embeddings)
        ]
        logger.debug(
            "Added %d documents to %s",
            len(added),
            collection_name,
            extra={"collection": collection_name, "count": len(added)},
        )
        return added

    def get_document(self, collection_name: str, doc_id: str) -> Document | None:
        state = self._collections.get(collection_name)
        if state is None:
            return None
        return state.collection.documents.get(doc_id)

    def delete_document(self, collection_name: str, doc_id: str) -> bool:
        """Remove a document from the map and its node from the graph.

        Edges other nodes hold to it are left in place.
        """
        state = self._collections.get(collection_name)
        if state is None:
            return False

        deleted = state.collection.documents.pop(doc_id, None) is not None
        state.index.remove(doc_id)
        return deleted

    # ============== Vector Search ==============

    async def search(
        self,
        collection_name: str,
        query: str,
        k: int = 10,
        filter: DocumentFilter | None = None,
    ) -> list[SearchResult]:
        self._get_state(collection_name)
        query_embedding = await self._require_embedder().embed_query(query)
        return self.search_by_vector(collection_name, query_embedding, k, filter)

    def search_by_vector(
        self,
        collection_name: str,
        embedding: list[float],
        k: int = 10,
        filter: DocumentFilter | None = None,
    ) -> list[SearchResult]:
        """Top-k documents by cosine similarity to ``embedding``.

        Raises:
            CollectionNotFoundError: If the collection does not exist.
            DimensionMismatchError: If the query has the wrong length.
        """
        state = self._get_state(collection_name)
        self._check_dimensions(state.collection, embedding)

        size = len(state.collection.documents)
        strategy = "hnsw" if size > self.brute_force_threshold else "brute_force"
        logger.debug(
            "Vector search on %s",
            collection_name,
            extra={"collection": collection_name, "strategy": strategy, "count": size},
        )

        if strategy == "hnsw":
            return self._hnsw_search(state, embedding, k, filter)
        return brute_force_search(state.collection.documents.values(), embedding, k, filter)

    def _hnsw_search(
        self,
        state: _CollectionState,
        embedding: list[float],
        k: int,
        filter: DocumentFilter | None,
    ) -> list[SearchResult]:
        documents = state.collection.documents
        results: list[SearchResult] = []

        for distance, doc_id in state.index.search(embedding, k):
            document = documents.get(doc_id)
            if document is None:
                continue
            if filter is not None and not filter(document):
                continue
            results.append(
                SearchResult(
                    document=document,
                    score=cosine_similarity(embedding, document.embedding),
                    distance=distance,
                )
            )

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:k]

    # ============== Hybrid Search ==============

    async def hybrid_search(
        self,
        collection_name: str,
        query: str,
        k: int = 10,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        filter: DocumentFilter | None = None,
    ) -> list[SearchResult]:
        """Blend semantic similarity with keyword relevance.

        Both searches fetch ``2k`` candidates. Scores are summed per
        document after weighting; a document found by one search only keeps
        that search's contribution.
        """
        state = self._get_state(collection_name)

        semantic_results = await self.search(collection_name, query, k * 2, filter)
        keyword_results = keyword_search(
            state.collection.documents.values(),
            len(state.collection.documents),
            query,
            k * 2,
            filter,
        )

        combined: dict[str, SearchResult] = {}
        for result in semantic_results:
            combined[result.document.id] = SearchResult(
                document=result.document,
                score=result.score * semantic_weight,
            )

        for result in keyword_results:
            existing = combined.get(result.document.id)
            if existing is not None:
                existing.score += result.score * keyword_weight
            else:
                combined[result.document.id] = SearchResult(
                    document=result.document,
                    score=result.score * keyword_weight,
                )

        merged = sorted(combined.values(), key=lambda r: r.score, reverse=True)
        logger.debug(
            "Hybrid search merged %d semantic and %d keyword hits",
            len(semantic_results),
            len(keyword_results),
            extra={"collection": collection_name, "strategy": "hybrid", "count": len(merged)},
        )
        return merged[:k]
