"""Retrieval-augmented generation pipeline.

A query moves through expand -> retrieve -> filter -> rerank ->
build context -> generate -> post-process. Expansion and reranking are
optional and degrade to their inputs on provider failure; generation has
no fallback.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from ..domain import (
    ChatMessage,
    Document,
    RAGConfig,
    RAGContext,
    RAGResponse,
    SearchResult,
    StreamEvent,
)
from ..domain.exceptions import (
    CollectionNotFoundError,
    EmptyQueryError,
    LLMGenerationError,
    LLMNotConfiguredError,
    QueryTooLongError,
    SemanticRagError,
)
from ..domain.utils import strip_bom
from ..ports.llm_port import LLMPort
from ..ports.vector_store_port import VectorStorePort
from .citations import calculate_confidence, extract_citations
from .context_builder import build_context
from .prompts import ANSWER_PROMPT, QUERY_EXPANSION_PROMPT, RAG_SYSTEM_PROMPT
from .reranker import LLMReranker

logger = logging.getLogger(__name__)

MAX_QUESTION_LENGTH = 4000
MAX_EXPANDED_QUERY_LENGTH = 1000
EXPANSION_HISTORY_MESSAGES = 4
ANSWER_HISTORY_MESSAGES = 6
PREVIEW_LENGTH = 200


class RagService:
    """Answers questions from a vector store collection with a chat model."""

    def __init__(
        self,
        vector_store: VectorStorePort,
        llm: LLMPort | None,
        reranker: LLMReranker | None = None,
        system_prompt: str = RAG_SYSTEM_PROMPT,
        semantic_weight: float = 0.7,
        keyword_weight: float = 0.3,
    ) -> None:
        """Initialize the pipeline.

        Args:
            vector_store: Store the collections live in.
            llm: Chat provider. Without one every query fails.
            reranker: Reranker used when a query enables reranking.
                Defaults to an LLMReranker over ``llm``.
            system_prompt: Instructions for answer synthesis.
            semantic_weight: Hybrid search weight of the embedding score.
            keyword_weight: Hybrid search weight of the keyword score.
        """
        self.vector_store = vector_store
        self.llm = llm
        self.reranker = reranker or (LLMReranker(llm) if llm is not None else None)
        self.system_prompt = system_prompt
        self.semantic_weight = semantic_weight
        self.keyword_weight = keyword_weight

        if llm is None:
            logger.warning("No chat provider configured - RAG queries will be unavailable")

    def _require_llm(self) -> LLMPort:
        if self.llm is None:
            raise LLMNotConfiguredError("RAG service not initialized - no AI provider available")
        return self.llm

    @staticmethod
    def _validate_question(question: str) -> str:
        clean = strip_bom(question or "").strip()
        if not clean:
            raise EmptyQueryError("Query cannot be empty or whitespace only")
        if len(clean) > MAX_QUESTION_LENGTH:
            raise QueryTooLongError(
                f"Query exceeds {MAX_QUESTION_LENGTH} characters",
                context={"length": len(clean)},
            )
        return clean

    # ============== Query Expansion ==============

    async def _expand_query(self, query: str, history: list[ChatMessage] | None) -> str:
        """Append model-suggested phrasings to the query; the query itself on failure."""
        llm = self._require_llm()
        messages = list((history or [])[-EXPANSION_HISTORY_MESSAGES:])
        messages.append(ChatMessage(role="user", content=query))

        try:
            expanded = await llm.generate(QUERY_EXPANSION_PROMPT.format(query=query), messages)
        except Exception as e:
            logger.warning("Query expansion failed: %s", e, extra={"stage": "expand"})
            return query

        if not expanded or not expanded.strip():
            return query
        return f"{query} {expanded.strip()}"[:MAX_EXPANDED_QUERY_LENGTH]

    # ============== Retrieval ==============

    async def _retrieve(
        self,
        question: str,
        config: RAGConfig,
        history: list[ChatMessage] | None,
    ) -> RAGContext:
        enhanced_query = (
            await self._expand_query(question, history) if config.query_expansion else question
        )

        results = await self.vector_store.hybrid_search(
            config.collection_name,
            enhanced_query,
            config.top_k * 2,
            semantic_weight=self.semantic_weight,
            keyword_weight=self.keyword_weight,
            filter=config.metadata_filter,
        )
        logger.debug(
            "Retrieved %d candidates from %s",
            len(results),
            config.collection_name,
            extra={"collection": config.collection_name, "stage": "retrieve", "count": len(results)},
        )

        if config.min_score is not None:
            results = [r for r in results if r.score >= config.min_score]

        if config.reranking and results and self.reranker is not None:
            results = await self.reranker.rerank(question, results, config.top_k)
        else:
            results = results[: config.top_k]

        return RAGContext(
            sources=results,
            query=question,
            enhanced_query=enhanced_query if enhanced_query != question else None,
        )

    # ============== Answer Generation ==============

    def _answer_messages(
        self, question: str, context: str, history: list[ChatMessage] | None
    ) -> list[ChatMessage]:
        messages = list((history or [])[-ANSWER_HISTORY_MESSAGES:])
        messages.append(
            ChatMessage(role="user", content=ANSWER_PROMPT.format(context=context, question=question))
        )
        return messages

    async def _generate_answer(
        self, question: str, context: str, history: list[ChatMessage] | None
    ) -> str:
        llm = self._require_llm()
        try:
            return await llm.generate(self.system_prompt, self._answer_messages(question, context, history))
        except SemanticRagError:
            raise
        except Exception as e:
            raise LLMGenerationError("Answer generation failed", cause=e) from e

    # ============== Public API ==============

    async def query(
        self,
        question: str,
        config: RAGConfig,
        history: list[ChatMessage] | None = None,
    ) -> RAGResponse:
        """Answer a question from the configured collection.

        Raises:
            ValidationError: If the question is empty or too long.
            LLMNotConfiguredError: If no chat provider is available.
            CollectionNotFoundError: If the collection does not exist.
            LLMGenerationError: If the provider fails to produce an answer.
        """
        question = self._validate_question(question)
        self._require_llm()

        rag_context = await self._retrieve(question, config, history)
        context = build_context(rag_context.sources, config.max_context_length)
        answer = await self._generate_answer(question, context, history)

        return RAGResponse(
            answer=answer,
            context=rag_context,
            citations=extract_citations(answer, rag_context.sources),
            confidence=calculate_confidence(rag_context.sources, answer),
        )

    @staticmethod
    def _preview(result: SearchResult, include_metadata: bool) -> dict[str, Any]:
        preview: dict[str, Any] = {
            "id": result.document.id,
            "content": result.document.content[:PREVIEW_LENGTH],
            "source": result.document.source,
            "score": result.score,
        }
        if include_metadata:
            preview["metadata"] = result.document.metadata
        return preview

    async def stream_query(
        self,
        question: str,
        config: RAGConfig,
        history: list[ChatMessage] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Answer a question as a stream of events.

        Yields one ``context`` event with source previews, then ``answer``
        events carrying text chunks, then a ``done`` event with the full
        answer, source count and confidence.
        """
        question = self._validate_question(question)
        llm = self._require_llm()

        rag_context = await self._retrieve(question, config, history)
        yield StreamEvent(
            type="context",
            data=[self._preview(r, config.include_metadata) for r in rag_context.sources],
        )

        context = build_context(rag_context.sources, config.max_context_length)
        messages = self._answer_messages(question, context, history)

        full_answer = ""
        async for chunk in llm.generate_stream(self.system_prompt, messages):
            if chunk:
                full_answer += chunk
                yield StreamEvent(type="answer", data=chunk)

        yield StreamEvent(
            type="done",
            data={
                "fullAnswer": full_answer,
                "sources": len(rag_context.sources),
                "confidence": calculate_confidence(rag_context.sources, full_answer),
            },
        )

    # ============== Code-Specific RAG ==============

    @staticmethod
    def code_collection_name(project_id: str) -> str:
        return f"project:{project_id}:code"

    async def query_codebase(
        self,
        question: str,
        project_id: str,
        language: str | None = None,
        file_path: str | None = None,
        include_tests: bool = False,
    ) -> RAGResponse:
        """Answer a question about an indexed project's code.

        Raises:
            CollectionNotFoundError: If the project has no code index.
        """
        collection_name = self.code_collection_name(project_id)
        if self.vector_store.get_collection_stats(collection_name) is None:
            raise CollectionNotFoundError(
                f"No codebase index found for project {project_id}",
                context={"project_id": project_id, "collection": collection_name},
            )

        def code_filter(doc: Document) -> bool:
            path = doc.metadata.get("filePath") or ""
            if language and doc.metadata.get("language") != language:
                return False
            if file_path and file_path not in path:
                return False
            if not include_tests and "test" in path:
                return False
            return True

        return await self.query(
            question,
            RAGConfig(
                collection_name=collection_name,
                top_k=10,
                min_score=0.5,
                reranking=True,
                max_context_length=6000,
                include_metadata=True,
                metadata_filter=code_filter,
            ),
        )
