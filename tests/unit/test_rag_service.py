"""Unit tests for the RAG pipeline."""

import asyncio

import pytest
from conftest import FakeLLM

from semantic_rag.core.domain import ChatMessage, RAGConfig
from semantic_rag.core.domain.exceptions import (
    CollectionNotFoundError,
    EmptyQueryError,
    LLMGenerationError,
    LLMNotConfiguredError,
    QueryTooLongError,
)
from semantic_rag.core.services import RagService
from semantic_rag.core.services.prompts import RAG_SYSTEM_PROMPT

pytestmark = pytest.mark.unit

QUESTION = "How does the scheduler pick the next task?"


@pytest.fixture
def kb_store(store, embedder):
    """Knowledge base with one strong match for QUESTION."""
    embedder.vectors[QUESTION] = [1, 0, 0, 0]
    store.create_collection("kb", 4)
    asyncio.run(
        store.add_documents(
            "kb",
            [
                {
                    "id": "sched",
                    "content": "The scheduler always picks the runnable task with the earliest deadline. "
                    "Ties between deadlines are broken by priority.",
                    "metadata": {"filePath": "docs/scheduler.md"},
                    "embedding": [1, 0, 0, 0],
                },
                {
                    "id": "io",
                    "content": "Blocking reads park the calling task until data arrives.",
                    "metadata": {"title": "I/O"},
                    "embedding": [0.6, 0.8, 0, 0],
                },
                {
                    "id": "misc",
                    "content": "Release notes for version two.",
                    "embedding": [0, 0, 1, 0],
                },
            ],
        )
    )
    return store


def _run(coro):
    return asyncio.run(coro)


class TestQuery:
    def test_answers_with_sources_and_citations(self, kb_store):
        llm = FakeLLM(
            ["The scheduler picks the runnable task with the earliest deadline [Source: docs/scheduler.md]."]
        )
        rag = RagService(kb_store, llm)

        response = _run(rag.query(QUESTION, RAGConfig(collection_name="kb", top_k=2)))

        assert response.answer.startswith("The scheduler")
        assert len(response.context.sources) == 2
        assert response.context.sources[0].document.id == "sched"
        assert response.context.query == QUESTION
        assert response.context.enhanced_query is None
        assert response.citations
        assert response.citations[0].source == "docs/scheduler.md"
        assert 0 < response.confidence <= 1

    def test_prompt_carries_context_and_question(self, kb_store):
        llm = FakeLLM()
        rag = RagService(kb_store, llm)

        _run(rag.query(QUESTION, RAGConfig(collection_name="kb", top_k=1)))

        system_prompt, messages = llm.calls[-1]
        assert system_prompt == RAG_SYSTEM_PROMPT
        assert messages[-1].role == "user"
        assert "[Source: docs/scheduler.md]" in messages[-1].content
        assert QUESTION in messages[-1].content

    def test_high_min_score_yields_no_sources(self, kb_store):
        """The model is still asked, against an empty context."""
        llm = FakeLLM(["I don't have enough context to answer that."])
        rag = RagService(kb_store, llm)

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", top_k=3, min_score=0.9))
        )

        assert response.context.sources == []
        assert response.confidence == 0.0
        assert response.citations == []
        assert "enough context" in response.answer
        assert len(llm.calls) == 1

    def test_min_score_zero_is_applied(self, kb_store):
        rag = RagService(kb_store, FakeLLM())

        response = _run(rag.query(QUESTION, RAGConfig(collection_name="kb", top_k=3, min_score=0.0)))

        assert all(r.score >= 0.0 for r in response.context.sources)

    def test_history_window(self, kb_store):
        llm = FakeLLM()
        rag = RagService(kb_store, llm)
        history = [ChatMessage(role="user", content=f"turn {i}") for i in range(10)]

        _run(rag.query(QUESTION, RAGConfig(collection_name="kb"), history))

        _, messages = llm.calls[-1]
        assert [m.content for m in messages[:-1]] == [f"turn {i}" for i in range(4, 10)]

    def test_metadata_filter(self, kb_store):
        rag = RagService(kb_store, FakeLLM())
        config = RAGConfig(
            collection_name="kb",
            top_k=3,
            metadata_filter=lambda d: d.metadata.get("title") == "I/O",
        )

        response = _run(rag.query(QUESTION, config))

        assert [r.document.id for r in response.context.sources] == ["io"]

    def test_no_llm(self, kb_store):
        rag = RagService(kb_store, None)

        with pytest.raises(LLMNotConfiguredError):
            _run(rag.query(QUESTION, RAGConfig(collection_name="kb")))

    @pytest.mark.parametrize("question", ["", "   ", "\ufeff"])
    def test_empty_question(self, kb_store, question):
        rag = RagService(kb_store, FakeLLM())

        with pytest.raises(EmptyQueryError):
            _run(rag.query(question, RAGConfig(collection_name="kb")))

    def test_question_passed_through_except_bom(self, kb_store):
        llm = FakeLLM()
        rag = RagService(kb_store, llm)
        question = "\ufeff  What does the \ufb01le header hold?\u2460 "

        response = _run(rag.query(question, RAGConfig(collection_name="kb")))

        expected = "What does the \ufb01le header hold?\u2460"
        assert response.context.query == expected
        _, messages = llm.calls[-1]
        assert expected in messages[-1].content

    def test_question_too_long(self, kb_store):
        rag = RagService(kb_store, FakeLLM())

        with pytest.raises(QueryTooLongError):
            _run(rag.query("x" * 4001, RAGConfig(collection_name="kb")))

    def test_unknown_collection(self, kb_store):
        rag = RagService(kb_store, FakeLLM())

        with pytest.raises(CollectionNotFoundError):
            _run(rag.query(QUESTION, RAGConfig(collection_name="missing")))

    def test_generation_failure_is_wrapped(self, kb_store):
        rag = RagService(kb_store, FakeLLM([RuntimeError("provider down")]))

        with pytest.raises(LLMGenerationError) as exc_info:
            _run(rag.query(QUESTION, RAGConfig(collection_name="kb")))

        assert isinstance(exc_info.value.cause, RuntimeError)


class TestQueryExpansion:
    def test_expansion_appended(self, kb_store):
        llm = FakeLLM(["task selection, run queue", "answer"])
        rag = RagService(kb_store, llm)

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", query_expansion=True))
        )

        assert response.context.enhanced_query == f"{QUESTION} task selection, run queue"
        assert response.context.query == QUESTION
        assert response.answer == "answer"

    def test_expansion_truncated(self, kb_store):
        llm = FakeLLM(["word " * 500, "answer"])
        rag = RagService(kb_store, llm)

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", query_expansion=True))
        )

        assert len(response.context.enhanced_query) == 1000

    def test_expansion_failure_falls_back_to_question(self, kb_store):
        llm = FakeLLM([RuntimeError("quota"), "answer"])
        rag = RagService(kb_store, llm)

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", query_expansion=True))
        )

        assert response.context.enhanced_query is None
        assert response.answer == "answer"
        assert response.context.sources

    def test_blank_expansion_ignored(self, kb_store):
        rag = RagService(kb_store, FakeLLM(["   ", "answer"]))

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", query_expansion=True))
        )

        assert response.context.enhanced_query is None


class TestReranking:
    def test_rerank_reorders_sources(self, kb_store):
        # One relevance rating per candidate (best retrieval first), then the answer
        llm = FakeLLM(["0", "10", "0", "answer"])
        rag = RagService(kb_store, llm)

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", top_k=2, reranking=True))
        )

        assert [r.document.id for r in response.context.sources] == ["io", "sched"]
        assert response.answer == "answer"

    def test_rerank_failure_keeps_retrieval_order(self, kb_store):
        llm = FakeLLM([RuntimeError("a"), RuntimeError("b"), RuntimeError("c"), "answer"])
        rag = RagService(kb_store, llm)

        response = _run(
            rag.query(QUESTION, RAGConfig(collection_name="kb", top_k=2, reranking=True))
        )

        assert [r.document.id for r in response.context.sources] == ["sched", "io"]


class TestStreamQuery:
    def _collect(self, rag, config):
        async def collect():
            return [event async for event in rag.stream_query(QUESTION, config)]

        return asyncio.run(collect())

    def test_event_order(self, kb_store):
        rag = RagService(kb_store, FakeLLM(chunks=["The scheduler ", "uses deadlines."]))

        events = self._collect(rag, RAGConfig(collection_name="kb", top_k=2))

        assert [e.type for e in events] == ["context", "answer", "answer", "done"]
        assert [p["id"] for p in events[0].data] == ["sched", "io"]
        assert events[0].data[0]["source"] == "docs/scheduler.md"
        assert "metadata" not in events[0].data[0]
        assert events[-1].data["fullAnswer"] == "The scheduler uses deadlines."
        assert events[-1].data["sources"] == 2
        assert 0 < events[-1].data["confidence"] <= 1

    def test_previews_truncated_and_metadata_optional(self, kb_store):
        kb_store.create_collection("long", 4)
        asyncio.run(
            kb_store.add_document("long", "big", "y" * 500, {"title": "Big"}, [1, 0, 0, 0])
        )
        rag = RagService(kb_store, FakeLLM())

        events = self._collect(rag, RAGConfig(collection_name="long", include_metadata=True))

        preview = events[0].data[0]
        assert len(preview["content"]) == 200
        assert preview["metadata"] == {"title": "Big"}

    def test_same_sources_as_query(self, kb_store):
        config = RAGConfig(collection_name="kb", top_k=2, min_score=0.5)
        rag = RagService(kb_store, FakeLLM())

        response = _run(rag.query(QUESTION, config))
        events = self._collect(rag, config)

        assert [p["id"] for p in events[0].data] == [
            r.document.id for r in response.context.sources
        ]

    def test_no_llm(self, kb_store):
        rag = RagService(kb_store, None)

        with pytest.raises(LLMNotConfiguredError):
            self._collect(rag, RAGConfig(collection_name="kb"))


class TestQueryCodebase:
    @pytest.fixture
    def code_store(self, store, embedder):
        embedder.vectors["where is auth handled?"] = [1, 0, 0, 0]
        store.create_collection("project:p1:code", 4)
        asyncio.run(
            store.add_documents(
                "project:p1:code",
                [
                    {
                        "id": "auth",
                        "content": "[python]\ndef authenticate(user): ...",
                        "metadata": {"language": "python", "filePath": "app/auth.py"},
                        "embedding": [1, 0, 0, 0],
                    },
                    {
                        "id": "auth_test",
                        "content": "[python]\ndef test_authenticate(): ...",
                        "metadata": {"language": "python", "filePath": "tests/test_auth.py"},
                        "embedding": [1, 0, 0, 0],
                    },
                    {
                        "id": "auth_go",
                        "content": "[go]\nfunc Authenticate() {}",
                        "metadata": {"language": "go", "filePath": "svc/auth.go"},
                        "embedding": [1, 0, 0, 0],
                    },
                ],
            )
        )
        return store

    def test_missing_project(self, store):
        rag = RagService(store, FakeLLM())

        with pytest.raises(CollectionNotFoundError):
            _run(rag.query_codebase("anything?", "nope"))

    def test_excludes_tests_by_default(self, code_store):
        rag = RagService(code_store, FakeLLM(["7"]))

        response = _run(rag.query_codebase("where is auth handled?", "p1"))
        paths = [r.document.metadata["filePath"] for r in response.context.sources]

        assert "tests/test_auth.py" not in paths
        assert "app/auth.py" in paths

    def test_language_and_path_filters(self, code_store):
        rag = RagService(code_store, FakeLLM(["7"]))

        response = _run(
            rag.query_codebase(
                "where is auth handled?", "p1", language="go", file_path="svc/", include_tests=True
            )
        )

        assert [r.document.id for r in response.context.sources] == ["auth_go"]
