"""Unit tests for the Gemini and sentence-transformers adapters.

The SDK clients are replaced with mocks; no network calls are made.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

from semantic_rag.adapters.outbound._errors import is_rate_limit
from semantic_rag.adapters.outbound.embeddings import (
    GeminiEmbeddingAdapter,
    SentenceTransformerEmbeddingAdapter,
)
from semantic_rag.adapters.outbound.llm import GeminiLLMAdapter
from semantic_rag.core.domain import ChatMessage
from semantic_rag.core.domain.exceptions import (
    EmbeddingAPIError,
    EmbeddingRateLimitError,
    LLMConnectionError,
    LLMGenerationError,
    LLMRateLimitError,
)

pytestmark = pytest.mark.unit


class QuotaError(Exception):
    code = 429


@pytest.fixture
def no_sleep():
    with (
        patch("semantic_rag.adapters.outbound.llm.gemini_adapter.asyncio.sleep", new=AsyncMock()),
        patch(
            "semantic_rag.adapters.outbound.embeddings.gemini_embedding.asyncio.sleep",
            new=AsyncMock(),
        ),
    ):
        yield


class TestIsRateLimit:
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (QuotaError("anything"), True),
            (Exception("429 RESOURCE_EXHAUSTED"), True),
            (Exception("Quota exceeded for model"), True),
            (Exception("rate limit reached"), True),
            (Exception("Failed to generate content"), False),
            (Exception("invalid argument"), False),
        ],
    )
    def test_classification(self, exc, expected):
        assert is_rate_limit(exc) is expected


class TestGeminiLLMAdapter:
    @pytest.fixture
    def adapter(self):
        adapter = GeminiLLMAdapter(api_key="test-key", model="gemini-test")
        adapter._client = MagicMock()
        return adapter

    def test_generate(self, adapter):
        adapter._client.aio.models.generate_content = AsyncMock(
            return_value=MagicMock(candidates=[MagicMock()], text="Hello there")
        )
        messages = [
            ChatMessage(role="user", content="hi"),
            ChatMessage(role="assistant", content="hello"),
            ChatMessage(role="user", content="how are you?"),
        ]

        answer = asyncio.run(adapter.generate("be brief", messages))

        assert answer == "Hello there"
        kwargs = adapter._client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert [c.role for c in kwargs["contents"]] == ["user", "model", "user"]
        assert kwargs["config"].system_instruction == "be brief"

    def test_no_candidates(self, adapter):
        adapter._client.aio.models.generate_content = AsyncMock(
            return_value=MagicMock(candidates=[], text=None)
        )

        with pytest.raises(LLMGenerationError):
            asyncio.run(adapter.generate("", [ChatMessage(role="user", content="hi")]))

    def test_rate_limit_retried_then_raised(self, adapter, no_sleep):
        adapter._client.aio.models.generate_content = AsyncMock(side_effect=QuotaError("slow down"))

        with pytest.raises(LLMRateLimitError):
            asyncio.run(adapter.generate("", [ChatMessage(role="user", content="hi")]))

        assert adapter._client.aio.models.generate_content.call_count == 3

    def test_rate_limit_recovers(self, adapter, no_sleep):
        adapter._client.aio.models.generate_content = AsyncMock(
            side_effect=[QuotaError("slow down"), MagicMock(candidates=[MagicMock()], text="ok")]
        )

        assert asyncio.run(adapter.generate("", [ChatMessage(role="user", content="hi")])) == "ok"

    def test_connection_error(self, adapter):
        adapter._client.aio.models.generate_content = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(LLMConnectionError):
            asyncio.run(adapter.generate("", [ChatMessage(role="user", content="hi")]))

    def test_other_errors_wrapped(self, adapter):
        adapter._client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(LLMGenerationError) as exc_info:
            asyncio.run(adapter.generate("", [ChatMessage(role="user", content="hi")]))

        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_generate_stream(self, adapter):
        async def chunks():
            for text in ["Hel", None, "lo"]:
                yield MagicMock(text=text)

        adapter._client.aio.models.generate_content_stream = AsyncMock(return_value=chunks())

        async def collect():
            return [c async for c in adapter.generate_stream("", [ChatMessage(role="user", content="hi")])]

        assert asyncio.run(collect()) == ["Hel", "lo"]


class TestGeminiEmbeddingAdapter:
    @pytest.fixture
    def adapter(self):
        adapter = GeminiEmbeddingAdapter(api_key="test-key", dimensions=3)
        adapter._client = MagicMock()
        return adapter

    @staticmethod
    def _response(count):
        return MagicMock(embeddings=[MagicMock(values=[float(i), 0.0, 1.0]) for i in range(count)])

    def test_embed_query(self, adapter):
        adapter._client.aio.models.embed_content = AsyncMock(return_value=self._response(1))

        assert asyncio.run(adapter.embed_query("hello")) == [0.0, 0.0, 1.0]
        config = adapter._client.aio.models.embed_content.call_args.kwargs["config"]
        assert config.task_type == "RETRIEVAL_QUERY"
        assert config.output_dimensionality == 3

    def test_embed_documents_batches(self, adapter):
        adapter._client.aio.models.embed_content = AsyncMock(
            side_effect=[self._response(100), self._response(50)]
        )

        vectors = asyncio.run(adapter.embed_documents([f"doc {i}" for i in range(150)]))

        assert len(vectors) == 150
        assert adapter._client.aio.models.embed_content.call_count == 2

    def test_embed_documents_empty(self, adapter):
        assert asyncio.run(adapter.embed_documents([])) == []

    def test_rate_limit_exhausted(self, adapter, no_sleep):
        adapter._client.aio.models.embed_content = AsyncMock(side_effect=QuotaError("quota"))

        with pytest.raises(EmbeddingRateLimitError):
            asyncio.run(adapter.embed_query("hello"))

    def test_api_error_exhausted(self, adapter, no_sleep):
        adapter._client.aio.models.embed_content = AsyncMock(side_effect=RuntimeError("bad request"))

        with pytest.raises(EmbeddingAPIError):
            asyncio.run(adapter.embed_documents(["a"]))

        assert adapter._client.aio.models.embed_content.call_count == 3


class TestSentenceTransformerEmbeddingAdapter:
    @pytest.fixture
    def adapter(self):
        adapter = SentenceTransformerEmbeddingAdapter(batch_size=8)
        model = MagicMock()
        model.get_sentence_embedding_dimension.return_value = 3
        model.encode.side_effect = lambda texts, **kwargs: np.ones((len(texts), 3))
        adapter._model = model
        return adapter

    def test_dimensions(self, adapter):
        assert adapter.dimensions == 3

    def test_embed(self, adapter):
        assert asyncio.run(adapter.embed_query("hi")) == [1.0, 1.0, 1.0]
        assert asyncio.run(adapter.embed_documents(["a", "b"])) == [[1.0] * 3, [1.0] * 3]
        assert adapter._model.encode.call_args.kwargs["batch_size"] == 8

    def test_empty_documents(self, adapter):
        assert asyncio.run(adapter.embed_documents([])) == []
        adapter._model.encode.assert_not_called()
