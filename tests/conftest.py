"""
Pytest configuration and shared fixtures.
"""

import hashlib
import shutil
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path

import numpy as np
import pytest

from semantic_rag.core.domain import ChatMessage
from semantic_rag.core.ports.embedding_port import EmbeddingPort
from semantic_rag.core.ports.llm_port import LLMPort
from semantic_rag.core.services import VectorStoreService


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP layer)")


class FakeEmbedder(EmbeddingPort):
    """Deterministic embedder.

    Texts listed in ``vectors`` get that exact vector; anything else gets a
    pseudo-random vector seeded from the text's hash.
    """

    def __init__(self, dimensions: int = 4, vectors: dict[str, list[float]] | None = None):
        self._dimensions = dimensions
        self.vectors = vectors or {}
        self.calls: list[list[str]] = []

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _vector(self, text: str) -> list[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        seed = int(hashlib.md5(text.encode()).hexdigest()[:8], 16)
        return np.random.default_rng(seed).normal(size=self._dimensions).tolist()

    async def embed_query(self, text: str) -> list[float]:
        self.calls.append([text])
        return self._vector(text)

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]


class FakeLLM(LLMPort):
    """Chat provider that replays scripted replies.

    ``replies`` are returned in order (the last one repeats); an Exception
    instance in the list is raised instead of returned. Every call is
    recorded in ``calls`` as ``(system_prompt, messages)``.
    """

    def __init__(self, replies: list[str | Exception] | None = None, chunks: list[str] | None = None):
        self.replies = list(replies or ["A generated answer."])
        self.chunks = chunks or ["Streamed ", "answer."]
        self.calls: list[tuple[str, list[ChatMessage]]] = []

    async def generate(self, system_prompt: str, messages: list[ChatMessage]) -> str:
        self.calls.append((system_prompt, list(messages)))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def generate_stream(
        self, system_prompt: str, messages: list[ChatMessage]
    ) -> AsyncIterator[str]:
        self.calls.append((system_prompt, list(messages)))
        for chunk in self.chunks:
            yield chunk


@pytest.fixture
def embedder():
    """Four-dimensional deterministic embedder."""
    return FakeEmbedder(dimensions=4)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def store(embedder):
    """Empty vector store backed by the fake embedder."""
    store = VectorStoreService(embedder=embedder, seed=42)
    yield store
    store.close()


@pytest.fixture
def rng():
    """Seeded numpy generator for property tests."""
    return np.random.default_rng(1234)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test data."""
    dir_path = Path(tempfile.mkdtemp(prefix="semrag_test_"))
    yield dir_path
    if dir_path.exists():
        shutil.rmtree(dir_path)
