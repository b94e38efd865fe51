"""Unit tests for the semrag CLI commands."""

import asyncio
from unittest.mock import patch

import pytest
import typer

from semantic_rag.adapters.inbound.cli import commands
from semantic_rag.core.domain import RAGContext, RAGResponse
from semantic_rag.core.domain.exceptions import CollectionNotFoundError

pytestmark = pytest.mark.unit

CONTAINER = "semantic_rag.composition.container"


class LoopRecorder:
    """Indexing and RAG service stand-in that notes the loop of every call."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.loops: list[asyncio.AbstractEventLoop] = []
        self.whole_files: list[bool] = []

    async def index_path(self, collection, path, whole_files=False):
        self.loops.append(asyncio.get_running_loop())
        self.whole_files.append(whole_files)
        if self.error:
            raise self.error
        return 2

    async def query(self, question, config, history=None):
        self.loops.append(asyncio.get_running_loop())
        return RAGResponse(
            answer=f"answer to {question}",
            context=RAGContext(sources=[], query=question),
        )


@pytest.fixture
def services():
    recorder = LoopRecorder()
    with (
        patch(f"{CONTAINER}.get_indexing_service", return_value=recorder),
        patch(f"{CONTAINER}.get_rag_service", return_value=recorder),
    ):
        yield recorder


class TestEventLoops:
    def test_ask_indexes_and_queries_in_one_loop(self, services, temp_dir):
        commands.ask(
            question="what?",
            path=temp_dir,
            collection="docs",
            top_k=3,
            rerank=False,
            expand=False,
        )

        assert len(services.loops) == 2
        assert services.loops[0] is services.loops[1]

    def test_chat_session_shares_one_loop(self, services, temp_dir):
        with patch.object(commands.Prompt, "ask", side_effect=["first?", "  ", "second?", "quit"]):
            commands.chat(path=temp_dir, collection="docs")

        assert len(services.loops) == 3
        assert all(loop is services.loops[0] for loop in services.loops)


class TestIndexCommand:
    def test_whole_files_flag_forwarded(self, services, temp_dir):
        with patch(f"{CONTAINER}.get_vector_store"):
            commands.index(path=temp_dir, collection="docs", whole_files=True)

        assert services.whole_files == [True]

    def test_missing_path_rejected(self, services, temp_dir):
        with pytest.raises(typer.BadParameter):
            commands.index(path=temp_dir / "absent", collection="docs", whole_files=False)

        assert services.loops == []

    def test_engine_error_reported_with_code_and_collection(self, temp_dir, capsys):
        failing = LoopRecorder(CollectionNotFoundError("gone", context={"collection": "docs"}))

        with patch(f"{CONTAINER}.get_indexing_service", return_value=failing):
            with pytest.raises(typer.Exit):
                commands.index(path=temp_dir, collection="docs", whole_files=False)

        out = capsys.readouterr().out
        assert "SR_VEC_002" in out
        assert "Collection: docs" in out
