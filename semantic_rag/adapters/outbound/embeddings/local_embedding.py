"""Local sentence-transformers embedding adapter."""

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

from ....core.domain.exceptions import ConfigurationError
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)


class SentenceTransformerEmbeddingAdapter(EmbeddingPort):
    """Embeds text with a local sentence-transformers model.

    Encoding runs in a worker thread so it does not block the event loop.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", batch_size: int = 32) -> None:
        """Initialize the adapter.

        Args:
            model_name: sentence-transformers model name.
                Default is all-MiniLM-L6-v2 (fast, 384 dims).
            batch_size: Batch size for encoding.
        """
        self.model_name = model_name
        self.batch_size = batch_size
        self._model: "SentenceTransformer | None" = None

    def _load_model(self) -> "SentenceTransformer":
        """Lazy load the model on first use."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise ConfigurationError(
                    "Install the 'local' extra to use local embeddings: "
                    "pip install semantic-rag[local]",
                    cause=e,
                ) from e

            logger.info("Loading embedding model: %s", self.model_name)
            self._model = SentenceTransformer(self.model_name)
        return self._model

    @property
    def dimensions(self) -> int:
        return int(self._load_model().get_sentence_embedding_dimension())

    def _encode(self, texts: list[str]) -> list[list[float]]:
        model = self._load_model()
        embeddings = model.encode(
            texts,
            batch_size=self.batch_size,
            convert_to_numpy=True,
            show_progress_bar=len(texts) > 100,
        )
        return embeddings.tolist()

    async def embed_query(self, text: str) -> list[float]:
        return (await asyncio.to_thread(self._encode, [text]))[0]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)
