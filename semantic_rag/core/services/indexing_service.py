"""Chunk documents and source files into a vector store collection."""

import hashlib
import logging
from pathlib import Path
from typing import Any

from ..domain import Document
from ..domain.utils import chunk_code, chunk_document, normalize_text, preprocess_code
from ..ports.vector_store_port import VectorStorePort

logger = logging.getLogger(__name__)

CODE_EXTENSIONS = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".rb": "ruby",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".sh": "shell",
    ".sql": "sql",
}

TEXT_EXTENSIONS = {".md", ".txt", ".rst"}

MAX_CODE_FILE_LENGTH = 8000


def _key_hash(*parts: str) -> str:
    return hashlib.md5("_".join(parts).encode()).hexdigest()[:8]


class IndexingService:
    """Splits text into chunks and adds them to a collection."""

    def __init__(
        self,
        vector_store: VectorStorePort,
        chunk_size: int = 1500,
        chunk_overlap: int = 200,
        code_chunk_size: int = 1000,
    ) -> None:
        self.vector_store = vector_store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.code_chunk_size = code_chunk_size

    async def index_document(
        self,
        collection_name: str,
        content: str,
        title: str | None = None,
        file_path: str | None = None,
    ) -> list[Document]:
        """Index prose, one document per sentence-aligned chunk.

        The collection is created if it does not exist yet.
        """
        content = normalize_text(content)
        chunks = chunk_document(content, self.chunk_size, self.chunk_overlap)
        if not chunks:
            logger.warning("No text content in %s", file_path or title or "<document>")
            return []

        self.vector_store.create_collection(collection_name)
        key = _key_hash(file_path or "", title or "", content[:200])

        batch: list[dict[str, Any]] = []
        for i, chunk in enumerate(chunks):
            metadata: dict[str, Any] = {
                "type": "document",
                "chunkIndex": i,
                "totalChunks": len(chunks),
            }
            if title:
                metadata["title"] = title
            if file_path:
                metadata["filePath"] = file_path
            batch.append({"id": f"doc_{key}_{i}", "content": chunk, "metadata": metadata})

        return await self.vector_store.add_documents(collection_name, batch)

    async def index_code(
        self,
        collection_name: str,
        code: str,
        language: str,
        file_path: str,
    ) -> list[Document]:
        """Index source code, one document per line-aligned chunk."""
        chunks = chunk_code(code, language, self.code_chunk_size, self.chunk_overlap)
        if not chunks:
            return []

        self.vector_store.create_collection(collection_name)
        key = _key_hash(file_path)

        batch = [
            {
                "id": f"code_{key}_{i}",
                "content": chunk.text,
                "metadata": {
                    "type": "code_chunk",
                    "language": language,
                    "filePath": file_path,
                    "chunkIndex": i,
                    "totalChunks": len(chunks),
                    "startLine": chunk.start_line,
                    "endLine": chunk.end_line,
                },
            }
            for i, chunk in enumerate(chunks)
        ]
        return await self.vector_store.add_documents(collection_name, batch)

    async def index_code_file(
        self,
        collection_name: str,
        code: str,
        language: str,
        file_path: str,
    ) -> list[Document]:
        """Index a whole source file as a single flattened document.

        One document per file, its text capped at ``MAX_CODE_FILE_LENGTH``
        characters.
        """
        if not code or not code.strip():
            return []

        self.vector_store.create_collection(collection_name)
        document = await self.vector_store.add_document(
            collection_name,
            f"file_{_key_hash(file_path)}",
            preprocess_code(code, language, MAX_CODE_FILE_LENGTH),
            {
                "type": "code",
                "language": language,
                "filePath": file_path,
                "originalLength": len(code),
            },
        )
        return [document]

    async def index_path(
        self, collection_name: str, path: Path, whole_files: bool = False
    ) -> int:
        """Index a file, or every supported file below a directory.

        Source files are chunked by line unless ``whole_files`` is set, in
        which case each becomes one flattened document.

        Returns:
            Number of documents indexed.
        """
        files = [path] if path.is_file() else sorted(p for p in path.rglob("*") if p.is_file())
        total = 0

        for file in files:
            suffix = file.suffix.lower()
            if suffix not in CODE_EXTENSIONS and suffix not in TEXT_EXTENSIONS:
                continue

            try:
                text = file.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                logger.warning("Skipping non UTF-8 file %s", file)
                continue

            if suffix in CODE_EXTENSIONS:
                index_code = self.index_code_file if whole_files else self.index_code
                docs = await index_code(
                    collection_name, text, CODE_EXTENSIONS[suffix], file.as_posix()
                )
            else:
                docs = await self.index_document(
                    collection_name, text, title=file.stem, file_path=file.as_posix()
                )
            total += len(docs)
            logger.debug("Indexed %d chunks from %s", len(docs), file)

        logger.info(
            "Indexed %d documents into %s",
            total,
            collection_name,
            extra={"collection": collection_name, "count": total},
        )
        return total
