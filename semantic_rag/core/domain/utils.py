"""Text utilities shared across the domain.

Incoming documents and user inputs have BOM markers stripped at the
boundaries; internal layers assume text is already clean.
"""

import re
import unicodedata

from .chunk import TextChunk


def strip_bom(text: str) -> str:
    """Drop BOM and replacement characters, leaving everything else as is."""
    return text.replace("\ufeff", "").replace("\ufffd", "")


def normalize_text(text: str) -> str:
    """Strip BOM/replacement characters, NFKC-normalize and trim."""
    if not text:
        return ""
    return unicodedata.normalize("NFKC", strip_bom(text)).strip()


_WHITESPACE = re.compile(r"\s+")


def preprocess_code(code: str, language: str, max_length: int = 8000) -> str:
    """Flatten a whole source file into one ``[language]``-tagged line.

    Whitespace runs collapse to single spaces and the result is cut to
    ``max_length`` characters, header included.
    """
    flattened = _WHITESPACE.sub(" ", code).strip()
    return f"[{language}] {flattened}"[:max_length]


_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def chunk_document(content: str, chunk_size: int = 1500, overlap: int = 200) -> list[str]:
    """Split prose into sentence-aligned chunks.

    Sentences are packed until the next one would exceed ``chunk_size``;
    the tail of the previous chunk (about ``overlap`` characters worth of
    words) is carried into the next one.

    Args:
        content: Text to split.
        chunk_size: Target chunk size in characters (must be positive).
        overlap: Approximate overlap in characters (must be non-negative).

    Returns:
        List of chunk strings.

    Raises:
        ValueError: If chunk_size or overlap are invalid.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0:
        raise ValueError("overlap must be non-negative")

    if not content or not content.strip():
        return []

    chunks: list[str] = []
    current = ""
    # Roughly five characters per word
    overlap_words = -(-overlap // 5)

    for sentence in _SENTENCE_BOUNDARY.split(content):
        if current and len(current) + len(sentence) > chunk_size:
            chunks.append(current.strip())
            words = current.split()
            tail = words[-overlap_words:] if overlap_words else []
            current = " ".join(tail) + " "
        current += sentence + " "

    if current.strip():
        chunks.append(current.strip())

    return chunks


def chunk_code(
    code: str,
    language: str,
    chunk_size: int = 1000,
    overlap: int = 200,
) -> list[TextChunk]:
    """Split source code on line boundaries.

    Each chunk is prefixed with a ``[language]`` header line and records
    the range of source lines it covers. Consecutive chunks share about
    ``overlap`` characters worth of trailing lines.

    Args:
        code: Source text.
        language: Language tag used in the header.
        chunk_size: Target chunk size in characters.
        overlap: Approximate overlap in characters.

    Returns:
        List of TextChunk with start/end line numbers.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if overlap < 0:
        raise ValueError("overlap must be non-negative")

    if not code or not code.strip():
        return []

    lines = code.split("\n")
    chunks: list[TextChunk] = []
    current: list[str] = []
    current_length = 0
    start_line = 0

    for i, line in enumerate(lines):
        line_length = len(line) + 1

        if current and current_length + line_length > chunk_size:
            chunks.append(
                TextChunk(
                    text=f"[{language}]\n" + "\n".join(current),
                    start_line=start_line,
                    end_line=i - 1,
                )
            )

            avg_line_length = current_length / len(current)
            overlap_lines = -(-overlap // max(avg_line_length, 1)) if overlap else 0
            keep_from = max(0, len(current) - int(overlap_lines))
            # Never carry the whole chunk forward
            if keep_from == 0:
                keep_from = len(current) - 1 if len(current) > 1 else len(current)
            current = current[keep_from:]
            current_length = sum(len(kept) + 1 for kept in current)
            start_line = i - len(current)

        current.append(line)
        current_length += line_length

    if current:
        chunks.append(
            TextChunk(
                text=f"[{language}]\n" + "\n".join(current),
                start_line=start_line,
                end_line=len(lines) - 1,
            )
        )

    return chunks
