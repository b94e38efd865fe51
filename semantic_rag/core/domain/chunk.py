"""Chunk model produced by the text splitters."""

from dataclasses import dataclass


@dataclass
class TextChunk:
    """A slice of a source text.

    Attributes:
        text: Chunk content.
        start_line: First source line (0-based), for code chunks.
        end_line: Last source line (inclusive), for code chunks.
    """

    text: str
    start_line: int | None = None
    end_line: int | None = None
