"""Assemble retrieved passages into a length-bounded prompt context."""

from ..domain import SearchResult

SEPARATOR = "\n---\n"
MIN_TRUNCATED_BLOCK = 100


def source_label(result: SearchResult, position: int) -> str:
    """Header for one passage: file path, else title, else its 1-based position."""
    source = result.document.source
    if source:
        return f"[Source: {source}]"
    return f"[Source {position}]"


def build_context(results: list[SearchResult], max_length: int = 4000) -> str:
    """Concatenate passages until the character budget runs out.

    The passage that would overflow is cut to the remaining budget when at
    least ``MIN_TRUNCATED_BLOCK`` characters are left, and dropped otherwise.
    Separators do not count against the budget.
    """
    parts: list[str] = []
    current_length = 0

    for position, result in enumerate(results, start=1):
        entry = f"{source_label(result, position)}\n{result.document.content}\n"

        if current_length + len(entry) > max_length:
            remaining = max_length - current_length
            if remaining >= MIN_TRUNCATED_BLOCK:
                parts.append(entry[:remaining])
            break

        parts.append(entry)
        current_length += len(entry)

    return SEPARATOR.join(parts)
