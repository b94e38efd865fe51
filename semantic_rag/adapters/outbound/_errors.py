"""Classification of provider SDK errors."""

_RATE_LIMIT_MARKERS = ("quota", "rate limit", "rate_limit", "resource_exhausted", "429")


def is_rate_limit(exc: Exception) -> bool:
    """True when a provider error looks like a quota or rate-limit rejection."""
    if getattr(exc, "code", None) == 429:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)
