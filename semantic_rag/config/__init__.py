"""Configuration package for the semantic retrieval engine."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
