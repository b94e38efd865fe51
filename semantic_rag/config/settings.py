"""Configuration management for the semantic retrieval engine."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets injected through environment variables or mounted files may
    carry a BOM that breaks HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Google AI API
    google_api_key: str = ""

    @field_validator("google_api_key", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Chat model settings
    llm_model: str = "gemini-2.0-flash"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 4096
    llm_requests_per_minute: int | None = 15

    # Embedding settings
    embedding_provider: str = "gemini"
    embedding_model: str = "gemini-embedding-001"
    local_embedding_model: str = "all-MiniLM-L6-v2"
    embedding_dimensions: int = 768
    embedding_requests_per_minute: int | None = 60

    # Index tuning
    hnsw_m: int = 16
    hnsw_ef_construction: int = 200
    hnsw_ef_search: int = 50
    brute_force_threshold: int = 1000

    # RAG defaults
    rag_top_k: int = 5
    rag_max_context_length: int = 4000

    # Indexing
    chunk_size: int = 1500
    chunk_overlap: int = 200

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None
    debug: bool = False


# Global settings instance
settings = Settings()
