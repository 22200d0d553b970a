"""Runtime configuration for the OfficeGPT pipeline."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="officegpt_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"
    assistant_name: str = "OfficeGPT"

    # Chunking
    chunk_size: int = 500
    chunk_overlap: int = 100

    # Embeddings
    embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_dim: int = 384
    embedding_batch_size: int = 10
    use_model_embeddings: bool = False

    # Vector store
    chroma_persist_dir: Path | None = Path("./.chroma")
    chroma_collection: str = "officegpt"
    chroma_host: str | None = None
    chroma_port: int | None = None
    chroma_ssl: bool = False
    vector_store_max_concurrency: int = 5

    # Retrieval & generation
    retrieval_top_k: int = 3
    llm_backend: Literal["template", "groq", "transformers"] = "template"
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1024
    groq_api_key: str | None = None
    provider_timeout_seconds: float | None = 30.0

    # Upload safety
    allowed_extensions: tuple[str, ...] | str = (".pdf", ".txt", ".md")
    max_upload_size_mb: int = 10

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def allowed_extensions_tuple(self) -> tuple[str, ...]:
        value = self.allowed_extensions
        if isinstance(value, tuple):
            return value
        if isinstance(value, str):
            parts = [p.strip().lower() for p in value.split(",") if p.strip()]
            return tuple(parts) if parts else (".pdf",)
        return (".pdf",)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
