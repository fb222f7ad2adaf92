"""Centralized configuration for the textbook QA system."""

import json

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkConfig(BaseSettings):
    """Text chunking parameters used when ingesting a textbook."""

    model_config = SettingsConfigDict(env_prefix="CHUNK_", frozen=True)

    size: int = Field(default=800, gt=0)
    overlap: int = Field(default=150, ge=0)

    @model_validator(mode="after")
    def _overlap_less_than_size(self) -> "ChunkConfig":
        if self.overlap >= self.size:
            msg = f"overlap ({self.overlap}) must be less than size ({self.size})"
            raise ValueError(msg)
        return self


class RetrievalConfig(BaseSettings):
    """ChromaDB passage index settings."""

    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_", frozen=True)

    db_path: str = "./chroma_db"
    collection_name: str = "textbook_passages"
    embedding_model: str = "all-MiniLM-L6-v2"
    top_k: int = Field(default=5, gt=0)
    batch_size: int = Field(default=100, gt=0)


class LLMConfig(BaseSettings):
    """Ollama completion settings."""

    model_config = SettingsConfigDict(env_prefix="LLM_", frozen=True)

    host: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    available_models: list[str] = Field(
        default=["llama3.1:8b", "gemma3:4b", "qwen2.5:7b"],
    )

    @field_validator("available_models", mode="before")
    @classmethod
    def _parse_available_models(cls, v: object) -> list[str]:
        """Accept a JSON array string or comma-separated string from env vars."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
            except (json.JSONDecodeError, ValueError):
                parsed = [item.strip() for item in v.split(",") if item.strip()]
            if not isinstance(parsed, list):
                return [str(parsed)]
            return [str(item) for item in parsed]
        return v  # type: ignore[return-value]

    # Low temperature keeps answers close to the textbook wording.
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1200, gt=0)
    timeout: float = Field(default=60.0, gt=0)


class StoreConfig(BaseSettings):
    """Record store (chat sessions and messages) settings."""

    model_config = SettingsConfigDict(env_prefix="STORE_", frozen=True)

    database_url: str = "sqlite:///./textbook_qa.db"
    echo: bool = False


class QAConfig(BaseSettings):
    """Question-answering pipeline behaviour."""

    model_config = SettingsConfigDict(env_prefix="QA_", frozen=True)

    locale: str = "en"
    verify_session_owner: bool = True
    source_excerpt_chars: int = Field(default=200, gt=0)

    @field_validator("locale")
    @classmethod
    def _known_locale(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("en", "th"):
            raise ValueError(f"unsupported locale: {v!r} (expected 'en' or 'th')")
        return v


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    model_config = SettingsConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, le=65535)
    chunk: ChunkConfig = Field(default_factory=ChunkConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    qa: QAConfig = Field(default_factory=QAConfig)
