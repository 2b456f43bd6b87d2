"""
Application settings.

Loaded from environment variables and an optional .env file.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Advanced Memory configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "advanced-memory"
    app_env: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    api_workers: int = Field(default=1, ge=1)

    # LLM (Ollama)
    llm_enabled: bool = False
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "mistral:7b-instruct"
    ollama_timeout: int = Field(default=120, ge=1)

    # Embeddings
    embedding_backend: Literal["hashing", "sentence-transformers"] = "hashing"
    text_embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_dimension: int = Field(default=384, ge=32, le=4096)
    embedding_device: str = "cpu"
    embedding_batch_size: int = Field(default=32, gt=0)

    # GraphRAG
    entity_extractor: Literal["pattern", "spacy"] = "pattern"
    spacy_model: str = "en_core_web_sm"
    chunk_size: int = Field(default=300, ge=100, le=2048)
    chunk_overlap: int = Field(default=50, ge=0)
    graph_hop_limit: int = Field(default=1, ge=1, le=5)
    local_top_k_entities: int = Field(default=10, ge=1)
    local_top_k_units: int = Field(default=5, ge=1)
    global_top_k_communities: int = Field(default=5, ge=1)
    community_resolution: float = Field(default=1.0, gt=0)

    # Memory
    memory_backend: Literal["memory", "qdrant"] = "memory"
    qdrant_host: str = "localhost"
    qdrant_port: int = Field(default=6333, ge=1, le=65535)
    qdrant_collection_memories: str = "memories"
    memory_dedup_threshold: float = Field(default=0.95, ge=0, le=1)
    memory_default_limit: int = Field(default=5, ge=1)

    # Verification
    verification_threshold: float = Field(default=0.6, ge=0, le=1)
    trusted_sources_path: Path | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        chunk_size = info.data.get("chunk_size")
        if chunk_size is not None and v >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
