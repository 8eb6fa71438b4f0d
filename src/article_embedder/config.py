"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Run-wide settings, populated from env vars or .env file."""

    # Embedding provider
    embedding_provider: Literal["huggingface", "openai"] = "huggingface"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    openai_api_key: str = Field(default="", description="API key for the OpenAI embeddings endpoint")
    openai_base_url: str = Field(
        default="",
        description="Base URL for an OpenAI-compatible embeddings API. Leave empty for OpenAI cloud.",
    )
    embedding_dimensions: int | None = Field(
        default=None,
        description="Requested output size for models that support shortening (OpenAI text-embedding-3-*).",
    )

    # Batch policy
    embedding_mode: Literal["batch", "sequential"] = Field(
        default="batch",
        description=(
            "'batch' sends up to embedding_batch_size texts per call; "
            "'sequential' sends one text per call and sleeps embedding_delay_seconds between calls."
        ),
    )
    embedding_batch_size: int = Field(default=96, gt=0)
    embedding_delay_seconds: float = Field(default=1.1, ge=0)
    embedding_max_retries: int = Field(default=0, ge=0)

    # Chunking (characters, not tokens)
    chunk_size: int = Field(default=1024, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "articles"
    vector_dimension: int | None = Field(
        default=None,
        description="Collection dimension. When unset it is taken from the first embedded vector.",
    )
    distance_metric: Literal["cosine", "l2", "ip"] = "cosine"
    index_max_retries: int = Field(default=3, gt=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_overlap(self) -> Settings:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be < chunk_size ({self.chunk_size})"
            )
        return self
