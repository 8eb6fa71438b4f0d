"""Domain models flowing through the ingestion pipeline.

``Article`` → (chunker) → ``ProcessedArticle`` holding ``Chunk`` objects
→ (executor) → ``EmbeddedChunk`` pairs → (payload builder) → ``IndexRecord``.
"""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Article(BaseModel):
    """A raw article as supplied by the caller.

    Attributes
    ----------
    title:
        Human-readable article title.
    content:
        Full article body.
    category:
        Editorial category, injected into every chunk's embedding input.
    region:
        Optional region tag; ``None`` is stored as ``""``.
    source_url:
        Optional origin URL (``sourceURL`` is accepted on input).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    content: str
    category: str
    region: str = ""
    source_url: str = Field(default="", alias="sourceURL")

    @field_validator("region", "source_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: str | None) -> str:
        return "" if value is None else value

    @property
    def document_id(self) -> str:
        """Deterministic id so re-ingesting the same article overwrites its records."""
        digest = hashlib.sha256(f"{self.title}\n{self.content}".encode())
        return digest.hexdigest()[:16]


class Chunk(BaseModel):
    """One embeddable slice of an article."""

    chunk_id: str
    document_id: str
    chunk_index: int
    start_offset: int
    embedding_input_text: str
    original_text: str


class ProcessedArticle(BaseModel):
    """An article split into enriched chunks, ready for embedding."""

    document_id: str
    title: str
    category: str
    region: str = ""
    source_url: str = ""
    chunks: list[Chunk] = Field(default_factory=list)


class EmbeddedChunk(BaseModel):
    """A vector paired with the id of the chunk it was computed from."""

    chunk_id: str
    vector: list[float]


class ChunkPayload(BaseModel):
    """Metadata stored next to each vector for filtering and display."""

    text: str
    document_id: str
    title: str
    category: str
    region: str = ""
    source_url: str = ""
    chunk_index: int


class IndexRecord(BaseModel):
    """One upsert-ready vector-store record; ``id`` is the chunk id."""

    id: str
    vector: list[float]
    payload: ChunkPayload
