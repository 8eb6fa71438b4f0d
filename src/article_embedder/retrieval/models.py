"""Result models returned by vector-store queries."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """A single ranked query result.

    Attributes
    ----------
    id:
        Record id (the chunk id used at upsert time).
    score:
        Similarity score, higher is more similar.
    payload:
        Metadata stored with the vector, including ``"text"``.
    """

    id: str
    score: float
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.payload.get("text", "")

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.score:.4f}] {self.payload.get('title', '?')}: {self.text[:120]}…"
