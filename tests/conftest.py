"""Shared pytest configuration, fakes and fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from article_embedder.ingestion.embedder import EmbeddingProvider, InputType
from article_embedder.ingestion.models import Article, IndexRecord
from article_embedder.retrieval.base import IndexUnavailableError, VectorStoreBase
from article_embedder.retrieval.models import SearchHit


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


def length_vector(text: str, dim: int = 4) -> list[float]:
    """Deterministic vector whose first component is the text length."""
    return [float(len(text))] + [0.5] * (dim - 1)


class FakeEmbeddingProvider(EmbeddingProvider):
    """In-memory provider that records calls and can fail on chosen calls.

    Parameters
    ----------
    fail_on_calls:
        1-based call numbers that raise ``RuntimeError``.
    vectorize:
        Text → vector function.
    """

    def __init__(
        self,
        *,
        max_batch_size: int = 96,
        fail_on_calls: Sequence[int] = (),
        vectorize: Callable[[str], list[float]] = length_vector,
    ) -> None:
        super().__init__(max_batch_size)
        self.fail_on_calls = set(fail_on_calls)
        self.vectorize = vectorize
        self.calls: list[tuple[list[str], InputType]] = []

    def embed(
        self,
        texts: list[str],
        *,
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[list[float]]:
        self.calls.append((list(texts), input_type))
        if len(self.calls) in self.fail_on_calls:
            raise RuntimeError("provider unavailable")
        return [self.vectorize(t) for t in texts]


class FakeVectorStore(VectorStoreBase):
    """Dict-backed store; ``upsert_failures`` outages precede each success."""

    def __init__(self, *, upsert_failures: int = 0, ensure_failures: int = 0) -> None:
        super().__init__("test-collection")
        self.records: dict[str, IndexRecord] = {}
        self.upsert_failures = upsert_failures
        self.ensure_failures = ensure_failures
        self.ensure_calls: list[tuple[int, str]] = []
        self.upsert_calls = 0

    def ensure_collection(self, dimension: int, distance_metric: str = "cosine") -> None:
        self.ensure_calls.append((dimension, distance_metric))
        if self.ensure_failures:
            self.ensure_failures -= 1
            raise IndexUnavailableError("store offline")
        self.dimension = dimension

    def upsert(self, records: Sequence[IndexRecord], *, wait: bool = True) -> None:
        self.upsert_calls += 1
        if self.upsert_failures:
            self.upsert_failures -= 1
            raise IndexUnavailableError("store offline")
        self._check_dimensions(records)
        for rec in records:
            self.records[rec.id] = rec

    def similarity_search(self, query_embedding: list[float], *, k: int = 5) -> list[SearchHit]:
        def dot(vec: list[float]) -> float:
            return sum(a * b for a, b in zip(vec, query_embedding))

        hits = [
            SearchHit(id=rec.id, score=dot(rec.vector), payload=rec.payload.model_dump())
            for rec in self.records.values()
        ]
        return sorted(hits, key=lambda h: h.score, reverse=True)[:k]

    def health_check(self) -> bool:
        return True


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def article() -> Article:
    return Article(
        title="T",
        category="C",
        region="R",
        content="Sentence one. Sentence two. Sentence three.",
    )


@pytest.fixture()
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture()
def store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace ``time.sleep`` and collect the requested delays."""
    delays: list[float] = []
    monkeypatch.setattr("time.sleep", delays.append)
    return delays
