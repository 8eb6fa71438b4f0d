"""Embedding providers and the batched, failure-tolerant executor.

Every embedding backend is reached through :class:`EmbeddingProvider`.
How calls are grouped and paced is a :class:`BatchPolicy`, so a bulk
API (many texts per call) and a rate-limited API (one text per call with
a pause in between) run through the same :class:`BatchEmbeddingExecutor`.
"""

from __future__ import annotations

import enum
import logging
import math
import numbers
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from article_embedder.ingestion.models import EmbeddedChunk

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from article_embedder.config import Settings

logger = logging.getLogger(__name__)


class EmbeddingError(RuntimeError):
    """A provider call failed or returned unusable vectors."""


class InputType(str, enum.Enum):
    """Intended use of an embedding.

    Index-time and query-time texts must be tagged consistently so the two
    sides of a similarity search stay comparable.
    """

    DOCUMENT = "search_document"
    QUERY = "search_query"


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class EmbeddingProvider(ABC):
    """Backend-agnostic embedding capability.

    Parameters
    ----------
    max_batch_size:
        Largest number of texts the backend accepts per call.
    """

    def __init__(self, max_batch_size: int = 96) -> None:
        self.max_batch_size = max_batch_size

    @abstractmethod
    def embed(
        self,
        texts: list[str],
        *,
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[list[float]]:
        """Return one vector per text, in input order.  May raise."""
        ...


class LangChainEmbeddingProvider(EmbeddingProvider):
    """Adapter over any LangChain :class:`~langchain_core.embeddings.Embeddings`.

    ``DOCUMENT`` inputs go through ``embed_documents``; ``QUERY`` inputs
    through ``embed_query``, which models with asymmetric prompts use to
    add their query instruction.
    """

    def __init__(self, embeddings: Embeddings, *, max_batch_size: int = 96) -> None:
        super().__init__(max_batch_size)
        self._embeddings = embeddings

    def embed(
        self,
        texts: list[str],
        *,
        input_type: InputType = InputType.DOCUMENT,
    ) -> list[list[float]]:
        if input_type is InputType.QUERY:
            return [self._embeddings.embed_query(text) for text in texts]
        return self._embeddings.embed_documents(texts)


def get_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Build the provider selected by ``settings.embedding_provider``.

    Backend packages are imported here so that importing this module
    never loads a model or opens a connection.
    """
    if settings.embedding_provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        embeddings = HuggingFaceEmbeddings(
            model_name=settings.embedding_model,
            encode_kwargs={"normalize_embeddings": True},
        )
        return LangChainEmbeddingProvider(embeddings, max_batch_size=settings.embedding_batch_size)

    if settings.embedding_provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {
            "model": settings.embedding_model,
            "api_key": settings.openai_api_key,
        }
        if settings.openai_base_url:
            kwargs["base_url"] = settings.openai_base_url
        if settings.embedding_dimensions:
            kwargs["dimensions"] = settings.embedding_dimensions
        # The executor already batches; keep the client from re-chunking.
        kwargs["chunk_size"] = settings.embedding_batch_size
        return LangChainEmbeddingProvider(
            OpenAIEmbeddings(**kwargs),
            max_batch_size=settings.embedding_batch_size,
        )

    raise ValueError(
        f"Unsupported embedding_provider={settings.embedding_provider!r}. "
        "Choose from: huggingface, openai."
    )


# ---------------------------------------------------------------------------
# Batch policy + executor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchPolicy:
    """How texts are grouped into provider calls and how calls are paced.

    Attributes
    ----------
    batch_size:
        Maximum texts per provider call.
    delay_seconds:
        Pause between consecutive provider calls (never after the last).
    max_retries:
        Extra attempts for a failed batch before its outputs are dropped.
        ``0`` drops on the first failure.
    """

    batch_size: int = 96
    delay_seconds: float = 0.0
    max_retries: int = 0

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError(f"batch_size ({self.batch_size}) must be > 0")
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds ({self.delay_seconds}) must be >= 0")
        if self.max_retries < 0:
            raise ValueError(f"max_retries ({self.max_retries}) must be >= 0")

    @classmethod
    def bulk(cls, batch_size: int = 96, *, max_retries: int = 0) -> BatchPolicy:
        return cls(batch_size=batch_size, delay_seconds=0.0, max_retries=max_retries)

    @classmethod
    def rate_limited(cls, delay_seconds: float = 1.1, *, max_retries: int = 0) -> BatchPolicy:
        return cls(batch_size=1, delay_seconds=delay_seconds, max_retries=max_retries)

    @classmethod
    def from_settings(cls, settings: Settings) -> BatchPolicy:
        if settings.embedding_mode == "sequential":
            return cls.rate_limited(
                settings.embedding_delay_seconds,
                max_retries=settings.embedding_max_retries,
            )
        if settings.embedding_mode == "batch":
            return cls.bulk(
                settings.embedding_batch_size,
                max_retries=settings.embedding_max_retries,
            )
        raise ValueError(
            f"Unsupported embedding_mode={settings.embedding_mode!r}. "
            "Choose from: batch, sequential."
        )


class BatchEmbeddingExecutor:
    """Drive an :class:`EmbeddingProvider` over many chunks.

    Failed batches are logged and skipped; whatever succeeded is returned
    as ``(chunk_id, vector)`` pairs, so a dropped batch can never shift
    the pairing of the batches after it.

    The first vector length seen fixes :attr:`dimension` for the lifetime
    of the executor, unless a *dimension* is given up front; batches with
    another length count as failed.

    Parameters
    ----------
    provider:
        Embedding backend.
    policy:
        Batching / pacing policy.  The batch size is clamped to the
        provider's ``max_batch_size``.
    dimension:
        Expected vector length.  When *None* it is taken from the first
        successful batch.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        policy: BatchPolicy | None = None,
        *,
        dimension: int | None = None,
    ) -> None:
        self.provider = provider
        self.policy = policy or BatchPolicy.bulk(provider.max_batch_size)
        self.batch_size = min(self.policy.batch_size, provider.max_batch_size)
        self.dimension: int | None = dimension

    # -- public API -----------------------------------------------------------

    def embed_all(self, items: Sequence[tuple[str, str]]) -> list[EmbeddedChunk]:
        """Embed ``(chunk_id, text)`` pairs batch by batch.

        Returns
        -------
        list[EmbeddedChunk]
            One entry per successfully embedded text, in input order.
            Never longer than *items*.
        """
        total = len(items)
        n_batches = math.ceil(total / self.batch_size) if total else 0
        embedded: list[EmbeddedChunk] = []

        for batch_no, start in enumerate(range(0, total, self.batch_size)):
            batch = items[start : start + self.batch_size]
            end = start + len(batch)
            logger.info("Embedding batch %d-%d of %d", start + 1, end, total)

            try:
                vectors = self._embed_with_retry([text for _, text in batch])
            except Exception as exc:
                logger.error("Error embedding batch %d-%d: %s", start + 1, end, exc)
            else:
                embedded.extend(
                    EmbeddedChunk(chunk_id=chunk_id, vector=vec)
                    for (chunk_id, _), vec in zip(batch, vectors)
                )

            if self.policy.delay_seconds and batch_no < n_batches - 1:
                time.sleep(self.policy.delay_seconds)

        logger.info("Successfully embedded %d of %d chunks", len(embedded), total)
        return embedded

    # -- internals ------------------------------------------------------------

    def _embed_with_retry(self, texts: list[str]) -> list[list[float]]:
        attempt = 0
        while True:
            try:
                return self._embed_batch(texts)
            except Exception as exc:
                attempt += 1
                if attempt > self.policy.max_retries:
                    raise
                wait = 2 ** attempt
                logger.warning("Retry %d/%d for batch (wait %ds): %s",
                               attempt, self.policy.max_retries, wait, exc)
                time.sleep(wait)

    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        vectors = self.provider.embed(texts, input_type=InputType.DOCUMENT)
        return self._validate(vectors, expected=len(texts))

    def _validate(self, vectors: Sequence[Sequence[float]] | None, *, expected: int) -> list[list[float]]:
        if vectors is None or len(vectors) == 0:
            raise EmbeddingError("No embeddings returned")
        vectors = [list(v) for v in vectors]
        if len(vectors) != expected:
            raise EmbeddingError(f"Expected {expected} embeddings, got {len(vectors)}")

        dims = {len(v) for v in vectors}
        if len(dims) != 1 or 0 in dims:
            raise EmbeddingError(f"Inconsistent or empty vectors in batch (lengths={sorted(dims)})")
        dim = dims.pop()
        if self.dimension is not None and dim != self.dimension:
            raise EmbeddingError(f"Vector dimension {dim} differs from run dimension {self.dimension}")
        if not all(isinstance(x, numbers.Real) and not isinstance(x, bool) for v in vectors for x in v):
            raise EmbeddingError("Non-numeric values in embedding response")

        if self.dimension is None:
            self.dimension = dim
        return [[float(x) for x in v] for v in vectors]
