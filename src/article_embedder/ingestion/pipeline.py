"""Ingestion orchestrator — chunk, enrich, embed and index articles.

Articles are processed strictly one after another.  Per article the
stages run in order::

    CHUNKING → ENRICHING → EMBEDDING ─┬─ UPSERTING → DONE
                                      ├─ EMBEDDING_FAILED   (zero vectors)
                                      └─ INDEX_FAILED       (store unreachable or
                                                             rejects the vectors)

A failed article never stops the run; the outcome of every article is
recorded in a :class:`DocumentReport`.

Usage::

    from article_embedder.config import Settings
    from article_embedder.ingestion.pipeline import IngestionPipeline

    pipeline = IngestionPipeline.from_settings(Settings())
    report = pipeline.run(articles)
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from article_embedder.ingestion.chunker import chunk_text, validate_chunk_sizes
from article_embedder.ingestion.embedder import (
    BatchEmbeddingExecutor,
    BatchPolicy,
    EmbeddingProvider,
    get_embedding_provider,
)
from article_embedder.ingestion.enricher import enrich
from article_embedder.ingestion.models import Article, IndexRecord
from article_embedder.ingestion.payloads import build_index_records
from article_embedder.retrieval.base import IndexUnavailableError, VectorStoreBase

if TYPE_CHECKING:
    from article_embedder.config import Settings

logger = logging.getLogger(__name__)


class DocumentStage(str, enum.Enum):
    """Where an article is, or where it stopped, in the pipeline."""

    PENDING = "pending"
    CHUNKING = "chunking"
    ENRICHING = "enriching"
    EMBEDDING = "embedding"
    UPSERTING = "upserting"
    DONE = "done"
    EMBEDDING_FAILED = "embedding_failed"
    INDEX_FAILED = "index_failed"


FAILED_STAGES = frozenset({DocumentStage.EMBEDDING_FAILED, DocumentStage.INDEX_FAILED})


@dataclass
class DocumentReport:
    """Outcome of one article.

    Attributes
    ----------
    document_id:
        Id shared by every record of the article.
    title:
        Article title, for log readability.
    stage:
        Final stage reached.
    chunks_submitted:
        Chunks produced by the chunker and sent for embedding.
    chunks_embedded:
        Chunks that came back with a vector.
    error:
        Failure description for the failed stages.
    """

    document_id: str
    title: str
    stage: DocumentStage = DocumentStage.PENDING
    chunks_submitted: int = 0
    chunks_embedded: int = 0
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.stage in FAILED_STAGES


@dataclass
class RunReport:
    """Per-article reports for a whole run, plus totals."""

    documents: list[DocumentReport] = field(default_factory=list)

    @property
    def chunks_submitted(self) -> int:
        return sum(d.chunks_submitted for d in self.documents)

    @property
    def chunks_embedded(self) -> int:
        return sum(d.chunks_embedded for d in self.documents)

    @property
    def indexed(self) -> list[DocumentReport]:
        return [d for d in self.documents if d.stage is DocumentStage.DONE]

    @property
    def failed(self) -> list[DocumentReport]:
        return [d for d in self.documents if d.failed]


class IngestionPipeline:
    """Sequential article → vector-store pipeline.

    Parameters
    ----------
    provider:
        Embedding backend.
    store:
        Target vector store.
    policy:
        Batching / pacing policy for the embedding calls.
    chunk_size / chunk_overlap:
        Chunker window and overlap, in characters.
    vector_dimension:
        Collection dimension.  When *None* the dimension of the first
        embedded vector is used.  When set, batches of another length are
        dropped at embedding time.
    distance_metric:
        Distance function for a newly created collection.
    index_max_retries:
        Attempts for each collection-ensure / upsert before the article is
        marked ``INDEX_FAILED``.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        store: VectorStoreBase,
        *,
        policy: BatchPolicy | None = None,
        chunk_size: int = 1024,
        chunk_overlap: int = 200,
        vector_dimension: int | None = None,
        distance_metric: str = "cosine",
        index_max_retries: int = 3,
    ) -> None:
        validate_chunk_sizes(chunk_size, chunk_overlap)
        if index_max_retries < 1:
            raise ValueError(f"index_max_retries ({index_max_retries}) must be >= 1")

        self.executor = BatchEmbeddingExecutor(provider, policy, dimension=vector_dimension)
        self.store = store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.vector_dimension = vector_dimension
        self.distance_metric = distance_metric
        self.index_max_retries = index_max_retries
        self._collection_ready = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        provider: EmbeddingProvider | None = None,
        store: VectorStoreBase | None = None,
    ) -> IngestionPipeline:
        """Wire the default provider and Chroma store from *settings*."""
        if provider is None:
            provider = get_embedding_provider(settings)
        if store is None:
            from article_embedder.retrieval.chroma_store import ChromaVectorStore

            store = ChromaVectorStore(
                settings.chroma_collection,
                host=settings.chroma_host,
                port=settings.chroma_port,
            )
        return cls(
            provider,
            store,
            policy=BatchPolicy.from_settings(settings),
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            vector_dimension=settings.vector_dimension,
            distance_metric=settings.distance_metric,
            index_max_retries=settings.index_max_retries,
        )

    # -- public API -----------------------------------------------------------

    def run(self, articles: Iterable[Article]) -> RunReport:
        """Process every article in order and return the run report."""
        report = RunReport()
        for article in articles:
            logger.info("Starting article: %s", article.title)
            report.documents.append(self.process(article))

        logger.info(
            "Run complete: %d/%d articles indexed, %d of %d chunks embedded",
            len(report.indexed), len(report.documents),
            report.chunks_embedded, report.chunks_submitted,
        )
        return report

    def process(self, article: Article) -> DocumentReport:
        """Run one article through every stage."""
        report = DocumentReport(document_id=article.document_id, title=article.title)

        report.stage = DocumentStage.CHUNKING
        spans = chunk_text(article.content, self.chunk_size, self.chunk_overlap)

        report.stage = DocumentStage.ENRICHING
        processed = enrich(article, spans)
        report.chunks_submitted = len(processed.chunks)
        logger.info("Article %r chunked into %d pieces", article.title, report.chunks_submitted)
        if not processed.chunks:
            logger.warning("Article %r has no text to embed; skipping", article.title)
            report.stage = DocumentStage.DONE
            return report

        report.stage = DocumentStage.EMBEDDING
        embedded = self.executor.embed_all(
            [(chunk.chunk_id, chunk.embedding_input_text) for chunk in processed.chunks]
        )
        report.chunks_embedded = len(embedded)
        logger.info("Embedded %d of %d chunks for %r",
                    report.chunks_embedded, report.chunks_submitted, article.title)
        if not embedded:
            report.stage = DocumentStage.EMBEDDING_FAILED
            report.error = "Embedding failed, no vectors to save"
            logger.error("%s for %r", report.error, article.title)
            return report

        records = build_index_records(processed, embedded)

        report.stage = DocumentStage.UPSERTING
        try:
            self._index(records)
        except (IndexUnavailableError, ValueError) as exc:
            report.stage = DocumentStage.INDEX_FAILED
            report.error = str(exc)
            logger.error("Indexing failed for %r: %s", article.title, exc)
            return report

        report.stage = DocumentStage.DONE
        return report

    # -- internals ------------------------------------------------------------

    def _index(self, records: Sequence[IndexRecord]) -> None:
        """Ensure the collection exists, then upsert, retrying store outages."""
        attempt = 0
        while True:
            try:
                if not self._collection_ready:
                    dimension = self.vector_dimension or len(records[0].vector)
                    self.store.ensure_collection(dimension, self.distance_metric)
                    self._collection_ready = True
                self.store.upsert(records, wait=True)
                return
            except IndexUnavailableError as exc:
                attempt += 1
                if attempt >= self.index_max_retries:
                    raise
                wait = 2 ** attempt
                logger.warning("Retry %d/%d for %s (wait %ds): %s",
                               attempt, self.index_max_retries,
                               self.store.collection_name, wait, exc)
                time.sleep(wait)
