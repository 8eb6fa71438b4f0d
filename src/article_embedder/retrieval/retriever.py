"""Semantic retriever — embed a query and search the vector store.

Usage::

    from article_embedder.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(store, provider)
    for hit in retriever.search("What should I eat while pregnant?", k=3):
        print(hit)
"""

from __future__ import annotations

import logging

from article_embedder.ingestion.embedder import EmbeddingProvider, InputType
from article_embedder.retrieval.base import VectorStoreBase
from article_embedder.retrieval.models import SearchHit

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """Query-side counterpart of the ingestion pipeline.

    Queries are embedded with :attr:`InputType.QUERY` by the same provider
    that indexed the documents.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    provider:
        The embedding provider used at ingestion time.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Minimum similarity score; results below this are discarded.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        provider: EmbeddingProvider,
        *,
        default_k: int = 3,
        score_threshold: float = 0.0,
    ) -> None:
        self._store = store
        self._provider = provider
        self.default_k = default_k
        self.score_threshold = score_threshold

    def search(self, query: str, *, k: int | None = None) -> list[SearchHit]:
        """Return up to *k* hits for *query*, best first."""
        k = k or self.default_k
        [embedding] = self._provider.embed([query], input_type=InputType.QUERY)
        hits = self._store.similarity_search(list(embedding), k=k)
        logger.debug("Query %r returned %d hits", query, len(hits))
        return [h for h in hits if h.score >= self.score_threshold]
