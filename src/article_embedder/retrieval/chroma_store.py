"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from article_embedder.ingestion.models import IndexRecord
from article_embedder.retrieval.base import IndexUnavailableError, VectorStoreBase
from article_embedder.retrieval.models import SearchHit

logger = logging.getLogger(__name__)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    The payload ``text`` is stored as the Chroma document; every other
    payload field becomes flat metadata.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client.  When *None* an ``HttpClient`` is created
        on first use.
    upsert_batch_size:
        Max records per upsert call.
    """

    def __init__(
        self,
        collection_name: str,
        *,
        host: str = "localhost",
        port: int = 8000,
        client: Any | None = None,
        upsert_batch_size: int = 5000,
    ) -> None:
        super().__init__(collection_name)
        self._host = host
        self._port = port
        self._client = client
        self._collection: Any | None = None
        self.distance_metric = "cosine"
        self.upsert_batch_size = upsert_batch_size

    # -- VectorStoreBase overrides --------------------------------------------

    def ensure_collection(self, dimension: int, distance_metric: str = "cosine") -> None:
        try:
            collection = self._get_client().get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": distance_metric, "dimension": dimension},
            )
        except Exception as exc:
            raise IndexUnavailableError(
                f"Unable to load collection {self.collection_name!r}: {exc}"
            ) from exc

        meta = collection.metadata or {}
        existing = meta.get("dimension")
        if existing is not None and int(existing) != dimension:
            raise ValueError(
                f"Collection {self.collection_name!r} exists with dimension {existing}, "
                f"requested {dimension}"
            )
        self._collection = collection
        self.dimension = dimension
        self.distance_metric = meta.get("hnsw:space", distance_metric)
        logger.info("Collection ready: %s (dim=%d, %s)",
                    self.collection_name, dimension, self.distance_metric)

    def upsert(self, records: Sequence[IndexRecord], *, wait: bool = True) -> None:
        # Chroma's HTTP upsert returns after the write is applied, so
        # ``wait`` needs no extra handling.
        if not records:
            return
        self._check_dimensions(records)
        collection = self._collection

        for start in range(0, len(records), self.upsert_batch_size):
            batch = records[start : start + self.upsert_batch_size]
            try:
                collection.upsert(
                    ids=[rec.id for rec in batch],
                    embeddings=[rec.vector for rec in batch],
                    documents=[rec.payload.text for rec in batch],
                    metadatas=[rec.payload.model_dump(exclude={"text"}) for rec in batch],
                )
            except Exception as exc:
                raise IndexUnavailableError(
                    f"Upsert to {self.collection_name!r} failed: {exc}"
                ) from exc
        logger.info("Saved %d vectors to %s", len(records), self.collection_name)

    def similarity_search(self, query_embedding: list[float], *, k: int = 5) -> list[SearchHit]:
        try:
            results = self._get_collection().query(
                query_embeddings=[query_embedding],
                n_results=k,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            raise IndexUnavailableError(f"Query on {self.collection_name!r} failed: {exc}") from exc

        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits = [
            SearchHit(
                id=rec_id,
                score=self._score(dist),
                payload={"text": content or "", **(meta or {})},
            )
            for rec_id, content, meta, dist in zip(ids, docs, metas, distances)
        ]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    def health_check(self) -> bool:
        try:
            self._get_client().heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    def delete(self, ids: list[str]) -> None:
        try:
            self._get_collection().delete(ids=ids)
        except Exception as exc:
            raise IndexUnavailableError(f"Delete from {self.collection_name!r} failed: {exc}") from exc

    # -- internals ------------------------------------------------------------

    def _get_client(self) -> Any:
        if self._client is None:
            import chromadb

            self._client = chromadb.HttpClient(host=self._host, port=self._port)
        return self._client

    def _get_collection(self) -> Any:
        if self._collection is None:
            collection = self._get_client().get_collection(name=self.collection_name)
            meta = collection.metadata or {}
            if meta.get("dimension") is not None:
                self.dimension = int(meta["dimension"])
            self.distance_metric = meta.get("hnsw:space", self.distance_metric)
            self._collection = collection
        return self._collection

    def _score(self, distance: float) -> float:
        # cosine / ip distances are 1 - similarity; l2 has no upper bound.
        if self.distance_metric == "l2":
            return 1.0 / (1.0 + distance)
        return 1.0 - distance
