"""Abstract base class for vector-store backends.

Adding a new backend (Qdrant, Pinecone, Weaviate …) only requires
subclassing :class:`VectorStoreBase` and implementing the abstract
methods.  The ingestion pipeline is backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from article_embedder.ingestion.models import IndexRecord
from article_embedder.retrieval.models import SearchHit


class IndexUnavailableError(RuntimeError):
    """The vector store could not be reached or rejected an operation."""


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name
        self.dimension: int | None = None

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def ensure_collection(self, dimension: int, distance_metric: str = "cosine") -> None:
        """Create the collection if it does not exist yet.

        Idempotent.  Backends raise :class:`IndexUnavailableError` when the
        store cannot be reached.
        """
        ...

    @abstractmethod
    def upsert(self, records: Sequence[IndexRecord], *, wait: bool = True) -> None:
        """Insert or overwrite *records* keyed by ``record.id``.

        With ``wait=True`` the call returns only once the store has
        acknowledged the write.
        """
        ...

    @abstractmethod
    def similarity_search(self, query_embedding: list[float], *, k: int = 5) -> list[SearchHit]:
        """Return the top-*k* hits for *query_embedding*, best first."""
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def delete(self, ids: list[str]) -> None:
        """Delete records by their IDs.  Optional; raises by default."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")

    # -- helpers --------------------------------------------------------------

    def _check_dimensions(self, records: Sequence[IndexRecord]) -> None:
        if self.dimension is None:
            raise ValueError(
                f"Collection {self.collection_name!r} not ensured; call ensure_collection() first"
            )
        for rec in records:
            if len(rec.vector) != self.dimension:
                raise ValueError(
                    f"Record {rec.id!r} has dimension {len(rec.vector)}, "
                    f"collection {self.collection_name!r} expects {self.dimension}"
                )
