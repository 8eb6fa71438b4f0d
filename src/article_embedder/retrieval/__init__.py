"""
Retrieval — vector-store backends and query-side search.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`SemanticRetriever` — embed a query and return ranked hits.
- :class:`SearchHit`, :class:`IndexUnavailableError`.
"""

from article_embedder.retrieval.base import IndexUnavailableError, VectorStoreBase
from article_embedder.retrieval.models import SearchHit
from article_embedder.retrieval.retriever import SemanticRetriever

__all__ = [
    "ChromaVectorStore",
    "IndexUnavailableError",
    "SearchHit",
    "SemanticRetriever",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore so the chromadb client is only built on demand."""
    if name == "ChromaVectorStore":
        from article_embedder.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
