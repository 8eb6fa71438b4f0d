"""Turn embedded chunks into index-ready records."""

from __future__ import annotations

from collections.abc import Iterable

from article_embedder.ingestion.models import (
    ChunkPayload,
    EmbeddedChunk,
    IndexRecord,
    ProcessedArticle,
)


def build_index_records(
    article: ProcessedArticle,
    embedded: Iterable[EmbeddedChunk],
) -> list[IndexRecord]:
    """Pair each vector with its chunk by id and attach the article metadata.

    Chunks without a vector (their batch failed) are left out.  Records
    follow the article's chunk order.

    Raises
    ------
    ValueError
        If a vector references a chunk id that is not part of *article*,
        or the same chunk id appears twice.
    """
    vectors: dict[str, list[float]] = {}
    for item in embedded:
        if item.chunk_id in vectors:
            raise ValueError(f"Duplicate embedding for chunk {item.chunk_id!r}")
        vectors[item.chunk_id] = item.vector

    known = {chunk.chunk_id for chunk in article.chunks}
    unknown = vectors.keys() - known
    if unknown:
        raise ValueError(
            f"Embeddings reference chunks not in article {article.document_id}: {sorted(unknown)}"
        )

    return [
        IndexRecord(
            id=chunk.chunk_id,
            vector=vectors[chunk.chunk_id],
            payload=ChunkPayload(
                text=chunk.original_text,
                document_id=article.document_id,
                title=article.title,
                category=article.category,
                region=article.region,
                source_url=article.source_url,
                chunk_index=chunk.chunk_index,
            ),
        )
        for chunk in article.chunks
        if chunk.chunk_id in vectors
    ]
