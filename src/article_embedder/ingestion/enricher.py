"""Context enrichment — prefix chunk text with article metadata for embedding."""

from __future__ import annotations

from collections.abc import Iterable

from article_embedder.ingestion.models import Article, Chunk, ProcessedArticle


def build_embedding_input(
    original_text: str,
    *,
    title: str,
    category: str,
    region: str | None = "",
) -> str:
    """Return the string sent to the embedding model for one chunk.

    The metadata header only goes into the embedding input; the stored
    payload keeps *original_text* so retrieved snippets don't repeat it.
    """
    return (
        f"Region: {region or ''}\n"
        f"Category: {category}\n"
        f"Title: {title}\n\n"
        f"{original_text}"
    )


def enrich(article: Article, spans: Iterable[tuple[str, int]]) -> ProcessedArticle:
    """Wrap ``(text, start)`` spans of *article* into identified, enriched chunks."""
    document_id = article.document_id
    chunks = [
        Chunk(
            chunk_id=f"{document_id}_{idx}",
            document_id=document_id,
            chunk_index=idx,
            start_offset=start,
            embedding_input_text=build_embedding_input(
                text,
                title=article.title,
                category=article.category,
                region=article.region,
            ),
            original_text=text,
        )
        for idx, (text, start) in enumerate(spans)
    ]
    return ProcessedArticle(
        document_id=document_id,
        title=article.title,
        category=article.category,
        region=article.region,
        source_url=article.source_url,
        chunks=chunks,
    )
