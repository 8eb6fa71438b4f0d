"""Boundary-aware text chunking with overlap."""

from __future__ import annotations

import logging
from typing import NamedTuple

from article_embedder.ingestion.enricher import enrich
from article_embedder.ingestion.models import Article, ProcessedArticle

logger = logging.getLogger(__name__)

BOUNDARY_CHARS = (".", "?", "!", "\n")


class TextSpan(NamedTuple):
    """A trimmed chunk of text and the offset of the window it came from."""

    text: str
    start: int


def validate_chunk_sizes(chunk_size: int, chunk_overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size ({chunk_size}) must be > 0")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap ({chunk_overlap}) must be >= 0")
    if chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
        )


def chunk_text(
    text: str,
    chunk_size: int = 1024,
    chunk_overlap: int = 200,
) -> list[TextSpan]:
    """Split *text* into overlapping chunks that prefer sentence boundaries.

    Each window starts ``chunk_size - chunk_overlap`` characters after the
    previous one.  A window that does not reach the end of the text is cut
    just after the last ``.``, ``?``, ``!`` or newline at or before
    ``start + chunk_size``, provided that boundary lies after the window
    start; otherwise it is cut at exactly ``chunk_size`` characters.
    Windows that are empty after stripping are dropped.

    Parameters
    ----------
    text:
        Source text.  Offsets are code points.
    chunk_size:
        Target chunk length in characters.
    chunk_overlap:
        Characters shared between consecutive windows.  Must be smaller
        than *chunk_size*.

    Returns
    -------
    list[TextSpan]
        ``(text, start)`` pairs in document order.
    """
    validate_chunk_sizes(chunk_size, chunk_overlap)

    step = chunk_size - chunk_overlap
    spans: list[TextSpan] = []
    start = 0
    while start < len(text):
        ideal_end = start + chunk_size
        end = ideal_end
        if ideal_end < len(text):
            # rfind's end bound is exclusive; +1 lets a boundary sit at ideal_end.
            boundary = max(text.rfind(ch, 0, ideal_end + 1) for ch in BOUNDARY_CHARS)
            if boundary > start:
                end = boundary + 1

        piece = text[start:end].strip()
        if piece:
            spans.append(TextSpan(piece, start))
        start += step
    return spans


def process_article(
    article: Article,
    chunk_size: int = 1024,
    chunk_overlap: int = 200,
) -> ProcessedArticle:
    """Chunk *article* and attach metadata-enriched embedding inputs."""
    processed = enrich(article, chunk_text(article.content, chunk_size, chunk_overlap))
    logger.info("Article %r chunked into %d pieces", article.title, len(processed.chunks))
    return processed
