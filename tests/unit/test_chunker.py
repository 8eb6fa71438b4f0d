"""Unit tests for the chunker and enricher."""

from __future__ import annotations

import math

import pytest

from article_embedder.ingestion.chunker import chunk_text, process_article
from article_embedder.ingestion.enricher import build_embedding_input, enrich
from article_embedder.ingestion.models import Article


# ── chunk_text ─────────────────────────────────────────────────────────


def test_short_text_yields_single_trimmed_chunk() -> None:
    """A text no longer than chunk_size becomes one chunk equal to the stripped input."""
    text = "  A short article body.\n"
    spans = chunk_text(text, chunk_size=1024, chunk_overlap=200)
    assert [s.text for s in spans] == [text.strip()]
    assert spans[0].start == 0


def test_starts_advance_by_size_minus_overlap_without_punctuation() -> None:
    text = "a" * 3000
    spans = chunk_text(text, chunk_size=1024, chunk_overlap=200)
    starts = [s.start for s in spans]
    assert all(b - a == 824 for a, b in zip(starts, starts[1:]))
    assert len(spans) == math.ceil(3000 / 824)


def test_no_boundary_cuts_at_chunk_size() -> None:
    spans = chunk_text("x" * 50, chunk_size=20, chunk_overlap=5)
    assert len(spans[0].text) == 20


def test_prefers_sentence_boundary() -> None:
    """A period at 500 with ideal end 600 ends the chunk at 501."""
    text = "a" * 500 + "." + "b" * 1000
    spans = chunk_text(text, chunk_size=600, chunk_overlap=100)
    assert spans[0].text == text[:501]
    assert spans[0].text.endswith(".")


@pytest.mark.parametrize("mark", ["?", "!", "\n"])
def test_other_boundaries_are_recognised(mark: str) -> None:
    text = "a" * 30 + mark + "b" * 100
    spans = chunk_text(text, chunk_size=50, chunk_overlap=10)
    assert spans[0].text == text[:31].strip()


def test_boundary_exactly_at_ideal_end_is_included() -> None:
    text = "a" * 20 + "." + "b" * 40
    spans = chunk_text(text, chunk_size=20, chunk_overlap=5)
    assert spans[0].text == text[:21]


def test_boundary_at_window_start_is_ignored() -> None:
    """A boundary not strictly after the window start falls back to a hard cut."""
    text = "." + "a" * 100
    spans = chunk_text(text, chunk_size=30, chunk_overlap=0)
    assert spans[0].text == text[:30]


def test_final_chunk_runs_to_end_of_text() -> None:
    text = "First sentence here. " + "tail without stop"
    spans = chunk_text(text, chunk_size=30, chunk_overlap=10)
    assert spans[-1].text.endswith("tail without stop")


def test_whitespace_windows_are_dropped_but_cursor_advances() -> None:
    text = "Intro." + "\n" * 40 + "Outro."
    spans = chunk_text(text, chunk_size=10, chunk_overlap=2)
    # Windows starting at 8..40 see only newlines; the cursor keeps stepping by 8.
    assert [s.start for s in spans] == [0, 48]
    assert [s.text for s in spans] == ["Intro.", "tro."]


def test_only_newlines_yields_nothing() -> None:
    assert chunk_text("\n" * 100, chunk_size=10, chunk_overlap=3) == []


def test_empty_text_yields_nothing() -> None:
    assert chunk_text("", chunk_size=10, chunk_overlap=3) == []


def test_window_count_is_bounded() -> None:
    text = "Lorem ipsum dolor sit amet. " * 200
    spans = chunk_text(text, chunk_size=100, chunk_overlap=30)
    assert 0 < len(spans) <= math.ceil(len(text) / 70)


def test_multibyte_text_sliced_by_code_point() -> None:
    text = "日本語のテキスト。" * 20
    spans = chunk_text(text, chunk_size=25, chunk_overlap=5)
    assert spans
    for span in spans:
        span.text.encode("utf-8")  # no surrogate halves
        assert span.text in text


@pytest.mark.parametrize(
    ("size", "overlap"),
    [(100, 100), (100, 150), (0, 0), (10, -1)],
)
def test_invalid_sizes_raise(size: int, overlap: int) -> None:
    with pytest.raises(ValueError, match="must be"):
        chunk_text("Hello", chunk_size=size, chunk_overlap=overlap)


def test_overlap_gte_chunk_size_message() -> None:
    with pytest.raises(ValueError, match="chunk_overlap.*must be < chunk_size"):
        chunk_text("Hello", chunk_size=100, chunk_overlap=100)


# ── enricher / process_article ─────────────────────────────────────────


def test_embedding_input_header() -> None:
    out = build_embedding_input("Body.", title="T", category="C", region="R")
    assert out == "Region: R\nCategory: C\nTitle: T\n\nBody."


def test_missing_region_renders_empty() -> None:
    out = build_embedding_input("Body.", title="T", category="C", region=None)
    assert out.startswith("Region: \n")
    assert "None" not in out


def test_end_to_end_chunks_carry_header(article: Article) -> None:
    processed = process_article(article, chunk_size=20, chunk_overlap=5)
    assert len(processed.chunks) >= 2
    for chunk in processed.chunks:
        assert chunk.embedding_input_text.startswith("Region: R\nCategory: C\nTitle: T\n\n")
        assert chunk.embedding_input_text.endswith(chunk.original_text)
        assert "Region:" not in chunk.original_text


def test_chunk_ids_are_document_scoped(article: Article) -> None:
    processed = process_article(article, chunk_size=20, chunk_overlap=5)
    assert processed.document_id == article.document_id
    ids = [c.chunk_id for c in processed.chunks]
    assert ids == [f"{article.document_id}_{i}" for i in range(len(ids))]
    assert all(c.document_id == article.document_id for c in processed.chunks)


def test_document_id_is_deterministic() -> None:
    a = Article(title="T", category="C", content="Body.")
    b = Article(title="T", category="C", content="Body.", region="elsewhere")
    c = Article(title="T2", category="C", content="Body.")
    assert a.document_id == b.document_id
    assert a.document_id != c.document_id


def test_enrich_keeps_article_metadata() -> None:
    art = Article(title="T", category="C", content="x", sourceURL="https://example.com/a")
    processed = enrich(art, [("x", 0)])
    assert processed.source_url == "https://example.com/a"
    assert processed.region == ""
    assert processed.chunks[0].start_offset == 0
