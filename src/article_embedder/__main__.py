"""Command-line entry point: ``python -m article_embedder articles.jsonl``."""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from article_embedder.config import Settings
from article_embedder.ingestion.loader import load_articles
from article_embedder.ingestion.pipeline import IngestionPipeline, RunReport


def format_report(report: RunReport) -> str:
    lines = [
        f"{d.stage.value:<17} {d.chunks_embedded:>4}/{d.chunks_submitted:<4} {d.title}"
        + (f"  ({d.error})" if d.error else "")
        for d in report.documents
    ]
    lines.append(
        f"Indexed {len(report.indexed)}/{len(report.documents)} articles, "
        f"{report.chunks_embedded}/{report.chunks_submitted} chunks embedded"
    )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="article_embedder",
        description="Chunk, embed and index articles into the vector store",
    )
    parser.add_argument("articles", help="Path to a .json or .jsonl file of articles")
    parser.add_argument("--chunk-size", type=int, default=None, help="Override CHUNK_SIZE")
    parser.add_argument("--chunk-overlap", type=int, default=None, help="Override CHUNK_OVERLAP")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    overrides = {
        key: value
        for key, value in {
            "chunk_size": args.chunk_size,
            "chunk_overlap": args.chunk_overlap,
            "log_level": args.log_level,
        }.items()
        if value is not None
    }
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        parser.error(f"invalid settings:\n{exc}")

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    articles = load_articles(args.articles)
    pipeline = IngestionPipeline.from_settings(settings)
    report = pipeline.run(articles)

    print(format_report(report))
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
