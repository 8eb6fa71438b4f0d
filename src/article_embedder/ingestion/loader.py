"""Article loaders — read article records from JSON or JSON-Lines files."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from article_embedder.ingestion.models import Article

logger = logging.getLogger(__name__)


def _to_articles(records: list[dict], source: Path) -> list[Article]:
    articles: list[Article] = []
    for idx, rec in enumerate(records, 1):
        try:
            articles.append(Article.model_validate(rec))
        except ValidationError as exc:
            logger.warning("Skipping record %d in %s: %s", idx, source, exc)
    return articles


def load_jsonl(path: str | Path) -> list[Article]:
    """Load one article per line; blank and malformed lines are skipped."""
    path = Path(path)
    records: list[dict] = []
    with open(path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                logger.warning("Skipping malformed line %d: %s", lineno, exc)
    return _to_articles(records, path)


def load_json(path: str | Path) -> list[Article]:
    """Load a JSON array of article objects (a single object is also accepted)."""
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON object or list, got {type(data).__name__}")
    return _to_articles(data, path)


def load_articles(path: str | Path) -> list[Article]:
    """Load articles from *path*, dispatching on the file suffix.

    Parameters
    ----------
    path:
        A ``.json`` or ``.jsonl`` file.

    Returns
    -------
    list[Article]
        Validated articles; invalid records are logged and dropped.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Article file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in (".jsonl", ".ndjson"):
        articles = load_jsonl(path)
    elif suffix == ".json":
        articles = load_json(path)
    else:
        raise ValueError(f"Unsupported article file type {suffix!r}. Use .json or .jsonl.")

    logger.info("Loaded %d articles from %s", len(articles), path)
    return articles
