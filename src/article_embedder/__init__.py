"""Article embedding pipeline: split articles into chunks and index their embeddings."""

__version__ = "0.1.0"
