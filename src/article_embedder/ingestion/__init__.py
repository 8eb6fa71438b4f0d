"""
Ingestion — article loading, chunking, enrichment, and embedding into the
vector store.

This module is responsible for the pipeline that converts raw articles
into embedded, metadata-rich chunks stored in a vector database.
"""
