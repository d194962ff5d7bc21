"""Indexing application layer.

Turns index requests into Documents and writes them through the per-collection
vector store.
"""

from .service import IndexRequest, IndexResponse, IndexService

__all__ = ["IndexRequest", "IndexResponse", "IndexService"]
