"""Search application layer.

This package provides the search scenarios used by the API:
- Semantic search by free-text query
- Hybrid (keyword + semantic) search fused with Reciprocal Rank Fusion

Implementation relies on the vectorstore package; it does not modify it.
"""

from .service import SearchService, SearchServiceConfig

__all__ = ["SearchService", "SearchServiceConfig"]
