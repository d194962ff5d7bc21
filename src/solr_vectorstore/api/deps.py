from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from solr_vectorstore.indexing import IndexService
from solr_vectorstore.search import SearchService
from solr_vectorstore.vectorstore import (
    EngineIOError,
    ProviderError,
    UnsupportedFilterError,
    ValidationError,
    VectorStoreError,
    VectorStoreFactory,
    build_default_factory,
)


@lru_cache(maxsize=1)
def get_factory() -> VectorStoreFactory:
    return build_default_factory()


@lru_cache(maxsize=1)
def get_search_service() -> SearchService:
    return SearchService(factory=get_factory())


@lru_cache(maxsize=1)
def get_index_service() -> IndexService:
    return IndexService(get_factory())


def to_http_error(exc: VectorStoreError) -> HTTPException:
    """Map vector store failures onto HTTP status codes."""
    if isinstance(exc, (ValidationError, UnsupportedFilterError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ProviderError):
        return HTTPException(status_code=502, detail=f"Embedding provider error: {exc}")
    if isinstance(exc, EngineIOError):
        return HTTPException(status_code=503, detail=f"Search engine error: {exc}")
    return HTTPException(status_code=500, detail=f"Search failed: {exc}")
