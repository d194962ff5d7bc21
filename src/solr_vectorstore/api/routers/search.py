from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from solr_vectorstore.search import SearchService
from solr_vectorstore.vectorstore import Equality, VectorStoreError

from ..deps import get_search_service, to_http_error


router = APIRouter(prefix="/api/v1/search", tags=["search"])


class EqualityFilter(BaseModel):
    key: str = Field(..., min_length=1, description="Metadata key, with or without prefix.")
    value: Union[str, int, float, bool] = Field(..., description="Value the field must equal.")


class SearchOptions(BaseModel):
    top_k: int = Field(10, ge=1, le=100, description="Number of results to return.")
    similarity_threshold: float = Field(
        -1.0, description="Minimum similarity score; negative disables the cut-off."
    )
    hybrid: bool = Field(
        False, description="Fuse keyword and vector rankings with Reciprocal Rank Fusion."
    )


class QuerySearchRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Natural-language search query.")
    filter: Optional[EqualityFilter] = Field(
        default=None, description="Optional metadata equality filter."
    )
    options: SearchOptions = Field(
        default_factory=SearchOptions, description="Search options."
    )


class SearchResultItem(BaseModel):
    id: str = Field(..., description="Document id.")
    content: Optional[str] = Field(None, description="Stored text content.")
    score: Optional[float] = Field(None, description="Similarity (or fused RRF) score.")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata stored alongside the vector.",
    )


@router.post(
    "/{collection}",
    summary="Semantic search by query",
    response_model=List[SearchResultItem],
)
def search_by_query(
    collection: str,
    request: QuerySearchRequest,
    service: SearchService = Depends(get_search_service),
) -> List[SearchResultItem]:
    """Search a collection by natural-language query."""

    filter_expression = None
    if request.filter is not None:
        filter_expression = Equality(request.filter.key, request.filter.value)

    try:
        results = service.search_by_query(
            request.query,
            collection=collection,
            top_k=request.options.top_k,
            filter_expression=filter_expression,
            similarity_threshold=request.options.similarity_threshold,
            hybrid=request.options.hybrid,
        )
    except VectorStoreError as exc:
        raise to_http_error(exc) from exc

    return [SearchResultItem(**item) for item in results]
