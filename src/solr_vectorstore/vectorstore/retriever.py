from __future__ import annotations

import logging
from typing import List, Optional, overload

from .data_store import SolrVectorStore
from .filters import FilterExpression
from .rrf import VECTOR_SCORE_KEY, RrfMerger
from .schemas import Document, SearchRequest, format_document

logger = logging.getLogger(__name__)


class Retriever:
    """Query-side facade over a SolrVectorStore.

    Pure KNN by default; with ``hybrid=True`` a keyword search runs alongside
    and both rankings are fused with RRF.
    """

    def __init__(
        self, store: SolrVectorStore | None = None, merger: RrfMerger | None = None
    ):
        self.store = store or SolrVectorStore()
        self.merger = merger or RrfMerger()

    def _retrieve_one(
        self,
        query: str,
        limit: int,
        filter_expression: Optional[FilterExpression],
        similarity_threshold: float,
        hybrid: bool,
    ) -> List[Document]:
        request = SearchRequest(
            query=query,
            top_k=limit,
            filter_expression=filter_expression,
            similarity_threshold=similarity_threshold,
        )
        vector_docs = self.store.similarity_search(request)
        if not hybrid:
            items = vector_docs
        else:
            keyword_docs = self.store.keyword_search(
                query, top_k=limit, filter_expression=filter_expression
            )
            items = self.merger.merge(keyword_docs, vector_docs)
            if request.threshold_enabled:
                # keyword-only hits carry no similarity and cannot pass a threshold
                items = [
                    d for d in items
                    if d.metadata.get(VECTOR_SCORE_KEY) is not None
                    and d.metadata[VECTOR_SCORE_KEY] >= similarity_threshold
                ]
            items = items[:limit]

        if logger.isEnabledFor(logging.DEBUG):
            lines = [f"Returned K={len(items)} results for {query!r}"]
            lines += [f"{i}. {format_document(d)}" for i, d in enumerate(items, start=1)]
            logger.debug("\n".join(lines))
        return items

    @overload
    def retrieve(
        self,
        query_or_queries: str,
        limit: int = 10,
        *,
        filter_expression: Optional[FilterExpression] = None,
        similarity_threshold: float = -1.0,
        hybrid: bool = False,
    ) -> List[Document]: ...

    @overload
    def retrieve(
        self,
        query_or_queries: List[str],
        limit: int = 10,
        *,
        filter_expression: Optional[FilterExpression] = None,
        similarity_threshold: float = -1.0,
        hybrid: bool = False,
    ) -> List[List[Document]]: ...

    def retrieve(
        self,
        query_or_queries: str | List[str],
        limit: int = 10,
        *,
        filter_expression: Optional[FilterExpression] = None,
        similarity_threshold: float = -1.0,
        hybrid: bool = False,
    ):
        if isinstance(query_or_queries, list):
            return [
                self._retrieve_one(q, limit, filter_expression, similarity_threshold, hybrid)
                for q in query_or_queries
            ]
        elif isinstance(query_or_queries, str):
            return self._retrieve_one(
                query_or_queries, limit, filter_expression, similarity_threshold, hybrid
            )
        else:
            raise ValueError("Input must be a string or a list of strings")
