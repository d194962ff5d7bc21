from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from solr_vectorstore.vectorstore import (
    FilterExpression,
    Retriever,
    VectorStoreFactory,
    build_default_factory,
)
from solr_vectorstore.vectorstore.schemas import EMBEDDING_KEY, SCORE_KEY, Document


@dataclass(frozen=True)
class SearchServiceConfig:
    collection_name: str = field(
        default_factory=lambda: os.getenv("SOLR_COLLECTION", "books")
    )


class SearchService:
    """Application-layer search service.

    Implements:
      1) Semantic (KNN) search by query text
      2) Hybrid search: keyword and KNN rankings fused with RRF

    Returns minimal results: {id, content, score, metadata}.
    """

    def __init__(
        self,
        config: SearchServiceConfig | None = None,
        factory: VectorStoreFactory | None = None,
    ):
        self.config = config or SearchServiceConfig()
        # One factory per service so every collection shares the embedder and Solr client.
        self.factory = factory or build_default_factory()

    def retriever_for(self, collection: Optional[str] = None) -> Retriever:
        return Retriever(store=self.factory.for_collection(collection or self.config.collection_name))

    def search_by_query(
        self,
        query: str,
        *,
        collection: Optional[str] = None,
        top_k: int = 10,
        filter_expression: Optional[FilterExpression] = None,
        similarity_threshold: float = -1.0,
        hybrid: bool = False,
    ) -> List[Dict[str, Any]]:
        """Search by a natural-language query string."""

        if not query or not query.strip():
            return []

        items = self.retriever_for(collection).retrieve(
            query.strip(),
            limit=top_k,
            filter_expression=filter_expression,
            similarity_threshold=similarity_threshold,
            hybrid=hybrid,
        )
        return [self._to_result(item) for item in items]

    def _to_result(self, item: Document) -> Dict[str, Any]:
        return {
            "id": str(item.id),
            "content": item.text,
            "score": item.score,
            "metadata": {
                k: v for k, v in item.metadata.items() if k not in (SCORE_KEY, EMBEDDING_KEY)
            },
        }
