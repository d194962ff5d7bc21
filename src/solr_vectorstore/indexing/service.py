from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from solr_vectorstore.vectorstore import Document, VectorStoreError, VectorStoreFactory

logger = logging.getLogger(__name__)


@dataclass
class IndexRequest:
    content: str
    id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class IndexResponse:
    indexed: int
    failed: int
    document_ids: List[str] = field(default_factory=list)
    message: str = ""


class IndexService:
    """Application-layer indexing.

    Builds Documents from requests and writes them through the collection's
    vector store, which embeds them. Engine and provider failures are
    reported in the returned IndexResponse instead of raised.
    """

    def __init__(self, factory: VectorStoreFactory):
        self.factory = factory

    def index_document(self, collection: str, request: IndexRequest) -> IndexResponse:
        logger.debug("Indexing document in collection: %s", collection)
        try:
            result = self.factory.for_collection(collection).add([self._to_document(request)])
        except VectorStoreError as e:
            logger.error("Failed to index document in collection '%s': %s", collection, e)
            return IndexResponse(0, 1, [], f"Failed to index document: {e}")

        if result.failed:
            return IndexResponse(0, 1, [], "Failed to index document: document could not be prepared")
        logger.info(
            "Successfully indexed document '%s' in collection '%s'",
            result.document_ids[0],
            collection,
        )
        return IndexResponse(1, 0, result.document_ids, "Successfully indexed document")

    def index_documents(
        self, collection: str, requests: Sequence[IndexRequest]
    ) -> IndexResponse:
        logger.debug("Batch indexing %d documents in collection: %s", len(requests), collection)
        documents = [self._to_document(r) for r in requests]
        if not documents:
            return IndexResponse(0, 0, [], "No documents to index")

        try:
            result = self.factory.for_collection(collection).add(documents)
        except VectorStoreError as e:
            logger.error("Failed to batch index documents in collection '%s': %s", collection, e)
            return IndexResponse(
                0, len(documents), [], f"Batch indexing failed: {e}"
            )

        logger.info(
            "Successfully indexed %d documents in collection '%s'", result.indexed, collection
        )
        return IndexResponse(
            result.indexed,
            result.failed,
            result.document_ids,
            f"Successfully indexed {result.indexed} documents, {result.failed} failed",
        )

    def delete_documents(self, collection: str, ids: Sequence[str]) -> None:
        self.factory.for_collection(collection).delete(ids)
        logger.info("Deleted %d documents from collection '%s'", len(ids), collection)

    @staticmethod
    def _to_document(request: IndexRequest) -> Document:
        return Document(
            id=request.id or str(uuid.uuid4()),
            text=request.content,
            metadata=dict(request.metadata or {}),
        )
