import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .codec import DocumentCodec, is_vector
from .embeddings import Embedder
from .errors import ValidationError, VectorStoreError
from .filters import FilterExpression, FilterTranslator
from .query_utils import build_knn_query, format_vector
from .schemas import (
    EMBEDDING_KEY,
    SCORE_KEY,
    Document,
    IndexResult,
    SearchRequest,
    StoreOptions,
)
from .solr_client import SolrClient, get_solr_client


logger = logging.getLogger(__name__)


class SolrVectorStore:
    """Add, delete and KNN search over one Solr collection.

    The collection schema must already exist: an id field, a text content
    field, a ``DenseVectorField`` whose ``vectorDimension`` matches the
    embedder and dynamic fields for ``<metadata_prefix>*``.
    """

    def __init__(
        self,
        client: Optional[SolrClient] = None,
        collection: str = "books",
        embedder: Optional[Embedder] = None,
        options: Optional[StoreOptions] = None,
    ) -> None:
        self.client = client or get_solr_client()
        self.collection = collection
        self.embedder = embedder or Embedder()
        self.options = options or StoreOptions(vector_dimension=self.embedder.dim)
        if self.options.vector_dimension != self.embedder.dim:
            raise ValueError(
                f"Store expects dim {self.options.vector_dimension} "
                f"but embedder produces {self.embedder.dim}"
            )
        self.codec = DocumentCodec(self.options)
        self.filter_translator = FilterTranslator(self.options.metadata_prefix)

    def _result_fields(self) -> List[str]:
        opts = self.options
        return [opts.id_field, opts.content_field, SCORE_KEY, f"{opts.metadata_prefix}*"]

    def add(self, documents: Iterable[Document]) -> IndexResult:
        """Embed (where needed), encode and write documents, then commit.

        Documents already carrying a vector under ``metadata["embedding"]``
        are not re-embedded; the rest are embedded with one batch call.
        Documents that cannot be prepared are counted as failed and left out
        of the write. Counts are returned only once Solr has acknowledged the
        write and the commit; an engine failure raises EngineIOError.
        """
        # work on copies; callers' documents are never mutated
        docs = [
            Document(id=d.id or str(uuid.uuid4()), text=d.text, metadata=dict(d.metadata or {}))
            for d in documents
        ]
        if not docs:
            return IndexResult()

        failed = 0
        skipped = set()
        pending: List[int] = []
        for i, doc in enumerate(docs):
            if is_vector(doc.metadata.get(EMBEDDING_KEY)):
                continue
            if not doc.text or not doc.text.strip():
                logger.warning("Skipping document '%s': no text to embed", doc.id)
                skipped.add(i)
                failed += 1
                continue
            pending.append(i)

        if pending:
            logger.debug(
                "Embedding %d of %d documents for collection '%s'",
                len(pending),
                len(docs),
                self.collection,
            )
            vectors = self.embedder.embed_documents([docs[i].text for i in pending])
            for i, vec in zip(pending, vectors):
                docs[i].metadata[EMBEDDING_KEY] = vec

        records: List[Dict[str, Any]] = []
        ids: List[str] = []
        for i, doc in enumerate(docs):
            if i in skipped:
                continue
            try:
                records.append(self.codec.encode(doc))
            except (VectorStoreError, TypeError, ValueError) as e:
                logger.warning("Failed to prepare document '%s' for indexing: %s", doc.id, e)
                failed += 1
                continue
            ids.append(doc.id)

        if records:
            resp = self.client.add(self.collection, records)
            self.client.commit(self.collection)
            logger.debug(
                "Added %d documents to Solr collection '%s', status: %s",
                len(records),
                self.collection,
                resp.get("responseHeader", {}).get("status"),
            )

        return IndexResult(indexed=len(records), failed=failed, document_ids=ids)

    def delete(self, ids: Sequence[str]) -> None:
        """Delete by id and commit. Unknown ids are ignored by Solr."""
        ids = [i for i in ids if i]
        if not ids:
            return
        resp = self.client.delete_by_id(self.collection, ids)
        self.client.commit(self.collection)
        logger.debug(
            "Deleted %d documents from Solr collection '%s', status: %s",
            len(ids),
            self.collection,
            resp.get("responseHeader", {}).get("status"),
        )

    def similarity_search(
        self, request: Union[SearchRequest, str], **kwargs: Any
    ) -> List[Document]:
        """KNN search; results keep Solr's order.

        Accepts a SearchRequest, or a query string plus SearchRequest keyword
        arguments (``top_k``, ``filter_expression``, ``similarity_threshold``).
        """
        if isinstance(request, str):
            request = SearchRequest(query=request, **kwargs)
        if not request.query or not request.query.strip():
            raise ValidationError("Search query cannot be null or empty")

        query_vector = self.embedder.embed_query(request.query)
        knn = build_knn_query(self.options.vector_field, request.top_k, format_vector(query_vector))

        filters: List[str] = []
        if request.filter_expression is not None:
            filters.append(self.filter_translator.translate(request.filter_expression))

        # score is a pseudo-field computed at query time; threshold filtering
        # therefore happens on the decoded rows
        rows = self.client.query(
            self.collection,
            knn,
            fields=self._result_fields(),
            rows=request.top_k,
            filters=filters,
        )
        logger.debug(
            "Similarity search in collection '%s' returned %d results", self.collection, len(rows)
        )
        return self._decode_rows(rows, request.similarity_threshold)

    def keyword_search(
        self,
        query: str,
        top_k: int = 10,
        filter_expression: Optional[FilterExpression] = None,
    ) -> List[Document]:
        """Lexical edismax search over the content field."""
        if not query or not query.strip():
            raise ValidationError("Search query cannot be null or empty")
        if top_k <= 0:
            raise ValidationError(f"top_k must be greater than 0, got {top_k}")

        filters: List[str] = []
        if filter_expression is not None:
            filters.append(self.filter_translator.translate(filter_expression))

        rows = self.client.query(
            self.collection,
            query,
            fields=self._result_fields(),
            rows=top_k,
            filters=filters,
            extra_params={"defType": "edismax", "qf": self.options.content_field},
        )
        logger.debug(
            "Keyword search in collection '%s' returned %d results", self.collection, len(rows)
        )
        return self._decode_rows(rows, -1.0)

    def _decode_rows(self, rows: List[Dict[str, Any]], threshold: float) -> List[Document]:
        docs: List[Document] = []
        for row in rows:
            doc = self.codec.decode(row, threshold)
            if doc is None:
                continue
            # with a threshold set, an unscored row cannot be shown to pass it
            if threshold >= 0 and doc.score is None:
                continue
            docs.append(doc)
        return docs
