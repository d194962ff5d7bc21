"""Reciprocal Rank Fusion of keyword and vector result lists.

``score(d) = sum(1 / (k + rank))`` over every list ``d`` appears in, with
1-based ranks. Ranks are fused instead of raw scores because BM25 and cosine
scores live on different scales.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from .schemas import SCORE_KEY, Document

logger = logging.getLogger(__name__)

DEFAULT_K = 60
RRF_SCORE_KEY = "rrf_score"
KEYWORD_SCORE_KEY = "keyword_score"
VECTOR_SCORE_KEY = "vector_score"
KEYWORD_RANK_KEY = "keyword_rank"
VECTOR_RANK_KEY = "vector_rank"


class _Merged:
    def __init__(self, doc_id: str, source: Document) -> None:
        self.id = doc_id
        self.text = source.text
        self.metadata: Dict[str, Any] = {
            k: v for k, v in source.metadata.items() if k != SCORE_KEY
        }
        self.rrf_score = 0.0
        self.keyword_score: Optional[float] = None
        self.vector_score: Optional[float] = None
        self.keyword_rank: Optional[int] = None
        self.vector_rank: Optional[int] = None

    def merge_vector_fields(self, doc: Document) -> None:
        # vector values win on conflict; score is replaced by the fused one
        self.text = doc.text
        for key, value in doc.metadata.items():
            if key != SCORE_KEY:
                self.metadata[key] = value

    def to_document(self) -> Document:
        metadata = dict(self.metadata)
        metadata[RRF_SCORE_KEY] = self.rrf_score
        metadata[SCORE_KEY] = self.rrf_score
        if self.keyword_score is not None:
            metadata[KEYWORD_SCORE_KEY] = self.keyword_score
        if self.vector_score is not None:
            metadata[VECTOR_SCORE_KEY] = self.vector_score
        if self.keyword_rank is not None:
            metadata[KEYWORD_RANK_KEY] = self.keyword_rank
        if self.vector_rank is not None:
            metadata[VECTOR_RANK_KEY] = self.vector_rank
        return Document(id=self.id, text=self.text, metadata=metadata)


class RrfMerger:
    def __init__(self, k: int = DEFAULT_K) -> None:
        if k <= 0:
            raise ValueError(f"k parameter must be positive, got: {k}")
        self.k = k

    def merge(
        self,
        keyword_results: Optional[Sequence[Document]],
        vector_results: Optional[Sequence[Document]],
    ) -> List[Document]:
        """Fuse both lists; output is sorted by RRF score, descending.

        Raises:
            ValueError: a document has no id.
        """
        keyword = list(keyword_results or [])
        vector = list(vector_results or [])
        logger.debug(
            "Merging %d keyword results and %d vector results using RRF (k=%d)",
            len(keyword),
            len(vector),
            self.k,
        )
        if not keyword and not vector:
            return []

        merged: Dict[str, _Merged] = {}

        for rank, doc in enumerate(keyword, start=1):
            doc_id = self._doc_id(doc)
            entry = merged.setdefault(doc_id, _Merged(doc_id, doc))
            entry.rrf_score += 1.0 / (self.k + rank)
            entry.keyword_rank = rank
            entry.keyword_score = doc.score

        for rank, doc in enumerate(vector, start=1):
            doc_id = self._doc_id(doc)
            entry = merged.get(doc_id)
            if entry is None:
                entry = merged[doc_id] = _Merged(doc_id, doc)
            else:
                entry.merge_vector_fields(doc)
            entry.rrf_score += 1.0 / (self.k + rank)
            entry.vector_rank = rank
            entry.vector_score = doc.score

        results = [entry.to_document() for entry in merged.values()]
        # stable: ties keep first-seen order
        results.sort(key=lambda d: d.metadata[RRF_SCORE_KEY], reverse=True)
        logger.debug("RRF merge complete: %d unique documents after fusion", len(results))
        return results

    @staticmethod
    def _doc_id(doc: Document) -> str:
        if doc.id is None:
            raise ValueError(f"Document missing required 'id': {sorted(doc.metadata)}")
        return str(doc.id)
