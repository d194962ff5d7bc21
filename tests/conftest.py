"""
Shared test fixtures and fakes for pytest.
"""

import fnmatch
import json
import math
import re
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from langchain_core.embeddings import Embeddings

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from solr_vectorstore.vectorstore import (  # noqa: E402
    Embedder,
    EngineIOError,
    RetryPolicy,
    SolrVectorStore,
    StoreOptions,
)


KNN_RE = re.compile(r"^\{!knn f=(?P<field>\S+) topK=(?P<top_k>\d+)\}(?P<literal>\[.*\])$")


# ============================================================================
# Fakes
# ============================================================================

class FakeEmbeddings(Embeddings):
    """
    Deterministic LangChain embeddings.

    ``vectors`` pins the vector for specific texts; ``errors`` is a queue of
    exceptions (or None for "succeed") consumed one per provider call.
    """

    def __init__(self, dim: int = 3, vectors: Optional[Dict[str, List[float]]] = None,
                 errors: Optional[list] = None):
        self.dim = dim
        self.vectors = dict(vectors or {})
        self.errors = list(errors or [])
        self.query_calls: List[str] = []
        self.document_calls: List[List[str]] = []

    def _vector(self, text: str) -> List[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        seed = sum(ord(c) for c in text)
        return [((seed * (i + 1)) % 97) / 97.0 + 0.01 for i in range(self.dim)]

    def _maybe_fail(self):
        if self.errors:
            err = self.errors.pop(0)
            if err is not None:
                raise err

    def embed_query(self, text: str) -> List[float]:
        self.query_calls.append(text)
        self._maybe_fail()
        return self._vector(text)

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls.append(list(texts))
        self._maybe_fail()
        return [self._vector(t) for t in texts]


def _cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


def _first(value):
    if isinstance(value, list):
        return value[0] if value else None
    return value


class FakeSolrClient:
    """
    In-memory stand-in for SolrClient.

    Writes are staged until ``commit``; ``query`` understands the KNN clause
    (cosine similarity), plain keyword queries (term overlap on the content
    field) and ``key:value`` filter queries.
    """

    def __init__(self, content_field: str = "content"):
        self.content_field = content_field
        self.collections: Dict[str, Dict[str, dict]] = defaultdict(dict)
        self.pending: Dict[str, list] = defaultdict(list)
        self.calls: List[str] = []
        self.queries: List[Dict[str, Any]] = []
        self.fail_on: set = set()
        self.next_rows: Optional[List[dict]] = None

    def _check(self, name: str):
        self.calls.append(name)
        if name in self.fail_on:
            raise EngineIOError(f"{name} failed", status_code=500)

    def add(self, collection, records):
        self._check("add")
        self.pending[collection].append(("add", [dict(r) for r in records]))
        return {"responseHeader": {"status": 0}}

    def delete_by_id(self, collection, ids):
        self._check("delete_by_id")
        self.pending[collection].append(("delete", list(ids)))
        return {"responseHeader": {"status": 0}}

    def commit(self, collection):
        self._check("commit")
        docs = self.collections[collection]
        for op, payload in self.pending.pop(collection, []):
            if op == "add":
                for record in payload:
                    docs[record["id"]] = record
            else:
                for doc_id in payload:
                    docs.pop(doc_id, None)
        return {"responseHeader": {"status": 0}}

    def query(self, collection, q, *, fields=(), rows=None, filters=(), extra_params=None):
        self._check("query")
        self.queries.append({
            "collection": collection,
            "q": q,
            "fields": list(fields),
            "rows": rows,
            "filters": list(filters),
            "extra_params": dict(extra_params or {}),
        })
        if self.next_rows is not None:
            return [dict(r) for r in self.next_rows]

        docs = list(self.collections[collection].values())
        for fq in filters:
            key, _, value = fq.partition(":")
            docs = [d for d in docs if str(_first(d.get(key))) == value]

        match = KNN_RE.match(q)
        if match:
            vector_field = match.group("field")
            query_vector = json.loads(match.group("literal"))
            scored = [
                (_cosine(query_vector, d[vector_field]), d) for d in docs if vector_field in d
            ]
            limit = int(match.group("top_k"))
        else:
            terms = q.lower().split()
            scored = []
            for d in docs:
                text = str(_first(d.get(self.content_field)) or "").lower()
                hits = sum(1 for t in terms if t in text)
                if hits:
                    scored.append((float(hits), d))
            limit = rows or 10
        scored.sort(key=lambda pair: pair[0], reverse=True)
        scored = scored[: min(limit, rows or limit)]

        out = []
        for score, d in scored:
            row = {
                k: v for k, v in d.items()
                if not fields or any(fnmatch.fnmatchcase(k, pattern) for pattern in fields)
            }
            if not fields or "score" in fields:
                row["score"] = score
            out.append(row)
        return out


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def sleeps() -> List[float]:
    """Recorded backoff delays."""
    return []


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings(dim=3)


@pytest.fixture
def embedder(fake_embeddings, sleeps) -> Embedder:
    return Embedder(
        embeddings=fake_embeddings,
        dimension=3,
        retry_policy=RetryPolicy(),
        sleep=sleeps.append,
    )


@pytest.fixture
def solr() -> FakeSolrClient:
    return FakeSolrClient()


@pytest.fixture
def store(solr, embedder) -> SolrVectorStore:
    return SolrVectorStore(
        client=solr,
        collection="books",
        embedder=embedder,
        options=StoreOptions(vector_dimension=3),
    )
