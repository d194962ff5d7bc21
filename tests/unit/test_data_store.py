"""
Unit tests for SolrVectorStore add/delete/search against the in-memory Solr fake.
"""

import pytest

from conftest import KNN_RE
from solr_vectorstore.vectorstore import (
    Document,
    EngineIOError,
    Equality,
    Not,
    SearchRequest,
    SolrVectorStore,
    StoreOptions,
    UnsupportedFilterError,
    ValidationError,
)


def vectored(doc_id, vector, text=None, **metadata):
    metadata["embedding"] = vector
    return Document(id=doc_id, text=text or f"text of {doc_id}", metadata=metadata)


@pytest.fixture
def seeded(store, fake_embeddings):
    """Store with three documents at known angles from the query 'q'."""
    fake_embeddings.vectors["q"] = [1.0, 0.0, 0.0]
    store.add([
        vectored("d1", [1.0, 0.0, 0.0], category="AI"),
        vectored("d2", [0.8, 0.6, 0.0], category="AI"),
        vectored("d3", [0.0, 1.0, 0.0], category="cooking"),
    ])
    return store


class TestConstruction:

    def test_options_default_to_embedder_dimension(self, solr, embedder):
        store = SolrVectorStore(client=solr, embedder=embedder)

        assert store.options.vector_dimension == 3
        assert store.collection == "books"

    def test_dimension_mismatch_rejected(self, solr, embedder):
        with pytest.raises(ValueError):
            SolrVectorStore(client=solr, embedder=embedder, options=StoreOptions(vector_dimension=4))


class TestAdd:

    def test_only_unvectored_documents_embedded(self, store, solr, fake_embeddings):
        result = store.add([
            vectored("a", [0.1, 0.2, 0.3]),
            Document(id="b", text="needs a vector"),
        ])

        assert fake_embeddings.document_calls == [["needs a vector"]]
        assert result.indexed == 2
        assert result.failed == 0
        assert result.document_ids == ["a", "b"]
        assert solr.collections["books"]["a"]["vector"] == [0.1, 0.2, 0.3]
        assert len(solr.collections["books"]["b"]["vector"]) == 3

    def test_no_provider_call_when_all_vectored(self, store, fake_embeddings):
        store.add([vectored("a", [0.1, 0.2, 0.3])])

        assert fake_embeddings.document_calls == []

    def test_write_then_commit(self, store, solr):
        store.add([Document(id="a", text="hello")])

        assert solr.calls == ["add", "commit"]

    def test_ids_generated_for_missing_ids(self, store, solr):
        result = store.add([Document(id=None, text="one"), Document(id="", text="two")])

        assert len(result.document_ids) == 2
        assert all(result.document_ids)
        assert set(solr.collections["books"]) == set(result.document_ids)

    def test_caller_documents_not_mutated(self, store):
        doc = Document(id=None, text="hello", metadata={"genre": "x"})

        store.add([doc])

        assert doc.id is None
        assert doc.metadata == {"genre": "x"}

    def test_metadata_stored_with_prefix(self, store, solr):
        store.add([vectored("a", [0.1, 0.2, 0.3], category="AI", year=2024)])

        record = solr.collections["books"]["a"]
        assert record["metadata_category"] == "AI"
        assert record["metadata_year"] == 2024

    def test_wrong_dimension_counted_as_failed(self, store, solr):
        result = store.add([
            vectored("bad", [0.1, 0.2]),
            vectored("good", [0.1, 0.2, 0.3]),
        ])

        assert result.indexed == 1
        assert result.failed == 1
        assert result.document_ids == ["good"]
        assert "bad" not in solr.collections["books"]

    def test_blank_text_without_vector_counted_as_failed(self, store, fake_embeddings):
        result = store.add([Document(id="a", text="  "), Document(id="b", text="ok")])

        assert result.indexed == 1
        assert result.failed == 1
        assert fake_embeddings.document_calls == [["ok"]]

    def test_empty_input(self, store, solr):
        result = store.add([])

        assert (result.indexed, result.failed, result.document_ids) == (0, 0, [])
        assert solr.calls == []

    def test_nothing_written_when_every_document_fails(self, store, solr):
        result = store.add([vectored("bad", [0.1])])

        assert result.failed == 1
        assert solr.calls == []

    def test_bulk_write_failure_raises(self, store, solr):
        solr.fail_on.add("add")

        with pytest.raises(EngineIOError):
            store.add([Document(id="a", text="hello")])

        assert "commit" not in solr.calls

    def test_commit_failure_raises(self, store, solr):
        solr.fail_on.add("commit")

        with pytest.raises(EngineIOError):
            store.add([Document(id="a", text="hello")])


class TestDelete:

    def test_deleted_ids_never_returned(self, seeded):
        seeded.delete(["d1"])

        ids = [d.id for d in seeded.similarity_search("q", top_k=10)]

        assert "d1" not in ids
        assert set(ids) == {"d2", "d3"}

    def test_unknown_ids_ignored(self, seeded):
        seeded.delete(["missing"])

        assert len(seeded.similarity_search("q", top_k=10)) == 3

    def test_empty_ids_skip_engine(self, store, solr):
        store.delete([])
        store.delete(["", None])

        assert solr.calls == []

    def test_delete_commits(self, seeded, solr):
        solr.calls.clear()

        seeded.delete(["d2"])

        assert solr.calls == ["delete_by_id", "commit"]


class TestSimilaritySearch:

    def test_ranked_by_similarity(self, seeded):
        docs = seeded.similarity_search("q", top_k=10)

        assert [d.id for d in docs] == ["d1", "d2", "d3"]
        assert docs[0].score == pytest.approx(1.0)
        assert docs[0].metadata["category"] == "AI"

    def test_top_k_limits_results(self, seeded, solr):
        docs = seeded.similarity_search(SearchRequest("q", top_k=2))

        assert [d.id for d in docs] == ["d1", "d2"]
        assert solr.queries[-1]["rows"] == 2

    def test_threshold_filters_results(self, seeded):
        docs = seeded.similarity_search("q", top_k=10, similarity_threshold=0.5)

        assert [d.id for d in docs] == ["d1", "d2"]
        assert all(d.score >= 0.5 for d in docs)

    def test_threshold_above_all_scores(self, seeded):
        assert seeded.similarity_search("q", top_k=10, similarity_threshold=1.5) == []

    def test_engine_order_kept_without_threshold(self, store, solr):
        solr.next_rows = [
            {"id": "low", "content": "x", "score": 0.2},
            {"id": "high", "content": "y", "score": 0.9},
        ]

        docs = store.similarity_search("q")

        assert [d.id for d in docs] == ["low", "high"]

    def test_unscored_rows_dropped_when_threshold_set(self, store, solr):
        solr.next_rows = [{"id": "a", "content": "x"}, {"id": "b", "content": "y", "score": 0.7}]

        docs = store.similarity_search("q", similarity_threshold=0.1)

        assert [d.id for d in docs] == ["b"]

    def test_query_shape(self, store, solr, fake_embeddings):
        fake_embeddings.vectors["hello"] = [0.1, 0.2, 0.3]

        store.similarity_search("hello", top_k=5)

        sent = solr.queries[-1]
        assert sent["q"] == "{!knn f=vector topK=5}[0.1, 0.2, 0.3]"
        assert KNN_RE.match(sent["q"])
        assert sent["fields"] == ["id", "content", "score", "metadata_*"]
        assert sent["filters"] == []

    def test_equality_filter_applied(self, seeded, solr):
        docs = seeded.similarity_search("q", top_k=10, filter_expression=Equality("category", "AI"))

        assert solr.queries[-1]["filters"] == ["metadata_category:AI"]
        assert [d.id for d in docs] == ["d1", "d2"]

    def test_unsupported_filter_raises_before_query(self, store, solr):
        with pytest.raises(UnsupportedFilterError):
            store.similarity_search("q", filter_expression=Not(Equality("category", "AI")))

        assert "query" not in solr.calls

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query_rejected(self, store, fake_embeddings, query):
        with pytest.raises(ValidationError):
            store.similarity_search(query)

        assert fake_embeddings.query_calls == []

    def test_engine_failure_raises(self, store, solr):
        solr.fail_on.add("query")

        with pytest.raises(EngineIOError):
            store.similarity_search("q")

    def test_vectors_not_returned(self, seeded):
        docs = seeded.similarity_search("q")

        assert all(d.embedding is None for d in docs)


class TestKeywordSearch:

    def test_edismax_over_content(self, store, solr):
        store.add([
            vectored("a", [0.1, 0.2, 0.3], text="solr dense vectors"),
            vectored("b", [0.3, 0.2, 0.1], text="baking bread"),
        ])

        docs = store.keyword_search("dense vectors", top_k=5)

        assert [d.id for d in docs] == ["a"]
        assert solr.queries[-1]["extra_params"] == {"defType": "edismax", "qf": "content"}
        assert solr.queries[-1]["rows"] == 5

    def test_empty_query_rejected(self, store):
        with pytest.raises(ValidationError):
            store.keyword_search(" ")

    def test_non_positive_top_k_rejected(self, store):
        with pytest.raises(ValidationError):
            store.keyword_search("x", top_k=0)
