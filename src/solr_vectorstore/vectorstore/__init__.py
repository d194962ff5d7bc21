"""Vector store layer: embeddings, Solr I/O, codec, filters and KNN search."""

from .codec import DocumentCodec
from .data_store import SolrVectorStore
from .embeddings import Embedder
from .errors import (
    CountMismatchError,
    DimensionMismatchError,
    EngineIOError,
    ProviderError,
    ProviderPermanentError,
    ProviderTransientError,
    UnsupportedFilterError,
    ValidationError,
    VectorStoreError,
)
from .factory import VectorStoreFactory, build_default_factory
from .filters import And, Equality, FilterExpression, FilterTranslator, Not, Or
from .retriever import Retriever
from .retry import RetryPolicy
from .rrf import RrfMerger
from .schemas import Document, IndexResult, SearchRequest, StoreOptions
from .solr_client import SolrClient, get_solr_client

__all__ = [
    "And",
    "CountMismatchError",
    "DimensionMismatchError",
    "Document",
    "DocumentCodec",
    "Embedder",
    "EngineIOError",
    "Equality",
    "FilterExpression",
    "FilterTranslator",
    "IndexResult",
    "Not",
    "Or",
    "ProviderError",
    "ProviderPermanentError",
    "ProviderTransientError",
    "Retriever",
    "RetryPolicy",
    "RrfMerger",
    "SearchRequest",
    "SolrClient",
    "SolrVectorStore",
    "StoreOptions",
    "UnsupportedFilterError",
    "ValidationError",
    "VectorStoreError",
    "VectorStoreFactory",
    "build_default_factory",
    "get_solr_client",
]
