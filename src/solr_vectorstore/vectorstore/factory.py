import logging
import threading
from collections import OrderedDict
from typing import Optional

from .data_store import SolrVectorStore
from .embeddings import Embedder
from .schemas import StoreOptions
from .solr_client import SolrClient, get_solr_client

logger = logging.getLogger(__name__)

MAX_CACHE_SIZE = 100


class VectorStoreFactory:
    """Hands out one SolrVectorStore per collection.

    Instances are kept in a bounded LRU cache; all of them share the same
    Solr client and embedder.
    """

    def __init__(
        self,
        client: SolrClient,
        embedder: Embedder,
        options: Optional[StoreOptions] = None,
        max_size: int = MAX_CACHE_SIZE,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.client = client
        self.embedder = embedder
        self.options = options
        self.max_size = max_size
        self._cache: "OrderedDict[str, SolrVectorStore]" = OrderedDict()
        self._lock = threading.Lock()

    def for_collection(self, collection: str) -> SolrVectorStore:
        if collection is None:
            raise ValueError("Collection name cannot be null")

        with self._lock:
            store = self._cache.get(collection)
            if store is not None:
                self._cache.move_to_end(collection)
                return store

            store = SolrVectorStore(
                client=self.client,
                collection=collection,
                embedder=self.embedder,
                options=self.options,
            )
            self._cache[collection] = store
            if len(self._cache) > self.max_size:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug("Evicted vector store for collection '%s'", evicted)
            return store

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


def build_default_factory() -> VectorStoreFactory:
    """Factory wired from the environment (SOLR_URL) and config.yaml."""
    embedder = Embedder()
    return VectorStoreFactory(get_solr_client(), embedder)
