"""
Exceptions raised by the vector store layer.
"""

from typing import Optional


class VectorStoreError(Exception):
    """Base exception for all vector store errors."""
    pass


class ValidationError(VectorStoreError, ValueError):
    """Caller input is unusable (empty text, empty query, bad top_k)."""
    pass


class ProviderError(VectorStoreError):
    """
    Error communicating with the embedding provider.

    Attributes:
        status_code: HTTP status reported by the provider, when known
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderTransientError(ProviderError):
    """
    Provider failure worth retrying.

    Raised when:
    - Provider is unreachable or the connection drops
    - Request times out
    - Provider answers with a 5xx or 429 status
    """
    pass


class ProviderPermanentError(ProviderError):
    """Provider rejected the request (malformed input, auth, unknown model)."""
    pass


class CountMismatchError(VectorStoreError):
    """Batch embedding returned a different number of vectors than texts."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} embeddings but got {actual}")
        self.expected = expected
        self.actual = actual


class DimensionMismatchError(VectorStoreError):
    """A vector's length differs from the configured dimension."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector has dim {actual} but collection expects {expected}")
        self.expected = expected
        self.actual = actual


class EngineIOError(VectorStoreError):
    """
    Solr I/O or protocol failure.

    Not retried by this layer.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnsupportedFilterError(VectorStoreError):
    """Filter expression shape cannot be translated to a Solr filter query."""
    pass
