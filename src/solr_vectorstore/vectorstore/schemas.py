from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from .errors import ValidationError

if TYPE_CHECKING:
    from .filters import FilterExpression

# Reserved metadata keys
EMBEDDING_KEY = "embedding"
SCORE_KEY = "score"

DEFAULT_ID_FIELD = "id"
DEFAULT_CONTENT_FIELD = "content"
DEFAULT_VECTOR_FIELD = "vector"
DEFAULT_METADATA_PREFIX = "metadata_"
DEFAULT_VECTOR_DIMENSION = 1536


@dataclass
class Document:
    id: Optional[str]
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def embedding(self) -> Optional[List[float]]:
        return self.metadata.get(EMBEDDING_KEY)

    @property
    def score(self) -> Optional[float]:
        return self.metadata.get(SCORE_KEY)

    def snippet(self, max_len: int = 160) -> str:
        """Return a centered snippet: beginning + ... + ending, length <= max_len.

        If text is shorter than or equal to max_len, returns full text.
        If max_len <= 3, returns leading max_len characters (no ellipsis logic).
        """
        s = self.text or ""
        if len(s) <= max_len:
            return s
        if max_len <= 3:
            return s[:max_len]
        budget = max_len - 3
        head_len = budget // 2
        tail_len = budget - head_len
        return f"{s[:head_len]}...{s[-tail_len:]}"


def format_document(doc: "Document", max_len: int = 160) -> str:
    """Create a compact string representation for logs/printing.

    Example: "id=doc-1; score=0.9123; text=<snippet>"
    """
    score_str = f"{doc.score:.4f}" if isinstance(doc.score, (int, float)) else "?"
    return f"id={doc.id}; score={score_str}; text={doc.snippet(max_len)}"


@dataclass(frozen=True)
class StoreOptions:
    """Field naming and dimension of a Solr collection.

    Blank names and non-positive dimensions fall back to the defaults.
    ``field_types`` maps a metadata key (without prefix) to a callable used to
    coerce that field's value when decoding, e.g. ``{"year": int}``; it is
    stored read-only and left out of the hash.
    """

    id_field: str = DEFAULT_ID_FIELD
    content_field: str = DEFAULT_CONTENT_FIELD
    vector_field: str = DEFAULT_VECTOR_FIELD
    metadata_prefix: str = DEFAULT_METADATA_PREFIX
    vector_dimension: int = DEFAULT_VECTOR_DIMENSION
    field_types: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # frozen dataclass: defaults are applied through object.__setattr__
        if not self.id_field or not str(self.id_field).strip():
            object.__setattr__(self, "id_field", DEFAULT_ID_FIELD)
        if not self.content_field or not str(self.content_field).strip():
            object.__setattr__(self, "content_field", DEFAULT_CONTENT_FIELD)
        if not self.vector_field or not str(self.vector_field).strip():
            object.__setattr__(self, "vector_field", DEFAULT_VECTOR_FIELD)
        if self.metadata_prefix is None:
            object.__setattr__(self, "metadata_prefix", DEFAULT_METADATA_PREFIX)
        if self.vector_dimension is None:
            object.__setattr__(self, "vector_dimension", DEFAULT_VECTOR_DIMENSION)
        elif isinstance(self.vector_dimension, bool) or not isinstance(self.vector_dimension, int):
            raise ValueError(
                f"vector_dimension must be an integer, got {self.vector_dimension!r}"
            )
        elif self.vector_dimension <= 0:
            object.__setattr__(self, "vector_dimension", DEFAULT_VECTOR_DIMENSION)
        object.__setattr__(self, "field_types", MappingProxyType(dict(self.field_types or {})))

    @property
    def reserved_fields(self) -> frozenset:
        return frozenset(
            {self.id_field, self.content_field, self.vector_field, EMBEDDING_KEY, SCORE_KEY}
        )


@dataclass(frozen=True)
class SearchRequest:
    query: str
    top_k: int = 4
    filter_expression: Optional["FilterExpression"] = None
    similarity_threshold: float = -1.0

    def __post_init__(self) -> None:
        if self.top_k <= 0:
            raise ValidationError(f"top_k must be greater than 0, got {self.top_k}")

    @property
    def threshold_enabled(self) -> bool:
        return self.similarity_threshold >= 0


@dataclass
class IndexResult:
    indexed: int = 0
    failed: int = 0
    document_ids: List[str] = field(default_factory=list)
