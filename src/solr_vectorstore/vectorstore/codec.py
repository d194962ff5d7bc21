from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from .errors import DimensionMismatchError, ValidationError
from .schemas import EMBEDDING_KEY, SCORE_KEY, Document, StoreOptions

logger = logging.getLogger(__name__)


def is_vector(value: Any) -> bool:
    """True for a non-empty list/tuple (or array-like with ``tolist``)."""
    if hasattr(value, "tolist") and not isinstance(value, (list, tuple)):
        value = value.tolist()
    return isinstance(value, (list, tuple)) and len(value) > 0


def to_float_list(value: Any) -> List[float]:
    if hasattr(value, "tolist") and not isinstance(value, (list, tuple)):
        value = value.tolist()
    return [float(v) for v in value]


def _first(value: Any) -> Any:
    """Solr returns multi-valued fields as lists; keep the first element."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


class DocumentCodec:
    """Converts between Document and the flat record stored in Solr."""

    def __init__(self, options: Optional[StoreOptions] = None) -> None:
        self.options = options or StoreOptions()

    def encode(self, document: Document) -> Dict[str, Any]:
        opts = self.options
        doc_id = document.id or str(uuid.uuid4())
        record: Dict[str, Any] = {
            opts.id_field: doc_id,
            opts.content_field: document.text,
        }

        metadata = document.metadata or {}
        embedding = metadata.get(EMBEDDING_KEY)
        if embedding is not None:
            if not is_vector(embedding):
                raise ValidationError(
                    f"Document '{doc_id}' has an embedding that is not a non-empty vector"
                )
            vector = to_float_list(embedding)
            if len(vector) != opts.vector_dimension:
                raise DimensionMismatchError(opts.vector_dimension, len(vector))
            record[opts.vector_field] = vector

        reserved = opts.reserved_fields
        for key, value in metadata.items():
            if key in reserved:
                if key == SCORE_KEY:
                    logger.debug("Document '%s': metadata key 'score' is reserved, not stored", doc_id)
                continue
            record[f"{opts.metadata_prefix}{key}"] = value
        return record

    def decode(
        self, record: Mapping[str, Any], similarity_threshold: float = -1.0
    ) -> Optional[Document]:
        """Rebuild a Document from a Solr row.

        Returns None when the row carries a score below a non-negative
        ``similarity_threshold``.
        """
        opts = self.options
        raw_id = _first(record.get(opts.id_field))
        raw_text = _first(record.get(opts.content_field))

        score: Optional[float] = None
        raw_score = record.get(SCORE_KEY)
        if raw_score is not None:
            score = float(raw_score)
            if similarity_threshold >= 0 and score < similarity_threshold:
                return None

        vector: Optional[List[float]] = None
        raw_vector = record.get(opts.vector_field)
        if isinstance(raw_vector, list) and raw_vector:
            vector = to_float_list(raw_vector)

        metadata: Dict[str, Any] = {}
        prefix = opts.metadata_prefix
        for name, value in record.items():
            if not name.startswith(prefix):
                continue
            # an empty prefix would otherwise capture the system fields
            if not prefix and name in opts.reserved_fields:
                continue
            key = name[len(prefix):]
            value = _first(value)
            if value is None:
                continue
            metadata[key] = self._coerce(key, value)

        if vector is not None:
            metadata[EMBEDDING_KEY] = vector
        if score is not None:
            metadata[SCORE_KEY] = score

        return Document(
            id=str(raw_id) if raw_id is not None else None,
            text=str(raw_text) if raw_text is not None else "",
            metadata=metadata,
        )

    def _coerce(self, key: str, value: Any) -> Any:
        converter = self.options.field_types.get(key)
        if converter is None:
            return value
        try:
            return converter(value)
        except (TypeError, ValueError):
            logger.warning(
                "Could not coerce metadata field '%s' value %r with %s; keeping raw value",
                key,
                value,
                getattr(converter, "__name__", converter),
            )
            return value
