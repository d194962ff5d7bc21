"""Helpers for building Solr KNN queries."""

from __future__ import annotations

from typing import Iterable, Optional


def format_vector(values: Iterable[float]) -> str:
    """Render a vector the way Solr's KNN parser expects: ``[0.1, 0.2, 0.3]``.

    Each value goes through ``repr(float(v))``, the shortest string that
    round-trips to the same float. Never round here; the literal is parsed
    back by Solr and any drift changes the query vector.
    """
    return "[" + ", ".join(repr(float(v)) for v in values) + "]"


def build_knn_query(
    vector_field: Optional[str], top_k: int, vector_literal: Optional[str]
) -> str:
    """Build ``{!knn f=<field> topK=<k>}<literal>``.

    Raises:
        ValueError: blank field name, top_k <= 0 or missing literal.
    """
    if vector_field is None or not vector_field.strip():
        raise ValueError("Vector field name cannot be null or empty")
    if top_k <= 0:
        raise ValueError("topK must be greater than 0")
    if vector_literal is None:
        raise ValueError("Vector string cannot be null")
    return f"{{!knn f={vector_field} topK={top_k}}}{vector_literal}"
