"""Filter expressions and their translation to Solr filter queries.

Callers build the tree explicitly::

    Equality("category", "AI")
    And(Equality("category", "AI"), Not(Equality("year", 2020)))

Only a bare ``Equality`` at the root can be translated; composite trees are
representable so callers can express them, but translating one raises
``UnsupportedFilterError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from .errors import UnsupportedFilterError
from .schemas import DEFAULT_METADATA_PREFIX

logger = logging.getLogger(__name__)

_QUOTES = "'\""


@dataclass(frozen=True)
class Equality:
    key: str
    value: Any


@dataclass(frozen=True)
class And:
    left: "FilterExpression"
    right: "FilterExpression"


@dataclass(frozen=True)
class Or:
    left: "FilterExpression"
    right: "FilterExpression"


@dataclass(frozen=True)
class Not:
    operand: "FilterExpression"


FilterExpression = Union[Equality, And, Or, Not]


def _strip_quote(value: str) -> str:
    # at most one quote character at each end
    if value[:1] in _QUOTES:
        value = value[1:]
    if value[-1:] in _QUOTES:
        value = value[:-1]
    return value


class FilterTranslator:
    """Turns a FilterExpression into a ``<prefix><key>:<value>`` filter query."""

    def __init__(self, metadata_prefix: str = DEFAULT_METADATA_PREFIX) -> None:
        self.metadata_prefix = metadata_prefix

    def translate(self, expression: FilterExpression) -> str:
        if not isinstance(expression, Equality):
            raise UnsupportedFilterError(
                f"Only a single equality filter is supported, got {type(expression).__name__}"
            )
        if not expression.key:
            raise UnsupportedFilterError("Equality filter requires a non-empty key")
        if expression.value is None:
            raise UnsupportedFilterError(f"Equality filter on '{expression.key}' has no value")

        key = expression.key
        if not key.startswith(self.metadata_prefix):
            key = self.metadata_prefix + key
        if isinstance(expression.value, bool):
            value = "true" if expression.value else "false"
        else:
            value = _strip_quote(str(expression.value))

        fq = f"{key}:{value}"
        logger.debug("Converted filter expression to Solr query: %s", fq)
        return fq
