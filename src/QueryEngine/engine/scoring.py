"""Base relevance scoring for local evaluation.

The remote engine ranks with its reverse index; locally a base scorer stands
in for that step and produces the opaque base score that boosts are applied
to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from QueryEngine.core.errors import TypeMismatchError
from QueryEngine.core.models import Document
from QueryEngine.core.query import Request
from QueryEngine.engine.values import decode_value, tokenize


class BaseScorer(Protocol):
    """Callable producing the base score of a document for a request."""

    def __call__(self, request: Request, document: Document) -> float:
        ...


@dataclass(frozen=True, slots=True)
class _WeightedToken:
    token: str
    weight: float
    field: str = ""


@dataclass(slots=True)
class TermScorer:
    """Score by the weighted fraction of query tokens found in the document.

    Query tokens come from ``body`` (weight 1.0), every weighted body (its
    weight) and every term (its potency, or 1.0 when potency is 0). Terms
    with a field only match that field; other tokens match any string or
    string-array field. Requests without text score 1.0 for every document.
    """

    def __call__(self, request: Request, document: Document) -> float:
        tokens = _query_tokens(request)
        total = sum(item.weight for item in tokens)
        if total <= 0:
            return 1.0

        field_tokens: dict[str, set[str]] = {}
        all_tokens: set[str] | None = None
        matched = 0.0
        for item in tokens:
            if item.field:
                if item.field not in field_tokens:
                    field_tokens[item.field] = _document_tokens(document, (item.field,))
                found = item.token in field_tokens[item.field]
            else:
                if all_tokens is None:
                    all_tokens = _document_tokens(document, tuple(document.keys()))
                found = item.token in all_tokens
            if found:
                matched += item.weight
        return matched / total


def constant_scorer(request: Request, document: Document) -> float:
    """Base scorer that treats every document as equally relevant."""
    return 1.0


def _query_tokens(request: Request) -> list[_WeightedToken]:
    tokens = [_WeightedToken(token, 1.0) for token in tokenize(request.body)]
    for weighted in request.weighted_body:
        tokens.extend(_WeightedToken(token, weighted.weight) for token in tokenize(weighted.body))
    for term in request.terms:
        weight = term.potency or 1.0
        tokens.extend(_WeightedToken(token, weight, term.field) for token in tokenize(term.value))
    return tokens


def _document_tokens(document: Document, fields: tuple[str, ...]) -> set[str]:
    """Collect tokens from the text-valued fields among ``fields``.

    Non-text values (and undecodable payloads) carry no words and are
    ignored.
    """
    words: set[str] = set()
    for field in fields:
        raw = document.get(field)
        if raw is None:
            continue
        try:
            value = decode_value(raw, field)
        except TypeMismatchError:
            continue
        items = value if isinstance(value, list) else [value]
        for item in items:
            if isinstance(item, str):
                words.update(tokenize(item))
    return words
