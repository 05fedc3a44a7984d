"""Result assembly: ordering, pagination and field projection."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Sequence

from QueryEngine.core.models import Document, Result
from QueryEngine.core.query import Sort, SortOrder
from QueryEngine.engine.values import compare_values, lookup


@dataclass(frozen=True, slots=True)
class ScoredDocument:
    """An admitted document with its corpus position, raw score and sort keys."""

    index: int
    document: Document
    raw_score: float
    sort_values: tuple[Any, ...] = ()


def sort_values(document: Document, sort: Sequence[Sort]) -> tuple[Any, ...]:
    """Decode the values a document is sorted by, in sort-key order."""
    return tuple(lookup(document, key.field) for key in sort)


def rank(scored: Sequence[ScoredDocument], sort: Sequence[Sort]) -> list[ScoredDocument]:
    """Order admitted documents.

    Documents are first ordered by raw score (descending, corpus order on
    ties); a non-empty ``sort`` then orders field-major on top of that with
    a stable sort, so score order breaks ties left by every sort key.
    Missing or null values sort last for both ASC and DESC. Each item must
    carry ``sort_values`` decoded for the same ``sort``.
    """
    ordered = sorted(scored, key=lambda item: (-item.raw_score, item.index))
    if not sort:
        return ordered

    def compare(left: ScoredDocument, right: ScoredDocument) -> int:
        for position, key in enumerate(sort):
            outcome = _compare_sort_values(
                left.sort_values[position],
                right.sort_values[position],
                key.order,
            )
            if outcome:
                return outcome
        return 0

    return sorted(ordered, key=cmp_to_key(compare))


def paginate(items: Sequence[ScoredDocument], page: int, max_results: int) -> list[ScoredDocument]:
    """Return the slice ``[page*max_results, (page+1)*max_results)``.

    A page past the end yields an empty list.
    """
    start = page * max_results
    return list(items[start:start + max_results])


def project(document: Document, fields: Sequence[str]) -> dict[str, bytes]:
    """Keep only ``fields`` of a document; every field when ``fields`` is empty."""
    if not fields:
        return dict(document)
    return {field: document[field] for field in fields if field in document}


def build_results(
    page_items: Sequence[ScoredDocument],
    fields: Sequence[str],
    best_score: float,
) -> tuple[Result, ...]:
    """Convert a page of scored documents into ``Result`` objects.

    ``score`` is normalised by ``best_score``, the highest raw score in the
    admitted set; when that is not positive the raw score is reported as is.
    """
    scale = best_score if best_score > 0 else 1.0
    return tuple(
        Result(
            meta=project(item.document, fields),
            score=item.raw_score / scale,
            raw_score=item.raw_score,
        )
        for item in page_items
    )


def _compare_sort_values(left: Any, right: Any, order: SortOrder) -> int:
    if left is None or right is None:
        return (left is None) - (right is None)
    outcome = compare_values(left, right)
    return -outcome if order == SortOrder.DESC else outcome
