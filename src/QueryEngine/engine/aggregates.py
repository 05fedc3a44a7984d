"""Aggregate evaluation over the admitted document set.

Aggregates run after filtering and before pagination, so they describe every
admitted document rather than the returned page. An empty admitted set yields
zero/empty results, never an error.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Iterator, Sequence

from QueryEngine.core.errors import TypeMismatchError
from QueryEngine.core.models import (
    AggregateResponse,
    BucketCount,
    BucketsResult,
    CountResult,
    Document,
    MetricResult,
)
from QueryEngine.core.query import (
    Aggregate,
    BucketAggregate,
    CountAggregate,
    MetricAggregate,
    MetricType,
)
from QueryEngine.engine.filters import evaluate_filter
from QueryEngine.engine.values import as_numbers, lookup, text_key
from QueryEngine.utils.log import log


def evaluate_aggregate(
    spec: Aggregate,
    documents: Sequence[Document],
    *,
    strict: bool = True,
    checkpoint: Callable[[], None] | None = None,
) -> AggregateResponse:
    """Compute one aggregate.

    Args:
        spec: Aggregate definition.
        documents: Admitted documents (post-filter, pre-pagination).
        strict: Propagate type mismatches; when False the offending
            document is left out of this aggregate and a warning is logged.
        checkpoint: Called before each document; raises to abort the
            aggregate, e.g. when the request deadline has passed.

    Returns:
        The aggregate response variant matching ``spec``.

    Raises:
        TypeMismatchError: If a metric field holds non-numeric values.
    """
    if isinstance(spec, MetricAggregate):
        return metric(spec, documents, strict=strict, checkpoint=checkpoint)
    if isinstance(spec, CountAggregate):
        return count(spec, documents, strict=strict, checkpoint=checkpoint)
    if isinstance(spec, BucketAggregate):
        return buckets(spec, documents, strict=strict, checkpoint=checkpoint)
    raise TypeError(f"Unsupported aggregate type: {type(spec).__name__}")


def metric(
    spec: MetricAggregate,
    documents: Sequence[Document],
    *,
    strict: bool = True,
    checkpoint: Callable[[], None] | None = None,
) -> MetricResult:
    """Reduce numeric field values with AVG/MIN/MAX/SUM.

    Documents without the field are skipped; array values contribute each
    element. With no values at all every metric type is 0.0.
    """
    values: list[float] = []
    for numbers in _per_document(documents, _numbers_of(spec.field), strict=strict, checkpoint=checkpoint):
        values.extend(numbers)

    if not values:
        return MetricResult(value=0.0)
    if spec.type == MetricType.AVG:
        return MetricResult(value=sum(values) / len(values))
    if spec.type == MetricType.MIN:
        return MetricResult(value=min(values))
    if spec.type == MetricType.MAX:
        return MetricResult(value=max(values))
    if spec.type == MetricType.SUM:
        return MetricResult(value=sum(values))
    raise ValueError(f"Unsupported metric type: {spec.type!r}")


def count(
    spec: CountAggregate,
    documents: Sequence[Document],
    *,
    strict: bool = True,
    checkpoint: Callable[[], None] | None = None,
) -> CountResult:
    """Count occurrences of each distinct field value.

    Missing fields are excluded rather than counted under a null key.
    """
    counter: Counter[str] = Counter()
    for value in _per_document(
        documents,
        lambda document: lookup(document, spec.field),
        strict=strict,
        checkpoint=checkpoint,
    ):
        if value is None:
            continue
        items = value if isinstance(value, list) else [value]
        counter.update(text_key(item) for item in items if item is not None)
    return CountResult(counts=dict(counter))


def buckets(
    spec: BucketAggregate,
    documents: Sequence[Document],
    *,
    strict: bool = True,
    checkpoint: Callable[[], None] | None = None,
) -> BucketsResult:
    """Count admitted documents matching each bucket filter.

    Buckets are independent: a document counts in every bucket it matches.
    """
    result: dict[str, BucketCount] = {}
    for bucket in spec.buckets:
        matched = sum(
            1
            for admitted in _per_document(
                documents,
                lambda document, node=bucket.filter: evaluate_filter(node, document),
                strict=strict,
                checkpoint=checkpoint,
            )
            if admitted
        )
        result[bucket.name] = BucketCount(name=bucket.name, count=matched)
    return BucketsResult(buckets=result)


def _numbers_of(field: str) -> Callable[[Document], list[float]]:
    def extract(document: Document) -> list[float]:
        value = lookup(document, field)
        return [] if value is None else as_numbers(value, field)

    return extract


def _per_document(
    documents: Sequence[Document],
    extract: Callable[[Document], Any],
    *,
    strict: bool,
    checkpoint: Callable[[], None] | None = None,
) -> Iterator[Any]:
    """Yield ``extract(document)`` for each document, honouring ``strict``."""
    for index, document in enumerate(documents):
        if checkpoint is not None:
            checkpoint()
        try:
            yield extract(document)
        except TypeMismatchError as error:
            if strict:
                raise
            log.warning("Aggregate skipped document #%d: %s", index, error)
