"""Response and document model.

Documents and result meta data are mappings of field name to the raw
JSON-encoded payload, exactly as carried on the wire. Values are decoded per
operation by the engine, never eagerly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union

Document = Mapping[str, bytes]


def encode_value(value: Any) -> bytes:
    """Encode a Python value as a JSON meta payload."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def encode_document(values: Mapping[str, Any]) -> dict[str, bytes]:
    """Encode every value of a plain mapping into a ``Document``."""
    return {str(key): encode_value(value) for key, value in values.items()}


@dataclass(frozen=True, slots=True)
class MetricResult:
    """Scalar result of a metric aggregate."""

    value: float = 0.0


@dataclass(frozen=True, slots=True)
class CountResult:
    """Value to number of occurrences for a count aggregate."""

    counts: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))


@dataclass(frozen=True, slots=True)
class BucketCount:
    name: str
    count: int = 0


@dataclass(frozen=True, slots=True)
class BucketsResult:
    """Bucket name to matching document count."""

    buckets: Mapping[str, BucketCount] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "buckets", MappingProxyType(dict(self.buckets)))


AggregateResponse = Union[MetricResult, CountResult, BucketsResult]


@dataclass(frozen=True, slots=True)
class Result:
    """A document as represented in a search result.

    Attributes:
        meta: Returned fields (raw JSON payloads).
        score: Score normalised against the best admitted document.
        raw_score: Combined base and boost score.
    """

    meta: Document
    score: float
    raw_score: float


@dataclass(frozen=True, slots=True)
class Response:
    """Snapshot of a completed search.

    Attributes:
        reads: Number of documents (or index entries) read.
        total_results: Number of documents admitted by the filter.
        time: Time taken, as a duration string such as ``"1.234ms"``.
        aggregates: Aggregate name to result, in request order.
        results: Page of results in ranked order.
    """

    reads: int = 0
    total_results: int = 0
    time: str = ""
    aggregates: Mapping[str, AggregateResponse] = field(default_factory=dict)
    results: tuple[Result, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "aggregates", MappingProxyType(dict(self.aggregates)))


@dataclass(frozen=True, slots=True)
class Key:
    """Identifies one document by any unique field."""

    field: str
    value: bytes


@dataclass(frozen=True, slots=True)
class KeyMeta:
    """Meta updates for the document identified by ``key``.

    A JSON ``null`` payload clears the field in the store.
    """

    key: Key
    meta: Document
