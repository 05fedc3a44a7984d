"""Search request model.

Mirrors the ``sajari.engine.query`` request messages. Every ``oneof`` in the
wire schema is a closed ``Union`` of frozen variant dataclasses; dispatch is
done with ``isinstance`` on the variant type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Mapping, Union

from QueryEngine.core.models import Document, encode_value

UINT16_MAX = 0xFFFF


class FieldOperator(IntEnum):
    """Comparison applied by a field filter (wire enum values)."""

    EQUAL_TO = 0
    DOES_NOT_EQUAL = 1
    GREATER_THAN = 2
    GREATER_THAN_OR_EQUAL_TO = 3
    LESS_THAN = 4
    LESS_THAN_OR_EQUAL_TO = 5
    CONTAINS = 6
    DOES_NOT_CONTAIN = 7
    ENDS_WITH = 8
    STARTS_WITH = 9


class CombinatorOperator(IntEnum):
    """Boolean operator joining child filters."""

    ALL = 0
    ANY = 1
    ONE = 2
    NONE = 3


class GeoRegion(IntEnum):
    INSIDE = 0
    OUTSIDE = 1


class MetricType(IntEnum):
    AVG = 0
    MIN = 1
    MAX = 2
    SUM = 3


class SortOrder(IntEnum):
    ASC = 0
    DESC = 1


@dataclass(frozen=True, slots=True)
class Term:
    """Lowest level of index query input.

    Attributes:
        value: Term string value.
        field: Field the term is taken from.
        pos: Number of positive interactions (uint16).
        neg: Number of negative interactions (uint16).
        potency: Significance of the term.
        word_offset: Word offset context (uint16).
        para_offset: Paragraph offset context (uint16).
    """

    value: str
    field: str = ""
    pos: int = 0
    neg: int = 0
    potency: float = 0.0
    word_offset: int = 0
    para_offset: int = 0


@dataclass(frozen=True, slots=True)
class WeightedBody:
    body: str
    weight: float = 1.0


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """Filter applied to a single field.

    ``value`` is the raw JSON-encoded payload; use :func:`field_filter` to
    build one from a Python value.
    """

    operator: FieldOperator
    field: str
    value: bytes = b""


@dataclass(frozen=True, slots=True)
class CombinatorFilter:
    """Filter combining child filters with a boolean operator."""

    operator: CombinatorOperator
    filters: tuple[Filter, ...] = ()


Filter = Union[FieldFilter, CombinatorFilter]


@dataclass(frozen=True, slots=True)
class FilterBoost:
    """Boost applied to documents which satisfy ``filter``."""

    filter: Filter
    value: float


@dataclass(frozen=True, slots=True)
class AddBoost:
    """Makes the wrapped boost a proportion of the overall score.

    ``value`` is the weight of the wrapped boost in the additive part.
    """

    meta_boost: MetaBoost
    value: float


@dataclass(frozen=True, slots=True)
class GeoBoost:
    """Boost by great-circle distance (kilometres) from a target point."""

    field_lat: str
    field_lng: str
    lat: float
    lng: float
    radius: float
    value: float
    region: GeoRegion = GeoRegion.INSIDE


@dataclass(frozen=True, slots=True)
class IntervalPoint:
    point: float
    value: float


@dataclass(frozen=True, slots=True)
class IntervalBoost:
    """Piecewise-linear boost over a numeric field."""

    field: str
    points: tuple[IntervalPoint, ...]


@dataclass(frozen=True, slots=True)
class DistanceBoost:
    """Boost scaled by closeness of a numeric field to ``ref``."""

    min: float
    max: float
    ref: float
    field: str
    value: float


@dataclass(frozen=True, slots=True)
class ElementBoost:
    """Normalised overlap between a string-array field and ``elts``."""

    field: str
    elts: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TextBoost:
    """Normalised word overlap between a text field and ``text``."""

    field: str
    text: str = ""


MetaBoost = Union[AddBoost, FilterBoost, GeoBoost, IntervalBoost, DistanceBoost, ElementBoost, TextBoost]


@dataclass(frozen=True, slots=True)
class FieldIndexBoost:
    """Boost for term instances that originate from ``field``."""

    field: str
    value: float


@dataclass(frozen=True, slots=True)
class PosNegIndexBoost:
    value: float


IndexBoost = Union[FieldIndexBoost, PosNegIndexBoost]


@dataclass(frozen=True, slots=True)
class MetricAggregate:
    field: str
    type: MetricType = MetricType.AVG


@dataclass(frozen=True, slots=True)
class CountAggregate:
    field: str


@dataclass(frozen=True, slots=True)
class Bucket:
    name: str
    filter: Filter


@dataclass(frozen=True, slots=True)
class BucketAggregate:
    buckets: tuple[Bucket, ...] = ()


Aggregate = Union[MetricAggregate, CountAggregate, BucketAggregate]


@dataclass(frozen=True, slots=True)
class Sort:
    field: str
    order: SortOrder = SortOrder.ASC


@dataclass(frozen=True, slots=True)
class Request:
    """All the parameters necessary to make a search.

    Attributes:
        body: Body text of the query.
        weighted_body: Additional body texts with explicit weights.
        terms: Index-level query terms.
        filter: Root filter; documents failing it are excluded.
        meta_boosts: Scoring modifiers evaluated on document meta data.
        index_boosts: Scoring modifiers applied to index term instances.
        page: Zero-based page of results.
        max_results: Page size; 0 selects the evaluator default.
        fields: Fields returned in results; empty returns all.
        sort: Sort keys, most significant first.
        aggregates: Aggregate name to spec, kept in insertion order.
    """

    body: str = ""
    weighted_body: tuple[WeightedBody, ...] = ()
    terms: tuple[Term, ...] = ()
    filter: Filter | None = None
    meta_boosts: tuple[MetaBoost, ...] = ()
    index_boosts: tuple[IndexBoost, ...] = ()
    page: int = 0
    max_results: int = 0
    fields: tuple[str, ...] = ()
    sort: tuple[Sort, ...] = ()
    aggregates: Mapping[str, Aggregate] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "aggregates", MappingProxyType(dict(self.aggregates)))


@dataclass(frozen=True, slots=True)
class EvaluateRequest:
    """Run ``request`` against exactly one supplied document."""

    request: Request
    document: Document


@dataclass(frozen=True, slots=True)
class CompareRequest:
    """Derive a request from ``ref_document`` and run it against ``document``."""

    request: Request
    ref_document: Document
    document: Document


def field_filter(operator: FieldOperator, field: str, value: Any) -> FieldFilter:
    """Build a field filter from a plain Python value."""
    return FieldFilter(operator=operator, field=field, value=encode_value(value))


def combine(operator: CombinatorOperator, *filters: Filter) -> CombinatorFilter:
    return CombinatorFilter(operator=operator, filters=tuple(filters))
