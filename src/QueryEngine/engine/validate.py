"""Request validation.

Malformed requests are rejected before any document is read. Every error
names the dotted path of the offending value.
"""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any

from QueryEngine.core.errors import ValidationError
from QueryEngine.core.query import (
    UINT16_MAX,
    AddBoost,
    Aggregate,
    BucketAggregate,
    CombinatorFilter,
    CombinatorOperator,
    CountAggregate,
    DistanceBoost,
    ElementBoost,
    FieldFilter,
    FieldIndexBoost,
    FieldOperator,
    Filter,
    FilterBoost,
    GeoBoost,
    GeoRegion,
    IndexBoost,
    IntervalBoost,
    MetaBoost,
    MetricAggregate,
    MetricType,
    PosNegIndexBoost,
    Request,
    SortOrder,
    TextBoost,
)
from QueryEngine.engine.values import try_number

_NUMERIC_OPERATORS = frozenset(
    {
        FieldOperator.GREATER_THAN,
        FieldOperator.GREATER_THAN_OR_EQUAL_TO,
        FieldOperator.LESS_THAN,
        FieldOperator.LESS_THAN_OR_EQUAL_TO,
    }
)


def validate_request(request: Request) -> None:
    """Validate a request.

    Args:
        request: Request to check.

    Raises:
        ValidationError: On the first malformed value found.
    """
    if request.page < 0:
        raise ValidationError("page", "must be >= 0")
    if request.max_results < 0:
        raise ValidationError("max_results", "must be >= 0")

    for idx, weighted in enumerate(request.weighted_body):
        if weighted.weight < 0:
            raise ValidationError(f"weighted_body[{idx}].weight", "must be >= 0")

    for idx, term in enumerate(request.terms):
        path = f"terms[{idx}]"
        for name in ("pos", "neg", "word_offset", "para_offset"):
            value = getattr(term, name)
            if not 0 <= value <= UINT16_MAX:
                raise ValidationError(f"{path}.{name}", f"must be within [0, {UINT16_MAX}]")
        if term.potency < 0:
            raise ValidationError(f"{path}.potency", "must be >= 0")

    if request.filter is not None:
        validate_filter(request.filter, "filter")

    for idx, boost in enumerate(request.meta_boosts):
        _validate_meta_boost(boost, f"meta_boosts[{idx}]")

    for idx, index_boost in enumerate(request.index_boosts):
        _validate_index_boost(index_boost, f"index_boosts[{idx}]")

    for idx, field in enumerate(request.fields):
        _require_name(field, f"fields[{idx}]")

    for idx, sort in enumerate(request.sort):
        _require_name(sort.field, f"sort[{idx}].field")
        _require_enum(sort.order, SortOrder, f"sort[{idx}].order")

    for name, aggregate in request.aggregates.items():
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("aggregates", "names must be non-empty strings")
        _validate_aggregate(aggregate, f"aggregates[{name}]")


def validate_filter(node: Filter, path: str) -> None:
    """Validate a filter tree rooted at ``node``."""
    if isinstance(node, CombinatorFilter):
        _require_enum(node.operator, CombinatorOperator, f"{path}.combinator.operator")
        if node.operator == CombinatorOperator.ONE and not node.filters:
            raise ValidationError(f"{path}.combinator.filters", "ONE requires at least one filter")
        for idx, child in enumerate(node.filters):
            validate_filter(child, f"{path}.combinator.filters[{idx}]")
        return
    if isinstance(node, FieldFilter):
        _require_enum(node.operator, FieldOperator, f"{path}.field.operator")
        _require_name(node.field, f"{path}.field.field")
        value = _decode_filter_value(node.value, f"{path}.field.value")
        if node.operator in _NUMERIC_OPERATORS and try_number(value) is None:
            raise ValidationError(f"{path}.field.value", f"{node.operator.name} requires a numeric value")
        return
    raise ValidationError(path, f"unsupported filter type {type(node).__name__}")


def _validate_meta_boost(boost: MetaBoost, path: str) -> None:
    if isinstance(boost, AddBoost):
        _require_unit(boost.value, f"{path}.add.value")
        if isinstance(boost.meta_boost, AddBoost):
            raise ValidationError(f"{path}.add.meta_boost", "must not be another add boost")
        _validate_meta_boost(boost.meta_boost, f"{path}.add.meta_boost")
    elif isinstance(boost, FilterBoost):
        validate_filter(boost.filter, f"{path}.filter.filter")
        _require_unit(boost.value, f"{path}.filter.value")
    elif isinstance(boost, GeoBoost):
        _require_name(boost.field_lat, f"{path}.geo.field_lat")
        _require_name(boost.field_lng, f"{path}.geo.field_lng")
        if not -90.0 <= boost.lat <= 90.0:
            raise ValidationError(f"{path}.geo.lat", "must be within [-90, 90]")
        if not -180.0 <= boost.lng <= 180.0:
            raise ValidationError(f"{path}.geo.lng", "must be within [-180, 180]")
        if boost.radius < 0:
            raise ValidationError(f"{path}.geo.radius", "must be >= 0")
        _require_enum(boost.region, GeoRegion, f"{path}.geo.region")
    elif isinstance(boost, IntervalBoost):
        _require_name(boost.field, f"{path}.interval.field")
        _validate_points(boost, f"{path}.interval.points")
    elif isinstance(boost, DistanceBoost):
        _require_name(boost.field, f"{path}.distance.field")
        if boost.min > boost.max:
            raise ValidationError(f"{path}.distance.min", "must be <= max")
        if not boost.min <= boost.ref <= boost.max:
            raise ValidationError(f"{path}.distance.ref", "must be within [min, max]")
    elif isinstance(boost, ElementBoost):
        _require_name(boost.field, f"{path}.element.field")
    elif isinstance(boost, TextBoost):
        _require_name(boost.field, f"{path}.text.field")
    else:
        raise ValidationError(path, f"unsupported meta boost type {type(boost).__name__}")


def _validate_points(boost: IntervalBoost, path: str) -> None:
    points = boost.points
    if len(points) < 2:
        raise ValidationError(path, "must contain at least 2 points")
    for idx, (lower, upper) in enumerate(zip(points, points[1:]), start=1):
        if upper.point < lower.point:
            raise ValidationError(f"{path}[{idx}].point", "points must be sorted by point")


def _validate_index_boost(boost: IndexBoost, path: str) -> None:
    if isinstance(boost, FieldIndexBoost):
        _require_name(boost.field, f"{path}.field.field")
    elif not isinstance(boost, PosNegIndexBoost):
        raise ValidationError(path, f"unsupported index boost type {type(boost).__name__}")


def _validate_aggregate(aggregate: Aggregate, path: str) -> None:
    if isinstance(aggregate, MetricAggregate):
        _require_name(aggregate.field, f"{path}.metric.field")
        _require_enum(aggregate.type, MetricType, f"{path}.metric.type")
    elif isinstance(aggregate, CountAggregate):
        _require_name(aggregate.field, f"{path}.count.field")
    elif isinstance(aggregate, BucketAggregate):
        _validate_buckets(aggregate, f"{path}.bucket.buckets")
    else:
        raise ValidationError(path, f"unsupported aggregate type {type(aggregate).__name__}")


def _validate_buckets(aggregate: BucketAggregate, path: str) -> None:
    seen: set[str] = set()
    for idx, bucket in enumerate(aggregate.buckets):
        _require_name(bucket.name, f"{path}[{idx}].name")
        if bucket.name in seen:
            raise ValidationError(f"{path}[{idx}].name", f"duplicate bucket name {bucket.name!r}")
        seen.add(bucket.name)
        validate_filter(bucket.filter, f"{path}[{idx}].filter")


def _decode_filter_value(raw: bytes, path: str) -> Any:
    if not raw:
        return ""
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(path, "must be a JSON-encoded value") from e


def _require_name(value: str, path: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(path, "must be a non-empty string")


def _require_unit(value: float, path: str) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValidationError(path, "must be between 0 and 1")


def _require_enum(value: Any, enum_type: type[IntEnum], path: str) -> None:
    if not isinstance(value, enum_type):
        raise ValidationError(path, f"unknown {enum_type.__name__} value {value!r}")
