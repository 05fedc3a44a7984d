"""JSON codec for the engine RPC messages.

Follows the proto3 JSON mapping of the ``sajari.engine.query`` and
``sajari.engine.store.doc`` packages:

- field names are written in lowerCamelCase; both lowerCamelCase and the
  original snake_case are accepted when reading;
- ``bytes`` are base64 strings, enums are written by name (names and numbers
  are accepted), int64 values are written as strings;
- a ``oneof`` is a single-keyed object naming the variant;
- default values are omitted on output.

Request files written by hand use the same layout with plain JSON values in
place of base64 ``bytes`` (``plain_values=True``).
"""

from __future__ import annotations

import base64
import binascii
from enum import IntEnum
from typing import Any, Mapping, Sequence, TypeVar

from QueryEngine.core.errors import ValidationError
from QueryEngine.core.models import (
    AggregateResponse,
    BucketCount,
    BucketsResult,
    CountResult,
    Document,
    Key,
    KeyMeta,
    MetricResult,
    Response,
    Result,
    encode_value,
)
from QueryEngine.core.query import (
    AddBoost,
    Aggregate,
    Bucket,
    BucketAggregate,
    CombinatorFilter,
    CombinatorOperator,
    CompareRequest,
    CountAggregate,
    DistanceBoost,
    ElementBoost,
    EvaluateRequest,
    FieldFilter,
    FieldIndexBoost,
    FieldOperator,
    Filter,
    FilterBoost,
    GeoBoost,
    GeoRegion,
    IndexBoost,
    IntervalBoost,
    IntervalPoint,
    MetaBoost,
    MetricAggregate,
    MetricType,
    PosNegIndexBoost,
    Request,
    Sort,
    SortOrder,
    Term,
    TextBoost,
    WeightedBody,
)

E = TypeVar("E", bound=IntEnum)

# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_bytes(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def document_to_wire(document: Document) -> dict[str, str]:
    return {field: encode_bytes(value) for field, value in document.items()}


def filter_to_wire(node: Filter) -> dict[str, Any]:
    if isinstance(node, CombinatorFilter):
        return {
            "combinator": _compact(
                {
                    "operator": node.operator.name,
                    "filters": [filter_to_wire(child) for child in node.filters],
                }
            )
        }
    return {
        "field": _compact(
            {
                "operator": node.operator.name,
                "field": node.field,
                "value": encode_bytes(node.value),
            }
        )
    }


def meta_boost_to_wire(boost: MetaBoost) -> dict[str, Any]:
    if isinstance(boost, AddBoost):
        return {"add": _compact({"metaBoost": meta_boost_to_wire(boost.meta_boost), "value": boost.value})}
    if isinstance(boost, FilterBoost):
        return {"filter": _compact({"filter": filter_to_wire(boost.filter), "value": boost.value})}
    if isinstance(boost, GeoBoost):
        return {
            "geo": _compact(
                {
                    "fieldLat": boost.field_lat,
                    "fieldLng": boost.field_lng,
                    "lat": boost.lat,
                    "lng": boost.lng,
                    "radius": boost.radius,
                    "value": boost.value,
                    "region": boost.region.name,
                }
            )
        }
    if isinstance(boost, IntervalBoost):
        return {
            "interval": _compact(
                {
                    "field": boost.field,
                    "points": [_compact({"point": p.point, "value": p.value}) for p in boost.points],
                }
            )
        }
    if isinstance(boost, DistanceBoost):
        return {
            "distance": _compact(
                {
                    "min": boost.min,
                    "max": boost.max,
                    "ref": boost.ref,
                    "field": boost.field,
                    "value": boost.value,
                }
            )
        }
    if isinstance(boost, ElementBoost):
        return {"element": _compact({"field": boost.field, "elts": list(boost.elts)})}
    if isinstance(boost, TextBoost):
        return {"text": _compact({"field": boost.field, "text": boost.text})}
    raise TypeError(f"Unsupported boost type: {type(boost).__name__}")


def index_boost_to_wire(boost: IndexBoost) -> dict[str, Any]:
    if isinstance(boost, FieldIndexBoost):
        return {"field": _compact({"field": boost.field, "value": boost.value})}
    return {"posNeg": _compact({"value": boost.value})}


def aggregate_to_wire(spec: Aggregate) -> dict[str, Any]:
    if isinstance(spec, MetricAggregate):
        return {"metric": _compact({"field": spec.field, "type": spec.type.name})}
    if isinstance(spec, CountAggregate):
        return {"count": _compact({"field": spec.field})}
    return {
        "bucket": _compact(
            {
                "buckets": [
                    {"name": bucket.name, "filter": filter_to_wire(bucket.filter)} for bucket in spec.buckets
                ]
            }
        )
    }


def request_to_wire(request: Request) -> dict[str, Any]:
    """Encode a request as a proto3 JSON object."""
    return _compact(
        {
            "body": request.body,
            "weightedBody": [_compact({"body": w.body, "weight": w.weight}) for w in request.weighted_body],
            "terms": [
                _compact(
                    {
                        "value": term.value,
                        "field": term.field,
                        "pos": term.pos,
                        "neg": term.neg,
                        "potency": term.potency,
                        "wordOffset": term.word_offset,
                        "paraOffset": term.para_offset,
                    }
                )
                for term in request.terms
            ],
            "filter": filter_to_wire(request.filter) if request.filter is not None else None,
            "metaBoosts": [meta_boost_to_wire(boost) for boost in request.meta_boosts],
            "indexBoosts": [index_boost_to_wire(boost) for boost in request.index_boosts],
            "page": request.page,
            "maxResults": request.max_results,
            "fields": list(request.fields),
            "sort": [_compact({"field": s.field, "order": s.order.name}) for s in request.sort],
            "aggregates": {name: aggregate_to_wire(spec) for name, spec in request.aggregates.items()},
        }
    )


def evaluate_request_to_wire(evaluate_request: EvaluateRequest) -> dict[str, Any]:
    return {
        "request": request_to_wire(evaluate_request.request),
        "document": document_to_wire(evaluate_request.document),
    }


def compare_request_to_wire(compare_request: CompareRequest) -> dict[str, Any]:
    return {
        "request": request_to_wire(compare_request.request),
        "refDocument": document_to_wire(compare_request.ref_document),
        "document": document_to_wire(compare_request.document),
    }


def aggregate_response_to_wire(result: AggregateResponse) -> dict[str, Any]:
    if isinstance(result, MetricResult):
        return {"metric": _compact({"value": result.value})}
    if isinstance(result, CountResult):
        return {"count": _compact({"counts": dict(result.counts)})}
    return {
        "buckets": _compact(
            {
                "buckets": {
                    name: _compact({"name": bucket.name, "count": bucket.count})
                    for name, bucket in result.buckets.items()
                }
            }
        )
    }


def response_to_wire(response: Response) -> dict[str, Any]:
    """Encode a response as a proto3 JSON object."""
    return _compact(
        {
            "reads": str(response.reads) if response.reads else None,
            "totalResults": str(response.total_results) if response.total_results else None,
            "time": response.time,
            "aggregates": {name: aggregate_response_to_wire(r) for name, r in response.aggregates.items()},
            "results": [
                _compact(
                    {
                        "meta": document_to_wire(result.meta),
                        "score": result.score,
                        "rawScore": result.raw_score,
                    }
                )
                for result in response.results
            ],
        }
    )


def documents_to_wire(documents: Sequence[Document]) -> dict[str, Any]:
    return {"documents": [{"meta": document_to_wire(document)} for document in documents]}


def key_to_wire(key: Key) -> dict[str, Any]:
    return _compact({"field": key.field, "value": encode_bytes(key.value)})


def keys_to_wire(keys: Sequence[Key]) -> dict[str, Any]:
    return {"keys": [key_to_wire(key) for key in keys]}


def keys_metas_to_wire(keys_metas: Sequence[KeyMeta]) -> dict[str, Any]:
    return {
        "keysMetas": [
            {"key": key_to_wire(item.key), "meta": document_to_wire(item.meta)} for item in keys_metas
        ]
    }


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class _Reader:
    """Decoding context: value encoding of ``bytes`` fields."""

    def __init__(self, plain_values: bool) -> None:
        self.plain_values = plain_values

    def value(self, raw: Any, path: str) -> bytes:
        if self.plain_values:
            return encode_value(raw)
        return decode_bytes(raw, path)


def decode_bytes(raw: Any, path: str) -> bytes:
    """Decode a base64 (standard or URL-safe) string."""
    if not isinstance(raw, str):
        raise ValidationError(path, "must be a base64 string")
    padded = raw + "=" * (-len(raw) % 4)
    try:
        if "-" in raw or "_" in raw:
            return base64.urlsafe_b64decode(padded)
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(path, "must be a base64 string") from e


def document_from_wire(raw: Any, path: str = "document", *, plain_values: bool = False) -> dict[str, bytes]:
    reader = _Reader(plain_values)
    mapping = _as_mapping(raw, path)
    return {str(field): reader.value(value, f"{path}[{field}]") for field, value in mapping.items()}


def request_from_wire(raw: Any, *, plain_values: bool = False, path: str = "request") -> Request:
    """Decode a request object.

    Args:
        raw: Parsed JSON/YAML mapping.
        plain_values: Filter values are plain JSON values instead of base64.
        path: Path prefix used in error messages.

    Raises:
        ValidationError: If the object does not match the message layout.
    """
    reader = _Reader(plain_values)
    data = _as_mapping(raw, path)
    filter_raw = _get(data, "filter")
    aggregates_raw = _as_mapping(_get(data, "aggregates", {}), f"{path}.aggregates")
    return Request(
        body=_as_str(_get(data, "body", ""), f"{path}.body"),
        weighted_body=tuple(
            WeightedBody(
                body=_as_str(_get(item, "body", ""), f"{path}.weighted_body[{idx}].body"),
                weight=_as_float(_get(item, "weight", 0.0), f"{path}.weighted_body[{idx}].weight"),
            )
            for idx, item in _items(_get(data, "weighted_body", []), f"{path}.weighted_body")
        ),
        terms=tuple(
            _term_from_wire(item, f"{path}.terms[{idx}]") for idx, item in _items(_get(data, "terms", []), f"{path}.terms")
        ),
        filter=_filter_from_wire(filter_raw, f"{path}.filter", reader) if filter_raw is not None else None,
        meta_boosts=tuple(
            _meta_boost_from_wire(item, f"{path}.meta_boosts[{idx}]", reader)
            for idx, item in _items(_get(data, "meta_boosts", []), f"{path}.meta_boosts")
        ),
        index_boosts=tuple(
            _index_boost_from_wire(item, f"{path}.index_boosts[{idx}]")
            for idx, item in _items(_get(data, "index_boosts", []), f"{path}.index_boosts")
        ),
        page=_as_int(_get(data, "page", 0), f"{path}.page"),
        max_results=_as_int(_get(data, "max_results", 0), f"{path}.max_results"),
        fields=tuple(
            _as_str(item, f"{path}.fields[{idx}]") for idx, item in _items(_get(data, "fields", []), f"{path}.fields")
        ),
        sort=tuple(
            Sort(
                field=_as_str(_get(item, "field", ""), f"{path}.sort[{idx}].field"),
                order=_as_enum(_get(item, "order", 0), SortOrder, f"{path}.sort[{idx}].order"),
            )
            for idx, item in _items(_get(data, "sort", []), f"{path}.sort")
        ),
        aggregates={
            str(name): _aggregate_from_wire(spec, f"{path}.aggregates[{name}]", reader)
            for name, spec in aggregates_raw.items()
        },
    )


def filter_from_wire(raw: Any, *, plain_values: bool = False, path: str = "filter") -> Filter:
    return _filter_from_wire(raw, path, _Reader(plain_values))


def evaluate_request_from_wire(raw: Any, *, plain_values: bool = False) -> EvaluateRequest:
    data = _as_mapping(raw, "evaluate")
    return EvaluateRequest(
        request=request_from_wire(_get(data, "request", {}), plain_values=plain_values),
        document=document_from_wire(_get(data, "document", {}), "document", plain_values=plain_values),
    )


def compare_request_from_wire(raw: Any, *, plain_values: bool = False) -> CompareRequest:
    data = _as_mapping(raw, "compare")
    return CompareRequest(
        request=request_from_wire(_get(data, "request", {}), plain_values=plain_values),
        ref_document=document_from_wire(_get(data, "ref_document", {}), "ref_document", plain_values=plain_values),
        document=document_from_wire(_get(data, "document", {}), "document", plain_values=plain_values),
    )


def response_from_wire(raw: Any) -> Response:
    """Decode a response object returned by the engine."""
    data = _as_mapping(raw, "response")
    aggregates_raw = _as_mapping(_get(data, "aggregates", {}), "response.aggregates")
    return Response(
        reads=_as_int(_get(data, "reads", 0), "response.reads"),
        total_results=_as_int(_get(data, "totalResults", 0), "response.totalResults"),
        time=_as_str(_get(data, "time", ""), "response.time"),
        aggregates={
            str(name): _aggregate_response_from_wire(value, f"response.aggregates[{name}]")
            for name, value in aggregates_raw.items()
        },
        results=tuple(
            Result(
                meta=document_from_wire(_get(item, "meta", {}), f"response.results[{idx}].meta"),
                score=_as_float(_get(item, "score", 0.0), f"response.results[{idx}].score"),
                raw_score=_as_float(_get(item, "raw_score", 0.0), f"response.results[{idx}].raw_score"),
            )
            for idx, item in _items(_get(data, "results", []), "response.results")
        ),
    )


def documents_from_wire(raw: Any) -> list[dict[str, bytes]]:
    data = _as_mapping(raw, "documents")
    return [
        document_from_wire(_get(item, "meta", {}), f"documents[{idx}].meta")
        for idx, item in _items(_get(data, "documents", []), "documents")
    ]


def keys_from_wire(raw: Any) -> list[Key]:
    data = _as_mapping(raw, "keys")
    return [_key_from_wire(item, f"keys[{idx}]") for idx, item in _items(_get(data, "keys", []), "keys")]


def _key_from_wire(raw: Any, path: str) -> Key:
    return Key(
        field=_as_str(_get(raw, "field", ""), f"{path}.field"),
        value=decode_bytes(_get(raw, "value", ""), f"{path}.value"),
    )


def _term_from_wire(raw: Any, path: str) -> Term:
    return Term(
        value=_as_str(_get(raw, "value", ""), f"{path}.value"),
        field=_as_str(_get(raw, "field", ""), f"{path}.field"),
        pos=_as_int(_get(raw, "pos", 0), f"{path}.pos"),
        neg=_as_int(_get(raw, "neg", 0), f"{path}.neg"),
        potency=_as_float(_get(raw, "potency", 0.0), f"{path}.potency"),
        word_offset=_as_int(_get(raw, "word_offset", 0), f"{path}.word_offset"),
        para_offset=_as_int(_get(raw, "para_offset", 0), f"{path}.para_offset"),
    )


def _filter_from_wire(raw: Any, path: str, reader: _Reader) -> Filter:
    variant, body = _oneof(raw, path, ("combinator", "field"))
    if variant == "combinator":
        return CombinatorFilter(
            operator=_as_enum(_get(body, "operator", 0), CombinatorOperator, f"{path}.combinator.operator"),
            filters=tuple(
                _filter_from_wire(child, f"{path}.combinator.filters[{idx}]", reader)
                for idx, child in _items(_get(body, "filters", []), f"{path}.combinator.filters")
            ),
        )
    value = _get(body, "value")
    return FieldFilter(
        operator=_as_enum(_get(body, "operator", 0), FieldOperator, f"{path}.field.operator"),
        field=_as_str(_get(body, "field", ""), f"{path}.field.field"),
        value=b"" if value is None else reader.value(value, f"{path}.field.value"),
    )


def _meta_boost_from_wire(raw: Any, path: str, reader: _Reader) -> MetaBoost:
    variant, body = _oneof(raw, path, ("add", "filter", "geo", "interval", "distance", "element", "text"))
    at = f"{path}.{variant}"
    if variant == "add":
        return AddBoost(
            meta_boost=_meta_boost_from_wire(_get(body, "meta_boost"), f"{at}.meta_boost", reader),
            value=_as_float(_get(body, "value", 0.0), f"{at}.value"),
        )
    if variant == "filter":
        return FilterBoost(
            filter=_filter_from_wire(_get(body, "filter"), f"{at}.filter", reader),
            value=_as_float(_get(body, "value", 0.0), f"{at}.value"),
        )
    if variant == "geo":
        return GeoBoost(
            field_lat=_as_str(_get(body, "field_lat", ""), f"{at}.field_lat"),
            field_lng=_as_str(_get(body, "field_lng", ""), f"{at}.field_lng"),
            lat=_as_float(_get(body, "lat", 0.0), f"{at}.lat"),
            lng=_as_float(_get(body, "lng", 0.0), f"{at}.lng"),
            radius=_as_float(_get(body, "radius", 0.0), f"{at}.radius"),
            value=_as_float(_get(body, "value", 0.0), f"{at}.value"),
            region=_as_enum(_get(body, "region", 0), GeoRegion, f"{at}.region"),
        )
    if variant == "interval":
        return IntervalBoost(
            field=_as_str(_get(body, "field", ""), f"{at}.field"),
            points=tuple(
                IntervalPoint(
                    point=_as_float(_get(item, "point", 0.0), f"{at}.points[{idx}].point"),
                    value=_as_float(_get(item, "value", 0.0), f"{at}.points[{idx}].value"),
                )
                for idx, item in _items(_get(body, "points", []), f"{at}.points")
            ),
        )
    if variant == "distance":
        return DistanceBoost(
            min=_as_float(_get(body, "min", 0.0), f"{at}.min"),
            max=_as_float(_get(body, "max", 0.0), f"{at}.max"),
            ref=_as_float(_get(body, "ref", 0.0), f"{at}.ref"),
            field=_as_str(_get(body, "field", ""), f"{at}.field"),
            value=_as_float(_get(body, "value", 0.0), f"{at}.value"),
        )
    if variant == "element":
        return ElementBoost(
            field=_as_str(_get(body, "field", ""), f"{at}.field"),
            elts=tuple(_as_str(item, f"{at}.elts[{idx}]") for idx, item in _items(_get(body, "elts", []), f"{at}.elts")),
        )
    return TextBoost(
        field=_as_str(_get(body, "field", ""), f"{at}.field"),
        text=_as_str(_get(body, "text", ""), f"{at}.text"),
    )


def _index_boost_from_wire(raw: Any, path: str) -> IndexBoost:
    variant, body = _oneof(raw, path, ("field", "pos_neg"))
    if variant == "field":
        return FieldIndexBoost(
            field=_as_str(_get(body, "field", ""), f"{path}.field.field"),
            value=_as_float(_get(body, "value", 0.0), f"{path}.field.value"),
        )
    return PosNegIndexBoost(value=_as_float(_get(body, "value", 0.0), f"{path}.pos_neg.value"))


def _aggregate_from_wire(raw: Any, path: str, reader: _Reader) -> Aggregate:
    variant, body = _oneof(raw, path, ("metric", "count", "bucket"))
    if variant == "metric":
        return MetricAggregate(
            field=_as_str(_get(body, "field", ""), f"{path}.metric.field"),
            type=_as_enum(_get(body, "type", 0), MetricType, f"{path}.metric.type"),
        )
    if variant == "count":
        return CountAggregate(field=_as_str(_get(body, "field", ""), f"{path}.count.field"))
    return BucketAggregate(
        buckets=tuple(
            Bucket(
                name=_as_str(_get(item, "name", ""), f"{path}.bucket.buckets[{idx}].name"),
                filter=_filter_from_wire(_get(item, "filter"), f"{path}.bucket.buckets[{idx}].filter", reader),
            )
            for idx, item in _items(_get(body, "buckets", []), f"{path}.bucket.buckets")
        )
    )


def _aggregate_response_from_wire(raw: Any, path: str) -> AggregateResponse:
    variant, body = _oneof(raw, path, ("metric", "count", "buckets"))
    if variant == "metric":
        return MetricResult(value=_as_float(_get(body, "value", 0.0), f"{path}.metric.value"))
    if variant == "count":
        counts = _as_mapping(_get(body, "counts", {}), f"{path}.count.counts")
        return CountResult(counts={str(k): _as_int(v, f"{path}.count.counts[{k}]") for k, v in counts.items()})
    buckets = _as_mapping(_get(body, "buckets", {}), f"{path}.buckets.buckets")
    return BucketsResult(
        buckets={
            str(name): BucketCount(
                name=_as_str(_get(item, "name", name), f"{path}.buckets.buckets[{name}].name"),
                count=_as_int(_get(item, "count", 0), f"{path}.buckets.buckets[{name}].count"),
            )
            for name, item in buckets.items()
        }
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _snake(name: str) -> str:
    return "".join(f"_{ch.lower()}" if ch.isupper() else ch for ch in name)


def _get(data: Any, name: str, default: Any = None) -> Any:
    """Read a field by its snake_case or lowerCamelCase name."""
    if not isinstance(data, Mapping):
        return default
    for key in (name, _camel(name), _snake(name)):
        if key in data:
            value = data[key]
            return default if value is None else value
    return default


def _oneof(raw: Any, path: str, variants: Sequence[str]) -> tuple[str, Mapping[str, Any]]:
    data = _as_mapping(raw, path)
    present = [variant for variant in variants if _get(data, variant) is not None]
    if len(present) != 1:
        raise ValidationError(path, f"must set exactly one of {list(variants)}")
    variant = present[0]
    return variant, _as_mapping(_get(data, variant), f"{path}.{variant}")


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop proto3 default values (empty strings, zeros, empty containers)."""
    return {key: value for key, value in data.items() if value not in (None, "", 0, [], {})}


def _items(raw: Any, path: str) -> list[tuple[int, Any]]:
    if not isinstance(raw, list):
        raise ValidationError(path, "must be a list")
    return list(enumerate(raw))


def _as_mapping(raw: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValidationError(path, "must be an object")
    return raw


def _as_str(raw: Any, path: str) -> str:
    if not isinstance(raw, str):
        raise ValidationError(path, "must be a string")
    return raw


def _as_float(raw: Any, path: str) -> float:
    if isinstance(raw, bool):
        raise ValidationError(path, "must be a number")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw)
        except ValueError as e:
            raise ValidationError(path, "must be a number") from e
    raise ValidationError(path, "must be a number")


def _as_int(raw: Any, path: str) -> int:
    if isinstance(raw, bool):
        raise ValidationError(path, "must be an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw)
        except ValueError as e:
            raise ValidationError(path, "must be an integer") from e
    raise ValidationError(path, "must be an integer")


def _as_enum(raw: Any, enum_type: type[E], path: str) -> E:
    if isinstance(raw, str):
        try:
            return enum_type[raw.strip().upper()]
        except KeyError as e:
            raise ValidationError(path, f"unknown {enum_type.__name__} {raw!r}") from e
    if isinstance(raw, int) and not isinstance(raw, bool):
        try:
            return enum_type(raw)
        except ValueError as e:
            raise ValidationError(path, f"unknown {enum_type.__name__} {raw!r}") from e
    raise ValidationError(path, f"must be a {enum_type.__name__} name or number")
