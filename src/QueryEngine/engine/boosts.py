"""Meta boost evaluation.

Every boost yields two numbers for a document:

- a *factor*, multiplied into the score (neutral value 1.0), and
- a *contribution*, a bounded amount used when the boost is wrapped in an
  ``AddBoost`` (neutral value 0.0).

The combined score is ``base * prod(factors) + sum(add.value * contribution)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from QueryEngine.core.models import Document
from QueryEngine.core.query import (
    AddBoost,
    DistanceBoost,
    ElementBoost,
    FilterBoost,
    GeoBoost,
    GeoRegion,
    IntervalBoost,
    IntervalPoint,
    MetaBoost,
    TextBoost,
)
from QueryEngine.engine.filters import evaluate_filter
from QueryEngine.engine.values import as_number, as_string_list, as_text, lookup, tokenize

EARTH_RADIUS_KM = 6371.0088


@dataclass(frozen=True, slots=True)
class BoostOutcome:
    """Factor and contribution of one boost for one document."""

    factor: float = 1.0
    contribution: float = 0.0


NEUTRAL = BoostOutcome()


def combine_score(base: float, boosts: Sequence[MetaBoost], document: Document) -> float:
    """Apply ``boosts`` to a base relevance score.

    Args:
        base: Opaque base score from term matching.
        boosts: Boosts in request order.
        document: Raw document meta.

    Returns:
        The combined (raw) score.
    """
    product = 1.0
    additive = 0.0
    for boost in boosts:
        if isinstance(boost, AddBoost):
            additive += boost.value * evaluate_boost(boost.meta_boost, document).contribution
        else:
            product *= evaluate_boost(boost, document).factor
    return base * product + additive


def evaluate_boost(boost: MetaBoost, document: Document) -> BoostOutcome:
    """Evaluate one non-additive boost against a document."""
    if isinstance(boost, FilterBoost):
        if evaluate_filter(boost.filter, document):
            return BoostOutcome(factor=boost.value, contribution=boost.value)
        return NEUTRAL
    if isinstance(boost, GeoBoost):
        return _geo(boost, document)
    if isinstance(boost, IntervalBoost):
        value = lookup(document, boost.field)
        if value is None:
            return NEUTRAL
        interpolated = interpolate(boost.points, as_number(value, boost.field))
        return BoostOutcome(factor=interpolated, contribution=interpolated)
    if isinstance(boost, DistanceBoost):
        value = lookup(document, boost.field)
        if value is None:
            return NEUTRAL
        scaled = boost.value * closeness(as_number(value, boost.field), boost.min, boost.max, boost.ref)
        return BoostOutcome(factor=1.0 + scaled, contribution=scaled)
    if isinstance(boost, ElementBoost):
        value = lookup(document, boost.field)
        if value is None:
            return NEUTRAL
        ratio = element_overlap(as_string_list(value, boost.field), boost.elts)
        return BoostOutcome(factor=1.0 + ratio, contribution=ratio)
    if isinstance(boost, TextBoost):
        value = lookup(document, boost.field)
        if value is None:
            return NEUTRAL
        ratio = text_overlap(as_text(value, boost.field), boost.text)
        return BoostOutcome(factor=1.0 + ratio, contribution=ratio)
    if isinstance(boost, AddBoost):
        raise TypeError("AddBoost must be combined with combine_score")
    raise TypeError(f"Unsupported boost type: {type(boost).__name__}")


def interpolate(points: Sequence[IntervalPoint], x: float) -> float:
    """Linearly interpolate the boost value at ``x``.

    ``points`` must be sorted by ``point``. Values outside the covered range
    are clamped to the first/last point's value. Equal adjacent points form a
    step; exactly at the step the first listed point's value applies.
    """
    if x <= points[0].point:
        return points[0].value
    if x > points[-1].point:
        return points[-1].value
    for lower, upper in zip(points, points[1:]):
        if x == lower.point:
            return lower.value
        if x < upper.point:
            ratio = (x - lower.point) / (upper.point - lower.point)
            return lower.value + ratio * (upper.value - lower.value)
    return points[-1].value


def closeness(x: float, low: float, high: float, ref: float) -> float:
    """Return 1.0 at ``ref`` falling linearly to 0.0 at the far range edge.

    ``x`` is clamped into ``[low, high]``. The scale is the larger distance
    from ``ref`` to either edge, so equal distances on either side of ``ref``
    give equal results.
    """
    clamped = min(max(x, low), high)
    span = max(ref - low, high - ref)
    if span <= 0:
        return 1.0 if clamped == ref else 0.0
    return max(0.0, 1.0 - abs(clamped - ref) / span)


def element_overlap(values: Sequence[str], elts: Sequence[str]) -> float:
    """Fraction of distinct ``elts`` present in ``values``."""
    wanted = set(elts)
    if not wanted:
        return 0.0
    return len(wanted.intersection(values)) / len(wanted)


def text_overlap(text: str, reference: str) -> float:
    """Fraction of distinct words of ``reference`` present in ``text``."""
    wanted = set(tokenize(reference))
    if not wanted:
        return 0.0
    return len(wanted.intersection(tokenize(text))) / len(wanted)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def _geo(boost: GeoBoost, document: Document) -> BoostOutcome:
    lat = lookup(document, boost.field_lat)
    lng = lookup(document, boost.field_lng)
    if lat is None or lng is None:
        return NEUTRAL
    distance = haversine_km(
        as_number(lat, boost.field_lat),
        as_number(lng, boost.field_lng),
        boost.lat,
        boost.lng,
    )
    inside = distance <= boost.radius
    if inside == (boost.region == GeoRegion.INSIDE):
        return BoostOutcome(factor=boost.value, contribution=boost.value)
    return NEUTRAL
