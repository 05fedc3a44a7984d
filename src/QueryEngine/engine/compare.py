"""Derive a concrete request from a template and a reference document.

A compare request carries a template request whose empty slots are filled
from the reference document:

- a term with an empty ``value`` expands into one term per distinct word of
  the reference field (other term attributes are kept);
- a text boost with empty ``text`` takes the reference field's text;
- an element boost with empty ``elts`` takes the reference field's strings;
- a field filter with an empty ``value`` takes the reference field's raw
  payload, wherever the filter appears (root filter, filter boosts, buckets).

Slots whose reference field is missing are left as they are, except empty
terms, which are dropped.
"""

from __future__ import annotations

from dataclasses import replace

from QueryEngine.core.models import Document
from QueryEngine.core.query import (
    AddBoost,
    Aggregate,
    Bucket,
    BucketAggregate,
    CombinatorFilter,
    ElementBoost,
    FieldFilter,
    Filter,
    FilterBoost,
    MetaBoost,
    Request,
    Term,
    TextBoost,
)
from QueryEngine.engine.values import as_string_list, as_text, lookup, tokenize


def derive_request(template: Request, ref_document: Document) -> Request:
    """Fill the empty slots of ``template`` from ``ref_document``.

    Args:
        template: Request used as a template.
        ref_document: Reference document supplying values.

    Returns:
        A new request; ``template`` is not modified.

    Raises:
        TypeMismatchError: If a reference value has the wrong shape for the
            slot it fills (e.g. a number for an element boost).
    """
    return replace(
        template,
        terms=_derive_terms(template.terms, ref_document),
        filter=_derive_filter(template.filter, ref_document) if template.filter is not None else None,
        meta_boosts=tuple(_derive_boost(boost, ref_document) for boost in template.meta_boosts),
        aggregates={name: _derive_aggregate(spec, ref_document) for name, spec in template.aggregates.items()},
    )


def _derive_terms(terms: tuple[Term, ...], ref_document: Document) -> tuple[Term, ...]:
    derived: list[Term] = []
    for term in terms:
        if term.value:
            derived.append(term)
            continue
        value = lookup(ref_document, term.field) if term.field else None
        if value is None:
            continue
        seen: set[str] = set()
        for token in tokenize(as_text(value, term.field)):
            if token not in seen:
                seen.add(token)
                derived.append(replace(term, value=token))
    return tuple(derived)


def _derive_filter(node: Filter, ref_document: Document) -> Filter:
    if isinstance(node, CombinatorFilter):
        return replace(node, filters=tuple(_derive_filter(child, ref_document) for child in node.filters))
    if isinstance(node, FieldFilter) and not node.value:
        raw = ref_document.get(node.field)
        if raw is not None:
            return replace(node, value=raw)
    return node


def _derive_boost(boost: MetaBoost, ref_document: Document) -> MetaBoost:
    if isinstance(boost, AddBoost):
        return replace(boost, meta_boost=_derive_boost(boost.meta_boost, ref_document))
    if isinstance(boost, FilterBoost):
        return replace(boost, filter=_derive_filter(boost.filter, ref_document))
    if isinstance(boost, TextBoost) and not boost.text:
        value = lookup(ref_document, boost.field)
        if value is not None:
            return replace(boost, text=as_text(value, boost.field))
    if isinstance(boost, ElementBoost) and not boost.elts:
        value = lookup(ref_document, boost.field)
        if value is not None:
            return replace(boost, elts=tuple(as_string_list(value, boost.field)))
    return boost


def _derive_aggregate(spec: Aggregate, ref_document: Document) -> Aggregate:
    if isinstance(spec, BucketAggregate):
        return replace(
            spec,
            buckets=tuple(
                Bucket(name=bucket.name, filter=_derive_filter(bucket.filter, ref_document))
                for bucket in spec.buckets
            ),
        )
    return spec
