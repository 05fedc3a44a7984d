"""Filter evaluation.

A filter tree is evaluated against one document with no side effects. Field
filters decode the document value on demand; combinators recurse over their
children in order.
"""

from __future__ import annotations

from typing import Any, Callable

from QueryEngine.core.errors import TypeMismatchError
from QueryEngine.core.models import Document
from QueryEngine.core.query import (
    CombinatorFilter,
    CombinatorOperator,
    FieldFilter,
    FieldOperator,
    Filter,
)
from QueryEngine.engine.values import (
    as_number,
    as_numbers,
    decode_value,
    lookup,
    text_key,
    values_equal,
)

# Operators satisfied when the document has no value for the field.
_SATISFIED_BY_ABSENCE = frozenset({FieldOperator.DOES_NOT_EQUAL, FieldOperator.DOES_NOT_CONTAIN})

_ORDERING: dict[FieldOperator, Callable[[float, float], bool]] = {
    FieldOperator.GREATER_THAN: lambda doc, ref: doc > ref,
    FieldOperator.GREATER_THAN_OR_EQUAL_TO: lambda doc, ref: doc >= ref,
    FieldOperator.LESS_THAN: lambda doc, ref: doc < ref,
    FieldOperator.LESS_THAN_OR_EQUAL_TO: lambda doc, ref: doc <= ref,
}

_TEXT_MATCH: dict[FieldOperator, Callable[[str, str], bool]] = {
    FieldOperator.CONTAINS: lambda doc, ref: ref in doc,
    FieldOperator.STARTS_WITH: lambda doc, ref: doc.startswith(ref),
    FieldOperator.ENDS_WITH: lambda doc, ref: doc.endswith(ref),
}


def evaluate_filter(filter: Filter, document: Document) -> bool:
    """Return whether ``document`` satisfies ``filter``.

    Args:
        filter: Root of the filter tree.
        document: Raw document meta.

    Returns:
        True when the document is admitted.

    Raises:
        TypeMismatchError: If a document value cannot be compared as the
            operator requires.
    """
    if isinstance(filter, CombinatorFilter):
        return _evaluate_combinator(filter, document)
    if isinstance(filter, FieldFilter):
        return _evaluate_field(filter, document)
    raise TypeError(f"Unsupported filter type: {type(filter).__name__}")


def _evaluate_combinator(node: CombinatorFilter, document: Document) -> bool:
    children = (evaluate_filter(child, document) for child in node.filters)
    if node.operator == CombinatorOperator.ALL:
        return all(children)
    if node.operator == CombinatorOperator.ANY:
        return any(children)
    if node.operator == CombinatorOperator.NONE:
        return not any(children)
    if node.operator == CombinatorOperator.ONE:
        matched = 0
        for result in children:
            if result:
                matched += 1
                if matched > 1:
                    return False
        return matched == 1
    raise ValueError(f"Unsupported combinator operator: {node.operator!r}")


def _evaluate_field(node: FieldFilter, document: Document) -> bool:
    doc_value = lookup(document, node.field)
    if doc_value is None:
        return node.operator in _SATISFIED_BY_ABSENCE

    ref_value = decode_value(node.value, node.field) if node.value else ""
    operator = node.operator

    if operator == FieldOperator.EQUAL_TO:
        return _equals(doc_value, ref_value)
    if operator == FieldOperator.DOES_NOT_EQUAL:
        return not _equals(doc_value, ref_value)

    if operator in _ORDERING:
        compare = _ORDERING[operator]
        ref_number = as_number(ref_value, node.field)
        return any(compare(number, ref_number) for number in as_numbers(doc_value, node.field))

    if operator == FieldOperator.DOES_NOT_CONTAIN:
        return not _text_match(FieldOperator.CONTAINS, doc_value, ref_value, node.field)
    if operator in _TEXT_MATCH:
        return _text_match(operator, doc_value, ref_value, node.field)

    raise ValueError(f"Unsupported field operator: {operator!r}")


def _equals(doc_value: Any, ref_value: Any) -> bool:
    if isinstance(doc_value, list) and not isinstance(ref_value, list):
        return any(values_equal(item, ref_value) for item in doc_value)
    return values_equal(doc_value, ref_value)


def _text_match(operator: FieldOperator, doc_value: Any, ref_value: Any, field: str) -> bool:
    match = _TEXT_MATCH[operator]
    needle = text_key(ref_value)
    if isinstance(doc_value, str):
        return match(doc_value, needle)
    if isinstance(doc_value, list) and all(isinstance(item, str) for item in doc_value):
        return any(match(item, needle) for item in doc_value)
    raise TypeMismatchError(field, doc_value, "a string or string array")
