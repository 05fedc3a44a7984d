"""Tests for filter evaluation semantics."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.core.errors import TypeMismatchError
from QueryEngine.core.models import encode_document
from QueryEngine.core.query import (
    CombinatorOperator,
    FieldOperator,
    combine,
    field_filter,
)
from QueryEngine.engine.filters import evaluate_filter

DOC = encode_document(
    {
        "title": "Red running shoes",
        "price": 120,
        "price_text": "99.5",
        "tags": ["shoes", "running"],
        "brand": "acme",
        "nothing": None,
    }
)


def _f(operator, field, value):
    return field_filter(operator, field, value)


class TestFieldOperators(unittest.TestCase):
    def test_equality_is_numeric_across_representations(self) -> None:
        self.assertTrue(evaluate_filter(_f(FieldOperator.EQUAL_TO, "price", 120.0), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.EQUAL_TO, "price", "120"), DOC))
        self.assertFalse(evaluate_filter(_f(FieldOperator.EQUAL_TO, "price", 121), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.DOES_NOT_EQUAL, "brand", "hide"), DOC))

    def test_equality_on_arrays_matches_any_element(self) -> None:
        self.assertTrue(evaluate_filter(_f(FieldOperator.EQUAL_TO, "tags", "running"), DOC))
        self.assertFalse(evaluate_filter(_f(FieldOperator.EQUAL_TO, "tags", "boots"), DOC))

    def test_ordering_operators(self) -> None:
        self.assertTrue(evaluate_filter(_f(FieldOperator.GREATER_THAN, "price", 100), DOC))
        self.assertFalse(evaluate_filter(_f(FieldOperator.GREATER_THAN, "price", 120), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.GREATER_THAN_OR_EQUAL_TO, "price", 120), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.LESS_THAN, "price_text", 100), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.LESS_THAN_OR_EQUAL_TO, "price", 120), DOC))

    def test_ordering_on_arrays_skips_nulls(self) -> None:
        gt_one = _f(FieldOperator.GREATER_THAN, "p", 1)
        self.assertTrue(evaluate_filter(gt_one, encode_document({"p": [5, None]})))
        self.assertTrue(evaluate_filter(gt_one, encode_document({"p": [None, 5]})))
        self.assertFalse(evaluate_filter(gt_one, encode_document({"p": [None, 0]})))

    def test_text_operators(self) -> None:
        self.assertTrue(evaluate_filter(_f(FieldOperator.CONTAINS, "title", "running"), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.STARTS_WITH, "title", "Red"), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.ENDS_WITH, "title", "shoes"), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.DOES_NOT_CONTAIN, "title", "boots"), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.STARTS_WITH, "tags", "run"), DOC))

    def test_contains_is_case_sensitive(self) -> None:
        self.assertFalse(evaluate_filter(_f(FieldOperator.CONTAINS, "title", "RUNNING"), DOC))


class TestMissingFields(unittest.TestCase):
    def test_only_negative_operators_match_missing_fields(self) -> None:
        for operator in FieldOperator:
            value = 1 if operator in (
                FieldOperator.GREATER_THAN,
                FieldOperator.GREATER_THAN_OR_EQUAL_TO,
                FieldOperator.LESS_THAN,
                FieldOperator.LESS_THAN_OR_EQUAL_TO,
            ) else "x"
            expected = operator in (FieldOperator.DOES_NOT_EQUAL, FieldOperator.DOES_NOT_CONTAIN)
            with self.subTest(operator=operator.name):
                self.assertEqual(evaluate_filter(_f(operator, "absent", value), DOC), expected)

    def test_null_counts_as_missing(self) -> None:
        self.assertFalse(evaluate_filter(_f(FieldOperator.EQUAL_TO, "nothing", None), DOC))
        self.assertTrue(evaluate_filter(_f(FieldOperator.DOES_NOT_EQUAL, "nothing", "x"), DOC))


class TestTypeMismatch(unittest.TestCase):
    def test_ordering_on_text_raises(self) -> None:
        with self.assertRaises(TypeMismatchError) as ctx:
            evaluate_filter(_f(FieldOperator.GREATER_THAN, "brand", 1), DOC)
        self.assertEqual(ctx.exception.field, "brand")

    def test_contains_on_number_raises(self) -> None:
        with self.assertRaises(TypeMismatchError):
            evaluate_filter(_f(FieldOperator.CONTAINS, "price", "1"), DOC)

    def test_undecodable_payload_raises(self) -> None:
        doc = {"broken": b"\xff\xfe"}
        with self.assertRaises(TypeMismatchError):
            evaluate_filter(_f(FieldOperator.EQUAL_TO, "broken", "x"), doc)


class TestCombinators(unittest.TestCase):
    yes = _f(FieldOperator.EQUAL_TO, "brand", "acme")
    no = _f(FieldOperator.EQUAL_TO, "brand", "hide")

    def test_empty_combinator_identities(self) -> None:
        self.assertTrue(evaluate_filter(combine(CombinatorOperator.ALL), DOC))
        self.assertFalse(evaluate_filter(combine(CombinatorOperator.ANY), DOC))
        self.assertTrue(evaluate_filter(combine(CombinatorOperator.NONE), DOC))

    def test_none_negates_a_single_filter(self) -> None:
        self.assertTrue(evaluate_filter(combine(CombinatorOperator.NONE, self.no), DOC))
        self.assertFalse(evaluate_filter(combine(CombinatorOperator.NONE, self.yes), DOC))

    def test_one_requires_exactly_one_match(self) -> None:
        self.assertTrue(evaluate_filter(combine(CombinatorOperator.ONE, self.yes, self.no), DOC))
        self.assertFalse(evaluate_filter(combine(CombinatorOperator.ONE, self.yes, self.yes), DOC))
        self.assertFalse(evaluate_filter(combine(CombinatorOperator.ONE, self.no, self.no), DOC))

    def test_nested_combinators(self) -> None:
        tree = combine(
            CombinatorOperator.ALL,
            self.yes,
            combine(CombinatorOperator.NONE, self.no),
            combine(CombinatorOperator.ANY, self.no, _f(FieldOperator.LESS_THAN, "price", 200)),
        )
        self.assertTrue(evaluate_filter(tree, DOC))

    def test_short_circuit_skips_mismatching_children(self) -> None:
        bad = _f(FieldOperator.GREATER_THAN, "brand", 1)
        self.assertTrue(evaluate_filter(combine(CombinatorOperator.ANY, self.yes, bad), DOC))
        self.assertFalse(evaluate_filter(combine(CombinatorOperator.ALL, self.no, bad), DOC))


if __name__ == "__main__":
    unittest.main()
