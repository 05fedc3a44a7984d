"""Tests for aggregate evaluation."""

import sys
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.core.errors import EvaluationTimeout, TypeMismatchError
from QueryEngine.core.models import CountResult, MetricResult, encode_document
from QueryEngine.core.query import (
    Bucket,
    BucketAggregate,
    CountAggregate,
    FieldOperator,
    MetricAggregate,
    MetricType,
    field_filter,
)
from QueryEngine.engine.aggregates import evaluate_aggregate

DOCS = [
    encode_document({"price": 10, "tags": ["a", "b"], "brand": "acme"}),
    encode_document({"price": 30, "tags": ["b"], "brand": "acme"}),
    encode_document({"price": [5, 15], "brand": 7}),
    encode_document({"tags": "c"}),
]


class TestMetric(unittest.TestCase):
    def test_metric_types(self) -> None:
        expected = {
            MetricType.AVG: 15.0,
            MetricType.MIN: 5.0,
            MetricType.MAX: 30.0,
            MetricType.SUM: 60.0,
        }
        for metric_type, value in expected.items():
            with self.subTest(metric_type=metric_type.name):
                result = evaluate_aggregate(MetricAggregate("price", metric_type), DOCS)
                self.assertAlmostEqual(result.value, value)

    def test_empty_set_yields_zero(self) -> None:
        for metric_type in MetricType:
            with self.subTest(metric_type=metric_type.name):
                self.assertEqual(evaluate_aggregate(MetricAggregate("price", metric_type), []), MetricResult(0.0))

    def test_non_numeric_values(self) -> None:
        docs = DOCS + [encode_document({"price": "cheap"})]
        with self.assertRaises(TypeMismatchError):
            evaluate_aggregate(MetricAggregate("price", MetricType.SUM), docs)
        with self.assertLogs("QueryEngine", level="WARNING"):
            result = evaluate_aggregate(MetricAggregate("price", MetricType.SUM), docs, strict=False)
        self.assertAlmostEqual(result.value, 60.0)


class TestCount(unittest.TestCase):
    def test_counts_elements_and_excludes_missing(self) -> None:
        result = evaluate_aggregate(CountAggregate("tags"), DOCS)
        self.assertIsInstance(result, CountResult)
        self.assertEqual(dict(result.counts), {"a": 1, "b": 2, "c": 1})

    def test_non_string_values_use_json_text(self) -> None:
        result = evaluate_aggregate(CountAggregate("brand"), DOCS)
        self.assertEqual(dict(result.counts), {"acme": 2, "7": 1})

    def test_string_and_number_with_same_text_share_a_key(self) -> None:
        docs = [encode_document({"c": "1"}), encode_document({"c": 1})]
        result = evaluate_aggregate(CountAggregate("c"), docs)
        self.assertEqual(dict(result.counts), {"1": 2})


class TestBuckets(unittest.TestCase):
    def test_buckets_overlap(self) -> None:
        spec = BucketAggregate(
            (
                Bucket("acme", field_filter(FieldOperator.EQUAL_TO, "brand", "acme")),
                Bucket("cheap", field_filter(FieldOperator.LESS_THAN, "price", 20)),
                Bucket("none", field_filter(FieldOperator.EQUAL_TO, "brand", "hide")),
            )
        )
        result = evaluate_aggregate(spec, DOCS)
        counts = {name: bucket.count for name, bucket in result.buckets.items()}
        self.assertEqual(counts, {"acme": 2, "cheap": 2, "none": 0})
        self.assertEqual(list(result.buckets), ["acme", "cheap", "none"])


class TestCheckpoint(unittest.TestCase):
    def test_checkpoint_runs_per_document_and_aborts(self) -> None:
        calls = []

        def checkpoint() -> None:
            calls.append(1)
            if len(calls) == 2:
                raise EvaluationTimeout(0.01)

        for spec in (CountAggregate("tags"), MetricAggregate("price", MetricType.SUM)):
            calls.clear()
            with self.assertRaises(EvaluationTimeout):
                evaluate_aggregate(spec, DOCS, checkpoint=checkpoint)
            self.assertEqual(len(calls), 2)

    def test_passing_checkpoint_leaves_result_unchanged(self) -> None:
        calls = []
        result = evaluate_aggregate(CountAggregate("tags"), DOCS, checkpoint=lambda: calls.append(1))
        self.assertEqual(dict(result.counts), {"a": 1, "b": 2, "c": 1})
        self.assertEqual(len(calls), len(DOCS))


if __name__ == "__main__":
    unittest.main()
