"""Tests for ranking, pagination and projection."""

import sys
import unittest
from itertools import permutations
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.core.models import encode_document
from QueryEngine.core.query import Sort, SortOrder
from QueryEngine.engine.results import (
    ScoredDocument,
    build_results,
    paginate,
    project,
    rank,
    sort_values,
)


def _scored(index: int, score: float, sort=(), **values) -> ScoredDocument:
    document = encode_document(values)
    return ScoredDocument(index=index, document=document, raw_score=score, sort_values=sort_values(document, sort))


class TestRank(unittest.TestCase):
    def test_score_descending_with_corpus_order_ties(self) -> None:
        items = [_scored(0, 1.0), _scored(1, 3.0), _scored(2, 1.0), _scored(3, 2.0)]
        self.assertEqual([item.index for item in rank(items, ())], [1, 3, 0, 2])

    def test_sort_keys_with_missing_last(self) -> None:
        sort = (Sort("price", SortOrder.DESC),)
        items = [
            _scored(0, 1.0, sort, price=10),
            _scored(1, 5.0, sort),
            _scored(2, 2.0, sort, price=30),
            _scored(3, 9.0, sort, price=10),
        ]
        # equal prices fall back to score order
        self.assertEqual([item.index for item in rank(items, sort)], [2, 3, 0, 1])

    def test_missing_last_for_ascending_too(self) -> None:
        sort = (Sort("name"),)
        items = [_scored(0, 1.0, sort), _scored(1, 1.0, sort, name="b"), _scored(2, 1.0, sort, name="a")]
        self.assertEqual([item.index for item in rank(items, sort)], [2, 1, 0])

    def test_multiple_sort_keys(self) -> None:
        sort = (Sort("brand"), Sort("price", SortOrder.DESC))
        items = [
            _scored(0, 1.0, sort, brand="b", price=1),
            _scored(1, 1.0, sort, brand="a", price=1),
            _scored(2, 1.0, sort, brand="a", price=2),
        ]
        self.assertEqual([item.index for item in rank(items, sort)], [2, 1, 0])

    def test_mixed_types_sort_the_same_in_any_input_order(self) -> None:
        sort = (Sort("v"),)
        values = {0: 9, 1: "5x", 2: 10, 3: "10", 4: True}
        for order in permutations(values):
            items = [_scored(index, 1.0, sort, v=values[index]) for index in order]
            # 10 and "10" compare equal and keep corpus order
            self.assertEqual([item.index for item in rank(items, sort)], [0, 2, 3, 1, 4], order)


class TestPaginate(unittest.TestCase):
    def test_pages_concatenate_to_full_ranking(self) -> None:
        items = [_scored(i, float(10 - i)) for i in range(7)]
        pages = [paginate(items, page, 3) for page in range(3)]
        self.assertEqual([len(page) for page in pages], [3, 3, 1])
        self.assertEqual([item for page in pages for item in page], items)
        self.assertEqual(paginate(items, 5, 3), [])


class TestProjection(unittest.TestCase):
    def test_project_and_normalise(self) -> None:
        document = encode_document({"id": "1", "title": "x", "price": 3})
        self.assertEqual(project(document, ("id", "missing")), {"id": b'"1"'})
        self.assertEqual(project(document, ()), document)

        items = [ScoredDocument(0, document, 4.0), ScoredDocument(1, document, 1.0)]
        results = build_results(items, ("price",), best_score=4.0)
        self.assertEqual([r.score for r in results], [1.0, 0.25])
        self.assertEqual(results[1].raw_score, 1.0)
        self.assertEqual(dict(results[0].meta), {"price": b"3"})


if __name__ == "__main__":
    unittest.main()
