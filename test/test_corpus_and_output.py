"""Tests for corpus loading and JSON output reload."""

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.core.models import MetricResult, Response, Result
from QueryEngine.core.query import FieldOperator
from QueryEngine.renderers import JsonFileWriter, load_documents_output, load_responses, render_text
from QueryEngine.storage import load_document, load_documents, load_request


class TestCorpus(unittest.TestCase):
    def test_formats(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "a.json").write_text('[{"id": 1}, {"id": 2}]', encoding="utf-8")
            (root / "b.jsonl").write_text('{"id": 1}\n\n{"id": "x", "tags": ["a"]}\n', encoding="utf-8")
            (root / "c.yml").write_text("documents:\n  - id: 3\n    name: Ünïcode\n", encoding="utf-8")
            (root / "d.json").write_text('{"id": 4}', encoding="utf-8")

            self.assertEqual(load_documents(root / "a.json"), [{"id": b"1"}, {"id": b"2"}])
            self.assertEqual(load_documents(root / "b.jsonl")[1], {"id": b'"x"', "tags": b'["a"]'})
            self.assertEqual(load_documents(root / "c.yml")[0]["name"], '"Ünïcode"'.encode("utf-8"))
            self.assertEqual(load_document(root / "d.json"), {"id": b"4"})

    def test_rejects_non_objects(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.json"
            path.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "documents\\[0\\]"):
                load_documents(path)
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "cannot parse"):
                load_documents(path)

    def test_example_request_file(self) -> None:
        request = load_request(REPO_ROOT / "examples" / "request.yml")
        self.assertEqual(request.body, "running shoes")
        self.assertEqual(request.filter.filters[0].operator, FieldOperator.LESS_THAN_OR_EQUAL_TO)
        self.assertEqual(request.filter.filters[0].value, b"150")
        self.assertEqual(set(request.aggregates), {"avg_price", "tags", "price_bands"})


class TestJsonOutput(unittest.TestCase):
    def test_write_and_reload(self) -> None:
        response = Response(
            reads=2,
            total_results=1,
            time="10µs",
            aggregates={"avg": MetricResult(3.0)},
            results=(Result(meta={"id": b'"1"'}, score=1.0, raw_score=2.0),),
        )
        with tempfile.TemporaryDirectory() as tmp:
            writer = JsonFileWriter(tmp)
            writer.write_response("req.yml", response)
            writer.write_documents("get", [{"id": b'"9"'}])
            with self.assertLogs("QueryEngine", level="INFO"):
                writer.finalize("search")

            files = list((Path(tmp) / "json").glob("search_*.json"))
            self.assertEqual(len(files), 1)
            self.assertEqual(load_responses(files[0]), [("req.yml", response)])
            self.assertEqual(load_documents_output(files[0]), [{"id": b'"9"'}])

    def test_nothing_written_without_results(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            JsonFileWriter(tmp).finalize("search")
            self.assertFalse((Path(tmp) / "json").exists())

    def test_render_text(self) -> None:
        text = render_text(Response(total_results=1, results=(Result(meta={"title": b'"Boots"'}, score=1.0, raw_score=1.0),)))
        self.assertIn("1. score=1.0000", text)
        self.assertIn('title: "Boots"', text)


if __name__ == "__main__":
    unittest.main()
