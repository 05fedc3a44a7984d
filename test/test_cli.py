"""CLI tests using click's CliRunner (local evaluation and mocked remote calls)."""

import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.cli import cli
from QueryEngine.core.models import Key, Response
from QueryEngine.utils.log import log

EXAMPLES = REPO_ROOT / "examples"

_CONFIG_YAML = """
log: {level: INFO, to_file: false, dir: log}
client:
  endpoint: https://engine.example.com
  key_id_env: TEST_QE_KEY_ID
  secret_env: TEST_QE_SECRET
  timeout: 5
  max_retries: 0
  retry_base_delay: 0.0
  retry_max_delay: 0.0
engine: {max_workers: 2, timeout: 0, on_type_mismatch: skip, default_max_results: 10}
output: {base_dir: %s, formats: [console, json]}
"""


def _make_runner() -> CliRunner:
    try:
        return CliRunner(mix_stderr=True)
    except TypeError:
        # Click 8.2 removed mix_stderr; output already includes stderr.
        return CliRunner()


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.config_path = self.tmp / "config.yml"
        self.config_path.write_text(_CONFIG_YAML % json.dumps(str(self.tmp / "out")), encoding="utf-8")
        self.runner = _make_runner()

    def tearDown(self) -> None:
        for handler in log.handlers:
            handler.close()
        log.handlers.clear()
        log.propagate = True
        self._tmp.cleanup()

    def _invoke(self, *args: str):
        return self.runner.invoke(cli, ["--config", str(self.config_path), *args], catch_exceptions=False)

    def test_local_search(self) -> None:
        result = self._invoke("search", str(EXAMPLES / "request.yml"), "--corpus", str(EXAMPLES / "corpus.jsonl"))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Searching 4 local documents", result.output)
        self.assertIn("Red running shoes", result.output)
        self.assertNotIn("Leather boots", result.output)
        self.assertEqual(len(list((self.tmp / "out" / "json").glob("search_*.json"))), 1)

    def test_local_evaluate_and_compare(self) -> None:
        doc = self.tmp / "doc.json"
        doc.write_text('{"title": "Running socks", "price": 12}', encoding="utf-8")
        ref = self.tmp / "ref.json"
        ref.write_text('{"title": "Running shoes"}', encoding="utf-8")
        request = self.tmp / "req.json"
        request.write_text('{"terms": [{"field": "title"}]}', encoding="utf-8")

        result = self._invoke("evaluate", str(EXAMPLES / "request.yml"), str(doc))
        self.assertEqual(result.exit_code, 0, result.output)

        result = self._invoke("compare", str(request), str(ref), str(doc))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("raw=0.5000", result.output)

    def test_invalid_request_aborts(self) -> None:
        request = self.tmp / "bad.json"
        request.write_text('{"page": -1}', encoding="utf-8")
        result = self.runner.invoke(
            cli,
            ["--config", str(self.config_path), "search", str(request), "--corpus", str(EXAMPLES / "corpus.jsonl")],
        )
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("Search failed: page: must be >= 0", result.output)

    def test_remote_search_uses_query_client(self) -> None:
        client = MagicMock()
        client.__enter__.return_value = client
        client.__exit__.return_value = False
        client.search.return_value = Response(reads=10, total_results=0, time="1ms")
        with patch("QueryEngine.cli.runner.create_query_client", return_value=client):
            result = self._invoke("search", str(EXAMPLES / "request.yml"))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Searching remote engine", result.output)
        self.assertEqual(client.search.call_args.args[0].body, "running shoes")

    def test_doc_get_parses_key_values(self) -> None:
        client = MagicMock()
        client.__enter__.return_value = client
        client.__exit__.return_value = False
        client.get.return_value = [{"id": b'"1"', "title": b'"Boots"'}]
        with patch("QueryEngine.cli.runner.create_document_client", return_value=client):
            result = self._invoke("doc", "get", "id", "1", "abc")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(client.get.call_args.args[0], [Key("id", b"1"), Key("id", b'"abc"')])
        self.assertIn('title: "Boots"', result.output)


if __name__ == "__main__":
    unittest.main()
