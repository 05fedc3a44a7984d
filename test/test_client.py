"""Tests for the JSON RPC transport and service clients (no network)."""

import base64
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryEngine.client import (
    ClientConfig,
    Credentials,
    DocumentClient,
    JsonRpcTransport,
    QueryClient,
)
from QueryEngine.core.models import Key, KeyMeta
from QueryEngine.core.query import Request


def _response(status: int, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.content = b"{}" if payload is not None else b""
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status}", response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


def _transport(session: MagicMock, **overrides) -> JsonRpcTransport:
    config = ClientConfig(
        endpoint="https://engine.example.com/",
        credentials=Credentials("key", "secret"),
        timeout=5.0,
        max_retries=overrides.get("max_retries", 2),
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )
    return JsonRpcTransport(config, session=session)


class TestTransport(unittest.TestCase):
    def test_url_and_headers(self) -> None:
        session = MagicMock()
        session.post.return_value = _response(200, {"reads": "1"})
        result = _transport(session).call("sajari.engine.query.Query", "Search", {"body": "x"})

        self.assertEqual(result, {"reads": "1"})
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://engine.example.com/sajari.engine.query.Query/Search")
        self.assertEqual(kwargs["headers"]["Authorization"], "keysecret key secret")
        self.assertEqual(kwargs["json"], {"body": "x"})
        self.assertEqual(kwargs["timeout"], 5.0)

    @patch("QueryEngine.client.transport.time.sleep")
    def test_retries_retryable_status(self, sleep: MagicMock) -> None:
        session = MagicMock()
        session.post.side_effect = [_response(503), requests.ConnectionError("down"), _response(200, {})]
        self.assertEqual(_transport(session).call("svc", "M", {}), {})
        self.assertEqual(session.post.call_count, 3)
        self.assertEqual(sleep.call_count, 2)

    @patch("QueryEngine.client.transport.time.sleep")
    def test_gives_up_after_max_retries(self, sleep: MagicMock) -> None:
        session = MagicMock()
        session.post.return_value = _response(500)
        with self.assertRaises(requests.HTTPError):
            _transport(session, max_retries=1).call("svc", "M", {})
        self.assertEqual(session.post.call_count, 2)

    @patch("QueryEngine.client.transport.time.sleep")
    def test_non_retryable_status_raises_immediately(self, sleep: MagicMock) -> None:
        session = MagicMock()
        session.post.return_value = _response(401)
        with self.assertRaises(requests.HTTPError):
            _transport(session).call("svc", "M", {})
        self.assertEqual(session.post.call_count, 1)
        sleep.assert_not_called()

    def test_context_manager_closes_session(self) -> None:
        session = MagicMock()
        with _transport(session):
            pass
        session.close.assert_called_once()


class TestServiceClients(unittest.TestCase):
    def test_query_search_decodes_response(self) -> None:
        session = MagicMock()
        meta = {"id": base64.b64encode(b'"1"').decode("ascii")}
        session.post.return_value = _response(
            200,
            {"reads": "4", "totalResults": "1", "results": [{"meta": meta, "score": 1, "rawScore": 0.5}]},
        )
        response = QueryClient(_transport(session)).search(Request(body="shoes"))
        self.assertEqual(response.total_results, 1)
        self.assertEqual(response.results[0].meta["id"], b'"1"')
        self.assertEqual(session.post.call_args.kwargs["json"], {"body": "shoes"})

    def test_document_calls(self) -> None:
        session = MagicMock()
        key_value = base64.b64encode(b'"1"').decode("ascii")
        session.post.side_effect = [
            _response(200, {"keys": [{"field": "_id", "value": key_value}]}),
            _response(200, {"documents": [{"meta": {"id": key_value}}]}),
            _response(200),
            _response(200),
        ]
        client = DocumentClient(_transport(session))

        keys = client.add([{"id": b'"1"'}])
        self.assertEqual(keys, [Key("_id", b'"1"')])
        self.assertEqual(client.get(keys), [{"id": b'"1"'}])
        client.delete(keys)
        client.patch([KeyMeta(keys[0], {"title": b"null"})])

        urls = [call.args[0].rsplit("/", 1)[-1] for call in session.post.call_args_list]
        self.assertEqual(urls, ["Add", "Get", "Delete", "Patch"])
        patch_body = session.post.call_args_list[3].kwargs["json"]
        self.assertEqual(patch_body["keysMetas"][0]["meta"]["title"], base64.b64encode(b"null").decode("ascii"))


if __name__ == "__main__":
    unittest.main()
