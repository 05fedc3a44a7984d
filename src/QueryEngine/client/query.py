"""Client for the ``sajari.engine.query.Query`` service."""

from __future__ import annotations

from QueryEngine.client.transport import JsonRpcTransport
from QueryEngine.core.models import Response
from QueryEngine.core.query import CompareRequest, EvaluateRequest, Request
from QueryEngine.protocol.codec import (
    compare_request_to_wire,
    evaluate_request_to_wire,
    request_to_wire,
    response_from_wire,
)
from QueryEngine.utils.log import log

QUERY_SERVICE = "sajari.engine.query.Query"


class QueryClient:
    """Run search, evaluate and compare calls on a remote engine."""

    def __init__(self, transport: JsonRpcTransport) -> None:
        self.transport = transport

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> QueryClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def search(self, request: Request) -> Response:
        """Run a search request against the remote collection."""
        log.debug("Remote search: body=%r terms=%d", request.body, len(request.terms))
        return self._call("Search", request_to_wire(request))

    def evaluate(self, evaluate_request: EvaluateRequest) -> Response:
        """Evaluate a request against a single supplied document."""
        return self._call("Evaluate", evaluate_request_to_wire(evaluate_request))

    def compare(self, compare_request: CompareRequest) -> Response:
        """Compare a document with a reference document."""
        return self._call("Compare", compare_request_to_wire(compare_request))

    def _call(self, method: str, message: dict) -> Response:
        response = response_from_wire(self.transport.call(QUERY_SERVICE, method, message))
        log.debug(
            "Remote %s: reads=%d total_results=%d time=%s",
            method,
            response.reads,
            response.total_results,
            response.time,
        )
        return response
