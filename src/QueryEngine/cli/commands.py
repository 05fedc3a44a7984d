"""Command implementations for the QueryEngine CLI.

Encapsulates what each command does, separated from CLI parameter handling
and output formatting. Query commands run either on the local evaluator or
on a remote engine, whichever is injected.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Sequence

from QueryEngine.client import DocumentClient, QueryClient
from QueryEngine.core.models import Document, Key, KeyMeta, Response, encode_document, encode_value
from QueryEngine.core.query import CompareRequest, EvaluateRequest, Request
from QueryEngine.engine import QueryEvaluator
from QueryEngine.renderers import OutputWriter
from QueryEngine.utils.log import log


def parse_cli_value(text: str) -> Any:
    """Read a command-line value as JSON, or as a plain string when it is not JSON."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def make_keys(field: str, values: Sequence[str]) -> list[Key]:
    return [Key(field=field, value=encode_value(parse_cli_value(value))) for value in values]


@dataclass(slots=True)
class SearchCommand:
    """Run one search request and hand the response to the output writer.

    With a ``client`` the request goes to the remote engine; otherwise it is
    evaluated locally over ``corpus``.
    """

    request: Request
    label: str
    output_writer: OutputWriter
    evaluator: QueryEvaluator | None = None
    corpus: Sequence[Document] = ()
    client: QueryClient | None = None

    def execute(self) -> Response:
        if self.client is not None:
            log.info("Searching remote engine")
            response = self.client.search(self.request)
        else:
            if self.evaluator is None:
                raise ValueError("a local search needs an evaluator")
            log.info("Searching %d local documents", len(self.corpus))
            response = self.evaluator.search(self.request, self.corpus)
        log.info("Matched %d documents in %s", response.total_results, response.time or "-")
        self.output_writer.write_response(self.label, response)
        return response


@dataclass(slots=True)
class EvaluateCommand:
    """Evaluate a request against a single document."""

    evaluate_request: EvaluateRequest
    label: str
    output_writer: OutputWriter
    evaluator: QueryEvaluator | None = None
    client: QueryClient | None = None

    def execute(self) -> Response:
        if self.client is not None:
            response = self.client.evaluate(self.evaluate_request)
        elif self.evaluator is not None:
            response = self.evaluator.evaluate(self.evaluate_request)
        else:
            raise ValueError("evaluate needs an evaluator or a client")
        if not response.results:
            log.info("Document does not match the request")
        self.output_writer.write_response(self.label, response)
        return response


@dataclass(slots=True)
class CompareCommand:
    """Score a document with a request derived from a reference document."""

    compare_request: CompareRequest
    label: str
    output_writer: OutputWriter
    evaluator: QueryEvaluator | None = None
    client: QueryClient | None = None

    def execute(self) -> Response:
        if self.client is not None:
            response = self.client.compare(self.compare_request)
        elif self.evaluator is not None:
            response = self.evaluator.compare(self.compare_request)
        else:
            raise ValueError("compare needs an evaluator or a client")
        if not response.results:
            log.info("Document does not match the derived request")
        self.output_writer.write_response(self.label, response)
        return response


@dataclass(slots=True)
class AddDocumentsCommand:
    documents: Sequence[Document]
    client: DocumentClient

    def execute(self) -> list[Key]:
        keys = self.client.add(self.documents)
        log.info("Added %d documents", len(keys))
        for key in keys:
            log.info("  %s=%s", key.field, key.value.decode("utf-8", errors="replace"))
        return keys


@dataclass(slots=True)
class GetDocumentsCommand:
    keys: Sequence[Key]
    client: DocumentClient
    output_writer: OutputWriter

    def execute(self) -> list[dict[str, bytes]]:
        documents = self.client.get(self.keys)
        self.output_writer.write_documents("get", documents)
        return documents


@dataclass(slots=True)
class DeleteDocumentsCommand:
    keys: Sequence[Key]
    client: DocumentClient

    def execute(self) -> None:
        self.client.delete(self.keys)
        log.info("Deleted %d documents", len(self.keys))


@dataclass(slots=True)
class PatchDocumentCommand:
    """Patch one document; ``meta`` values set to JSON ``null`` clear a field."""

    key: Key
    meta: dict[str, Any]
    client: DocumentClient

    def execute(self) -> None:
        self.client.patch([KeyMeta(key=self.key, meta=encode_document(self.meta))])
        log.info("Patched %d fields", len(self.meta))
