"""Command runner for coordinating CLI execution.

Manages component lifecycle, resource cleanup, logging configuration,
and error handling for command execution.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import click

from QueryEngine.cli.commands import (
    AddDocumentsCommand,
    CompareCommand,
    DeleteDocumentsCommand,
    EvaluateCommand,
    GetDocumentsCommand,
    PatchDocumentCommand,
    SearchCommand,
    make_keys,
)
from QueryEngine.client import create_document_client, create_query_client
from QueryEngine.config import AppConfig
from QueryEngine.core.query import CompareRequest, EvaluateRequest
from QueryEngine.engine import create_evaluator
from QueryEngine.renderers import OutputWriter, create_output_writer
from QueryEngine.storage import load_document, load_documents, load_request, read_structured
from QueryEngine.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management.

    Handles logging configuration, component creation, client cleanup and
    error handling for CLI commands.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run_search(self, action: str, request_path: Path, corpus_path: Path | None) -> None:
        """Run a search locally over ``corpus_path``, or remotely when no corpus is given.

        Raises:
            click.Abort: When the search fails.
        """

        def body(output_writer: OutputWriter) -> None:
            request = load_request(request_path)
            if corpus_path is not None:
                SearchCommand(
                    request=request,
                    label=request_path.name,
                    output_writer=output_writer,
                    evaluator=create_evaluator(self.config),
                    corpus=load_documents(corpus_path),
                ).execute()
                return
            with create_query_client(self.config) as client:
                SearchCommand(
                    request=request,
                    label=request_path.name,
                    output_writer=output_writer,
                    client=client,
                ).execute()

        self._run(action, body)

    def run_evaluate(self, action: str, request_path: Path, document_path: Path, remote: bool) -> None:
        def body(output_writer: OutputWriter) -> None:
            evaluate_request = EvaluateRequest(
                request=load_request(request_path),
                document=load_document(document_path),
            )
            label = f"{request_path.name} vs {document_path.name}"
            if remote:
                with create_query_client(self.config) as client:
                    EvaluateCommand(evaluate_request, label, output_writer, client=client).execute()
            else:
                EvaluateCommand(evaluate_request, label, output_writer, evaluator=create_evaluator(self.config)).execute()

        self._run(action, body)

    def run_compare(
        self,
        action: str,
        request_path: Path,
        ref_path: Path,
        document_path: Path,
        remote: bool,
    ) -> None:
        def body(output_writer: OutputWriter) -> None:
            compare_request = CompareRequest(
                request=load_request(request_path),
                ref_document=load_document(ref_path),
                document=load_document(document_path),
            )
            label = f"{document_path.name} like {ref_path.name}"
            if remote:
                with create_query_client(self.config) as client:
                    CompareCommand(compare_request, label, output_writer, client=client).execute()
            else:
                CompareCommand(compare_request, label, output_writer, evaluator=create_evaluator(self.config)).execute()

        self._run(action, body)

    def run_doc_add(self, action: str, documents_path: Path) -> None:
        def body(output_writer: OutputWriter) -> None:
            with create_document_client(self.config) as client:
                AddDocumentsCommand(documents=load_documents(documents_path), client=client).execute()

        self._run(action, body)

    def run_doc_get(self, action: str, field: str, values: Sequence[str]) -> None:
        def body(output_writer: OutputWriter) -> None:
            with create_document_client(self.config) as client:
                GetDocumentsCommand(keys=make_keys(field, values), client=client, output_writer=output_writer).execute()

        self._run(action, body)

    def run_doc_delete(self, action: str, field: str, values: Sequence[str]) -> None:
        def body(output_writer: OutputWriter) -> None:
            with create_document_client(self.config) as client:
                DeleteDocumentsCommand(keys=make_keys(field, values), client=client).execute()

        self._run(action, body)

    def run_doc_patch(self, action: str, field: str, value: str, meta_path: Path) -> None:
        def body(output_writer: OutputWriter) -> None:
            meta = read_structured(meta_path)
            if not isinstance(meta, Mapping):
                raise ValueError(f"{meta_path}: expected an object of fields to patch")
            key = make_keys(field, [value])[0]
            with create_document_client(self.config) as client:
                PatchDocumentCommand(key=key, meta=dict(meta), client=client).execute()

        self._run(action, body)

    def _run(self, action: str, body: Callable[[OutputWriter], Any]) -> None:
        """Configure logging, run ``body`` and finalize output.

        Raises:
            click.Abort: When the command fails.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            output_writer = create_output_writer(self.config)
            body(output_writer)
            output_writer.finalize(action)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
