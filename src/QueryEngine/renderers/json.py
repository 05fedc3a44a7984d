"""JSON output.

Accumulates responses as proto3 JSON and writes them to a file on finalize.
Also reads such files back into responses.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Sequence

from QueryEngine.core.models import Document, Response
from QueryEngine.protocol.codec import (
    document_to_wire,
    documents_from_wire,
    response_from_wire,
    response_to_wire,
)
from QueryEngine.renderers.base import OutputWriter
from QueryEngine.utils.log import log


class JsonFileWriter(OutputWriter):
    """Accumulate results and write to JSON file on finalize."""

    def __init__(self, base_dir: str) -> None:
        self.output_dir = Path(base_dir) / "json"
        self.all_results: list[dict] = []

    def write_response(self, label: str, response: Response) -> None:
        self.all_results.append({"label": label, "response": response_to_wire(response)})

    def write_documents(self, label: str, documents: Sequence[Document]) -> None:
        self.all_results.append(
            {"label": label, "documents": [{"meta": document_to_wire(document)} for document in documents]}
        )

    def finalize(self, action: str) -> None:
        """Write accumulated results to ``{base_dir}/json/{action}_{timestamp}.json``.

        Nothing is written when no result was recorded.
        """
        if not self.all_results:
            return
        payload = json.dumps(self.all_results, ensure_ascii=False, indent=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"{action}_{timestamp}.json"
        output_path.write_text(payload, encoding="utf-8")
        log.info("JSON saved to %s", output_path)


def load_responses(filepath: str | Path) -> list[tuple[str, Response]]:
    """Load the responses recorded in a file written by ``JsonFileWriter``.

    Entries holding documents instead of a response are skipped.
    """
    path = Path(filepath)
    data = json.loads(path.read_text(encoding="utf-8"))
    results = [
        (str(entry.get("label", "")), response_from_wire(entry["response"]))
        for entry in data
        if isinstance(entry, dict) and "response" in entry
    ]
    log.info("Loaded %d responses from %s", len(results), path)
    return results


def load_documents_output(filepath: str | Path) -> list[dict[str, bytes]]:
    """Load every document recorded in a file written by ``JsonFileWriter``."""
    data = json.loads(Path(filepath).read_text(encoding="utf-8"))
    documents: list[dict[str, bytes]] = []
    for entry in data:
        if isinstance(entry, dict) and "documents" in entry:
            documents.extend(documents_from_wire(entry))
    return documents
