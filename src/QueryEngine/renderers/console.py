"""Console text output.

Renders responses as human-friendly text; document values are shown as
their decoded JSON text.
"""

from __future__ import annotations

from typing import Sequence

from QueryEngine.core.models import (
    AggregateResponse,
    BucketsResult,
    CountResult,
    Document,
    MetricResult,
    Response,
)
from QueryEngine.renderers.base import OutputWriter
from QueryEngine.utils.log import log


def format_value(raw: bytes) -> str:
    """Show a stored value as text, falling back to its repr when not UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return repr(raw)


def _document_lines(document: Document, indent: str) -> list[str]:
    return [f"{indent}{field}: {format_value(value)}" for field, value in sorted(document.items())]


def _aggregate_lines(name: str, result: AggregateResponse) -> list[str]:
    if isinstance(result, MetricResult):
        return [f"  {name}: {result.value:g}"]
    if isinstance(result, CountResult):
        lines = [f"  {name}:"]
        ordered = sorted(result.counts.items(), key=lambda item: (-item[1], item[0]))
        lines.extend(f"    {key}: {count}" for key, count in ordered)
        return lines
    if isinstance(result, BucketsResult):
        lines = [f"  {name}:"]
        lines.extend(f"    {bucket.name}: {bucket.count}" for bucket in result.buckets.values())
        return lines
    return [f"  {name}: {result!r}"]


def render_text(response: Response) -> str:
    """Render a response into a text block.

    Args:
        response: Response to render.

    Returns:
        A formatted string ready to be printed.
    """
    lines = [f"Results: {len(response.results)} of {response.total_results} (reads={response.reads}, time={response.time or '-'})"]
    for idx, result in enumerate(response.results, start=1):
        lines.append(f"{idx}. score={result.score:.4f} raw={result.raw_score:.4f}")
        lines.extend(_document_lines(result.meta, "   "))
    if response.aggregates:
        lines.append("Aggregates:")
        for name, result in response.aggregates.items():
            lines.extend(_aggregate_lines(name, result))
    return "\n".join(lines) + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_response(self, label: str, response: Response) -> None:
        log.info("=== %s ===", label)
        for line in render_text(response).splitlines():
            log.info(line)

    def write_documents(self, label: str, documents: Sequence[Document]) -> None:
        log.info("=== %s: %d documents ===", label, len(documents))
        for idx, document in enumerate(documents, start=1):
            log.info("%d.", idx)
            for line in _document_lines(document, "   "):
                log.info(line)

    def finalize(self, action: str) -> None:
        """No-op for console output."""
