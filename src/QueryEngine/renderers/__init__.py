"""Output renderers for command results.

Exports the OutputWriter interface and a factory building writers from
configuration.
"""

from __future__ import annotations

from QueryEngine.config import AppConfig
from QueryEngine.renderers.base import MultiOutputWriter, OutputWriter
from QueryEngine.renderers.console import ConsoleOutputWriter, render_text
from QueryEngine.renderers.json import JsonFileWriter, load_documents_output, load_responses


def create_output_writer(config: AppConfig) -> OutputWriter:
    """Create output writer based on config.

    Args:
        config: Application configuration.

    Returns:
        A MultiOutputWriter over the configured formats.
    """
    writers: list[OutputWriter] = []
    if "console" in config.output.formats:
        writers.append(ConsoleOutputWriter())
    if "json" in config.output.formats:
        writers.append(JsonFileWriter(config.output.base_dir))

    if not writers:
        raise ValueError("No output writers configured")
    return MultiOutputWriter(writers)


__all__ = [
    "OutputWriter",
    "ConsoleOutputWriter",
    "JsonFileWriter",
    "MultiOutputWriter",
    "create_output_writer",
    "load_documents_output",
    "load_responses",
    "render_text",
]
