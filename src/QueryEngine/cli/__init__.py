"""CLI package for QueryEngine command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from QueryEngine.cli.runner import CommandRunner
from QueryEngine.cli.ui import cli


def main() -> None:
    """Run QueryEngine CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
