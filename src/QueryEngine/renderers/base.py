"""Base classes for output writers.

Separates command control flow from how responses are presented.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from QueryEngine.core.models import Document, Response


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_response(self, label: str, response: Response) -> None:
        """Write a query response.

        Args:
            label: What produced the response (e.g. the request file name).
            response: Response to present.
        """

    @abstractmethod
    def write_documents(self, label: str, documents: Sequence[Document]) -> None:
        """Write documents fetched from a collection."""

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., write accumulated results to file).

        Args:
            action: The CLI command name (e.g., 'search').
        """


@dataclass(slots=True)
class MultiOutputWriter(OutputWriter):
    """Delegate output to multiple writers."""

    writers: Sequence[OutputWriter]

    def write_response(self, label: str, response: Response) -> None:
        for writer in self.writers:
            writer.write_response(label, response)

    def write_documents(self, label: str, documents: Sequence[Document]) -> None:
        for writer in self.writers:
            writer.write_documents(label, documents)

    def finalize(self, action: str) -> None:
        for writer in self.writers:
            writer.finalize(action)
