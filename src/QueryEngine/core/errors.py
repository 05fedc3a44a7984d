"""Error types raised by request validation and evaluation."""

from __future__ import annotations

from typing import Any


class QueryEngineError(Exception):
    """Base class for QueryEngine errors."""


class ValidationError(QueryEngineError, ValueError):
    """A request is malformed and was rejected before evaluation.

    Attributes:
        field: Dotted path of the offending value, e.g.
            ``meta_boosts[0].interval.points``.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class TypeMismatchError(QueryEngineError, TypeError):
    """A document value cannot be coerced to the type an operation needs."""

    def __init__(self, field: str, value: Any, expected: str) -> None:
        super().__init__(f"field {field!r} value {value!r} is not {expected}")
        self.field = field
        self.value = value
        self.expected = expected


class EvaluationTimeout(QueryEngineError, TimeoutError):
    """Request evaluation exceeded its time budget; no partial response exists."""

    def __init__(self, seconds: float) -> None:
        super().__init__(f"evaluation exceeded {seconds:g}s")
        self.seconds = seconds
