"""Local evaluation engine configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryEngine.config.common import (
    expect_choice,
    expect_float,
    expect_int,
    get_optional_value,
    get_required_value,
    get_section,
)

MISMATCH_POLICIES = ("skip", "fail")
BASE_SCORERS = ("terms", "constant")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Store validated local evaluator settings.

    Attributes:
        max_workers: Worker threads for scoring and aggregates.
        timeout: Per-request budget in seconds; 0 disables it.
        on_type_mismatch: ``skip`` or ``fail`` on uncoercible document values.
        default_max_results: Page size when a request leaves it at 0.
        chunk_size: Documents per scoring task.
        base_scorer: ``terms`` (query text overlap) or ``constant``.
    """

    max_workers: int
    timeout: float
    on_type_mismatch: str
    default_max_results: int
    chunk_size: int
    base_scorer: str


def load_engine(raw: Mapping[str, Any]) -> EngineConfig:
    """Load the ``engine`` section.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing or a choice is unknown.
    """
    section = get_section(raw, "engine", required=True)
    return EngineConfig(
        max_workers=expect_int(get_required_value(section, "max_workers", "engine.max_workers"), "engine.max_workers"),
        timeout=expect_float(get_optional_value(section, "timeout", 0), "engine.timeout"),
        on_type_mismatch=expect_choice(
            get_optional_value(section, "on_type_mismatch", "skip"),
            MISMATCH_POLICIES,
            "engine.on_type_mismatch",
        ),
        default_max_results=expect_int(
            get_optional_value(section, "default_max_results", 10),
            "engine.default_max_results",
        ),
        chunk_size=expect_int(get_optional_value(section, "chunk_size", 256), "engine.chunk_size"),
        base_scorer=expect_choice(get_optional_value(section, "base_scorer", "terms"), BASE_SCORERS, "engine.base_scorer"),
    )


def check_engine(config: EngineConfig) -> None:
    if config.max_workers <= 0:
        raise ValueError("engine.max_workers must be positive")
    if config.timeout < 0:
        raise ValueError("engine.timeout must be >= 0")
    if config.default_max_results <= 0:
        raise ValueError("engine.default_max_results must be positive")
    if config.chunk_size <= 0:
        raise ValueError("engine.chunk_size must be positive")
