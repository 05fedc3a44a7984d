"""Local evaluation engine for search requests.

Exposes the evaluation pipeline and a factory building it from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from QueryEngine.engine.aggregates import evaluate_aggregate
from QueryEngine.engine.boosts import combine_score, evaluate_boost
from QueryEngine.engine.compare import derive_request
from QueryEngine.engine.evaluator import QueryEvaluator
from QueryEngine.engine.filters import evaluate_filter
from QueryEngine.engine.scoring import BaseScorer, TermScorer, constant_scorer
from QueryEngine.engine.validate import validate_request
from QueryEngine.utils.log import log

if TYPE_CHECKING:
    from QueryEngine.config import AppConfig


def create_evaluator(config: AppConfig) -> QueryEvaluator:
    """Create a local evaluator from the ``engine`` config section.

    Args:
        config: Application configuration.

    Returns:
        Configured QueryEvaluator instance.
    """
    engine = config.engine
    scorer: BaseScorer = TermScorer() if engine.base_scorer == "terms" else constant_scorer
    evaluator = QueryEvaluator(
        max_workers=engine.max_workers,
        timeout=engine.timeout or None,
        on_type_mismatch=engine.on_type_mismatch,
        default_max_results=engine.default_max_results,
        chunk_size=engine.chunk_size,
        scorer=scorer,
    )
    log.debug(
        "Evaluator created: workers=%d timeout=%s on_type_mismatch=%s scorer=%s",
        engine.max_workers,
        engine.timeout or "none",
        engine.on_type_mismatch,
        engine.base_scorer,
    )
    return evaluator


__all__ = [
    "QueryEvaluator",
    "combine_score",
    "create_evaluator",
    "derive_request",
    "evaluate_aggregate",
    "evaluate_boost",
    "evaluate_filter",
    "validate_request",
]
