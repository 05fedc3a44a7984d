"""Local query evaluation pipeline.

Runs a request against an in-memory corpus the way the engine does:

1. validate the request;
2. filter and score every document (in parallel chunks);
3. compute every named aggregate over the admitted set (in parallel);
4. rank, paginate and project the admitted set into results.

Documents and requests are never mutated, so chunks share nothing but the
request. A request that runs past its timeout fails as a whole.
"""

from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from functools import partial
from typing import Iterable, Sequence

from QueryEngine.core.errors import EvaluationTimeout, TypeMismatchError
from QueryEngine.core.models import AggregateResponse, Document, Response
from QueryEngine.core.query import CompareRequest, EvaluateRequest, Request
from QueryEngine.engine.aggregates import evaluate_aggregate
from QueryEngine.engine.boosts import combine_score
from QueryEngine.engine.compare import derive_request
from QueryEngine.engine.filters import evaluate_filter
from QueryEngine.engine.results import (
    ScoredDocument,
    build_results,
    paginate,
    rank,
    sort_values,
)
from QueryEngine.engine.scoring import BaseScorer, TermScorer
from QueryEngine.engine.validate import validate_request
from QueryEngine.utils.log import log

MISMATCH_SKIP = "skip"
MISMATCH_FAIL = "fail"
MISMATCH_POLICIES = (MISMATCH_SKIP, MISMATCH_FAIL)


@dataclass(slots=True)
class QueryEvaluator:
    """Evaluate search requests against a local document corpus.

    Attributes:
        max_workers: Worker threads used for scoring and aggregates.
        timeout: Per-request time budget in seconds; None disables it.
        on_type_mismatch: ``"skip"`` leaves a document with an uncoercible
            value out of the request (logged as a warning); ``"fail"``
            propagates the ``TypeMismatchError``.
        default_max_results: Page size used when a request leaves
            ``max_results`` at 0.
        chunk_size: Documents per scoring task.
        scorer: Base relevance scorer.
    """

    max_workers: int = 4
    timeout: float | None = None
    on_type_mismatch: str = MISMATCH_SKIP
    default_max_results: int = 10
    chunk_size: int = 256
    scorer: BaseScorer = field(default_factory=TermScorer)

    def __post_init__(self) -> None:
        if self.on_type_mismatch not in MISMATCH_POLICIES:
            raise ValueError(f"on_type_mismatch must be one of {MISMATCH_POLICIES}, got {self.on_type_mismatch!r}")
        if self.max_workers <= 0:
            raise ValueError("max_workers must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.default_max_results <= 0:
            raise ValueError("default_max_results must be positive")

    def search(self, request: Request, documents: Iterable[Document]) -> Response:
        """Run ``request`` against ``documents``.

        Args:
            request: Search request.
            documents: Corpus snapshot, read once.

        Returns:
            Response with the requested page, totals and aggregates.

        Raises:
            ValidationError: If the request is malformed.
            TypeMismatchError: If a document value is uncoercible and the
                policy is ``"fail"``.
            EvaluationTimeout: If the request exceeds ``timeout``.
        """
        started = time.perf_counter()
        deadline = started + self.timeout if self.timeout else None

        validate_request(request)
        if request.index_boosts:
            log.debug("Index boosts are applied by the engine index; ignored locally: %d", len(request.index_boosts))

        corpus = list(documents)
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="query-eval")
        try:
            scored = self._score_corpus(executor, request, corpus, deadline)
            admitted = [item.document for item in sorted(scored, key=lambda item: item.index)]
            aggregates = self._aggregate(executor, request, admitted, deadline)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        ranked = rank(scored, request.sort)
        page_size = request.max_results or self.default_max_results
        page_items = paginate(ranked, request.page, page_size)
        best_score = max((item.raw_score for item in scored), default=0.0)
        elapsed = time.perf_counter() - started

        log.debug(
            "Evaluated request: reads=%d admitted=%d page=%d returned=%d time=%s",
            len(corpus),
            len(scored),
            request.page,
            len(page_items),
            format_duration(elapsed),
        )
        return Response(
            reads=len(corpus),
            total_results=len(scored),
            time=format_duration(elapsed),
            aggregates=aggregates,
            results=build_results(page_items, request.fields, best_score),
        )

    def evaluate(self, evaluate_request: EvaluateRequest) -> Response:
        """Run a request against exactly one document."""
        return self.search(evaluate_request.request, [evaluate_request.document])

    def compare(self, compare_request: CompareRequest) -> Response:
        """Derive a request from the reference document and run it against the other."""
        derived = derive_request(compare_request.request, compare_request.ref_document)
        return self.search(derived, [compare_request.document])

    def _score_corpus(
        self,
        executor: ThreadPoolExecutor,
        request: Request,
        corpus: Sequence[Document],
        deadline: float | None,
    ) -> list[ScoredDocument]:
        futures = [
            executor.submit(self._score_chunk, request, start, corpus[start:start + self.chunk_size], deadline)
            for start in range(0, len(corpus), self.chunk_size)
        ]
        scored: list[ScoredDocument] = []
        for future in self._completed(futures, deadline):
            scored.extend(future.result())
        return scored

    def _score_chunk(
        self,
        request: Request,
        start: int,
        chunk: Sequence[Document],
        deadline: float | None,
    ) -> list[ScoredDocument]:
        scored: list[ScoredDocument] = []
        for offset, document in enumerate(chunk):
            self._check_deadline(deadline)
            index = start + offset
            try:
                if request.filter is not None and not evaluate_filter(request.filter, document):
                    continue
                base = self.scorer(request, document)
                raw_score = combine_score(base, request.meta_boosts, document)
                keys = sort_values(document, request.sort)
            except TypeMismatchError as error:
                if self.on_type_mismatch == MISMATCH_FAIL:
                    raise
                log.warning("Skipped document #%d: %s", index, error)
                continue
            scored.append(ScoredDocument(index=index, document=document, raw_score=raw_score, sort_values=keys))
        return scored

    def _aggregate(
        self,
        executor: ThreadPoolExecutor,
        request: Request,
        admitted: Sequence[Document],
        deadline: float | None,
    ) -> dict[str, AggregateResponse]:
        strict = self.on_type_mismatch == MISMATCH_FAIL
        checkpoint = partial(self._check_deadline, deadline) if deadline is not None else None
        future_to_name = {
            executor.submit(evaluate_aggregate, spec, admitted, strict=strict, checkpoint=checkpoint): name
            for name, spec in request.aggregates.items()
        }
        computed: dict[str, AggregateResponse] = {}
        for future in self._completed(list(future_to_name), deadline):
            computed[future_to_name[future]] = future.result()
        return {name: computed[name] for name in request.aggregates}

    def _completed(self, futures: list[Future], deadline: float | None) -> Iterable[Future]:
        remaining = None if deadline is None else max(0.0, deadline - time.perf_counter())
        try:
            yield from as_completed(futures, timeout=remaining)
        except FuturesTimeout as e:
            for future in futures:
                future.cancel()
            raise EvaluationTimeout(self.timeout or 0.0) from e

    def _check_deadline(self, deadline: float | None) -> None:
        if deadline is not None and time.perf_counter() > deadline:
            raise EvaluationTimeout(self.timeout or 0.0)


def format_duration(seconds: float) -> str:
    """Format elapsed seconds like ``"850µs"``, ``"1.234ms"`` or ``"2.5s"``."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f}µs"
    if seconds < 1.0:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"
