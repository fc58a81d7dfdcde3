from __future__ import annotations
"""
Result assembly: turn admitted ScoredResults into the immutable SearchResponse.

Centralises ordering and the global result-size policy so that both scoring
strategies are presented identically.
"""

import time
from typing import Dict, List, Optional, Sequence

from loguru import logger

from . import config
from .config import ScoredResult, ScoringStrategy, SearchResponse


def order_results(
    results: Sequence[ScoredResult],
    discovery_order: Optional[Dict[str, int]] = None,
) -> List[ScoredResult]:
    """
    Sort descending by relevance score. Equal scores keep candidate discovery
    order (provider priority, then position within the provider); results
    whose candidate is not in ``discovery_order`` keep their incoming order.
    """
    if discovery_order is None:
        return sorted(results, key=lambda r: -r.relevance_score)
    fallback = len(discovery_order)
    return sorted(
        results,
        key=lambda r: (-r.relevance_score, discovery_order.get(r.candidate.id, fallback)),
    )


def _drop_duplicate_keys(results: Sequence[ScoredResult]) -> List[ScoredResult]:
    seen = set()
    out: List[ScoredResult] = []
    for r in results:
        key = r.candidate.dedup_key
        if key in seen:
            logger.warning("Dropping duplicate result {!r} ({})", r.candidate.title, r.candidate.id)
            continue
        seen.add(key)
        out.append(r)
    return out


def assemble_response(
    query: str,
    results: Sequence[ScoredResult],
    started: float,
    strategy: ScoringStrategy,
    interpretation: Optional[str] = None,
    discovery_order: Optional[Dict[str, int]] = None,
    limit: int = config.RESULT_MAX,
) -> SearchResponse:
    """
    Build the SearchResponse.

    ``started`` is a ``time.perf_counter()`` reading taken when the request
    began; ``search_time`` is the elapsed seconds up to assembly.
    """
    admitted = [r for r in results if r.relevance_score >= config.ADMISSION_MIN_SCORE]
    ordered = _drop_duplicate_keys(order_results(admitted, discovery_order))
    final = ordered[: max(0, limit)]

    elapsed = round(time.perf_counter() - started, 3)
    logger.info(
        "Assembled {} results for {!r} via {} scoring in {:.3f}s",
        len(final),
        query,
        strategy,
        elapsed,
    )
    return SearchResponse(
        results=tuple(final),
        query=query,
        search_time=elapsed,
        scoring_strategy=strategy,
        interpretation=interpretation,
    )
