"""
Search engine facade: interpret -> fan out (filtered per provider) -> score -> assemble.

One ``SearchEngine`` is built per process around the read-only catalog and an
optional evaluator; each ``search()`` call keeps its candidate pool and scoring
state local to the call.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from . import config
from .config import Candidate, SearchResponse, SourceProvider
from .evaluator import TextEvaluator
from .fanout import aggregate, default_adapters
from .mapping import assemble_response
from .normalize import map_language
from .providers.base import ProviderAdapter
from .query_analysis import interpret
from .rerank import RelevanceScorer


class QueryValidationError(ValueError):
    """Empty, blank or oversized query."""


class SearchFailedError(RuntimeError):
    """Unexpected failure while building a response."""


def validate_query(query: Optional[str]) -> str:
    if query is None or not str(query).strip():
        raise QueryValidationError("Query must be non-empty")
    query = str(query)
    if len(query) > config.QUERY_MAX_CHARS:
        raise QueryValidationError(f"Query must be at most {config.QUERY_MAX_CHARS} characters")
    return query.strip()


def _language_matches(candidate: Candidate, wanted: set) -> bool:
    return candidate.language.casefold() in wanted


def candidate_filter(
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    language: Optional[str] = None,
) -> Optional[Callable[[Candidate], bool]]:
    """
    Predicate for the optional search filters, or None when none is set.
    With a price bound set, candidates whose price is unknown are excluded
    (free items have price 0).
    """
    wanted_lang = None
    if language and language.strip():
        wanted_lang = {language.strip().casefold(), map_language(language.strip()).casefold()}
    priced = min_price is not None or max_price is not None
    if not priced and wanted_lang is None:
        return None

    def keep(c: Candidate) -> bool:
        if priced:
            if c.price is None:
                return False
            if min_price is not None and c.price < min_price:
                return False
            if max_price is not None and c.price > max_price:
                return False
        if wanted_lang is not None and not _language_matches(c, wanted_lang):
            return False
        return True

    return keep


class SearchEngine:
    def __init__(
        self,
        catalog: Sequence[Candidate],
        evaluator: Optional[TextEvaluator] = None,
        adapters: Optional[Sequence[ProviderAdapter]] = None,
        scorer: Optional[RelevanceScorer] = None,
        caps: Mapping[str, int] = config.PROVIDER_RESULT_CAPS,
        deadline: float = config.FANOUT_DEADLINE_SECONDS,
    ) -> None:
        self.catalog = tuple(catalog)
        self.adapters = list(adapters) if adapters is not None else default_adapters(self.catalog)
        self.scorer = scorer or RelevanceScorer(evaluator)
        self.caps = caps
        self.deadline = deadline
        self._by_id = {c.id: c for c in self.catalog}

    def search(
        self,
        query: str,
        sources: Optional[Iterable[SourceProvider]] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        language: Optional[str] = None,
    ) -> SearchResponse:
        """
        Run one search. Raises QueryValidationError for bad input and
        SearchFailedError for anything unexpected; provider and evaluator
        faults never escape.
        """
        query = validate_query(query)
        started = time.perf_counter()
        try:
            intent = interpret(query)
            logger.info(
                "Search {!r}: author={!r} title={!r} topics={}",
                query,
                intent.author,
                intent.title,
                sorted(intent.topics),
            )
            pool = aggregate(
                query,
                intent,
                self.adapters,
                sources=sources,
                caps=self.caps,
                deadline=self.deadline,
                keep=candidate_filter(min_price, max_price, language),
            )
            discovery_order = {c.id: i for i, c in enumerate(pool)}
            outcome = self.scorer.score(query, intent, pool)
            return assemble_response(
                query,
                outcome.results,
                started,
                outcome.strategy,
                interpretation=outcome.interpretation,
                discovery_order=discovery_order,
            )
        except Exception as e:
            logger.exception("Search failed for {!r}", query)
            raise SearchFailedError("Search failed. Please try again.") from e

    def list_candidates(self, source: Optional[SourceProvider] = None) -> List[Candidate]:
        """Catalog browsing; ``source=None`` lists everything."""
        if source is None:
            return list(self.catalog)
        return [c for c in self.catalog if c.source_provider == source]

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return self._by_id.get(candidate_id)
