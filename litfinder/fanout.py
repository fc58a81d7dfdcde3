from __future__ import annotations
"""
Concurrent fan-out over the provider adapters.

Every enabled adapter runs in its own worker thread with its own result cap.
The orchestrator waits for all of them (no early return on partial success);
an adapter that errors or overruns the deadline contributes nothing.
"""

import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from .config import (
    CATALOG_PLATFORMS,
    FANOUT_DEADLINE_SECONDS,
    PROVIDER_PRIORITY,
    PROVIDER_RESULT_CAPS,
    Candidate,
    SourceProvider,
)
from .normalize import merge_provider_results
from .pipeline_types import Intent, ProviderOutcome
from .providers.base import ProviderAdapter
from .providers.catalog import CatalogAdapter
from .providers.google_books import GoogleBooksAdapter
from .providers.gutenberg import GutenbergAdapter
from .providers.open_library import OpenLibraryAdapter
from .providers.retail import DEFAULT_SITES, RetailAdapter

DEFAULT_RESULT_CAP = 10


def default_adapters(catalog: Sequence[Candidate]) -> List[ProviderAdapter]:
    """All adapters in priority order (broad web first, catalog last)."""
    adapters: List[ProviderAdapter] = [RetailAdapter(site) for site in DEFAULT_SITES]
    adapters += [OpenLibraryAdapter(), GoogleBooksAdapter(), GutenbergAdapter(), CatalogAdapter(catalog)]
    return adapters


def select_adapters(
    adapters: Sequence[ProviderAdapter],
    sources: Optional[Iterable[SourceProvider]] = None,
) -> List[ProviderAdapter]:
    """
    ``sources=None`` (or empty) enables everything. Otherwise external adapters
    run when their provider id is selected and the catalog runs, restricted to
    the selected platforms, when any catalog platform is selected.
    """
    chosen = set(sources or ())
    if not chosen:
        return list(adapters)
    wanted_names = {s.value for s in chosen}
    out: List[ProviderAdapter] = []
    for adapter in adapters:
        if isinstance(adapter, CatalogAdapter):
            if chosen & CATALOG_PLATFORMS:
                out.append(adapter.restricted_to(chosen))
        elif adapter.name in wanted_names:
            out.append(adapter)
    return out


def _timed_fetch(adapter: ProviderAdapter, query: str, intent: Intent, cap: int) -> ProviderOutcome:
    started = time.perf_counter()
    candidates = adapter.fetch(query, intent, cap)
    return ProviderOutcome(adapter.name, candidates, time.perf_counter() - started)


def run_adapters(
    query: str,
    intent: Intent,
    adapters: Sequence[ProviderAdapter],
    caps: Mapping[str, int] = PROVIDER_RESULT_CAPS,
    deadline: float = FANOUT_DEADLINE_SECONDS,
) -> List[ProviderOutcome]:
    """Run every adapter concurrently; outcomes come back in adapter order."""
    if not adapters:
        return []

    executor = ThreadPoolExecutor(max_workers=len(adapters), thread_name_prefix="litfinder-fetch")
    futures = {
        executor.submit(_timed_fetch, a, query, intent, caps.get(a.name, DEFAULT_RESULT_CAP)): a
        for a in adapters
    }
    _done, pending = wait(futures, timeout=deadline)
    # never block on stragglers past the deadline
    executor.shutdown(wait=False, cancel_futures=True)

    outcomes: List[ProviderOutcome] = []
    for fut, adapter in futures.items():
        if fut in pending:
            logger.warning("{}: no response within {:.1f}s; treated as empty", adapter.name, deadline)
            outcomes.append(ProviderOutcome(adapter.name, elapsed=deadline, failed=True))
            continue
        try:
            outcome = fut.result()
        except Exception as e:
            logger.warning("{}: adapter raised {}; treated as empty", adapter.name, e)
            outcomes.append(ProviderOutcome(adapter.name, failed=True))
            continue
        logger.info("{}: {} candidates in {:.2f}s", outcome.provider, len(outcome.candidates), outcome.elapsed)
        outcomes.append(outcome)
    return outcomes


def aggregate(
    query: str,
    intent: Intent,
    adapters: Sequence[ProviderAdapter],
    sources: Optional[Iterable[SourceProvider]] = None,
    caps: Mapping[str, int] = PROVIDER_RESULT_CAPS,
    deadline: float = FANOUT_DEADLINE_SECONDS,
    keep: Optional[Callable[[Candidate], bool]] = None,
) -> List[Candidate]:
    """
    Fan out, wait for every provider, then merge in priority order.

    ``keep`` filters each provider's candidates before the cross-provider
    dedup, so a rejected copy never displaces an acceptable one.
    """
    enabled = select_adapters(adapters, sources)
    outcomes = run_adapters(query, intent, enabled, caps=caps, deadline=deadline)
    by_provider: Dict[str, List[Candidate]] = {}
    for o in outcomes:
        kept = [c for c in o.candidates if keep(c)] if keep is not None else list(o.candidates)
        if len(kept) != len(o.candidates):
            logger.info("{}: filters kept {} of {} candidates", o.provider, len(kept), len(o.candidates))
        by_provider[o.provider] = kept
    candidates = merge_provider_results(by_provider, PROVIDER_PRIORITY)
    failed = [o.provider for o in outcomes if o.failed]
    logger.info(
        "Aggregated {} candidates from {} providers{}",
        len(candidates),
        len(outcomes),
        f" ({len(failed)} timed out or raised: {', '.join(failed)})" if failed else "",
    )
    return candidates
