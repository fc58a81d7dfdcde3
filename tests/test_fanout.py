import threading
import time

from litfinder.config import Candidate, SourceProvider
from litfinder.fanout import aggregate, default_adapters, run_adapters, select_adapters
from litfinder.pipeline_types import Intent
from litfinder.providers.base import ProviderAdapter
from litfinder.providers.catalog import CatalogAdapter


def _cand(cid, title, provider=SourceProvider.OPEN_LIBRARY, author=None):
    return Candidate(
        id=cid,
        title=title,
        author=author,
        source_provider=provider,
        source_url=f"https://example.com/{cid}",
    )


class StaticAdapter(ProviderAdapter):
    def __init__(self, name, candidates):
        self.name = name
        self.candidates = candidates
        self.seen_caps = []

    def _fetch(self, query, intent, max_results):
        self.seen_caps.append(max_results)
        return list(self.candidates)


class SlowAdapter(ProviderAdapter):
    def __init__(self, name, release):
        self.name = name
        self.release = release

    def _fetch(self, query, intent, max_results):
        self.release.wait(2.0)
        return [_cand("slow", "Too Late")]


class ExplodingAdapter(ProviderAdapter):
    name = "exploding"

    def fetch(self, query, intent, max_results):
        raise RuntimeError("adapter contract violated")

    def _fetch(self, query, intent, max_results):
        return []


class FailingAdapter(ProviderAdapter):
    name = "failing"

    def _fetch(self, query, intent, max_results):
        raise ConnectionError("network down")


def test_default_adapters_priority_order():
    names = [a.name for a in default_adapters([])]
    assert names == [
        "exotic_india_store",
        "bookswagon",
        "open_library",
        "google_books",
        "gutenberg",
        "catalog",
    ]


def test_select_adapters_all_when_no_sources():
    adapters = default_adapters([])
    assert select_adapters(adapters, None) == adapters
    assert select_adapters(adapters, []) == adapters


def test_select_adapters_external_only():
    adapters = default_adapters([])
    chosen = select_adapters(adapters, [SourceProvider.GUTENBERG, SourceProvider.OPEN_LIBRARY])
    assert [a.name for a in chosen] == ["open_library", "gutenberg"]


def test_select_adapters_restricts_catalog_to_platforms():
    catalog = [
        _cand("gp", "Gita Tattva", SourceProvider.GITA_PRESS),
        _cand("ch", "Charaka Samhita", SourceProvider.CHAUKHAMBA),
    ]
    chosen = select_adapters(default_adapters(catalog), [SourceProvider.GITA_PRESS])
    assert len(chosen) == 1
    assert isinstance(chosen[0], CatalogAdapter)
    assert [c.id for c in chosen[0].list_candidates()] == ["gp"]


def test_run_adapters_applies_per_adapter_caps():
    a = StaticAdapter("open_library", [_cand(str(i), f"Book {i}") for i in range(20)])
    b = StaticAdapter("catalog", [_cand(f"c{i}", f"Cat {i}") for i in range(20)])
    outcomes = run_adapters("q", Intent(), [a, b], caps={"open_library": 15, "catalog": 3})
    assert a.seen_caps == [15]
    assert b.seen_caps == [3]
    assert [len(o.candidates) for o in outcomes] == [15, 3]


def test_run_adapters_contains_failures_and_keeps_adapter_order():
    good = StaticAdapter("gutenberg", [_cand("g", "Gita")])
    outcomes = run_adapters("q", Intent(), [ExplodingAdapter(), FailingAdapter(), good])
    assert [o.provider for o in outcomes] == ["exploding", "failing", "gutenberg"]
    assert outcomes[0].failed is True
    assert outcomes[1].candidates == []
    assert [c.id for c in outcomes[2].candidates] == ["g"]


def test_run_adapters_deadline_marks_straggler_failed():
    release = threading.Event()
    slow = SlowAdapter("bookswagon", release)
    fast = StaticAdapter("gutenberg", [_cand("g", "Gita")])
    started = time.perf_counter()
    try:
        outcomes = run_adapters("q", Intent(), [slow, fast], deadline=0.2)
    finally:
        release.set()
    assert time.perf_counter() - started < 1.5
    assert outcomes[0].failed is True
    assert outcomes[0].candidates == []
    assert [c.id for c in outcomes[1].candidates] == ["g"]


def test_run_adapters_empty():
    assert run_adapters("q", Intent(), []) == []


def test_aggregate_merges_in_priority_order():
    catalog = StaticAdapter("catalog", [_cand("cat-1", "Raja Yoga", SourceProvider.EXOTIC_INDIA, "Vivekananda")])
    ol = StaticAdapter("open_library", [_cand("ol-1", "Raja Yoga", author="vivekananda"), _cand("ol-2", "Karma Yoga")])
    retail = StaticAdapter(
        "exotic_india_store",
        [_cand("ei-1", "Karma Yoga", SourceProvider.EXOTIC_INDIA_STORE)],
    )
    merged = aggregate("yoga", Intent(), [catalog, ol, retail])
    assert [c.id for c in merged] == ["ei-1", "ol-1"]


def test_aggregate_all_failing_is_empty():
    assert aggregate("q", Intent(), [FailingAdapter(), ExplodingAdapter()]) == []
