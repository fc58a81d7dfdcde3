import json
from decimal import Decimal

import pytest

from litfinder.catalog_build import load_catalog_seed
from litfinder.config import Candidate, SourceProvider
from litfinder.providers.base import ProviderAdapter
from litfinder.providers.catalog import CatalogAdapter
from litfinder.search import (
    QueryValidationError,
    SearchEngine,
    SearchFailedError,
    candidate_filter,
    validate_query,
)


def _cand(cid, title, provider=SourceProvider.OPEN_LIBRARY, **kw):
    return Candidate(id=cid, title=title, source_provider=provider, source_url=f"https://example.com/{cid}", **kw)


class StaticAdapter(ProviderAdapter):
    def __init__(self, name, candidates):
        self.name = name
        self.candidates = candidates
        self.calls = 0

    def _fetch(self, query, intent, max_results):
        self.calls += 1
        return list(self.candidates)


class FailingAdapter(ProviderAdapter):
    def __init__(self, name):
        self.name = name

    def _fetch(self, query, intent, max_results):
        raise TimeoutError("read timeout")


class FixedEvaluator:
    def __init__(self, payload):
        self.text = json.dumps(payload)
        self.calls = 0

    def generate(self, prompt):
        self.calls += 1
        return self.text


class BrokenScorer:
    def score(self, query, intent, candidates):
        raise RuntimeError("boom")


WEB_RESULTS = {
    "open_library": [
        _cand("ol-raja", "Raja Yoga", author="Swami Vivekananda", description="Lectures on raja yoga"),
        _cand("ol-karma", "Karma Yoga", author="Swami Vivekananda", description="Lectures on karma yoga"),
    ],
    "gutenberg": [
        _cand("gb-raja", "RAJA YOGA", SourceProvider.GUTENBERG, author="swami vivekananda", price=Decimal("0")),
    ],
}


def _web_adapters():
    return [StaticAdapter(name, cands) for name, cands in WEB_RESULTS.items()]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("query", ["", "   ", None, "x" * 501])
def test_validate_query_rejects_bad_input(query):
    with pytest.raises(QueryValidationError):
        validate_query(query)


def test_validate_query_accepts_boundaries():
    assert validate_query("a") == "a"
    assert validate_query("  x ") == "x"
    assert len(validate_query("y" * 500)) == 500


def test_search_raises_validation_error_before_fanout():
    adapter = StaticAdapter("open_library", [])
    engine = SearchEngine([], adapters=[adapter])
    with pytest.raises(QueryValidationError):
        engine.search("")
    assert adapter.calls == 0


# ---------------------------------------------------------------------------
# Pipeline behaviour
# ---------------------------------------------------------------------------

def test_search_is_idempotent_with_fixed_inputs():
    payload = {
        "interpretation": "Vivekananda on yoga",
        "matches": [
            {"bookId": "ol-karma", "relevanceScore": 80, "isGrounded": True, "citationLocation": "title"},
            {"bookId": "ol-raja", "relevanceScore": 80, "isGrounded": True, "citationLocation": "description"},
        ],
    }
    engine = SearchEngine([], evaluator=FixedEvaluator(payload), adapters=_web_adapters())
    first = engine.search("Vivekananda yoga")
    second = engine.search("Vivekananda yoga")

    dump = lambda r: json.dumps(r.model_dump(mode="json", by_alias=True)["results"], sort_keys=True)
    assert dump(first) == dump(second)
    # equal scores keep discovery order
    assert [r.candidate.id for r in first.results] == ["ol-raja", "ol-karma"]
    assert first.scoring_strategy == "grounded"


def test_search_never_returns_duplicate_title_author_keys():
    engine = SearchEngine([], adapters=_web_adapters())
    resp = engine.search("raja yoga vivekananda")
    keys = [r.candidate.dedup_key for r in resp.results]
    assert len(keys) == len(set(keys))
    assert "gb-raja" not in [r.candidate.id for r in resp.results]


def test_every_result_is_admitted_with_matching_tier():
    catalog = load_catalog_seed()
    engine = SearchEngine(catalog, adapters=[CatalogAdapter(catalog)])
    resp = engine.search("Patanjali Yoga Sutras")
    assert resp.total_results >= 1
    for r in resp.results:
        assert r.relevance_score >= 50
        assert r.confidence_tier in {"strong", "good", "potential"}


def test_all_providers_failing_returns_empty_response():
    adapters = [FailingAdapter("open_library"), FailingAdapter("gutenberg"), FailingAdapter("catalog")]
    engine = SearchEngine([], adapters=adapters)
    resp = engine.search("bhagavad gita")
    assert resp.results == ()
    assert resp.total_results == 0


def test_nonexistent_topic_yields_zero_results():
    catalog = load_catalog_seed()
    engine = SearchEngine(catalog, adapters=[CatalogAdapter(catalog)] + _web_adapters())
    resp = engine.search("xyzzy-nonexistent-topic-42")
    assert resp.total_results == 0


def test_patanjali_scenario_end_to_end():
    catalog = load_catalog_seed()
    payload = {
        "interpretation": "The Yoga Sutras",
        "matches": [
            {
                "bookId": "ei-yoga-sutras-patanjali",
                "relevanceScore": 97,
                "isGrounded": True,
                "citationLocation": "keyTopics",
                "citationSnippet": "Yoga, Sutra",
            }
        ],
    }
    evaluator = FixedEvaluator(payload)
    engine = SearchEngine(catalog, evaluator=evaluator, adapters=[CatalogAdapter(catalog)])
    resp = engine.search("Patanjali Yoga Sutras")

    assert evaluator.calls == 1
    assert resp.scoring_strategy == "grounded"
    top = resp.results[0]
    assert top.candidate.title == "Yoga Sutras of Patanjali"
    assert top.is_grounded is True
    assert top.citation_location


def test_sources_restrict_adapters():
    adapters = _web_adapters()
    engine = SearchEngine([], adapters=adapters)
    engine.search("raja yoga vivekananda", sources=[SourceProvider.GUTENBERG])
    assert [a.calls for a in adapters] == [0, 1]


def test_unexpected_failure_becomes_search_failed():
    engine = SearchEngine([], adapters=_web_adapters(), scorer=BrokenScorer())
    with pytest.raises(SearchFailedError):
        engine.search("raja yoga")


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

FILTER_POOL = [
    _cand("free", "Free Gita", SourceProvider.GUTENBERG, price=Decimal("0")),
    _cand("cheap", "Cheap Gita", price=Decimal("5"), language="Hindi"),
    _cand("dear", "Dear Gita", price=Decimal("50")),
    _cand("unknown", "Unknown Gita"),
]


def _kept(**filters):
    keep = candidate_filter(**filters)
    return [c.id for c in FILTER_POOL if keep(c)]


def test_price_filters_exclude_unknown_prices():
    assert _kept(max_price=Decimal("10")) == ["free", "cheap"]
    assert _kept(min_price=Decimal("5")) == ["cheap", "dear"]
    assert candidate_filter() is None


def test_language_filter_accepts_names_and_codes():
    assert _kept(language="hindi") == ["cheap"]
    assert _kept(language="hi") == ["cheap"]
    assert len(_kept(language="en")) == 3
    assert candidate_filter(language="  ") is None


def test_price_filter_runs_before_cross_provider_dedup():
    # the priority copy has no price; the free duplicate must survive the filter
    adapters = [
        StaticAdapter("open_library", [_cand("ol-raja", "Raja Yoga", author="V")]),
        StaticAdapter("gutenberg", [_cand("gb-raja", "Raja Yoga", SourceProvider.GUTENBERG, author="V", price=Decimal("0"))]),
    ]
    engine = SearchEngine([], adapters=adapters)

    resp = engine.search("raja yoga", max_price=Decimal("1"))

    assert [r.candidate.id for r in resp.results] == ["gb-raja"]
    assert resp.results[0].candidate.price == Decimal("0")
    assert engine.search("raja yoga").results[0].candidate.id == "ol-raja"


# ---------------------------------------------------------------------------
# Browsing
# ---------------------------------------------------------------------------

def test_list_and_get_candidates():
    catalog = load_catalog_seed()
    engine = SearchEngine(catalog, adapters=[])
    assert len(engine.list_candidates()) == len(catalog)
    gita_press = engine.list_candidates(SourceProvider.GITA_PRESS)
    assert gita_press and all(c.source_provider == SourceProvider.GITA_PRESS for c in gita_press)
    assert engine.get_candidate("ei-yoga-sutras-patanjali").title == "Yoga Sutras of Patanjali"
    assert engine.get_candidate("missing") is None
