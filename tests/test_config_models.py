from decimal import Decimal

import pytest
from pydantic import ValidationError

from litfinder import config
from litfinder.config import (
    Candidate,
    HealthResponse,
    ScoredResult,
    SearchRequest,
    SearchResponse,
    SourceProvider,
)


def _cand(**kw):
    base = dict(
        id="x",
        title="Bhagavad Gita",
        author="Vyasa",
        source_provider=SourceProvider.GUTENBERG,
        source_url="https://example.com/x",
    )
    base.update(kw)
    return Candidate(**base)


def test_candidate_topics_are_ordered_sets():
    c = _cand(key_topics=["Yoga", "yoga", " Karma ", ""], theological_tags=["Dharma", "Dharma"])
    assert c.key_topics == ("Yoga", "Karma")
    assert c.theological_tags == ("Dharma",)


def test_candidate_is_frozen():
    c = _cand()
    with pytest.raises(ValidationError):
        c.title = "Other"


def test_candidate_price_must_be_non_negative():
    with pytest.raises(ValidationError):
        _cand(price=Decimal("-1"))


def test_candidate_dedup_key_and_catalog_flag():
    c = _cand(title="  The Gita ", author="VYASA")
    assert c.dedup_key == ("the gita", "vyasa")
    assert c.is_catalog is False
    assert _cand(source_provider=SourceProvider.GITA_PRESS).is_catalog is True


def test_candidate_serializes_camel_case_and_float_price():
    data = _cand(price=Decimal("12.50"), table_of_contents=["One"]).model_dump(mode="json", by_alias=True)
    assert data["sourceProvider"] == "gutenberg"
    assert data["price"] == 12.5
    assert data["tableOfContents"] == ["One"]
    assert data["isAvailable"] is True


def test_scored_result_tier_and_bounds():
    r = ScoredResult(candidate=_cand(), relevance_score=72, is_grounded=True, grounding_source="evaluator")
    assert r.confidence_tier == "good"
    assert r.model_dump(by_alias=True)["confidenceTier"] == "good"
    with pytest.raises(ValidationError):
        ScoredResult(candidate=_cand(), relevance_score=101, is_grounded=True, grounding_source="evaluator")


def test_search_response_total_results_is_derived():
    r = ScoredResult(candidate=_cand(), relevance_score=90, is_grounded=True, grounding_source="provenance")
    resp = SearchResponse(results=(r,), query="gita", search_time=0.1, scoring_strategy="keyword")
    data = resp.model_dump(mode="json", by_alias=True)
    assert data["totalResults"] == 1
    assert data["searchTime"] == 0.1


def test_search_request_validation():
    req = SearchRequest.model_validate({"query": "gita", "sources": ["gutenberg"], "maxPrice": "10"})
    assert req.sources == [SourceProvider.GUTENBERG]
    assert req.max_price == Decimal("10")
    with pytest.raises(ValidationError):
        SearchRequest(query="   ")
    with pytest.raises(ValidationError):
        SearchRequest(query="x" * 501)


def test_health_response():
    health = HealthResponse(status="healthy")
    assert health.status == "healthy"


def test_fanout_deadline_covers_a_retried_request():
    one_request = config.HTTP_CONNECT_TIMEOUT + config.HTTP_READ_TIMEOUT
    assert config.FANOUT_DEADLINE_SECONDS > 2 * one_request
