import pytest
from fastapi.testclient import TestClient

from litfinder import api
from litfinder.catalog_build import load_catalog_seed
from litfinder.providers.catalog import CatalogAdapter
from litfinder.search import SearchEngine


client = TestClient(app=api.app)


class BrokenScorer:
    def score(self, query, intent, candidates):
        raise RuntimeError("boom")


@pytest.fixture
def catalog_engine(monkeypatch):
    # catalog-only engine: no network, keyword scoring
    catalog = load_catalog_seed()
    engine = SearchEngine(catalog, adapters=[CatalogAdapter(catalog)])
    monkeypatch.setattr(api, "_engine", engine)
    return engine


def test_health_endpoint():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


def test_search_requires_non_empty_query(catalog_engine):
    assert client.post("/api/search", json={"query": " "}).status_code == 422
    assert client.post("/api/search", json={"query": ""}).status_code == 422
    assert client.post("/api/search", json={}).status_code == 422


def test_search_rejects_oversized_query(catalog_engine):
    resp = client.post("/api/search", json={"query": "y" * 501})
    assert resp.status_code == 422


def test_search_rejects_unknown_source(catalog_engine):
    resp = client.post("/api/search", json={"query": "gita", "sources": ["amazon"]})
    assert resp.status_code == 422


def test_search_response_contract(catalog_engine):
    resp = client.post("/api/search", json={"query": "Patanjali Yoga Sutras"})
    assert resp.status_code == 200
    data = resp.json()
    assert set(data) >= {"results", "totalResults", "query", "searchTime", "scoringStrategy"}
    assert data["totalResults"] == len(data["results"]) >= 1
    assert data["scoringStrategy"] == "keyword"

    first = data["results"][0]
    assert first["candidate"]["title"] == "Yoga Sutras of Patanjali"
    assert first["candidate"]["sourceProvider"] == "exotic_india"
    assert isinstance(first["candidate"]["price"], float)
    assert first["relevanceScore"] >= 50
    assert first["confidenceTier"] in {"strong", "good", "potential"}
    assert first["isGrounded"] is True
    assert first["groundingSource"] == "provenance"


def test_search_with_sources_and_filters(catalog_engine):
    resp = client.post(
        "/api/search",
        json={"query": "Patanjali Yoga Sutras", "sources": ["gita_press"], "maxPrice": 100},
    )
    assert resp.status_code == 200
    assert resp.json()["totalResults"] == 0


def test_search_failure_maps_to_500(monkeypatch):
    catalog = load_catalog_seed()
    engine = SearchEngine(catalog, adapters=[CatalogAdapter(catalog)], scorer=BrokenScorer())
    monkeypatch.setattr(api, "_engine", engine)
    resp = client.post("/api/search", json={"query": "yoga"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Search failed. Please try again."}


def test_list_books(catalog_engine):
    all_books = client.get("/api/books").json()
    assert len(all_books) == len(catalog_engine.catalog)

    chaukhamba = client.get("/api/books", params={"source": "chaukhamba"}).json()
    assert chaukhamba and {b["sourceProvider"] for b in chaukhamba} == {"chaukhamba"}

    # unknown platform values are ignored
    assert len(client.get("/api/books", params={"source": "nope"}).json()) == len(all_books)


def test_get_book(catalog_engine):
    resp = client.get("/api/books/ei-yoga-sutras-patanjali")
    assert resp.status_code == 200
    assert resp.json()["keyTopics"] == ["Yoga", "Sutra"]
    assert client.get("/api/books/does-not-exist").status_code == 404


def test_sources_endpoint():
    resp = client.get("/api/sources")
    assert resp.status_code == 200
    ids = [s["id"] for s in resp.json()]
    assert "exotic_india" in ids and "gita_press" in ids
    assert "logoColor" in resp.json()[0]
