import json

import pytest
from pydantic import ValidationError

from litfinder import _singletons
from litfinder.catalog_build import load_catalog_seed, parse_catalog_records
from litfinder.config import CATALOG_PLATFORMS, SourceProvider


def test_shipped_seed_loads_and_uses_catalog_platforms():
    catalog = load_catalog_seed()
    assert len(catalog) >= 10
    assert all(c.source_provider in CATALOG_PLATFORMS for c in catalog)
    ids = [c.id for c in catalog]
    assert len(ids) == len(set(ids))


def test_seed_contains_yoga_sutras_with_topics():
    by_title = {c.title: c for c in load_catalog_seed()}
    ys = by_title["Yoga Sutras of Patanjali"]
    assert ys.key_topics == ("Yoga", "Sutra")
    assert ys.table_of_contents


def test_parse_catalog_records_accepts_snake_and_camel_keys():
    records = [
        {"id": "a", "title": "A", "sourceProvider": "gita_press", "sourceUrl": "https://example.com/a"},
        {"id": "b", "title": "B", "source_provider": "chaukhamba", "source_url": "https://example.com/b"},
    ]
    out = parse_catalog_records(records)
    assert [c.source_provider for c in out] == [SourceProvider.GITA_PRESS, SourceProvider.CHAUKHAMBA]


def test_parse_catalog_records_rejects_duplicates_and_bad_rows():
    dup = [
        {"id": "a", "title": "A", "sourceProvider": "gita_press", "sourceUrl": "u"},
        {"id": "a", "title": "A2", "sourceProvider": "gita_press", "sourceUrl": "u"},
    ]
    with pytest.raises(ValueError):
        parse_catalog_records(dup)
    with pytest.raises(ValidationError):
        parse_catalog_records([{"id": "x", "sourceProvider": "gita_press"}])


def test_load_catalog_seed_from_custom_path(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(
        json.dumps([{"id": "z", "title": "Zen", "sourceProvider": "archive_org", "sourceUrl": "https://a.org/z", "price": 0}]),
        encoding="utf-8",
    )
    out = load_catalog_seed(path)
    assert out[0].price == 0


def test_get_catalog_is_cached():
    _singletons.get_catalog.cache_clear()
    first = _singletons.get_catalog()
    assert _singletons.get_catalog() is first
    assert isinstance(first, tuple)
