"""Open Library bibliographic search adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, field_validator

from ..config import Candidate, SourceProvider
from ..http_fetch import get_json
from ..normalize import basic_clean, extract_theological_tags, map_language
from ..pipeline_types import Intent
from .base import ProviderAdapter, validate_records

SEARCH_URL = "https://openlibrary.org/search.json"
SEARCH_FIELDS = "key,title,author_name,publisher,isbn,subject,language,first_publish_year,first_sentence,cover_i"
COVER_BY_ISBN = "https://covers.openlibrary.org/b/isbn/{isbn}-M.jpg"
COVER_BY_ID = "https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"


class OpenLibraryDoc(BaseModel):
    """One entry of ``search.json``'s ``docs`` array."""

    model_config = ConfigDict(extra="ignore")

    key: str
    title: str
    author_name: List[str] = []
    publisher: List[str] = []
    isbn: List[str] = []
    subject: List[str] = []
    language: List[str] = []
    first_publish_year: Optional[int] = None
    first_sentence: List[str] = []
    cover_i: Optional[int] = None

    @field_validator("first_sentence", mode="before")
    @classmethod
    def _sentence_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if isinstance(v, dict):
            return [str(v.get("value", ""))] if v.get("value") else []
        return [str(s) for s in v]


def build_params(query: str, intent: Intent, limit: int, structured: bool) -> Dict[str, Any]:
    """Author-qualified search when the intent carries an author, free text otherwise."""
    params: Dict[str, Any] = {"limit": limit, "fields": SEARCH_FIELDS}
    if structured and intent.author:
        params["author"] = intent.author
        if intent.title:
            params["title"] = intent.title
    else:
        params["q"] = query
    return params


def to_candidate(doc: OpenLibraryDoc) -> Candidate:
    work_id = doc.key.replace("/works/", "").strip("/")
    image_url = None
    if doc.isbn:
        image_url = COVER_BY_ISBN.format(isbn=doc.isbn[0])
    elif doc.cover_i:
        image_url = COVER_BY_ID.format(cover_id=doc.cover_i)

    if doc.first_sentence:
        description = basic_clean(doc.first_sentence[0])
    else:
        year = doc.first_publish_year or "Unknown"
        description = f"Book from Open Library database. Published in {year}."

    title = basic_clean(doc.title)
    return Candidate(
        id=f"open_library_{work_id}",
        title=title,
        author=", ".join(doc.author_name) if doc.author_name else None,
        description=description,
        source_provider=SourceProvider.OPEN_LIBRARY,
        source_url=f"https://openlibrary.org{doc.key}",
        price=None,
        currency="USD",
        is_available=True,
        language=map_language(doc.language[0] if doc.language else None),
        category=doc.subject[0] if doc.subject else "Spirituality",
        image_url=image_url,
        key_topics=doc.subject[:10],
        theological_tags=extract_theological_tags(title),
    )


class OpenLibraryAdapter(ProviderAdapter):
    name = SourceProvider.OPEN_LIBRARY.value

    def _search(self, query: str, intent: Intent, max_results: int, structured: bool) -> List[Candidate]:
        # Ask for more than needed; docs without authorship are filtered out below.
        params = build_params(query, intent, max_results * 2, structured)
        data = get_json(SEARCH_URL, params, label="Open Library")
        docs = validate_records(OpenLibraryDoc, (data or {}).get("docs"), "Open Library")
        return [to_candidate(d) for d in docs if d.author_name or d.publisher]

    def _fetch(self, query: str, intent: Intent, max_results: int) -> List[Candidate]:
        structured = bool(intent.author)
        books = self._search(query, intent, max_results, structured)
        if not books and structured and not intent.author_confident:
            # heuristic author parse: widen to free text on zero hits
            logger.info("Open Library: no hits for author {!r}; retrying free text", intent.author)
            books = self._search(query, intent, max_results, structured=False)
        return books
