"""Project Gutenberg (via gutendex) public-domain search adapter."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..config import Candidate, SourceProvider
from ..http_fetch import get_json
from ..normalize import basic_clean, extract_theological_tags, map_language
from ..pipeline_types import Intent
from ..utils.urls import upgrade_to_https
from .base import ProviderAdapter, validate_records

SEARCH_URL = "https://gutendex.com/books"
EBOOK_URL = "https://www.gutenberg.org/ebooks/{book_id}"


class GutendexPerson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class GutendexBook(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    authors: List[GutendexPerson] = []
    subjects: List[str] = []
    bookshelves: List[str] = []
    languages: List[str] = []
    formats: Dict[str, str] = {}


def _html_link(formats: Dict[str, str]) -> Optional[str]:
    for mime, url in formats.items():
        if mime.startswith("text/html"):
            return url
    return None


def _subject_topics(subjects: List[str]) -> List[str]:
    # gutendex subjects look like "Yoga -- Early works to 1800"
    return [s.split(" -- ")[0].strip() for s in subjects if s.strip()]


def to_candidate(book: GutendexBook) -> Candidate:
    title = basic_clean(book.title)
    topics = _subject_topics(book.subjects)
    description = "Free public-domain edition on Project Gutenberg."
    if topics:
        description += " Subjects: " + "; ".join(topics[:5]) + "."
    shelf = book.bookshelves[0].replace("Browsing:", "").strip() if book.bookshelves else ""

    return Candidate(
        id=f"gutenberg_{book.id}",
        title=title,
        author=book.authors[0].name if book.authors else None,
        description=description,
        source_provider=SourceProvider.GUTENBERG,
        source_url=upgrade_to_https(_html_link(book.formats) or EBOOK_URL.format(book_id=book.id)),
        price=Decimal("0"),
        currency="USD",
        is_available=True,
        language=map_language(book.languages[0] if book.languages else None),
        category=shelf or "Public Domain",
        image_url=upgrade_to_https(book.formats.get("image/jpeg")),
        key_topics=topics,
        theological_tags=extract_theological_tags(title),
    )


class GutenbergAdapter(ProviderAdapter):
    """Out-of-copyright works: always free, always available."""

    name = SourceProvider.GUTENBERG.value

    def _fetch(self, query: str, intent: Intent, max_results: int) -> List[Candidate]:
        data = get_json(SEARCH_URL, {"search": query}, label="Gutenberg")
        books = validate_records(GutendexBook, (data or {}).get("results"), "Gutenberg")
        return [to_candidate(b) for b in books[:max_results]]
