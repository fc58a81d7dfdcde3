"""Google Books volumes adapter."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..config import GOOGLE_BOOKS_API_KEY, Candidate, SourceProvider
from ..constants import SPIRITUAL_SUBJECT_FILTER, SPIRITUAL_SUBJECTS
from ..http_fetch import get_json
from ..normalize import basic_clean, extract_theological_tags, map_language
from ..pipeline_types import Intent
from ..utils.urls import upgrade_to_https
from .base import ProviderAdapter, validate_records

VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"
MAX_RESULTS_PER_CALL = 40
MIN_DESCRIPTION_CHARS = 50


class _RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class ImageLinks(_RawModel):
    thumbnail: Optional[str] = None
    small_thumbnail: Optional[str] = None


class Money(_RawModel):
    amount: Decimal
    currency_code: str = "USD"


class VolumeInfo(_RawModel):
    title: str
    authors: List[str] = []
    description: Optional[str] = None
    categories: List[str] = []
    language: Optional[str] = None
    image_links: Optional[ImageLinks] = None
    info_link: Optional[str] = None
    preview_link: Optional[str] = None


class SaleInfo(_RawModel):
    list_price: Optional[Money] = None
    retail_price: Optional[Money] = None
    buy_link: Optional[str] = None
    saleability: Optional[str] = None


class GoogleBooksVolume(_RawModel):
    id: str
    volume_info: VolumeInfo
    sale_info: Optional[SaleInfo] = None


def build_spiritual_query(user_query: str) -> str:
    """Add a subject filter unless the query already has spiritual context."""
    lower = user_query.lower()
    if any(subject in lower for subject in SPIRITUAL_SUBJECTS):
        return user_query
    return f"{user_query} {SPIRITUAL_SUBJECT_FILTER}"


def build_query(query: str, intent: Intent, structured: bool) -> str:
    if structured and intent.author:
        q = f'inauthor:"{intent.author}"'
        if intent.title:
            q += f' intitle:"{intent.title}"'
        return q
    return build_spiritual_query(query)


def _image_url(info: VolumeInfo) -> Optional[str]:
    if not info.image_links:
        return None
    url = info.image_links.thumbnail or info.image_links.small_thumbnail
    if not url:
        return None
    return upgrade_to_https(url).replace("zoom=1", "zoom=2")


def to_candidate(volume: GoogleBooksVolume) -> Candidate:
    info = volume.volume_info
    sale = volume.sale_info

    price: Optional[Decimal] = None
    currency = "USD"
    money = (sale.retail_price or sale.list_price) if sale else None
    if money is not None:
        price = money.amount
        currency = "INR" if money.currency_code == "INR" else "USD"

    source_url = (
        (sale.buy_link if sale else None)
        or info.preview_link
        or info.info_link
        or f"https://books.google.com/books?id={volume.id}"
    )
    description = basic_clean(info.description) or "No description available"

    return Candidate(
        id=f"google_books_{volume.id}",
        title=basic_clean(info.title),
        author=", ".join(info.authors) if info.authors else None,
        description=description,
        source_provider=SourceProvider.GOOGLE_BOOKS,
        source_url=upgrade_to_https(source_url),
        price=price,
        currency=currency,
        is_available=not (sale is not None and sale.saleability == "NOT_FOR_SALE"),
        language=map_language(info.language),
        category=info.categories[0] if info.categories else "Spirituality",
        image_url=_image_url(info),
        key_topics=info.categories,
        theological_tags=extract_theological_tags(description, info.categories),
    )


class GoogleBooksAdapter(ProviderAdapter):
    name = SourceProvider.GOOGLE_BOOKS.value

    def _search(self, query: str, intent: Intent, max_results: int, structured: bool) -> List[Candidate]:
        params: Dict[str, Any] = {
            "q": build_query(query, intent, structured),
            "maxResults": min(max_results, MAX_RESULTS_PER_CALL),
            "printType": "books",
            "orderBy": "relevance",
        }
        if GOOGLE_BOOKS_API_KEY:
            params["key"] = GOOGLE_BOOKS_API_KEY
        data = get_json(VOLUMES_URL, params, label="Google Books")
        volumes = validate_records(GoogleBooksVolume, (data or {}).get("items"), "Google Books")
        # descriptions of 50 chars or fewer are skipped
        return [
            to_candidate(v)
            for v in volumes
            if v.volume_info.description and len(v.volume_info.description) > MIN_DESCRIPTION_CHARS
        ]

    def _fetch(self, query: str, intent: Intent, max_results: int) -> List[Candidate]:
        structured = bool(intent.author)
        books = self._search(query, intent, max_results, structured)
        if not books and structured and not intent.author_confident:
            logger.info("Google Books: no hits for author {!r}; retrying free text", intent.author)
            books = self._search(query, intent, max_results, structured=False)
        return books
