"""Scraped retail listing pages.

Each site is described by a ``RetailSite``: where its search page lives and an
ordered list of CSS selectors per field. The first selector that matches wins,
so alternates can be appended as the markup drifts.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from urllib.parse import quote_plus, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag
from loguru import logger
from pydantic import BaseModel, ConfigDict

from ..config import BROWSER_USER_AGENT, Candidate, SourceProvider
from ..http_fetch import get_html
from ..normalize import basic_clean, extract_theological_tags
from ..pipeline_types import Intent
from ..query_analysis import extract_topics
from ..text_utils import parse_price
from ..utils.text_clean import strip_filler_words
from ..utils.urls import absolutize
from .base import ProviderAdapter


@dataclass(frozen=True)
class RetailSite:
    provider: SourceProvider
    label: str
    base_url: str
    search_url: str  # may contain "{query}" for path-style search pages
    query_param: Optional[str]
    item_selectors: Tuple[str, ...]
    title_selectors: Tuple[str, ...]
    link_selectors: Tuple[str, ...]
    author_selectors: Tuple[str, ...] = ()
    price_selectors: Tuple[str, ...] = ()
    image_selectors: Tuple[str, ...] = ("img",)
    currency: str = "USD"
    language: str = "English"


EXOTIC_INDIA = RetailSite(
    provider=SourceProvider.EXOTIC_INDIA_STORE,
    label="Exotic India",
    base_url="https://www.exoticindiaart.com",
    search_url="https://www.exoticindiaart.com/search/",
    query_param="q",
    item_selectors=("div.product-card", "li.product-item", "div.product"),
    title_selectors=("a.product-title", ".product-name a", "h3 a", ".title"),
    link_selectors=("a.product-title", ".product-name a", "a[href]"),
    author_selectors=(".product-author", ".author"),
    price_selectors=(".price .amount", ".product-price", ".price"),
    currency="USD",
)

BOOKSWAGON = RetailSite(
    provider=SourceProvider.BOOKSWAGON,
    label="Bookswagon",
    base_url="https://www.bookswagon.com",
    search_url="https://www.bookswagon.com/search-books/{query}",
    query_param=None,
    item_selectors=("div.list-view-books", "div.product-summary", "div.card"),
    title_selectors=(".title a", "a.bookname", "h4 a"),
    link_selectors=(".title a", "a.bookname", "a[href]"),
    author_selectors=(".author-publisher a", ".author"),
    price_selectors=(".sell", ".price .sell", ".actualprice"),
    currency="INR",
)

DEFAULT_SITES: Tuple[RetailSite, ...] = (EXOTIC_INDIA, BOOKSWAGON)


class RetailListing(BaseModel):
    """One product tile as scraped, before canonicalisation."""

    model_config = ConfigDict(extra="ignore")

    title: str
    link: str
    author: Optional[str] = None
    price_text: Optional[str] = None
    image: Optional[str] = None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _select_items(soup: BeautifulSoup, selectors: Sequence[str]) -> List[Tag]:
    for sel in selectors:
        items = soup.select(sel)
        if items:
            return items
    return []


def _first(item: Tag, selectors: Sequence[str]) -> Optional[Tag]:
    for sel in selectors:
        node = item.select_one(sel)
        if node is not None:
            return node
    return None


def _first_text(item: Tag, selectors: Sequence[str]) -> Optional[str]:
    node = _first(item, selectors)
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None


def _image_src(item: Tag, selectors: Sequence[str]) -> Optional[str]:
    node = _first(item, selectors)
    if node is None:
        return None
    for attr in ("data-src", "data-original", "src"):
        val = node.get(attr)
        if val and not str(val).startswith("data:"):
            return str(val)
    return None


def parse_listings(html: str, site: RetailSite) -> List[RetailListing]:
    """Extract product tiles; a tile that fails to parse is skipped."""
    soup = BeautifulSoup(html, "lxml")
    items = _select_items(soup, site.item_selectors)
    if not items:
        logger.warning("{}: no product tiles matched any selector", site.label)
        return []

    out: List[RetailListing] = []
    for item in items:
        try:
            title = _first_text(item, site.title_selectors)
            link_node = _first(item, site.link_selectors)
            link = absolutize(site.base_url, link_node.get("href") if link_node else None)
            if not title or not link:
                continue
            out.append(
                RetailListing(
                    title=title,
                    link=link,
                    author=_first_text(item, site.author_selectors),
                    price_text=_first_text(item, site.price_selectors),
                    image=absolutize(site.base_url, _image_src(item, site.image_selectors)),
                )
            )
        except Exception as e:
            logger.debug("{}: skipping unparseable tile: {}", site.label, e)
    logger.info("{}: parsed {} of {} tiles", site.label, len(out), len(items))
    return out


def _listing_id(site: RetailSite, link: str) -> str:
    path = urlparse(link).path.strip("/")
    slug = path.split("/")[-1] if path else ""
    if not slug:
        slug = hashlib.sha1(link.encode("utf-8")).hexdigest()[:12]
    return f"{site.provider.value}_{slug}"


def to_candidate(listing: RetailListing, site: RetailSite) -> Candidate:
    title = basic_clean(listing.title)
    author = basic_clean(listing.author) or None
    if author and author.lower().startswith("by "):
        author = author[3:].strip() or None
    price, currency = parse_price(listing.price_text, site.currency)
    description = f"Listed on {site.label}" + (f", by {author}." if author else ".")
    return Candidate(
        id=_listing_id(site, listing.link),
        title=title,
        author=author,
        description=description,
        source_provider=site.provider,
        source_url=listing.link,
        price=price,
        currency=currency,
        is_available=True,
        language=site.language,
        category="Spirituality",
        image_url=listing.image,
        key_topics=sorted(extract_topics(title)),
        theological_tags=extract_theological_tags(title),
    )


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class RetailAdapter(ProviderAdapter):
    def __init__(self, site: RetailSite) -> None:
        self.site = site
        self.name = site.provider.value

    def search_request(self, query: str) -> Tuple[str, Optional[dict]]:
        term = strip_filler_words(query) or query
        if "{query}" in self.site.search_url:
            return self.site.search_url.format(query=quote_plus(term)), None
        return self.site.search_url, {self.site.query_param or "q": term}

    def _fetch(self, query: str, intent: Intent, max_results: int) -> List[Candidate]:
        url, params = self.search_request(query)
        html = get_html(url, params, label=self.site.label, user_agent=BROWSER_USER_AGENT)
        seen = set()
        out: List[Candidate] = []
        for listing in parse_listings(html, self.site):
            try:
                cand = to_candidate(listing, self.site)
            except Exception as e:
                logger.debug("{}: skipping listing {!r}: {}", self.site.label, listing.title, e)
                continue
            if cand.id in seen:
                continue
            seen.add(cand.id)
            out.append(cand)
            if len(out) >= max_results:
                break
        return out
