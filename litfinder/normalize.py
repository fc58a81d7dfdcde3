from __future__ import annotations

"""
Normalisation helpers shared by every provider adapter, plus the
cross-provider de-duplication step.

Public helpers:

* basic_clean(text) -> str
    Strip HTML, normalise unicode and whitespace, cap length.

* map_language(code) -> str
    Provider language code (two- or three-letter) to a readable name.

* extract_theological_tags(text, categories=()) -> list[str]
    Fixed-vocabulary concept tags, title-cased, in vocabulary order.

* merge_provider_results(results_by_provider) -> list[Candidate]
    Flatten in provider priority order and drop (title, author) duplicates.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import re
import unicodedata

from bs4 import BeautifulSoup
from loguru import logger

from . import config
from .config import Candidate
from .constants import (
    DEFAULT_LANGUAGE,
    LANGUAGE_CODES_2,
    LANGUAGE_CODES_3,
    MAX_THEOLOGICAL_TAGS,
    THEOLOGICAL_CONCEPTS,
)

# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def strip_html(text: str) -> str:
    if not text:
        return ""
    if "<" not in text:
        return text
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text(" ", strip=True)


def _normalise_unicode(text: str) -> str:
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("‘", "'").replace("’", "'")
    text = text.replace("“", '"').replace("”", '"')
    return text


def clamp_text_length(text: str, limit: int = config.MAX_INPUT_CHARS) -> str:
    return text[:limit] if len(text) > limit else text


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def basic_clean(text: str | None) -> str:
    """Light-weight clean for provider fields.

    * strips HTML
    * normalises unicode and whitespace
    * truncates excessively long inputs
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)

    text = clamp_text_length(text)
    text = strip_html(text)
    text = _normalise_unicode(text)

    text = text.replace("\r", " ").replace("\n", " ").replace("\t", " ")
    text = re.sub(r"\s+", " ", text).strip()
    return text


def map_language(code: Optional[str]) -> str:
    """Map 'en' / 'eng' style codes to names; unknown codes pass through uppercased."""
    if not code:
        return DEFAULT_LANGUAGE
    c = str(code).strip().lower()
    if not c:
        return DEFAULT_LANGUAGE
    if c in LANGUAGE_CODES_2:
        return LANGUAGE_CODES_2[c]
    if c in LANGUAGE_CODES_3:
        return LANGUAGE_CODES_3[c]
    return c.upper()


def extract_theological_tags(text: str | None, categories: Sequence[str] = ()) -> List[str]:
    """Scan text against the concept vocabulary and append cleaned categories.

    Categories arrive as 'Religion / Hinduism / Sacred Writings'; only the part
    after the first slash-delimited head is kept.
    """
    tags: List[str] = []
    lower = (text or "").lower()
    for concept in THEOLOGICAL_CONCEPTS:
        if concept in lower:
            tags.append(concept[:1].upper() + concept[1:])

    for cat in categories or ():
        clean_cat = re.sub(r"^[^/]+/\s*", "", str(cat)).strip()
        if clean_cat and clean_cat not in tags:
            tags.append(clean_cat)

    return tags[:MAX_THEOLOGICAL_TAGS]


def merge_provider_results(
    results_by_provider: Mapping[str, Iterable[Candidate]],
    priority: Sequence[str] = tuple(config.PROVIDER_PRIORITY),
) -> List[Candidate]:
    """Flatten provider results and drop (title, author) duplicates.

    Providers are visited in ``priority`` order (unknown providers last, in
    mapping order); within a provider the discovery order is kept. The first
    candidate seen for a key wins and later duplicates are discarded without
    merging any of their fields.
    """
    order = [p for p in priority if p in results_by_provider]
    order += [p for p in results_by_provider if p not in order]

    seen_keys = set()
    seen_ids = set()
    out: List[Candidate] = []
    dropped = 0
    for provider in order:
        for cand in results_by_provider.get(provider) or ():
            key = cand.dedup_key
            if key in seen_keys or cand.id in seen_ids:
                dropped += 1
                continue
            seen_keys.add(key)
            seen_ids.add(cand.id)
            out.append(cand)

    if dropped:
        logger.info("Dedup removed {} duplicate candidates ({} kept)", dropped, len(out))
    return out


def count_by_provider(candidates: Iterable[Candidate]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for c in candidates:
        counts[c.source_provider.value] = counts.get(c.source_provider.value, 0) + 1
    return counts
