"""Best-effort parsing of a free-text query into author / title / topics.

This is a heuristic classifier, not a grammar: every rule is allowed to miss,
and the final fallback is always ``Intent(title=<cleaned query>)``.
"""

from __future__ import annotations

import re
from typing import FrozenSet, List, Optional, Tuple

from .constants import KNOWN_AUTHORS, SCRIPTURE_NAME_WORDS, SERIES_INDICATORS, TOPIC_KEYWORDS
from .pipeline_types import Intent
from .utils.text_clean import clean_query_text, strip_filler_words

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# Commas, colons and pipes always separate; dashes only when spaced out so
# hyphenated words stay whole.
_SEPARATOR_RE = re.compile(r"[,:|]|\s[-–—]+\s")
_BY_RE = re.compile(r"^(?P<title>.+?)\s+by\s+(?P<author>.+)$", re.IGNORECASE)
_TRAILING_SEP_RE = re.compile(r"[\s,:|\-–—]+$")

_KNOWN_AUTHORS_LONGEST_FIRST = sorted(KNOWN_AUTHORS, key=lambda a: -len(a))
_SERIES_RXES = [(ind, re.compile(r"\b" + re.escape(ind))) for ind in SERIES_INDICATORS]

SERIES_MIN_WORDS = 3


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def _split_segments(text: str) -> List[str]:
    return [p.strip() for p in _SEPARATOR_RE.split(text) if p and p.strip()]


def _match_by_pattern(text: str) -> Optional[Tuple[str, str]]:
    m = _BY_RE.match(text)
    if not m:
        return None
    title, author = m.group("title").strip(), m.group("author").strip()
    if not title or not author:
        return None
    return title, author


def _match_known_author(text: str) -> Optional[Tuple[str, Optional[str]]]:
    lower = text.lower()
    for name in _KNOWN_AUTHORS_LONGEST_FIRST:
        if not lower.startswith(name):
            continue
        # prefix must end on a word boundary ("oshong" is not "osho")
        if len(lower) > len(name) and lower[len(name)].isalnum():
            continue
        author = text[: len(name)].strip()
        rest = text[len(name):].strip()
        return author, (rest or None)
    return None


def _match_series(text: str) -> Optional[Tuple[str, str]]:
    if len(text.split()) < SERIES_MIN_WORDS:
        return None
    lower = text.lower()
    hits = []
    for _ind, rx in _SERIES_RXES:
        m = rx.search(lower)
        if m:
            hits.append(m.start())
    if not hits:
        return None
    idx = min(hits)
    title = text[idx:].strip()
    author = _TRAILING_SEP_RE.sub("", text[:idx]).strip()
    if all(w.lower() in SCRIPTURE_NAME_WORDS for w in author.split()):
        return None
    if author and title:
        return title, author
    return None


def extract_topics(text: str) -> FrozenSet[str]:
    """Subset of the topic vocabulary appearing as a substring of the text."""
    lower = (text or "").lower()
    return frozenset(t for t in TOPIC_KEYWORDS if t in lower)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def interpret(query: Optional[str]) -> Intent:
    """Parse a raw query into an Intent. Never raises."""
    cleaned = strip_filler_words(clean_query_text(query))
    topics = extract_topics(cleaned)
    if not cleaned:
        return Intent(title=None, topics=topics)

    segments = _split_segments(cleaned)
    if len(segments) >= 2:
        return Intent(
            author=segments[0],
            title=" ".join(segments[1:]),
            topics=topics,
            author_confident=True,
        )

    by = _match_by_pattern(cleaned)
    if by:
        title, author = by
        return Intent(author=author, title=title, topics=topics, author_confident=True)

    known = _match_known_author(cleaned)
    if known:
        author, title = known
        return Intent(author=author, title=title, topics=topics)

    series = _match_series(cleaned)
    if series:
        title, author = series
        return Intent(author=author, title=title, topics=topics)

    return Intent(title=cleaned, topics=topics)


__all__ = ["interpret", "extract_topics", "Intent"]
