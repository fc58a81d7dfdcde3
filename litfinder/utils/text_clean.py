# litfinder/utils/text_clean.py
from __future__ import annotations
import re
from typing import List

from ..constants import FILLER_WORDS

_FILLER_RE = re.compile(r"\b(?:" + "|".join(FILLER_WORDS) + r")\b", re.IGNORECASE)


def clean_query_text(q: str, max_len: int = 500) -> str:
    """
    Minimal, safe query normaliser shared by the API and the CLI:
    - collapse whitespace/newlines
    - trim
    - hard cap
    """
    q = "" if q is None else str(q)
    q = re.sub(r"\s+", " ", q).strip()
    if len(q) > max_len:
        q = q[:max_len]
    return q


def strip_filler_words(q: str) -> str:
    """Drop 'book' / 'books' / 'booklist' and re-collapse whitespace."""
    q = _FILLER_RE.sub(" ", q or "")
    return re.sub(r"\s+", " ", q).strip()


_EDGE_PUNCT_RE = re.compile(r"^[^\w]+|[^\w]+$")


def query_terms(q: str, min_len: int = 3) -> List[str]:
    """Lowercased, de-duplicated whitespace tokens with edge punctuation stripped."""
    terms: List[str] = []
    for raw in strip_filler_words(clean_query_text(q)).lower().split():
        t = _EDGE_PUNCT_RE.sub("", raw)
        if len(t) >= min_len and t not in terms:
            terms.append(t)
    return terms
