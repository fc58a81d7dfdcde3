"""Curated in-memory catalog adapter."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import CATALOG_ADAPTER, CATALOG_PLATFORMS, KEYWORD_MIN_WORD_LEN, Candidate, SourceProvider
from ..pipeline_types import Intent
from ..utils.text_clean import clean_query_text, query_terms, strip_filler_words
from .base import ProviderAdapter


def _catalog_text(c: Candidate) -> str:
    return " ".join(b for b in (c.title, c.author or "", c.description, c.category or "") if b).lower()


class CatalogAdapter(ProviderAdapter):
    """
    Substring search over the static seed, optionally restricted to a set of
    source platforms. Full-query matches come first, then candidates by the
    number of query terms they contain; ties keep catalog order.
    """

    name = CATALOG_ADAPTER

    def __init__(
        self,
        catalog: Sequence[Candidate],
        platforms: Optional[Iterable[SourceProvider]] = None,
    ) -> None:
        self._catalog = tuple(catalog)
        self._platforms = frozenset(platforms) if platforms else None

    def restricted_to(self, platforms: Optional[Iterable[SourceProvider]]) -> "CatalogAdapter":
        chosen = [p for p in (platforms or ()) if p in CATALOG_PLATFORMS]
        return CatalogAdapter(self._catalog, chosen or None)

    def list_candidates(self, platform: Optional[SourceProvider] = None) -> List[Candidate]:
        return [
            c
            for c in self._catalog
            if (platform is None or c.source_provider == platform)
            and (self._platforms is None or c.source_provider in self._platforms)
        ]

    def _fetch(self, query: str, intent: Intent, max_results: int) -> List[Candidate]:
        pool = self.list_candidates()
        phrase = strip_filler_words(clean_query_text(query)).lower()
        terms = query_terms(query, KEYWORD_MIN_WORD_LEN)
        if not phrase:
            return []

        scored: List[Tuple[int, int, Candidate]] = []
        for pos, cand in enumerate(pool):
            text = _catalog_text(cand)
            if phrase in text:
                rank = len(terms) + 1
            else:
                rank = sum(1 for t in terms if t in text)
            if rank > 0:
                scored.append((-rank, pos, cand))

        scored.sort(key=lambda x: (x[0], x[1]))
        return [c for _, _, c in scored[:max_results]]
