# litfinder/rerank.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from . import config
from .config import (
    ADMISSION_MIN_SCORE,
    EVIDENCE_FIELDS,
    Candidate,
    ScoredResult,
    ScoringStrategy,
)
from .evaluator import EvaluatorError, TextEvaluator, extract_json_payload
from .pipeline_types import Intent
from .text_utils import excerpt
from .utils.text_clean import query_terms

# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are an expert librarian specializing in Indian spiritual literature, including Vedanta, Yoga, Buddhism, Tantra, and related philosophical traditions.

Your task is to match a user's search query to books from a candidate list. You should:

1. Understand the user's intent - beginner texts, advanced philosophy, a specific tradition, a specific author, or practical guides.
2. Match books on conceptual relevance, not just keyword overlap.
3. Give each matching book a relevance score from 0 to 100.
4. Write a brief description (max 200 chars) of why the book is relevant.
5. If the score is below 80, explain in matchReason why the match may not be exact.

Grounding rules (mandatory):
- Set "isGrounded": true ONLY if a specific metadata field of that book contains direct evidence for the query's subject.
- When grounded, "citationLocation" must name that field: one of title, category, tableOfContents, keyTopics, theologicalTags, description (you may add an index, e.g. tableOfContents[2]).
- "citationSnippet" must quote the supporting text from that field verbatim.
- If you cannot point to such evidence, set "isGrounded": false. Never infer content a book's metadata does not show.

Respond in valid JSON only."""

RESPONSE_FORMAT = """{
  "interpretation": "Brief interpretation of what the user is looking for",
  "matches": [
    {
      "bookId": "book-id",
      "relevanceScore": 85,
      "isGrounded": true,
      "citationLocation": "tableOfContents[1]",
      "citationSnippet": "verbatim supporting text",
      "matchedTopics": ["Yoga"],
      "aiDescription": "Why this book matches (max 200 chars)",
      "matchReason": "Optional: reason if score is below 80"
    }
  ]
}"""

# evidence field -> accepted lowercase spellings of a citation location
_EVIDENCE_ALIASES: Dict[str, Tuple[str, ...]] = {
    f: (f.lower(), re.sub(r"(?<!^)(?=[A-Z])", "_", f).lower()) for f in EVIDENCE_FIELDS
}
_EVIDENCE_ALIASES["tableOfContents"] += ("toc",)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    cut = text[:limit]
    last_space = cut.rfind(" ")
    if last_space > int(limit * 0.8):
        cut = cut[:last_space]
    return cut + "…"


def candidate_summary(c: Candidate) -> Dict[str, Any]:
    """Normalized metadata only; raw provider payloads never reach the prompt."""
    out: Dict[str, Any] = {
        "id": c.id,
        "title": c.title,
        "author": c.author,
        "category": c.category,
        "description": _truncate(c.description, config.EVALUATOR_DESCRIPTION_CHARS),
        "keyTopics": list(c.key_topics),
        "theologicalTags": list(c.theological_tags),
        "language": c.language,
        "source": c.source_provider.value,
    }
    if c.table_of_contents:
        out["tableOfContents"] = list(c.table_of_contents)
    return out


def build_prompt(query: str, intent: Intent, candidates: Sequence[Candidate]) -> str:
    parsed = {
        "author": intent.author,
        "title": intent.title,
        "topics": sorted(intent.topics),
    }
    catalog = [candidate_summary(c) for c in candidates]
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f'User\'s search query: "{query}"\n\n'
        f"Parsed query hints (heuristic, may be wrong): {json.dumps(parsed, ensure_ascii=False)}\n\n"
        f"Candidate books:\n{json.dumps(catalog, indent=2, ensure_ascii=False)}\n\n"
        f"Return at most {config.RESULT_MAX} of the most relevant books in this exact JSON format:\n"
        f"{RESPONSE_FORMAT}\n\n"
        "Only return valid JSON, no additional text."
    )


# ---------------------------------------------------------------------------
# Grounded (evaluator-assisted) strategy
# ---------------------------------------------------------------------------


def _coerce_score(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return None
    return max(0, min(100, score))


def _evidence_field(location: Any) -> Optional[str]:
    """Resolve a citation location like 'tableOfContents[2]' to a field name."""
    if not isinstance(location, str):
        return None
    loc = location.strip().lower()
    if not loc:
        return None
    for field_name, spellings in _EVIDENCE_ALIASES.items():
        if any(loc.startswith(s) for s in spellings):
            return field_name
    return None


def _field_has_content(c: Candidate, field_name: str) -> bool:
    value = {
        "title": c.title,
        "category": c.category,
        "tableOfContents": c.table_of_contents,
        "keyTopics": c.key_topics,
        "theologicalTags": c.theological_tags,
        "description": c.description,
    }.get(field_name)
    return bool(value)


def _str_list(value: Any, limit: int = 10) -> Tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v).strip() for v in value if isinstance(v, (str, int)) and str(v).strip())[:limit]


def _opt_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class GroundedScorer:
    """
    Ask the evaluator to score candidates against an explicit groundedness
    contract, then enforce that contract locally:

    * a match without a citation naming a populated evidence field is ungrounded
    * ungrounded matches and matches scoring below 50 are dropped
    * unknown or repeated book ids are ignored

    Any transport error or unparseable output raises; the caller decides what
    to do next.
    """

    def __init__(self, evaluator: TextEvaluator, max_candidates: int = config.EVALUATOR_MAX_CANDIDATES) -> None:
        self.evaluator = evaluator
        self.max_candidates = max_candidates

    def score(
        self,
        query: str,
        intent: Intent,
        candidates: Sequence[Candidate],
    ) -> Tuple[List[ScoredResult], Optional[str]]:
        considered = list(candidates[: self.max_candidates])
        prompt = build_prompt(query, intent, considered)
        text = self.evaluator.generate(prompt)
        payload = extract_json_payload(text)

        matches = payload.get("matches")
        if not isinstance(matches, list):
            raise EvaluatorError("evaluator response has no 'matches' list")

        by_id = {c.id: c for c in considered}
        seen: set = set()
        results: List[ScoredResult] = []
        ungrounded = low = 0
        for m in matches:
            if not isinstance(m, dict):
                continue
            cid = str(m.get("bookId") or m.get("id") or "")
            cand = by_id.get(cid)
            if cand is None or cid in seen:
                continue
            score = _coerce_score(m.get("relevanceScore"))
            if score is None:
                continue
            seen.add(cid)

            field_name = _evidence_field(m.get("citationLocation"))
            grounded = (
                m.get("isGrounded") is True
                and field_name is not None
                and _field_has_content(cand, field_name)
            )
            if not grounded:
                ungrounded += 1
                continue
            if score < ADMISSION_MIN_SCORE:
                low += 1
                continue

            results.append(
                ScoredResult(
                    candidate=cand,
                    relevance_score=score,
                    is_grounded=True,
                    grounding_source="evaluator",
                    matched_topics=_str_list(m.get("matchedTopics")),
                    citation_snippet=_opt_str(m.get("citationSnippet")),
                    citation_location=m["citationLocation"].strip(),
                    match_reason=_opt_str(m.get("matchReason")),
                    ai_description=_opt_str(m.get("aiDescription")),
                )
            )

        logger.info(
            "Grounded scoring: {} admitted, {} ungrounded, {} below {}",
            len(results),
            ungrounded,
            low,
            ADMISSION_MIN_SCORE,
        )
        return results, _opt_str(payload.get("interpretation"))


# ---------------------------------------------------------------------------
# Keyword (deterministic) strategy
# ---------------------------------------------------------------------------

def query_words(query: str) -> List[str]:
    return query_terms(query, config.KEYWORD_MIN_WORD_LEN)


def _keyword_evidence(c: Candidate, words: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    fields = (
        ("title", c.title),
        ("category", c.category or ""),
        ("keyTopics", ", ".join(c.key_topics)),
        ("description", c.description),
    )
    for name, text in fields:
        for w in words:
            snippet = excerpt(text, w)
            if snippet:
                return name, snippet
    return None, None


class KeywordScorer:
    """Fixed-weight keyword overlap. Never claims the top of the scale."""

    def score_candidate(self, c: Candidate, words: Sequence[str]) -> int:
        text = c.searchable_text()
        title = c.title.lower()
        category = (c.category or "").lower()
        score = 0
        for w in words:
            if w not in text:
                continue
            score += config.KEYWORD_HIT_WEIGHT
            if w in title:
                score += config.KEYWORD_TITLE_BONUS
            if w in category:
                score += config.KEYWORD_CATEGORY_BONUS
        return min(score, config.KEYWORD_SCORE_CEILING)

    def score(self, query: str, intent: Intent, candidates: Sequence[Candidate]) -> List[ScoredResult]:
        words = query_words(query)
        if not words:
            return []
        results: List[ScoredResult] = []
        for c in candidates:
            score = self.score_candidate(c, words)
            if score < ADMISSION_MIN_SCORE:
                continue
            location, snippet = _keyword_evidence(c, words)
            topics = tuple(
                t for t in (*c.key_topics, *c.theological_tags) if any(w in t.lower() for w in words)
            )
            results.append(
                ScoredResult(
                    candidate=c,
                    relevance_score=score,
                    is_grounded=True,
                    grounding_source="provenance",
                    matched_topics=topics,
                    citation_snippet=snippet,
                    citation_location=location,
                    match_reason=config.KEYWORD_MATCH_REASON,
                )
            )
        logger.info("Keyword scoring: {} of {} candidates admitted", len(results), len(candidates))
        return results


# ---------------------------------------------------------------------------
# Strategy selection
# ---------------------------------------------------------------------------


@dataclass
class ScoringOutcome:
    results: List[ScoredResult]
    strategy: ScoringStrategy
    interpretation: Optional[str] = None


class RelevanceScorer:
    """
    Per request: try the grounded strategy once; on any failure switch to the
    keyword strategy for the rest of that request. No retries.
    """

    def __init__(
        self,
        evaluator: Optional[TextEvaluator] = None,
        keyword_scorer: Optional[KeywordScorer] = None,
        max_candidates: int = config.EVALUATOR_MAX_CANDIDATES,
    ) -> None:
        self.grounded = GroundedScorer(evaluator, max_candidates) if evaluator is not None else None
        self.keyword = keyword_scorer or KeywordScorer()

    def score(self, query: str, intent: Intent, candidates: Sequence[Candidate]) -> ScoringOutcome:
        if self.grounded is not None:
            if not candidates:
                return ScoringOutcome([], "grounded")
            try:
                results, interpretation = self.grounded.score(query, intent, candidates)
                return ScoringOutcome(results, "grounded", interpretation)
            except Exception as e:
                logger.warning("Grounded scoring failed ({}); falling back to keyword scoring", e)
        return ScoringOutcome(self.keyword.score(query, intent, candidates), "keyword")
