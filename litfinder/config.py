from __future__ import annotations

import os
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Annotated, Dict, List, Literal, Optional, Tuple

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import DEFAULT_LANGUAGE


# ---------------------------
# Paths
# ---------------------------

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent

DATA_DIR = PACKAGE_DIR / "data"
CATALOG_SEED_PATH = DATA_DIR / "catalog_seed.json"


# ---------------------------
# Sources
# ---------------------------

class SourceProvider(str, Enum):
    EXOTIC_INDIA = "exotic_india"
    GITA_PRESS = "gita_press"
    CHAUKHAMBA = "chaukhamba"
    ARCHIVE_ORG = "archive_org"
    OPEN_LIBRARY = "open_library"
    GOOGLE_BOOKS = "google_books"
    GUTENBERG = "gutenberg"
    EXOTIC_INDIA_STORE = "exotic_india_store"
    BOOKSWAGON = "bookswagon"


# Platforms whose records live in the curated in-memory catalog.
CATALOG_PLATFORMS = frozenset(
    {
        SourceProvider.EXOTIC_INDIA,
        SourceProvider.GITA_PRESS,
        SourceProvider.CHAUKHAMBA,
        SourceProvider.ARCHIVE_ORG,
    }
)

# Adapter key used for the catalog in caps / priority tables.
CATALOG_ADAPTER = "catalog"

# Broad web sources first, curated catalog last. Only used to break score ties.
PROVIDER_PRIORITY: List[str] = [
    SourceProvider.EXOTIC_INDIA_STORE.value,
    SourceProvider.BOOKSWAGON.value,
    SourceProvider.OPEN_LIBRARY.value,
    SourceProvider.GOOGLE_BOOKS.value,
    SourceProvider.GUTENBERG.value,
    CATALOG_ADAPTER,
]

PROVIDER_RESULT_CAPS: Dict[str, int] = {
    SourceProvider.EXOTIC_INDIA_STORE.value: 12,
    SourceProvider.BOOKSWAGON.value: 12,
    SourceProvider.OPEN_LIBRARY.value: 15,
    SourceProvider.GOOGLE_BOOKS.value: 15,
    SourceProvider.GUTENBERG.value: 12,
    CATALOG_ADAPTER: 10,
}


# ---------------------------
# Query limits / result size policy
# ---------------------------

QUERY_MIN_CHARS = 1
QUERY_MAX_CHARS = 500

RESULT_MAX = int(os.getenv("LITFINDER_RESULT_MAX", "10"))

MAX_INPUT_CHARS = 20_000  # input size cap for free text fields


# ---------------------------
# Scoring thresholds (fixed)
# ---------------------------

ADMISSION_MIN_SCORE = 50

TIER_STRONG_MIN = 90
TIER_GOOD_MIN = 70
TIER_POTENTIAL_MIN = 50

# Keyword fallback weights
KEYWORD_HIT_WEIGHT = 20
KEYWORD_TITLE_BONUS = 15
KEYWORD_CATEGORY_BONUS = 10
KEYWORD_SCORE_CEILING = 95
KEYWORD_MIN_WORD_LEN = 3
KEYWORD_MATCH_REASON = "Matched using keyword search (AI evaluator unavailable)"


# ---------------------------
# Evaluator (text generation)
# ---------------------------

EVALUATOR_API_KEY = os.getenv("LITFINDER_EVALUATOR_API_KEY") or os.getenv("OPENAI_API_KEY")
EVALUATOR_BASE_URL = os.getenv("LITFINDER_EVALUATOR_BASE_URL")  # any OpenAI-compatible endpoint
EVALUATOR_MODEL = os.getenv("LITFINDER_EVALUATOR_MODEL", "gpt-4o-mini")
EVALUATOR_TIMEOUT = float(os.getenv("LITFINDER_EVALUATOR_TIMEOUT", "30"))
EVALUATOR_TEMPERATURE = 0.0

EVALUATOR_MAX_CANDIDATES = 60
EVALUATOR_DESCRIPTION_CHARS = 400

# Metadata fields the evaluator may cite as evidence.
EVIDENCE_FIELDS = (
    "title",
    "category",
    "tableOfContents",
    "keyTopics",
    "theologicalTags",
    "description",
)


# ---------------------------
# Outbound HTTP hardening
# ---------------------------

HTTP_CONNECT_TIMEOUT = float(os.getenv("LITFINDER_HTTP_CONNECT_TIMEOUT", "3.0"))
HTTP_READ_TIMEOUT = float(os.getenv("LITFINDER_HTTP_READ_TIMEOUT", "8.0"))
HTTP_MAX_REDIRECTS = 3
HTTP_MAX_BYTES = 2_000_000  # 2 MB cap per response

# Orchestrator backstop in case a transport timeout is not honoured. Covers
# the longest adapter path: a structured request plus one free-text retry.
ADAPTER_MAX_REQUESTS = 2
FANOUT_DEADLINE_SECONDS = ADAPTER_MAX_REQUESTS * (HTTP_CONNECT_TIMEOUT + HTTP_READ_TIMEOUT) + 2.0

HTTP_USER_AGENT = "litfinder/1.0 (+https://example.com; contact=search@placeholder.com)"

# Retail listing pages serve reduced markup to unknown agents.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")


# ---------------------------
# Logging / observability
# ---------------------------

LOG_DIR = Path(os.getenv("LITFINDER_LOG_DIR", str(PROJECT_ROOT / "logs")))
LOG_LEVEL = os.getenv("LITFINDER_LOG_LEVEL", "INFO")

_LOG_SINK_ID: Optional[int] = None


def configure_logging() -> None:
    """Add the rotating file sink once per process."""
    global _LOG_SINK_ID
    if _LOG_SINK_ID is not None:
        return
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    _LOG_SINK_ID = logger.add(
        LOG_DIR / "litfinder.log",
        level=LOG_LEVEL,
        rotation="10 MB",
        retention=5,
    )


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

Price = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]
Currency = Literal["INR", "USD"]
ConfidenceTier = Literal["strong", "good", "potential", "weak"]
GroundingSource = Literal["evaluator", "provenance"]
ScoringStrategy = Literal["grounded", "keyword"]


def confidence_tier_for(score: int) -> ConfidenceTier:
    """Map a relevance score onto its fixed confidence band."""
    if score >= TIER_STRONG_MIN:
        return "strong"
    if score >= TIER_GOOD_MIN:
        return "good"
    if score >= TIER_POTENTIAL_MIN:
        return "potential"
    return "weak"


def _ordered_unique(values) -> Tuple[str, ...]:
    seen = set()
    out: List[str] = []
    for v in values or ():
        s = str(v).strip()
        key = s.casefold()
        if not s or key in seen:
            continue
        seen.add(key)
        out.append(s)
    return tuple(out)


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Candidate(_ApiModel):
    """
    Canonical literature record. Every provider is normalized into this shape.
    The id is provider-prefixed so it is unique within one aggregation run.
    """

    id: str
    title: str
    author: Optional[str] = None
    description: str = ""
    source_provider: SourceProvider
    source_url: str
    price: Optional[Price] = None  # None = unknown / not applicable, 0 = free
    currency: Currency = "USD"
    is_available: bool = True
    language: str = DEFAULT_LANGUAGE
    category: Optional[str] = None
    image_url: Optional[str] = None
    key_topics: Tuple[str, ...] = ()
    theological_tags: Tuple[str, ...] = ()
    table_of_contents: Optional[Tuple[str, ...]] = None

    @field_validator("key_topics", "theological_tags", mode="before")
    @classmethod
    def _as_ordered_set(cls, v):
        return _ordered_unique(v)

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.title.casefold().strip(), (self.author or "").casefold().strip())

    @property
    def is_catalog(self) -> bool:
        return self.source_provider in CATALOG_PLATFORMS

    def searchable_text(self) -> str:
        bits = [
            self.title,
            self.author or "",
            self.description,
            self.category or "",
            " ".join(self.key_topics),
        ]
        return " ".join(b for b in bits if b).lower()


class ScoredResult(_ApiModel):
    """A Candidate wrapped with its score and grounding evidence."""

    candidate: Candidate
    relevance_score: int = Field(ge=0, le=100)
    is_grounded: bool
    grounding_source: GroundingSource
    matched_topics: Tuple[str, ...] = ()
    citation_snippet: Optional[str] = None
    citation_location: Optional[str] = None
    match_reason: Optional[str] = None
    ai_description: Optional[str] = None

    @computed_field(alias="confidenceTier")  # type: ignore[misc]
    @property
    def confidence_tier(self) -> ConfidenceTier:
        return confidence_tier_for(self.relevance_score)


class SearchResponse(_ApiModel):
    """
    Response body for POST /api/search.
    """

    results: Tuple[ScoredResult, ...]
    query: str
    search_time: float
    scoring_strategy: ScoringStrategy
    interpretation: Optional[str] = None

    @computed_field(alias="totalResults")  # type: ignore[misc]
    @property
    def total_results(self) -> int:
        return len(self.results)


class SearchRequest(_ApiModel):
    """
    Request body for POST /api/search.
    """

    query: str = Field(..., min_length=QUERY_MIN_CHARS, max_length=QUERY_MAX_CHARS)
    sources: Optional[List[SourceProvider]] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)
    language: Optional[str] = None

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Query must be non-empty")
        return v


class SourcePlatform(_ApiModel):
    id: SourceProvider
    name: str
    description: str
    base_url: str
    logo_color: str


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
