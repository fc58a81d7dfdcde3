from __future__ import annotations

"""
FastAPI application for literature discovery.

- POST /api/search        grounded search across all providers
- GET  /api/books         catalog browsing, optionally by source platform
- GET  /api/books/{id}    single catalog entry
- GET  /api/sources       source platform metadata
- GET  /health            liveness
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ._singletons import get_catalog
from .config import (
    Candidate,
    HealthResponse,
    SearchRequest,
    SearchResponse,
    SourcePlatform,
    SourceProvider,
    configure_logging,
)
from .constants import SOURCE_PLATFORMS
from .evaluator import build_evaluator_from_env
from .search import QueryValidationError, SearchEngine, SearchFailedError

app = FastAPI(title="litfinder")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_engine: Optional[SearchEngine] = None


def get_engine() -> SearchEngine:
    global _engine
    if _engine is None:
        _engine = SearchEngine(get_catalog(), evaluator=build_evaluator_from_env())
    return _engine


@app.on_event("startup")
def startup_event() -> None:
    configure_logging()
    logger.info("Starting app warmup...")
    engine = get_engine()
    logger.info(
        "Warmup complete: {} catalog entries, {} adapters",
        len(engine.catalog),
        len(engine.adapters),
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.post("/api/search", response_model=SearchResponse)
def search(req: SearchRequest) -> SearchResponse:
    try:
        return get_engine().search(
            req.query,
            sources=req.sources,
            min_price=req.min_price,
            max_price=req.max_price,
            language=req.language,
        )
    except QueryValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SearchFailedError:
        raise HTTPException(status_code=500, detail="Search failed. Please try again.")


def _parse_source(source: Optional[str]) -> Optional[SourceProvider]:
    if not source:
        return None
    try:
        return SourceProvider(source)
    except ValueError:
        logger.info("Ignoring unknown source filter {!r}", source)
        return None


@app.get("/api/books", response_model=List[Candidate])
def list_books(source: Optional[str] = None) -> List[Candidate]:
    return get_engine().list_candidates(_parse_source(source))


@app.get("/api/books/{book_id}", response_model=Candidate)
def get_book(book_id: str) -> Candidate:
    book = get_engine().get_candidate(book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@app.get("/api/sources", response_model=List[SourcePlatform])
def list_sources() -> List[SourcePlatform]:
    return [SourcePlatform.model_validate(p) for p in SOURCE_PLATFORMS]
