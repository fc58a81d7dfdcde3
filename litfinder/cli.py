from __future__ import annotations

"""
Command-line search.

Usage:
  python -m litfinder.cli "Osho, meditation techniques"
  python -m litfinder.cli "yoga sutras" --source exotic_india --source gutenberg --json
"""

import argparse
import json
import sys
from typing import List, Optional

from loguru import logger

from ._singletons import get_catalog
from .config import SearchResponse, SourceProvider, configure_logging
from .evaluator import build_evaluator_from_env
from .search import QueryValidationError, SearchEngine, SearchFailedError


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="litfinder", description="Search spiritual literature across providers.")
    ap.add_argument("query", help="Free-text query, e.g. 'Patanjali Yoga Sutras'")
    ap.add_argument(
        "--source",
        action="append",
        choices=[p.value for p in SourceProvider],
        help="Restrict to a source (repeatable). Default: all sources.",
    )
    ap.add_argument("--language", default=None, help="Keep only results in this language")
    ap.add_argument("--no-evaluator", action="store_true", help="Skip the AI evaluator and use keyword scoring")
    ap.add_argument("--json", action="store_true", help="Print the raw JSON response")
    return ap


def format_response(resp: SearchResponse) -> str:
    lines = [f"{resp.total_results} results for {resp.query!r} ({resp.scoring_strategy}, {resp.search_time:.2f}s)"]
    if resp.interpretation:
        lines.append(f"  {resp.interpretation}")
    for i, r in enumerate(resp.results, 1):
        c = r.candidate
        by = f" by {c.author}" if c.author else ""
        price = "" if c.price is None else f" [{c.price} {c.currency}]"
        lines.append(f"{i:2d}. {r.relevance_score:3d} {r.confidence_tier:<9} {c.title}{by}{price}")
        if r.citation_location:
            lines.append(f"      cited: {r.citation_location}: {r.citation_snippet or ''}")
        lines.append(f"      {c.source_provider.value}: {c.source_url}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    evaluator = None if args.no_evaluator else build_evaluator_from_env()
    engine = SearchEngine(get_catalog(), evaluator=evaluator)
    sources = [SourceProvider(s) for s in args.source] if args.source else None
    try:
        resp = engine.search(args.query, sources=sources, language=args.language)
    except QueryValidationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except SearchFailedError as e:
        logger.error("CLI search failed: {}", e)
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(resp.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    else:
        print(format_response(resp))
    return 0


if __name__ == "__main__":
    sys.exit(main())
