from __future__ import annotations

import json
from pathlib import Path
from typing import List

from loguru import logger
from pydantic import TypeAdapter

from .config import CATALOG_SEED_PATH, Candidate
from .normalize import count_by_provider

_CATALOG_ADAPTER = TypeAdapter(List[Candidate])


# ---------------------------
# Seed loading
# ---------------------------

def parse_catalog_records(records: object) -> List[Candidate]:
    """
    Validate raw seed records (camelCase or snake_case keys) into Candidates.

    The seed is trusted data shipped with the package, so a malformed record
    or a repeated id is an error rather than something to skip.
    """
    candidates = _CATALOG_ADAPTER.validate_python(records)
    seen = set()
    for c in candidates:
        if c.id in seen:
            raise ValueError(f"Duplicate catalog id: {c.id}")
        seen.add(c.id)
    return candidates


def load_catalog_seed(path: Path = CATALOG_SEED_PATH) -> List[Candidate]:
    """
    Load the curated catalog from its JSON seed file.
    """
    logger.info("Loading catalog seed from {}", path)
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    candidates = parse_catalog_records(records)
    logger.info("Loaded {} catalog entries: {}", len(candidates), count_by_provider(candidates))
    return candidates


# ---------------------------
# CLI entrypoint
# ---------------------------

if __name__ == "__main__":
    # Validate the shipped seed:
    # python -m litfinder.catalog_build
    load_catalog_seed()
