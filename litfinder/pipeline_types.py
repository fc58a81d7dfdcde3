"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from .config import Candidate


@dataclass(frozen=True)
class Intent:
    """Structured reading of a free-text query.

    ``author_confident`` is True only when the author came from an explicit
    delimiter ("Osho, meditation") or an explicit "X by Y" phrase.
    """

    title: Optional[str] = None
    author: Optional[str] = None
    topics: FrozenSet[str] = frozenset()
    author_confident: bool = False


@dataclass
class ProviderOutcome:
    """What a single adapter contributed to one aggregation run."""

    provider: str
    candidates: List[Candidate] = field(default_factory=list)
    elapsed: float = 0.0
    failed: bool = False
