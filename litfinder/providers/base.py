"""Common adapter contract: every provider fails soft."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Sequence, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from ..config import Candidate
from ..pipeline_types import Intent

RawT = TypeVar("RawT", bound=BaseModel)


class ProviderAdapter(ABC):
    """
    Base class for provider adapters.

    Subclasses implement ``_fetch``; callers only ever use ``fetch``, which
    converts any transport error, bad status or malformed payload into an
    empty list and logs it.
    """

    name: str = "provider"

    def fetch(self, query: str, intent: Intent, max_results: int) -> List[Candidate]:
        if max_results <= 0:
            return []
        try:
            out = list(self._fetch(query, intent, max_results))
        except Exception as e:
            logger.warning("{}: fetch failed for {!r}: {}", self.name, query, e)
            return []
        return out[:max_results]

    @abstractmethod
    def _fetch(self, query: str, intent: Intent, max_results: int) -> Iterable[Candidate]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def validate_records(model: Type[RawT], items: Sequence[Any] | None, label: str) -> List[RawT]:
    """Validate raw provider records one by one; invalid ones are skipped."""
    out: List[RawT] = []
    for raw in items or ():
        try:
            out.append(model.model_validate(raw))
        except ValidationError as e:
            logger.debug("{}: skipping malformed record: {}", label, e.errors()[:1])
    return out
