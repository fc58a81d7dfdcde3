"""Text-generation evaluator used by the grounded scorer.

The scorer only needs ``generate(prompt) -> str``. ``OpenAIEvaluator`` talks
to any OpenAI-compatible chat endpoint (set ``LITFINDER_EVALUATOR_BASE_URL``
to point it elsewhere). The evaluator is built explicitly and handed to the
scorer; nothing here is module-global.

Environment variables:
  LITFINDER_EVALUATOR_API_KEY / OPENAI_API_KEY: credentials (no key = no evaluator)
  LITFINDER_EVALUATOR_BASE_URL: alternative endpoint
  LITFINDER_EVALUATOR_MODEL: model name (default: gpt-4o-mini)
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Protocol

import openai
from loguru import logger
from openai import OpenAI

from . import config

_FENCED_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class EvaluatorError(RuntimeError):
    """Transport failure or unusable evaluator output."""


class TextEvaluator(Protocol):
    def generate(self, prompt: str) -> str:
        ...


class OpenAIEvaluator:
    """Chat-completions client with a single user turn per request."""

    def __init__(
        self,
        api_key: str,
        model: str = config.EVALUATOR_MODEL,
        base_url: Optional[str] = None,
        timeout: float = config.EVALUATOR_TIMEOUT,
        client: Any = None,
    ) -> None:
        self.model = model
        # retries are disabled: one failure moves the request to the keyword path
        self._client = client or OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=config.EVALUATOR_TEMPERATURE,
            )
        except openai.OpenAIError as e:
            raise EvaluatorError(f"evaluator request failed: {e}") from e
        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise EvaluatorError("evaluator returned no choices") from e
        if not text:
            raise EvaluatorError("evaluator returned an empty message")
        return text

    def __repr__(self) -> str:
        return f"OpenAIEvaluator(model={self.model!r})"


def build_evaluator_from_env() -> Optional[OpenAIEvaluator]:
    """Return a configured evaluator, or None when no API key is set."""
    if not config.EVALUATOR_API_KEY:
        logger.warning("No evaluator API key configured; searches will use keyword scoring")
        return None
    evaluator = OpenAIEvaluator(
        api_key=config.EVALUATOR_API_KEY,
        model=config.EVALUATOR_MODEL,
        base_url=config.EVALUATOR_BASE_URL,
    )
    logger.info("Evaluator ready: {}", evaluator)
    return evaluator


def extract_json_payload(text: str) -> Dict[str, Any]:
    """
    Pull a JSON object out of free-form model output.

    Order of attempts:
      1. the first fenced code block (```json ... ``` or plain ```)
      2. the outermost {...} span
    Anything that does not decode to a JSON object raises EvaluatorError.
    """
    if not text or not text.strip():
        raise EvaluatorError("empty evaluator response")

    fenced = _FENCED_RE.search(text)
    if fenced:
        candidate = fenced.group(1).strip()
    else:
        obj = _OBJECT_RE.search(text)
        if not obj:
            raise EvaluatorError("no JSON object found in evaluator response")
        candidate = obj.group(0)

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise EvaluatorError(f"malformed JSON from evaluator: {e}") from e
    if not isinstance(payload, dict):
        raise EvaluatorError(f"expected a JSON object, got {type(payload).__name__}")
    return payload
