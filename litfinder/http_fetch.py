from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx
from loguru import logger

from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_MAX_REDIRECTS,
    HTTP_MAX_BYTES,
    HTTP_USER_AGENT,
)


class ProviderHTTPError(RuntimeError):
    """Non-success status, oversized body or undecodable payload from a provider."""


def http_client(user_agent: str = HTTP_USER_AGENT, extra_headers: Optional[Mapping[str, str]] = None) -> httpx.Client:
    headers: Dict[str, str] = {"User-Agent": user_agent}
    if extra_headers:
        headers.update(extra_headers)
    return httpx.Client(
        headers=headers,
        follow_redirects=True,
        timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        max_redirects=HTTP_MAX_REDIRECTS,
    )


def _checked_get(client: httpx.Client, url: str, params: Optional[Mapping[str, Any]], label: str) -> httpx.Response:
    r = client.get(url, params=params)
    if r.status_code >= 400:
        raise ProviderHTTPError(f"{label}: HTTP {r.status_code} for {url}")
    if len(r.content) > HTTP_MAX_BYTES:
        raise ProviderHTTPError(f"{label}: {len(r.content)} bytes > {HTTP_MAX_BYTES} limit")
    return r


def get_json(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    label: str = "provider",
    user_agent: str = HTTP_USER_AGENT,
) -> Any:
    """
    GET a JSON document with the shared hardening:
      - connect/read timeouts, bounded redirects
      - size cap
    Raises httpx errors or ProviderHTTPError; adapters turn these into [].
    """
    with http_client(user_agent) as client:
        r = _checked_get(client, url, params, label)
        try:
            return r.json()
        except ValueError as e:
            raise ProviderHTTPError(f"{label}: invalid JSON from {url}: {e}") from e


def get_html(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    label: str = "provider",
    user_agent: str = HTTP_USER_AGENT,
) -> str:
    """GET a markup page with the same hardening as get_json."""
    headers = {"Accept": "text/html,application/xhtml+xml", "Accept-Language": "en-US,en;q=0.9"}
    with http_client(user_agent, headers) as client:
        r = _checked_get(client, url, params, label)
        logger.debug("{}: fetched {} bytes from {}", label, len(r.content), url)
        return r.text
