# litfinder/utils/urls.py
from __future__ import annotations
from typing import Optional
from urllib.parse import urljoin

__all__ = ["upgrade_to_https", "absolutize"]


def upgrade_to_https(u: Optional[str]) -> Optional[str]:
    """
    Rewrite a plain-HTTP URL to HTTPS. Protocol-relative URLs ('//host/x')
    get an explicit scheme. Anything else passes through.
    """
    if not u:
        return None
    u = str(u).strip()
    if not u:
        return None
    if u.startswith("http://"):
        return "https://" + u[len("http://"):]
    if u.startswith("//"):
        return "https:" + u
    return u


def absolutize(base: str, href: Optional[str]) -> Optional[str]:
    """Resolve a scraped (possibly relative) link against the site base."""
    if not href:
        return None
    href = str(href).strip()
    if not href or href.startswith(("javascript:", "#")):
        return None
    return upgrade_to_https(urljoin(base, href))
