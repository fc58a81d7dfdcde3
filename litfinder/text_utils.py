import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

PRICE_PATTERN = re.compile(r"(\d{1,3}(?:,\d{2,3})+(?:\.\d+)?|\d+(?:\.\d+)?)")

INR_MARKERS = ("₹", "rs.", "rs ", "inr")
USD_MARKERS = ("$", "usd", "us$")


def parse_price(text: Optional[str], default_currency: str = "USD") -> Tuple[Optional[Decimal], str]:
    """
    Parse a display price into (amount, currency). Examples:
      '₹ 1,250' -> (Decimal('1250'), 'INR'), '$12.99' -> (Decimal('12.99'), 'USD'),
      'Out of stock' -> (None, default_currency)
    Indian digit grouping ('1,25,000') is handled since commas are simply dropped.
    """
    if not text:
        return None, default_currency
    t = text.strip().lower()
    currency = default_currency
    if any(m in t for m in INR_MARKERS):
        currency = "INR"
    elif any(m in t for m in USD_MARKERS):
        currency = "USD"
    if "free" in t and not PRICE_PATTERN.search(t):
        return Decimal("0"), currency
    m = PRICE_PATTERN.search(t)
    if not m:
        return None, currency
    try:
        return Decimal(m.group(1).replace(",", "")), currency
    except InvalidOperation:
        return None, currency


def excerpt(text: Optional[str], needle: str, width: int = 160) -> Optional[str]:
    """
    Return a short window of ``text`` centred on the first case-insensitive
    occurrence of ``needle``; None when the needle is absent.
    """
    if not text or not needle:
        return None
    idx = text.lower().find(needle.lower())
    if idx < 0:
        return None
    half = max(width // 2, len(needle))
    start = max(0, idx - half)
    end = min(len(text), idx + len(needle) + half)
    snippet = text[start:end].strip()
    if start > 0:
        snippet = "…" + snippet
    if end < len(text):
        snippet = snippet + "…"
    return snippet
