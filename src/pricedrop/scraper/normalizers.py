"""
Price / Text Normalizers
========================
Pure functions that turn raw matched text into typed field values.

None of these raise on bad input: a value that cannot be parsed comes back
as ``None`` so the selector cascade can move on to the next candidate.
"""

from __future__ import annotations

import math
import re

from pricedrop.scraper.models import DEFAULT_CURRENCY, PriceParser

# ── Regex Patterns ─────────────────────────────────────────────────────

# First run of digits and separators; a space only counts when a 3-digit group follows ("1 299,00").
_PRICE_TOKEN = re.compile(r"\d(?:[\d.,]|\s(?=\d{3}(?!\d)))*")
_GROUPED_THOUSANDS = re.compile(r"^\d{1,3}(?:[.,]\d{3})+$")
_WHITESPACE = re.compile(r"\s+")

# Matched against lower-cased text, so schema.org URLs ("…/OutOfStock") hit too.
_OUT_OF_STOCK = re.compile(
    r"out\s*of\s*stock|sold\s*out|unavailable|not\s+available|"
    r"no\s+longer\s+available|discontinued",
    re.IGNORECASE,
)

_CURRENCY_SYMBOLS: dict[str, str] = {
    "US$": "USD",
    "C$": "CAD",
    "CA$": "CAD",
    "A$": "AUD",
    "AU$": "AUD",
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
}
_ISO_CODE = re.compile(r"[A-Za-z]{3}")


def _price_token(raw_text: str) -> str:
    """First number-looking run in the text, stripped of spaces and stray separators."""
    match = _PRICE_TOKEN.search(raw_text or "")
    if not match:
        return ""
    return _WHITESPACE.sub("", match.group(0)).strip(".,")


def _to_price(normalized: str) -> float | None:
    try:
        value = float(normalized)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def default_price_parser(raw_text: str) -> float | None:
    """
    Parse prices written with either separator convention.

    "$1,299.00" → 1299.0, "1.299,00 €" → 1299.0, "1,299" → 1299.0,
    "19,99" → 19.99, "1,299." → 1299.0. Zero and unparseable text → None.
    """
    sanitized = _price_token(raw_text)
    if not sanitized or not any(ch.isdigit() for ch in sanitized):
        return None

    has_comma = "," in sanitized
    has_dot = "." in sanitized

    if has_comma and has_dot:
        if sanitized.rfind(",") > sanitized.rfind("."):
            # 1.234,56
            normalized = sanitized.replace(".", "").replace(",", ".")
        else:
            # 1,234.56
            normalized = sanitized.replace(",", "")
    elif has_comma:
        if _GROUPED_THOUSANDS.match(sanitized):
            normalized = sanitized.replace(",", "")
        else:
            normalized = sanitized.replace(",", ".")
    elif sanitized.count(".") > 1:
        normalized = sanitized.replace(".", "")
    else:
        normalized = sanitized

    return _to_price(normalized)


def european_price_parser(raw_text: str) -> float | None:
    """Parse prices that always use "." for thousands and "," for decimals."""
    sanitized = _price_token(raw_text)
    if not sanitized:
        return None
    return _to_price(sanitized.replace(".", "").replace(",", "."))


def parse_price(raw_text: str | None, parser: PriceParser | None = None) -> float | None:
    """Run a store's price parser, falling back to the default one. Never raises."""
    if not isinstance(raw_text, str) or not raw_text:
        return None
    parse = parser or default_price_parser
    try:
        return parse(raw_text)
    except (ValueError, TypeError, ArithmeticError):
        return None


def parse_availability(raw_text: str | None) -> bool:
    """
    False only for recognized out-of-stock phrases.

    No signal at all counts as in stock: a missing availability badge must
    not stop a product from being tracked.
    """
    if not raw_text:
        return True
    return not _OUT_OF_STOCK.search(raw_text)


def availability_signal(raw_text: str | None) -> bool | None:
    """Cascade normalizer: empty text is "no signal" (None), anything else is parsed."""
    if not isinstance(raw_text, str) or not raw_text.strip():
        return None
    return parse_availability(raw_text)


def currency_from_symbol(symbol: str | None) -> str | None:
    """
    Map a symbol or ISO code to an ISO-4217 code; None if unrecognized.

    Any three-letter code is taken as stated ("sek" → "SEK"). Non-string
    input (e.g. a schema.org Currency object) is unrecognized.
    """
    if not isinstance(symbol, str) or not symbol:
        return None
    cleaned = _WHITESPACE.sub("", symbol)
    if _ISO_CODE.fullmatch(cleaned):
        return cleaned.upper()
    for sym, code in _CURRENCY_SYMBOLS.items():
        if sym in cleaned:
            return code
    return None


def parse_currency_symbol(symbol: str | None) -> str:
    """Map a currency symbol to its ISO-4217 code; unmapped symbols → USD."""
    return currency_from_symbol(symbol) or DEFAULT_CURRENCY


def clean_text(raw_text: str | None) -> str | None:
    """Collapse whitespace; empty results become None."""
    if not isinstance(raw_text, str):
        return None
    text = _WHITESPACE.sub(" ", raw_text).strip()
    return text or None


def format_price(price: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Render a price the way US stores print it, e.g. "$1,299.00"."""
    symbol = next((s for s, c in _CURRENCY_SYMBOLS.items() if c == currency and len(s) == 1), "")
    return f"{symbol}{price:,.2f}" if symbol else f"{price:,.2f} {currency}"
