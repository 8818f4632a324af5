"""
Generic Extractor — store-agnostic heuristics
=============================================
Fallback for domains without a StoreRule.

Signals, in priority order per field:
  - price:    og/product price meta → itemprop="price" → JSON-LD offers
              → <meta name=…> price tags → currency-looking text next to the <h1>
  - title:    <h1> → og:title → JSON-LD name → <title>
  - image:    og:image → itemprop="image" → JSON-LD image → twitter:image
  - currency: price-currency meta → JSON-LD priceCurrency → symbol near price
  - stock:    availability meta → JSON-LD availability

Weaker guarantees than a maintained rule: PriceNotFound is expected more
often here.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pricedrop.scraper.cascade import extract_field
from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.extractors.base import BaseExtractor
from pricedrop.scraper.models import ExtractedFields, Locator
from pricedrop.scraper.normalizers import (
    availability_signal,
    clean_text,
    currency_from_symbol,
    parse_price,
)

logger = logging.getLogger(__name__)

# ── Cascades ───────────────────────────────────────────────────────────

_PRICE_META = (
    Locator('meta[property="og:price:amount"]', "content"),
    Locator('meta[property="product:price:amount"]', "content"),
    Locator('[itemprop="price"]', "content"),
    Locator('[itemprop="price"]'),
)
_TITLE = (
    Locator("h1"),
    Locator('meta[property="og:title"]', "content"),
)
_IMAGE = (
    Locator('meta[property="og:image"]', "content"),
    Locator('meta[property="og:image:secure_url"]', "content"),
    Locator('[itemprop="image"]', "content"),
    Locator('[itemprop="image"]', "src"),
    Locator('[itemprop="image"]', "href"),
)
_CURRENCY = (
    Locator('meta[property="og:price:currency"]', "content"),
    Locator('meta[property="product:price:currency"]', "content"),
    Locator('[itemprop="priceCurrency"]', "content"),
)
_AVAILABILITY = (
    Locator('meta[property="og:availability"]', "content"),
    Locator('meta[property="product:availability"]', "content"),
    Locator('[itemprop="availability"]', "href"),
    Locator('[itemprop="availability"]', "content"),
)

# "$1,299.00", "US$ 49", "1.299,00 €", "49.99 USD"
_PRICE_TEXT = re.compile(
    r"(?:US\$|[$€£¥₹])\s?\d[\d.,]*|\d[\d.,]*\s?(?:[€£]|EUR|USD|GBP)",
)

# BeautifulSoup names the root "[document]".
_PAGE_ROOTS = frozenset({"body", "html", "[document]"})


# ── Structured data (schema.org JSON-LD) ───────────────────────────────


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _offer(product: dict[str, Any]) -> dict[str, Any]:
    offer = _first(product.get("offers"))
    return offer if isinstance(offer, dict) else {}


def _scalar(value: Any) -> str | None:
    """JSON-LD leaf as text; objects, lists and booleans are not usable values."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _image_value(raw: Any) -> str | None:
    raw = _first(raw)
    if isinstance(raw, dict):
        raw = raw.get("url") or raw.get("contentUrl")
    return raw if isinstance(raw, str) and raw else None


def structured_fields(document: ParsedDocument) -> ExtractedFields:
    """Fields read from the first JSON-LD Product that carries a usable price."""
    fields = ExtractedFields()
    for product in document.structured_products():
        offer = _offer(product)
        raw_price = offer.get("price", offer.get("lowPrice"))
        price = parse_price(_scalar(raw_price))

        if fields.title is None:
            fields.title = clean_text(product.get("name"))
        if fields.image is None:
            fields.image = document.absolute_url(_image_value(product.get("image")))
        if price is None:
            continue

        fields.price = price
        fields.currency = currency_from_symbol(offer.get("priceCurrency"))
        fields.in_stock = availability_signal(offer.get("availability"))
        fields.sku = _scalar(product.get("sku")) or None
        break
    return fields


# ── Heuristics ─────────────────────────────────────────────────────────


def _price_text_near_heading(document: ParsedDocument) -> str | None:
    """
    Currency-looking text in the containers wrapping the first <h1>.

    The climb stops below <body>: page-wide text ("Free shipping over $50")
    is not a price signal.
    """
    heading = document.soup.find("h1")
    if heading is None:
        return None

    container = heading.parent
    for _ in range(2):
        if container is None or container.name in _PAGE_ROOTS:
            break
        match = _PRICE_TEXT.search(container.get_text(separator=" ", strip=True))
        if match:
            return match.group(0)
        container = container.parent
    return None


def extract_generic(document: ParsedDocument) -> ExtractedFields:
    """Apply the store-agnostic heuristics; any field may come back None."""
    fields = ExtractedFields(
        price=extract_field(document, _PRICE_META, parse_price),
        title=extract_field(document, _TITLE, clean_text),
        image=extract_field(document, _IMAGE, document.absolute_url),
        currency=extract_field(document, _CURRENCY, currency_from_symbol),
        in_stock=extract_field(document, _AVAILABILITY, availability_signal),
    )
    fields.fill_missing(structured_fields(document))

    # <meta name=…> spellings of the price tags, and Twitter card images.
    if fields.price is None:
        fields.price = parse_price(document.meta("og:price:amount", "product:price:amount"))
    if fields.currency is None:
        fields.currency = currency_from_symbol(document.meta("og:price:currency", "product:price:currency"))
    if fields.image is None:
        fields.image = document.absolute_url(document.meta("twitter:image", "twitter:image:src"))

    if fields.price is None:
        nearby = _price_text_near_heading(document)
        fields.price = parse_price(nearby)
        if fields.price is not None:
            logger.debug("Generic price from heading-adjacent text %r", nearby)
            if fields.currency is None:
                fields.currency = currency_from_symbol(nearby)

    if fields.title is None and document.soup.title is not None:
        fields.title = clean_text(document.soup.title.get_text())

    return fields


class GenericExtractor(BaseExtractor):
    """Heuristic extractor for stores without a registered rule."""

    async def extract_all(self) -> ExtractedFields:
        fields = extract_generic(self.document)
        logger.info(
            "GenericExtractor: price=%s title=%s image=%s",
            fields.price is not None,
            fields.title is not None,
            fields.image is not None,
        )
        return fields
