"""
Store Rule Registry
===================
Static table of per-store extraction rules, keyed by domain suffix.

Selectors are tied to a store's current markup, so rules change with a
deploy, never at runtime. Each field holds a cascade: locators are tried
in order and the first usable value wins.

Usage:
    rule = resolve_rule("https://www.amazon.com/dp/B0BSHF7WHW")
    rule.name  # "Amazon US"
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlparse

from pricedrop.scraper.models import Locator, StoreRule
from pricedrop.scraper.normalizers import european_price_parser

logger = logging.getLogger(__name__)

_WWW_PREFIX = re.compile(r"^www\.", re.IGNORECASE)


def _css(*selectors: str) -> tuple[Locator, ...]:
    return tuple(Locator(selector) for selector in selectors)


# ── Shared cascades ────────────────────────────────────────────────────

_OG_IMAGE = Locator('meta[property="og:image"]', "content")

_AMAZON_PRICE = _css(
    "#corePrice_feature_div .a-offscreen",
    "#corePriceDisplay_desktop_feature_div .a-offscreen",
    ".apexPriceToPay .a-offscreen",
    "#priceblock_dealprice",
    "#priceblock_ourprice",
    ".a-price .a-offscreen",
    ".a-price-whole",
)
_AMAZON_TITLE = _css("#productTitle", "#title")
_AMAZON_IMAGE = (
    Locator("#landingImage", "data-old-hires"),
    Locator("#landingImage", "src"),
    Locator("#imgTagWrapperId img", "src"),
    _OG_IMAGE,
)
_AMAZON_AVAILABILITY = _css("#availability span", "#availability", "#outOfStock")
_AMAZON_CURRENCY = _css(".a-price-symbol")
_AMAZON_SKU = r"/(?:dp|gp/product)/([A-Z0-9]{10})"


# ── Registry: maps domain suffix → StoreRule ───────────────────────────

STORE_RULES: tuple[StoreRule, ...] = (
    StoreRule(
        domain="amazon.com",
        name="Amazon US",
        currency="USD",
        price=_AMAZON_PRICE,
        title=_AMAZON_TITLE,
        image=_AMAZON_IMAGE,
        availability=_AMAZON_AVAILABILITY,
        currency_symbol=_AMAZON_CURRENCY,
        sku_pattern=_AMAZON_SKU,
    ),
    StoreRule(
        domain="amazon.co.uk",
        name="Amazon UK",
        currency="GBP",
        price=_AMAZON_PRICE,
        title=_AMAZON_TITLE,
        image=_AMAZON_IMAGE,
        availability=_AMAZON_AVAILABILITY,
        currency_symbol=_AMAZON_CURRENCY,
        sku_pattern=_AMAZON_SKU,
    ),
    StoreRule(
        domain="amazon.de",
        name="Amazon DE",
        currency="EUR",
        price=_AMAZON_PRICE,
        title=_AMAZON_TITLE,
        image=_AMAZON_IMAGE,
        availability=_AMAZON_AVAILABILITY,
        currency_symbol=_AMAZON_CURRENCY,
        price_parser=european_price_parser,
        sku_pattern=_AMAZON_SKU,
    ),
    StoreRule(
        domain="ebay.com",
        name="eBay",
        currency="USD",
        price=(
            *_css(
                ".x-price-primary .ux-textspans",
                '[data-testid="x-price-primary"]',
                ".x-bin-price__content .ux-textspans",
            ),
            Locator("#prcIsum", "content"),
            Locator("#prcIsum"),
        ),
        title=_css(
            "h1.x-item-title__mainTitle .ux-textspans",
            '[data-testid="x-item-title"]',
            "h1.it-ttl",
        ),
        image=(
            Locator(".ux-image-carousel-item img", "src"),
            Locator(".ux-image-carousel-item img", "data-src"),
            Locator("img#icImg", "src"),
            _OG_IMAGE,
        ),
        availability=_css(".d-quantity__availability", "#qtySubTxt", ".vi-acc-del-range"),
        sku_pattern=r"/itm/(?:[^/?#]+/)?(\d+)",
    ),
    StoreRule(
        domain="bestbuy.com",
        name="Best Buy",
        currency="USD",
        price=_css(
            '.priceView-customer-price span[aria-hidden="true"]',
            ".priceView-hero-price span",
            ".pricing-price__regular-price",
            '.sr-only:-soup-contains("current price")',
        ),
        title=_css(".sku-title h1", "h1.heading-5", ".sku-title"),
        image=(
            Locator(".primary-image", "src"),
            Locator(".primary-image img", "src"),
            _OG_IMAGE,
        ),
        availability=_css(".fulfillment-add-to-cart-button button", ".fulfillment-fulfillment-summary"),
        structured_fallback=True,
        sku_pattern=r"skuId=(\d+)",
    ),
    StoreRule(
        domain="walmart.com",
        name="Walmart",
        currency="USD",
        price=(
            Locator('[itemprop="price"]', "content"),
            Locator('[data-testid="price-wrap"] [itemprop="price"]'),
            Locator('[data-testid="price-current"]'),
        ),
        title=_css('h1[itemprop="name"]', '[data-testid="product-title"]', "h1"),
        image=(
            Locator('[data-testid="hero-image"] img', "src"),
            Locator('[data-testid="hero-image"]', "src"),
            _OG_IMAGE,
        ),
        availability=_css('[data-testid="add-to-cart-section"]', '[data-testid="out-of-stock-message"]'),
        structured_fallback=True,
        sku_pattern=r"/ip/(?:[^/?#]+/)?(\d+)",
    ),
    StoreRule(
        domain="target.com",
        name="Target",
        currency="USD",
        requires_rendering=True,
        price=_css('[data-test="product-price"]', '[data-test="current-price"]'),
        title=_css('[data-test="product-title"]', "h1"),
        image=(
            Locator('[data-test="hero-image"] img', "src"),
            Locator('[data-test="product-image"] img', "src"),
            _OG_IMAGE,
        ),
        availability=_css('[data-test="fulfillment-cell-shipping"]', '[data-test="outOfStockMessage"]'),
        sku_pattern=r"/A-(\d+)",
    ),
    StoreRule(
        domain="newegg.com",
        name="Newegg",
        currency="USD",
        price=_css(".product-buy-box .price-current", ".price-current"),
        title=_css("h1.product-title"),
        image=(
            Locator(".product-view-img-original", "src"),
            Locator(".swiper-slide img", "src"),
            _OG_IMAGE,
        ),
        availability=_css(".product-inventory"),
        sku_pattern=r"(?:Item=|/p/)([A-Z0-9-]+)",
    ),
)


def normalize_hostname(url: str) -> str | None:
    """Lower-cased hostname without a leading "www.", or None for unusable URLs."""
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return _WWW_PREFIX.sub("", parsed.hostname.lower())


def _matches(hostname: str, domain: str) -> bool:
    return hostname == domain or hostname.endswith(f".{domain}")


def resolve_rule(url: str) -> StoreRule | None:
    """Return the first rule whose domain suffix matches the URL's hostname."""
    hostname = normalize_hostname(url)
    if hostname is None:
        return None
    for rule in STORE_RULES:
        if _matches(hostname, rule.domain):
            return rule
    return None


def get_supported_stores() -> list[str]:
    return [rule.domain for rule in STORE_RULES]


def is_url_supported(url: str) -> bool:
    """True when the URL's domain has a registered rule."""
    return resolve_rule(url) is not None


def extract_sku(url: str, rule: StoreRule | None) -> str | None:
    """Store product identifier embedded in the URL (ASIN, item id, TCIN…)."""
    if rule is None or not rule.sku_pattern:
        return None
    match = re.search(rule.sku_pattern, url)
    return match.group(1) if match else None
