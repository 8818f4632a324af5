"""
ParsedDocument: the queryable HTML both fetch strategies hand to the extractors.

One instance per extraction call. It keeps the raw HTML, the final URL
(after redirects) for resolving relative links, and which strategy
produced it.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from pricedrop.scraper.models import FetchStrategy, Locator

logger = logging.getLogger(__name__)


def _iter_json_ld_nodes(data: Any):
    """Walk JSON-LD payloads: top-level lists and ``@graph`` containers included."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_json_ld_nodes(item)
    elif isinstance(data, dict):
        yield data
        if "@graph" in data:
            yield from _iter_json_ld_nodes(data["@graph"])


def _is_product(node: dict[str, Any]) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Product" in node_type
    return node_type == "Product"


class ParsedDocument:
    """BeautifulSoup-backed document with locator and metadata helpers."""

    def __init__(
        self,
        html: str,
        url: str,
        fetched_with: FetchStrategy = FetchStrategy.STATIC,
    ) -> None:
        self.html = html
        self.url = url
        self.fetched_with = fetched_with
        self.soup = BeautifulSoup(html, "html.parser")
        self._products: list[dict[str, Any]] | None = None

    def __repr__(self) -> str:
        return f"<ParsedDocument url={self.url!r} fetched_with={self.fetched_with}>"

    # ── Locators ───────────────────────────────────────────────────────

    def select(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def values(self, locator: Locator) -> list[str]:
        """
        Raw strings for every element the locator matches, in document order.

        Attribute locators skip elements without the attribute; text locators
        skip elements whose text is empty.
        """
        values: list[str] = []
        for element in self.select(locator.selector):
            if locator.attribute:
                raw = element.get(locator.attribute)
                if isinstance(raw, list):
                    raw = " ".join(raw)
            else:
                raw = element.get_text(separator=" ", strip=True)
            if raw:
                values.append(raw)
        return values

    def meta(self, *names: str) -> str | None:
        """First non-empty ``content`` among <meta property=…>/<meta name=…>/itemprop tags."""
        for name in names:
            for attr in ("property", "name", "itemprop"):
                tag = self.soup.find("meta", attrs={attr: name})
                if tag and tag.get("content"):
                    return str(tag["content"]).strip()
        return None

    def absolute_url(self, raw: str | None) -> str | None:
        """Resolve a possibly relative link against the page URL. Inline data URIs → None."""
        if not raw:
            return None
        raw = raw.strip()
        if not raw or raw.startswith("data:"):
            return None
        return urljoin(self.url, raw)

    # ── Structured data ────────────────────────────────────────────────

    def structured_products(self) -> list[dict[str, Any]]:
        """schema.org ``Product`` nodes found in JSON-LD scripts."""
        if self._products is not None:
            return self._products

        products: list[dict[str, Any]] = []
        for script in self.soup.find_all("script", type="application/ld+json"):
            try:
                data = json.loads(script.string or "")
            except json.JSONDecodeError:
                logger.debug("Skipping malformed JSON-LD block on %s", self.url)
                continue
            products.extend(node for node in _iter_json_ld_nodes(data) if _is_product(node))

        self._products = products
        return products
