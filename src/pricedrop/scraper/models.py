"""Data models for the extraction pipeline (rules, snapshots, outcomes)."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

PriceParser = Callable[[str], float | None]

DEFAULT_TITLE = "Product"
DEFAULT_CURRENCY = "USD"


class FailureKind(StrEnum):
    """Terminal failure taxonomy reported to callers."""

    UNSUPPORTED_STORE = "UnsupportedStore"
    FETCH_FAILED = "FetchFailed"
    PRICE_NOT_FOUND = "PriceNotFound"
    TIMEOUT = "Timeout"

    @property
    def http_status(self) -> int:
        """Suggested HTTP status for callers that surface the failure."""
        return _HTTP_STATUS[self]


_HTTP_STATUS: dict[FailureKind, int] = {
    FailureKind.UNSUPPORTED_STORE: 400,
    FailureKind.PRICE_NOT_FOUND: 400,
    FailureKind.FETCH_FAILED: 502,
    FailureKind.TIMEOUT: 504,
}


class FetchStrategy(StrEnum):
    STATIC = "static"
    RENDERED = "rendered"


@dataclass(frozen=True, slots=True)
class Locator:
    """
    One candidate location for a field value.

    ``selector`` is a CSS selector; when ``attribute`` is set the value is
    read from that attribute, otherwise from the element's text content.
    """

    selector: str
    attribute: str | None = None

    def __str__(self) -> str:
        if self.attribute:
            return f"{self.selector}@{self.attribute}"
        return self.selector


@dataclass(frozen=True, slots=True)
class StoreRule:
    """Per-store extraction rules, matched by domain suffix."""

    domain: str                          # ej: "amazon.com"
    name: str                            # ej: "Amazon US"
    price: tuple[Locator, ...]
    title: tuple[Locator, ...] = ()
    image: tuple[Locator, ...] = ()
    availability: tuple[Locator, ...] = ()
    currency_symbol: tuple[Locator, ...] = ()
    price_parser: PriceParser | None = None
    currency: str = DEFAULT_CURRENCY
    requires_rendering: bool = False
    structured_fallback: bool = False    # use JSON-LD for fields the cascades miss
    sku_pattern: str | None = None       # regex with one group, applied to the URL

    @property
    def primary_price_locator(self) -> Locator | None:
        return self.price[0] if self.price else None


@dataclass(slots=True)
class ExtractedFields:
    """Raw per-field values before defaults are applied (a partial snapshot)."""

    price: float | None = None
    currency: str | None = None
    title: str | None = None
    image: str | None = None
    in_stock: bool | None = None
    sku: str | None = None

    def fill_missing(self, other: ExtractedFields) -> None:
        """Copy fields from ``other`` wherever this instance has none."""
        for name in ("price", "currency", "title", "image", "in_stock", "sku"):
            if getattr(self, name) is None:
                setattr(self, name, getattr(other, name))


@dataclass(frozen=True, slots=True)
class ProductSnapshot:
    """Normalized extraction result."""

    price: float | None
    title: str
    store: str
    scraped_at: datetime
    currency: str = DEFAULT_CURRENCY
    image: str | None = None
    in_stock: bool = True
    url: str | None = None
    sku: str | None = None
    fetched_with: FetchStrategy = FetchStrategy.STATIC

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": self.price,
            "currency": self.currency,
            "title": self.title,
            "image": self.image,
            "inStock": self.in_stock,
            "store": self.store,
            "scrapedAt": self.scraped_at.isoformat(),
            "url": self.url,
            "sku": self.sku,
            "fetchedWith": str(self.fetched_with),
        }


@dataclass(frozen=True, slots=True)
class ExtractionSuccess:
    snapshot: ProductSnapshot
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "snapshot": self.snapshot.to_dict()}


@dataclass(frozen=True, slots=True)
class ExtractionFailure:
    kind: FailureKind
    message: str
    url: str | None = None
    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "kind": str(self.kind), "message": self.message}


ExtractionOutcome = ExtractionSuccess | ExtractionFailure
