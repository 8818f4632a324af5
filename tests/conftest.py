"""Shared fixtures: sample product pages and fake fetch transports (no network, no browser)."""

from __future__ import annotations

import pytest

from pricedrop.core.config import Settings
from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.errors import FetchFailedError
from pricedrop.scraper.fetchers import BaseFetcher
from pricedrop.scraper.models import FetchStrategy, StoreRule

AMAZON_URL = "https://www.amazon.com/Sony-WH-1000XM5/dp/B0BSHF7WHW?th=1"
TARGET_URL = "https://www.target.com/p/dyson-v8-origin/-/A-86134458"
GENERIC_URL = "https://shop.example.org/products/handmade-mug"

AMAZON_HTML = """
<html>
<head><meta property="og:image" content="https://m.media-amazon.com/images/I/og.jpg"></head>
<body>
  <span id="productTitle">
      Sony WH-1000XM5 Wireless   Headphones
  </span>
  <div id="corePrice_feature_div">
    <span class="a-price">
      <span class="a-offscreen">$1,299.00</span>
      <span aria-hidden="true">
        <span class="a-price-symbol">$</span><span class="a-price-whole">1,299.</span>
      </span>
    </span>
  </div>
  <div id="availability"><span> In Stock </span></div>
  <img id="landingImage" src="https://m.media-amazon.com/images/I/sony.jpg">
</body>
</html>
"""

TARGET_SHELL_HTML = """
<html><body>
  <div id="root"></div>
  <script src="/static/app.js"></script>
</body></html>
"""

TARGET_RENDERED_HTML = """
<html><body>
  <h1 data-test="product-title">Dyson V8 Origin+ Cordless Vacuum</h1>
  <span data-test="product-price">$429.99</span>
  <div data-test="hero-image"><img src="/images/dyson.jpg"></div>
  <div data-test="fulfillment-cell-shipping">Ships tomorrow</div>
</body></html>
"""

GENERIC_OG_HTML = """
<html>
<head>
  <title>Handmade Mug | Example Pottery</title>
  <meta property="og:title" content="Handmade Mug">
  <meta property="og:image" content="/media/mug.jpg">
  <meta property="og:price:amount" content="24.50">
  <meta property="og:price:currency" content="EUR">
</head>
<body><h1>Handmade Mug</h1><p>Glazed stoneware, 350ml.</p></body>
</html>
"""

GENERIC_NO_PRICE_HTML = """
<html>
<head><title>About us</title></head>
<body><h1>Our story</h1><p>We have been making pottery since 1998.</p></body>
</html>
"""


class FakeFetcher(BaseFetcher):
    """Serves canned HTML per URL and records every fetch."""

    def __init__(
        self,
        pages: dict[str, str],
        strategy: FetchStrategy = FetchStrategy.STATIC,
        error: Exception | None = None,
    ) -> None:
        super().__init__(Settings())
        self.pages = pages
        self.strategy = strategy
        self.error = error
        self.calls: list[tuple[str, StoreRule | None]] = []

    async def fetch(self, url: str, rule: StoreRule | None = None) -> ParsedDocument:
        self.calls.append((url, rule))
        if self.error is not None:
            raise self.error
        if url not in self.pages:
            raise FetchFailedError("HTTP 404 from store", url)
        return ParsedDocument(self.pages[url], url, self.strategy)


@pytest.fixture
def config() -> Settings:
    return Settings(
        rendering_enabled=True,
        generic_fallback_enabled=True,
        request_timeout=10.0,
        render_timeout=30.0,
        price_wait_timeout=5.0,
    )


@pytest.fixture
def make_fetcher():
    def _make(pages=None, strategy=FetchStrategy.STATIC, error=None) -> FakeFetcher:
        return FakeFetcher(pages or {}, strategy, error)

    return _make


def make_document(html: str, url: str = GENERIC_URL) -> ParsedDocument:
    return ParsedDocument(html, url)


@pytest.fixture
def document_factory():
    return make_document
