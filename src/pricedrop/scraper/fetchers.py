"""
Fetch Strategies
================
Two ways of turning a URL into a ParsedDocument:

  StaticFetcher     → single curl_cffi GET with a browser fingerprint (fast)
  RenderingFetcher  → headless Chromium via Playwright, for pages that only
                      show the price after client-side hydration (slow)

Both rotate the User-Agent per call and translate library errors into
FetchFailedError / FetchTimeoutError. Nothing here retries: a failed fetch
is terminal for the extraction call.

Usage:
    document = await fetch_document(url, rule)
    document.fetched_with  # FetchStrategy.STATIC or FetchStrategy.RENDERED
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from curl_cffi.requests import AsyncSession as CurlSession, RequestsError
from playwright.async_api import (
    Error as PlaywrightError,
    Route,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from pricedrop.core.config import Settings, settings
from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.errors import FetchFailedError, FetchTimeoutError
from pricedrop.scraper.models import FetchStrategy, StoreRule

logger = logging.getLogger(__name__)

# ── Anti-detection ─────────────────────────────────────────────────────

# Chromium-family only: the static path sends Chrome's TLS fingerprint
# (`impersonate`) and the renderer is Chromium, so the UA must agree.
USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "font", "stylesheet", "media"})

# libcurl CURLE_OPERATION_TIMEDOUT
_CURL_TIMEOUT_CODE = 28


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def browser_headers(config: Settings | None = None) -> dict[str, str]:
    """Request headers of a desktop browser, with a freshly rotated User-Agent."""
    config = config or settings
    return {
        "User-Agent": random_user_agent(),
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,*/*;q=0.8"
        ),
        "Accept-Language": config.accept_language,
        "Cache-Control": "no-cache",
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
    }


# ── Strategy interface ─────────────────────────────────────────────────


class BaseFetcher(ABC):
    """Contract shared by both fetch strategies."""

    strategy: FetchStrategy

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or settings

    @abstractmethod
    async def fetch(self, url: str, rule: StoreRule | None = None) -> ParsedDocument:
        """Download ``url`` and parse it. Raises FetchFailedError / FetchTimeoutError."""
        ...


class StaticFetcher(BaseFetcher):
    """Plain HTTP GET through curl_cffi, impersonating a real browser's TLS fingerprint."""

    strategy = FetchStrategy.STATIC

    def __init__(
        self,
        config: Settings | None = None,
        session_factory: Callable[..., Any] = CurlSession,
    ) -> None:
        super().__init__(config)
        self._session_factory = session_factory

    async def fetch(self, url: str, rule: StoreRule | None = None) -> ParsedDocument:
        try:
            async with self._session_factory(
                headers=browser_headers(self.config),
                timeout=self.config.request_timeout,
                impersonate=self.config.impersonate,
                allow_redirects=True,
                max_redirects=self.config.max_redirects,
            ) as client:
                response = await client.get(url)
        except RequestsError as exc:
            if getattr(exc, "code", None) == _CURL_TIMEOUT_CODE:
                raise FetchTimeoutError(
                    f"Request timed out after {self.config.request_timeout:g}s", url
                ) from exc
            raise FetchFailedError(f"Request failed: {exc}", url) from exc

        if not 200 <= response.status_code < 300:
            raise FetchFailedError(f"HTTP {response.status_code} from store", url)

        final_url = str(getattr(response, "url", None) or url)
        logger.debug("Static fetch %s → %d (%d bytes)", url, response.status_code, len(response.text))
        return ParsedDocument(response.text, final_url, self.strategy)


class RenderingFetcher(BaseFetcher):
    """
    Headless Chromium fetch for JS-hydrated product pages.

    The browser is owned by a single call and closed on every exit path.
    Images, fonts, stylesheets and media are aborted at the network layer;
    only the DOM matters for extraction.
    """

    strategy = FetchStrategy.RENDERED

    def __init__(
        self,
        config: Settings | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        super().__init__(config)
        self._playwright_factory = playwright_factory

    async def fetch(self, url: str, rule: StoreRule | None = None) -> ParsedDocument:
        try:
            async with self._playwright_factory() as p:
                browser = await p.chromium.launch(headless=self.config.headless)
                try:
                    html, final_url = await self._render(browser, url, rule)
                finally:
                    await browser.close()
                    logger.debug("Browser closed for %s", url)
        except PlaywrightTimeoutError as exc:
            raise FetchTimeoutError(
                f"Navigation timed out after {self.config.render_timeout:g}s", url
            ) from exc
        except PlaywrightError as exc:
            raise FetchFailedError(f"Rendering failed: {exc.message}", url) from exc

        return ParsedDocument(html, final_url, self.strategy)

    async def _render(self, browser: Any, url: str, rule: StoreRule | None) -> tuple[str, str]:
        context = await browser.new_context(
            user_agent=random_user_agent(),
            locale=self.config.accept_language.split(",")[0],
            viewport={"width": 1366, "height": 900},
        )
        try:
            page = await context.new_page()
            await page.route("**/*", _block_heavy_resources)

            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.render_timeout * 1000,
            )
            if response is not None and not response.ok:
                raise FetchFailedError(f"HTTP {response.status} from store", url)

            locator = rule.primary_price_locator if rule else None
            if locator is not None and self.config.price_wait_timeout > 0:
                try:
                    await page.wait_for_selector(
                        locator.selector,
                        timeout=self.config.price_wait_timeout * 1000,
                    )
                except PlaywrightTimeoutError:
                    # Not fatal: the cascade still gets a chance at the rendered DOM.
                    logger.debug("Price selector %s did not appear on %s", locator, url)

            return await page.content(), page.url or url
        finally:
            await context.close()


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


def choose_fetcher(
    rule: StoreRule | None,
    config: Settings | None = None,
    static: BaseFetcher | None = None,
    rendering: BaseFetcher | None = None,
) -> BaseFetcher:
    """
    Pick the strategy for a rule: rendering only when the rule asks for it.

    Rendering-required stores fail with FetchFailedError when rendering is
    switched off; a static fetch would only return an empty shell.
    """
    config = config or settings
    if rule is not None and rule.requires_rendering:
        if not config.rendering_enabled:
            raise FetchFailedError(f"{rule.name} requires rendering, which is disabled")
        return rendering or RenderingFetcher(config)
    return static or StaticFetcher(config)


async def fetch_document(
    url: str,
    rule: StoreRule | None,
    config: Settings | None = None,
    static: BaseFetcher | None = None,
    rendering: BaseFetcher | None = None,
) -> ParsedDocument:
    """Fetch with the strategy the rule calls for; the document records which one ran."""
    fetcher = choose_fetcher(rule, config, static=static, rendering=rendering)
    logger.info("Fetching %s with %s strategy", url, fetcher.strategy)
    return await fetcher.fetch(url, rule)
