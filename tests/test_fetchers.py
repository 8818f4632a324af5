"""Tests for the static and rendering fetch strategies, with fake transports."""

from __future__ import annotations

import pytest
from curl_cffi.requests import RequestsError
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from conftest import TARGET_RENDERED_HTML, TARGET_URL
from pricedrop.core.config import Settings
from pricedrop.scraper.errors import FetchFailedError, FetchTimeoutError
from pricedrop.scraper.fetchers import (
    USER_AGENTS,
    RenderingFetcher,
    StaticFetcher,
    browser_headers,
    choose_fetcher,
)
from pricedrop.scraper.models import FailureKind, FetchStrategy
from pricedrop.scraper.orchestrator import ExtractionOrchestrator
from pricedrop.scraper.registry import resolve_rule

# ── Fake curl_cffi session ─────────────────────────────────────────────


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, url: str | None = None) -> None:
        self.text = text
        self.status_code = status_code
        self.url = url


class FakeCurlSession:
    instances: list[FakeCurlSession] = []

    def __init__(self, outcome, **kwargs) -> None:
        self.outcome = outcome
        self.kwargs = kwargs
        self.closed = False
        FakeCurlSession.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    async def get(self, url: str):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def session_factory(outcome):
    FakeCurlSession.instances = []
    return lambda **kwargs: FakeCurlSession(outcome, **kwargs)


# ── Fake Playwright driver ─────────────────────────────────────────────


class FakeRequest:
    def __init__(self, resource_type: str) -> None:
        self.resource_type = resource_type


class FakeRoute:
    def __init__(self, resource_type: str) -> None:
        self.request = FakeRequest(resource_type)
        self.action: str | None = None

    async def abort(self):
        self.action = "abort"

    async def continue_(self):
        self.action = "continue"


class FakeNavResponse:
    def __init__(self, status: int) -> None:
        self.status = status
        self.ok = 200 <= status < 300


class FakePage:
    def __init__(self, html: str, goto_error=None, status: int = 200, selector_appears=True) -> None:
        self.html = html
        self.goto_error = goto_error
        self.status = status
        self.selector_appears = selector_appears
        self.url = ""
        self.route_handler = None
        self.goto_kwargs: dict = {}
        self.waited_for: list[str] = []

    async def route(self, pattern, handler):
        self.route_handler = handler

    async def goto(self, url, **kwargs):
        self.goto_kwargs = kwargs
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        return FakeNavResponse(self.status)

    async def wait_for_selector(self, selector, timeout):
        self.waited_for.append(selector)
        if not self.selector_appears:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def content(self):
        return self.html


class FakeContext:
    def __init__(self, page: FakePage, **kwargs) -> None:
        self.page = page
        self.kwargs = kwargs
        self.closed = False

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.contexts: list[FakeContext] = []
        self.closed = False

    async def new_context(self, **kwargs):
        context = FakeContext(self.page, **kwargs)
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.browsers: list[FakeBrowser] = []
        self.launch_kwargs: dict = {}

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        browser = FakeBrowser(self.page)
        self.browsers.append(browser)
        return browser


class FakePlaywright:
    def __init__(self, page: FakePage) -> None:
        self.chromium = FakeChromium(page)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


# ── Static fetch ───────────────────────────────────────────────────────


class TestStaticFetcher:
    @pytest.mark.asyncio
    async def test_success_parses_html(self, config):
        factory = session_factory(FakeResponse("<h1>Hi</h1>", 200, "https://example.org/final"))
        doc = await StaticFetcher(config, session_factory=factory).fetch("https://example.org/start")

        assert doc.fetched_with == FetchStrategy.STATIC
        assert doc.url == "https://example.org/final"
        assert doc.soup.h1.get_text() == "Hi"

    @pytest.mark.asyncio
    async def test_session_configuration(self, config):
        """Timeout, redirect cap, fingerprint and rotated UA are applied per request."""
        factory = session_factory(FakeResponse("<html></html>"))
        await StaticFetcher(config, session_factory=factory).fetch("https://example.org/")

        session = FakeCurlSession.instances[0]
        assert session.kwargs["timeout"] == 10.0
        assert session.kwargs["max_redirects"] == 5
        assert session.kwargs["impersonate"] == config.impersonate
        assert session.kwargs["headers"]["User-Agent"] in USER_AGENTS
        assert session.closed is True

    @pytest.mark.asyncio
    async def test_non_2xx_is_fetch_failed(self, config):
        factory = session_factory(FakeResponse("blocked", 503))
        with pytest.raises(FetchFailedError, match="HTTP 503"):
            await StaticFetcher(config, session_factory=factory).fetch("https://example.org/")

    @pytest.mark.asyncio
    async def test_network_error_is_fetch_failed(self, config):
        factory = session_factory(RequestsError("Could not resolve host", code=6))
        with pytest.raises(FetchFailedError):
            await StaticFetcher(config, session_factory=factory).fetch("https://nope.invalid/")

    @pytest.mark.asyncio
    async def test_curl_timeout_is_timeout(self, config):
        factory = session_factory(RequestsError("Operation timed out", code=28))
        with pytest.raises(FetchTimeoutError):
            await StaticFetcher(config, session_factory=factory).fetch("https://slow.example.org/")


# ── Rendering fetch ────────────────────────────────────────────────────


class TestRenderingFetcher:
    @pytest.mark.asyncio
    async def test_renders_and_releases_browser(self, config):
        page = FakePage(TARGET_RENDERED_HTML)
        driver = FakePlaywright(page)
        rule = resolve_rule(TARGET_URL)

        doc = await RenderingFetcher(config, playwright_factory=lambda: driver).fetch(TARGET_URL, rule)

        browser = driver.chromium.browsers[0]
        assert doc.fetched_with == FetchStrategy.RENDERED
        assert "product-price" in doc.html
        assert browser.closed is True
        assert browser.contexts[0].closed is True
        assert browser.contexts[0].kwargs["user_agent"] in USER_AGENTS
        assert page.goto_kwargs == {"wait_until": "domcontentloaded", "timeout": 30000}
        assert page.waited_for == [rule.price[0].selector]

    @pytest.mark.asyncio
    async def test_blocks_heavy_resources(self, config):
        page = FakePage(TARGET_RENDERED_HTML)
        await RenderingFetcher(config, playwright_factory=lambda: FakePlaywright(page)).fetch(TARGET_URL)

        decisions = {}
        for resource_type in ("image", "font", "stylesheet", "document", "script", "xhr"):
            route = FakeRoute(resource_type)
            await page.route_handler(route)
            decisions[resource_type] = route.action

        assert decisions == {
            "image": "abort",
            "font": "abort",
            "stylesheet": "abort",
            "document": "continue",
            "script": "continue",
            "xhr": "continue",
        }

    @pytest.mark.asyncio
    async def test_price_wait_timeout_is_not_fatal(self, config):
        page = FakePage(TARGET_RENDERED_HTML, selector_appears=False)
        fetcher = RenderingFetcher(config, playwright_factory=lambda: FakePlaywright(page))
        doc = await fetcher.fetch(TARGET_URL, resolve_rule(TARGET_URL))
        assert doc.html == TARGET_RENDERED_HTML

    @pytest.mark.asyncio
    async def test_navigation_timeout_closes_browser(self, config):
        """Scenario: navigation deadline exceeded → Timeout, browser released."""
        page = FakePage("", goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded."))
        driver = FakePlaywright(page)

        with pytest.raises(FetchTimeoutError):
            await RenderingFetcher(config, playwright_factory=lambda: driver).fetch(TARGET_URL)

        browser = driver.chromium.browsers[0]
        assert browser.closed is True
        assert browser.contexts[0].closed is True

    @pytest.mark.asyncio
    async def test_navigation_error_is_fetch_failed(self, config):
        page = FakePage("", goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        driver = FakePlaywright(page)

        with pytest.raises(FetchFailedError, match="ERR_NAME_NOT_RESOLVED"):
            await RenderingFetcher(config, playwright_factory=lambda: driver).fetch(TARGET_URL)
        assert driver.chromium.browsers[0].closed is True

    @pytest.mark.asyncio
    async def test_http_error_status_closes_browser(self, config):
        page = FakePage("<html></html>", status=403)
        driver = FakePlaywright(page)

        with pytest.raises(FetchFailedError, match="HTTP 403"):
            await RenderingFetcher(config, playwright_factory=lambda: driver).fetch(TARGET_URL)
        assert driver.chromium.browsers[0].closed is True


# ── Strategy choice ────────────────────────────────────────────────────


class TestChooseFetcher:
    def test_static_for_plain_and_unknown_stores(self, config):
        assert isinstance(choose_fetcher(resolve_rule("https://www.amazon.com/dp/X"), config), StaticFetcher)
        assert isinstance(choose_fetcher(None, config), StaticFetcher)

    def test_rendering_for_hydrated_stores(self, config):
        assert isinstance(choose_fetcher(resolve_rule(TARGET_URL), config), RenderingFetcher)

    def test_rendering_disabled_fails(self):
        config = Settings(rendering_enabled=False)
        with pytest.raises(FetchFailedError, match="rendering"):
            choose_fetcher(resolve_rule(TARGET_URL), config)

    def test_headers_rotate_from_pool(self, config):
        agents = {browser_headers(config)["User-Agent"] for _ in range(50)}
        assert agents <= set(USER_AGENTS)
        assert len(agents) > 1

    def test_user_agents_match_chrome_fingerprint(self, config):
        """Every rotated UA is Chromium-based, matching the impersonated TLS fingerprint."""
        assert config.impersonate.startswith("chrome")
        for agent in USER_AGENTS:
            assert "Chrome/" in agent
            assert "Firefox" not in agent
        for _ in range(50):
            assert "Chrome/" in browser_headers(config)["User-Agent"]


@pytest.mark.asyncio
async def test_timeout_outcome_leaves_no_open_browser(config):
    """Scenario: rendering timeout surfaces as Failure(Timeout) with the session released."""
    page = FakePage("", goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded."))
    driver = FakePlaywright(page)
    fetcher = RenderingFetcher(config, playwright_factory=lambda: driver)

    outcome = await ExtractionOrchestrator(config, rendering_fetcher=fetcher).run(TARGET_URL)

    assert outcome.kind == FailureKind.TIMEOUT
    assert all(browser.closed for browser in driver.chromium.browsers)
    assert all(ctx.closed for browser in driver.chromium.browsers for ctx in browser.contexts)
