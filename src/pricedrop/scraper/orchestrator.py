"""
Extraction Orchestrator
=======================
Top-level entry point of the engine:
1. Resolving   → hostname → StoreRule (or the generic path)
2. Fetching    → static or rendering strategy, chosen from the rule
3. Extracting  → ExtractorFactory routes to the right extractor
4. Normalizing → defaults applied, price validated, snapshot assembled

Strictly linear: any stage can end the call early with a failure, none is
revisited. The four failure kinds come back as ExtractionFailure values;
extract_product() does not raise for them.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from enum import StrEnum

from pricedrop.core.config import Settings, settings
from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.errors import (
    ExtractionError,
    PriceNotFoundError,
    UnsupportedStoreError,
)
from pricedrop.scraper.extractor_factory import ExtractorFactory
from pricedrop.scraper.fetchers import BaseFetcher, fetch_document
from pricedrop.scraper.models import (
    DEFAULT_CURRENCY,
    DEFAULT_TITLE,
    ExtractedFields,
    ExtractionOutcome,
    ExtractionSuccess,
    ProductSnapshot,
    StoreRule,
)
from pricedrop.scraper.registry import normalize_hostname, resolve_rule

logger = logging.getLogger(__name__)


class Stage(StrEnum):
    RESOLVING = "Resolving"
    FETCHING = "Fetching"
    EXTRACTING = "Extracting"
    NORMALIZING = "Normalizing"
    DONE = "Done"


class ExtractionOrchestrator:
    """
    Runs one extraction per run() call; holds only configuration and fetchers.

    Fetchers can be injected (tests, custom transports); by default they are
    built from the configuration on demand.
    """

    def __init__(
        self,
        config: Settings | None = None,
        static_fetcher: BaseFetcher | None = None,
        rendering_fetcher: BaseFetcher | None = None,
    ) -> None:
        self.config = config or settings
        self.static_fetcher = static_fetcher
        self.rendering_fetcher = rendering_fetcher

    async def run(self, url: str) -> ExtractionOutcome:
        try:
            snapshot = await self._extract(url)
        except ExtractionError as exc:
            exc.url = exc.url or url
            logger.warning("Extraction failed for %s: %s (%s)", url, exc.kind, exc.message)
            return exc.to_failure()

        logger.info(
            "Extracted %s from %s: %s %s (in_stock=%s)",
            snapshot.sku or "product", snapshot.store, snapshot.price,
            snapshot.currency, snapshot.in_stock,
        )
        return ExtractionSuccess(snapshot)

    async def _extract(self, url: str) -> ProductSnapshot:
        logger.debug("[%s] %s", Stage.RESOLVING, url)
        hostname, rule = self._resolve(url)

        logger.debug("[%s] %s", Stage.FETCHING, url)
        document = await self._fetch(url, rule)

        logger.debug("[%s] %s", Stage.EXTRACTING, url)
        extractor = ExtractorFactory.create(rule, document, url)
        fields = await extractor.extract_all()

        logger.debug("[%s] %s", Stage.NORMALIZING, url)
        snapshot = self._normalize(url, hostname, rule, document, fields)

        logger.debug("[%s] %s", Stage.DONE, url)
        return snapshot

    def _resolve(self, url: str) -> tuple[str, StoreRule | None]:
        hostname = normalize_hostname(url)
        if hostname is None:
            raise UnsupportedStoreError(f"Not a valid product URL: {url!r}", url)

        rule = resolve_rule(url)
        if rule is not None:
            logger.info("Resolved %s → %s", hostname, rule.name)
        elif self.config.generic_fallback_enabled:
            logger.info("No rule for %s, using generic extraction", hostname)
        else:
            raise UnsupportedStoreError(f"Store {hostname} is not supported", url)
        return hostname, rule

    async def _fetch(self, url: str, rule: StoreRule | None) -> ParsedDocument:
        return await fetch_document(
            url,
            rule,
            self.config,
            static=self.static_fetcher,
            rendering=self.rendering_fetcher,
        )

    def _normalize(
        self,
        url: str,
        hostname: str,
        rule: StoreRule | None,
        document: ParsedDocument,
        fields: ExtractedFields,
    ) -> ProductSnapshot:
        price = fields.price
        if price is None or not math.isfinite(price) or price < 0:
            where = rule.name if rule else hostname
            raise PriceNotFoundError(f"Could not extract a price from {where}", url)

        return ProductSnapshot(
            price=price,
            title=fields.title or DEFAULT_TITLE,
            store=hostname,
            scraped_at=datetime.now(timezone.utc),
            currency=fields.currency or (rule.currency if rule else DEFAULT_CURRENCY),
            image=fields.image,
            in_stock=True if fields.in_stock is None else fields.in_stock,
            url=url,
            sku=fields.sku,
            fetched_with=document.fetched_with,
        )


async def extract_product(url: str, config: Settings | None = None) -> ExtractionOutcome:
    """Extract a normalized product snapshot from a product page URL."""
    return await ExtractionOrchestrator(config).run(url)


async def extract_products(
    urls: Iterable[str],
    config: Settings | None = None,
    max_concurrency: int | None = None,
    orchestrator: ExtractionOrchestrator | None = None,
) -> list[ExtractionOutcome]:
    """
    Run independent extractions concurrently, at most ``max_concurrency``
    at a time. Outcomes keep the order of ``urls``.
    """
    config = config or settings
    orchestrator = orchestrator or ExtractionOrchestrator(config)
    semaphore = asyncio.Semaphore(max_concurrency or config.max_concurrency)

    async def _bounded(url: str) -> ExtractionOutcome:
        async with semaphore:
            return await orchestrator.run(url)

    return list(await asyncio.gather(*(_bounded(url) for url in urls)))
