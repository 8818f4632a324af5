"""
ExtractorFactory: Strategy Pattern router.

Decides which concrete BaseExtractor to instantiate for a fetched page.

Flow:
  Step 1 → Receive the resolved StoreRule (or None) from the registry
  Step 2 → Instantiate StoreRuleExtractor, or GenericExtractor when unregistered
  Step 3 → Return BaseExtractor instance to orchestrator

Usage:
    extractor = ExtractorFactory.create(rule, document)
    fields = await extractor.extract_all()
"""

from __future__ import annotations

import logging

from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.extractors.base import BaseExtractor
from pricedrop.scraper.extractors.generic import GenericExtractor
from pricedrop.scraper.extractors.store_rule import StoreRuleExtractor
from pricedrop.scraper.models import StoreRule

logger = logging.getLogger(__name__)


class ExtractorFactory:
    """Creates the correct BaseExtractor instance for a resolved rule."""

    @staticmethod
    def create(
        rule: StoreRule | None,
        document: ParsedDocument,
        url: str | None = None,
    ) -> BaseExtractor:
        """Falls back to GenericExtractor when no rule matched the domain."""
        if rule is None:
            logger.info("No store rule for %s, falling back to GenericExtractor.", url or document.url)
            return GenericExtractor(document, url)

        logger.info("Using StoreRuleExtractor for store=%s.", rule.name)
        return StoreRuleExtractor(document, rule, url)
