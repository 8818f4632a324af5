"""StoreRule extractor — runs a registered store's locator cascades field by field."""

from __future__ import annotations

import logging

from pricedrop.scraper.cascade import extract_field
from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.extractors.base import BaseExtractor
from pricedrop.scraper.extractors.generic import structured_fields
from pricedrop.scraper.models import ExtractedFields, StoreRule
from pricedrop.scraper.normalizers import (
    availability_signal,
    clean_text,
    currency_from_symbol,
    parse_price,
)
from pricedrop.scraper.registry import extract_sku

logger = logging.getLogger(__name__)


class StoreRuleExtractor(BaseExtractor):
    """Data-driven extractor: one class for every registered store."""

    def __init__(self, document: ParsedDocument, rule: StoreRule, url: str | None = None) -> None:
        super().__init__(document, url)
        self.rule = rule

    async def extract_all(self) -> ExtractedFields:
        rule = self.rule
        doc = self.document

        fields = ExtractedFields(
            price=extract_field(doc, rule.price, self._parse_price),
            title=extract_field(doc, rule.title, clean_text),
            image=extract_field(doc, rule.image, doc.absolute_url),
            in_stock=extract_field(doc, rule.availability, availability_signal),
            currency=extract_field(doc, rule.currency_symbol, currency_from_symbol),
            sku=extract_sku(self.url, rule),
        )

        if rule.structured_fallback and (fields.price is None or fields.title is None):
            logger.debug("%s: cascades incomplete, reading JSON-LD", rule.name)
            fields.fill_missing(structured_fields(doc))

        if fields.price is None:
            logger.warning("%s: no price matched any of %d locators", rule.name, len(rule.price))
        return fields

    def _parse_price(self, raw: str) -> float | None:
        return parse_price(raw, self.rule.price_parser)
