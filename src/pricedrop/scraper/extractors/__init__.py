"""Extractors package: store-rule and generic field extraction strategies."""

from pricedrop.scraper.extractors.base import BaseExtractor
from pricedrop.scraper.extractors.generic import GenericExtractor, extract_generic
from pricedrop.scraper.extractors.store_rule import StoreRuleExtractor

__all__ = [
    "BaseExtractor",
    "GenericExtractor",
    "StoreRuleExtractor",
    "extract_generic",
]
