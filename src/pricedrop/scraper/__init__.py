"""Adaptive multi-store product extraction engine."""

from pricedrop.scraper.models import (
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSuccess,
    FailureKind,
    ProductSnapshot,
)
from pricedrop.scraper.orchestrator import (
    ExtractionOrchestrator,
    extract_product,
    extract_products,
)
from pricedrop.scraper.registry import (
    get_supported_stores,
    is_url_supported,
    resolve_rule,
)

__all__ = [
    "ExtractionFailure",
    "ExtractionOrchestrator",
    "ExtractionOutcome",
    "ExtractionSuccess",
    "FailureKind",
    "ProductSnapshot",
    "extract_product",
    "extract_products",
    "get_supported_stores",
    "is_url_supported",
    "resolve_rule",
]
