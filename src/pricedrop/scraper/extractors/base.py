"""Abstract base class for field extractors (Strategy Pattern)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.models import ExtractedFields


class BaseExtractor(ABC):
    """
    Contract for all product field extractors.

    The parsed document is injected via __init__. Subclasses locate each
    field and return an ExtractedFields — never raw strings.

    Principles:
    - Leave a field as None when it cannot be found (never raise).
    - Deciding which missing fields are fatal is the orchestrator's job.
    - All methods are async for parity with the fetchers.
    """

    def __init__(self, document: ParsedDocument, url: str | None = None) -> None:
        self.document = document
        self.url = url or document.url

    @abstractmethod
    async def extract_all(self) -> ExtractedFields:
        """
        Main entry point. Runs every field lookup and returns the raw,
        normalized-per-field values.
        """
        ...
