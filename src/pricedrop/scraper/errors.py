"""Exceptions raised inside the engine; converted to ExtractionFailure at the boundary."""

from __future__ import annotations

from pricedrop.scraper.models import ExtractionFailure, FailureKind


class ExtractionError(Exception):
    """Base class for terminal extraction failures."""

    kind: FailureKind = FailureKind.FETCH_FAILED

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url

    def to_failure(self) -> ExtractionFailure:
        return ExtractionFailure(kind=self.kind, message=self.message, url=self.url)


class UnsupportedStoreError(ExtractionError):
    kind = FailureKind.UNSUPPORTED_STORE


class FetchFailedError(ExtractionError):
    kind = FailureKind.FETCH_FAILED


class FetchTimeoutError(ExtractionError):
    kind = FailureKind.TIMEOUT


class PriceNotFoundError(ExtractionError):
    kind = FailureKind.PRICE_NOT_FOUND
