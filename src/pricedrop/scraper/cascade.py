"""Selector cascade evaluator: first locator/element whose value normalizes wins."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from pricedrop.scraper.document import ParsedDocument
from pricedrop.scraper.models import Locator

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract_field(
    document: ParsedDocument,
    cascade: Iterable[Locator],
    normalizer: Callable[[str], T | None],
) -> T | None:
    """
    Evaluate a locator cascade against the document.

    Every element matched by a locator is tried, not only the first one:
    pages often render a hidden placeholder before the real value. Returns
    None when no locator yields a value the normalizer accepts.
    """
    for locator in cascade:
        candidates = document.values(locator)
        if not candidates:
            logger.debug("Locator %s: no match", locator)
            continue

        for raw in candidates:
            value = normalizer(raw)
            if value is not None and value != "":
                logger.debug("Locator %s: accepted %r", locator, raw[:80])
                return value

        logger.debug("Locator %s: %d match(es), none usable", locator, len(candidates))

    return None
