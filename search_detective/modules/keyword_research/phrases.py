"""Expand base keywords x cities into deduplicated search phrases."""

import logging
from typing import Sequence

from search_detective.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def generate_phrases(base_keywords: Sequence[str], cities: Sequence[str]) -> list[str]:
    """Combine every base keyword with every city in both orientations.

    For each keyword (input order) and each city (input order) the
    ``"<keyword> <city>"`` form is emitted before ``"<city> <keyword>"``.
    A phrase already emitted earlier in the call is skipped, so the result
    holds no duplicates and keeps first-seen order.

    Raises:
        InvalidInputError: if ``base_keywords`` or ``cities`` is empty.

    Examples:
        >>> generate_phrases(["AC repair"], ["Boise"])
        ['AC repair Boise', 'Boise AC repair']
    """
    if not base_keywords:
        raise InvalidInputError("industry has no base keywords")
    if not cities:
        raise InvalidInputError("at least one city is required")

    seen: set[str] = set()
    phrases: list[str] = []
    for keyword in base_keywords:
        for city in cities:
            for candidate in (f"{keyword} {city}", f"{city} {keyword}"):
                if candidate not in seen:
                    seen.add(candidate)
                    phrases.append(candidate)

    logger.debug(
        "Generated %d phrases from %d keywords x %d cities",
        len(phrases), len(base_keywords), len(cities),
    )
    return phrases
