"""
Decision logic for venue resolution.

Responsibilities:
- Turn a scored candidate set into exactly one MatchResult.

Non-Responsibilities:
- No store access, no scoring, no caching.

Invariant:
Redirect is only returned for a single surviving candidate at or above
REDIRECT_THRESHOLD. Several strong candidates are ambiguous and are shown
as Suggestions instead of silently picking one.
"""

from __future__ import annotations

import logging
from typing import Iterable

from services.api.venues.models import (
    Candidate,
    MatchResult,
    NotFound,
    Redirect,
    Suggestions,
)

logger = logging.getLogger(__name__)

NOISE_FLOOR = 0.50
SUGGESTION_THRESHOLD = 0.70
REDIRECT_THRESHOLD = 0.90
MAX_SUGGESTIONS = 5


def rank(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Confidence descending, slug ascending on ties."""
    return sorted(candidates, key=lambda c: (-c.confidence, c.venue.slug))


def decide(candidates: Iterable[Candidate]) -> MatchResult:
    """
    1. Drop candidates below NOISE_FLOOR
    2. Nothing left                      -> NotFound
    3. One left, >= REDIRECT_THRESHOLD   -> Redirect
    4. Top MAX_SUGGESTIONS >= SUGGESTION_THRESHOLD -> Suggestions, else NotFound
    """
    surviving = [c for c in candidates if c.confidence >= NOISE_FLOOR]

    if not surviving:
        return NotFound()

    if len(surviving) == 1 and surviving[0].confidence >= REDIRECT_THRESHOLD:
        only = surviving[0]
        return Redirect(venue=only.venue, confidence=only.confidence)

    suggestable = rank(c for c in surviving if c.confidence >= SUGGESTION_THRESHOLD)
    if not suggestable:
        logger.debug(
            "%d candidates above noise floor, none above suggestion threshold",
            len(surviving),
        )
        return NotFound()

    return Suggestions(candidates=tuple(suggestable[:MAX_SUGGESTIONS]))
