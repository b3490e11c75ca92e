"""
Redirect loop prevention.

Two venues whose slugs fuzzy-match each other can bounce a request
A -> B -> A. A RedirectChain records every slug visited while serving one
external request; a Redirect whose target is already in the chain is not
followed and becomes a single-entry Suggestions instead.

A chain is request-local: build one per request, never share or store it.
"""

from __future__ import annotations

import logging
from typing import Iterator

from services.api.venues.models import (
    Candidate,
    MatchResult,
    NotFound,
    Redirect,
    Suggestions,
)

logger = logging.getLogger(__name__)


class RedirectChain:
    """Insertion-ordered set of slugs seen during one request."""

    def __init__(self) -> None:
        self._seen: dict[str, None] = {}

    def visit(self, slug: str) -> None:
        self._seen.setdefault(slug, None)

    def __contains__(self, slug: object) -> bool:
        return slug in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._seen)

    def __len__(self) -> int:
        return len(self._seen)

    def __repr__(self) -> str:
        return f"RedirectChain({' -> '.join(self._seen)})"


def guard(result: MatchResult, chain: RedirectChain) -> MatchResult:
    """Block redirects back into the chain; record targets that pass."""
    if isinstance(result, Redirect):
        target = result.venue.slug
        if target in chain:
            logger.warning(
                "Redirect loop blocked: %s -> %s, showing as suggestion",
                chain, target,
            )
            return Suggestions(candidates=(
                Candidate(venue=result.venue, confidence=result.confidence),
            ))
        chain.visit(target)
        return result
    if isinstance(result, (Suggestions, NotFound)):
        return result
    raise TypeError(f"Unhandled match result: {result!r}")
