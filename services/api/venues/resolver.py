"""
VenueResolver: what to do with a venue slug that does not exist.

Flow per call:
  1. Blank input                    -> NotFound (no store access)
  2. normalize(missing_slug)        -> "" means NotFound
  3. cache.get_or_resolve(normalized, retrieve -> score -> decide)
  4. guard(result, chain)           -> no redirect back into this request's chain
  5. Redirect target existence check (cached decisions may be stale)

Graceful degradation:
  StoreUnavailable at any step is logged and returned as NotFound. A slow
  or broken store shows a not-found page, never an error page.

The caller maps the outcome to HTTP: Redirect -> 301, Suggestions ->
disambiguation page, NotFound -> 404.
"""

from __future__ import annotations

import logging
from typing import Optional

from services.api.venues.cache import ResultCache, build_result_cache
from services.api.venues.decision import decide
from services.api.venues.guard import RedirectChain, guard
from services.api.venues.models import (
    InvalidInput,
    MatchResult,
    NotFound,
    Redirect,
    StoreUnavailable,
    Suggestions,
)
from services.api.venues.normalizer import normalize
from services.api.venues.retriever import (
    DEFAULT_CANDIDATE_LIMIT,
    CandidateRetriever,
    default_generators,
)
from services.api.venues.scoring import score_candidates
from services.api.venues.store import VenueStore

logger = logging.getLogger(__name__)


def _validate(missing_slug) -> str:
    if not isinstance(missing_slug, str):
        raise InvalidInput(f"missing slug must be a string, got {type(missing_slug).__name__}")
    slug = missing_slug.strip()
    if not slug:
        raise InvalidInput("missing slug is empty")
    return slug


def describe(result: MatchResult) -> str:
    """One-line summary for logs and the resolve_slugs script."""
    if isinstance(result, Redirect):
        return f"redirect -> {result.venue.slug} ({result.confidence:.0%})"
    if isinstance(result, Suggestions):
        slugs = ", ".join(f"{c.venue.slug} ({c.confidence:.0%})" for c in result.candidates)
        return f"suggestions [{slugs}]"
    if isinstance(result, NotFound):
        return "not found"
    raise TypeError(f"Unhandled match result: {result!r}")


class VenueResolver:
    """
    Usage:
        resolver = VenueResolver(store, retriever, cache)
        result = await resolver.resolve("albion-hotel-1759813035")
    """

    def __init__(
        self,
        store: VenueStore,
        retriever: CandidateRetriever,
        cache: ResultCache,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        self._store = store
        self._retriever = retriever
        self._cache = cache
        self._candidate_limit = candidate_limit

    @classmethod
    def from_settings(cls, pool, redis, settings) -> "VenueResolver":
        store = VenueStore(pool, timeout_s=settings.venue_store_timeout_s)
        retriever = CandidateRetriever(
            store,
            generators=default_generators(
                containment_limit=settings.venue_containment_limit,
                similar_limit=settings.venue_similar_limit,
                similarity_floor=settings.venue_similarity_floor,
            ),
            timeout_s=settings.venue_store_timeout_s,
        )
        cache = build_result_cache(
            settings.venue_match_cache_backend,
            redis=redis,
            ttl_seconds=settings.venue_match_cache_ttl_s,
            max_entries=settings.venue_match_cache_max_entries,
        )
        return cls(store, retriever, cache, candidate_limit=settings.venue_candidate_limit)

    async def resolve(
        self,
        missing_slug: str,
        chain: Optional[RedirectChain] = None,
    ) -> MatchResult:
        """Resolve one missing slug. Pass the same chain for every hop of one request."""
        chain = chain if chain is not None else RedirectChain()

        try:
            raw = _validate(missing_slug)
        except InvalidInput as exc:
            logger.info("Venue resolution skipped: %s", exc)
            return NotFound()

        chain.visit(raw)
        normalized = normalize(raw)
        logger.debug("Resolving missing venue %r, normalized to %r", raw, normalized)
        if not normalized:
            logger.info("No usable search term in %r", raw)
            return NotFound()

        try:
            result = await self._cache.get_or_resolve(
                normalized, lambda: self._compute(normalized, raw),
            )
            result = guard(result, chain)
            if isinstance(result, Redirect):
                result = await self._confirm_redirect(result, normalized, raw, chain)
        except StoreUnavailable:
            logger.warning(
                "Venue store unavailable resolving %r, returning not found",
                raw, exc_info=True,
            )
            return NotFound()

        logger.info("Venue resolution for %r: %s", raw, describe(result))
        return result

    async def _compute(self, normalized: str, raw: str) -> MatchResult:
        venues = await self._retriever.retrieve(normalized, raw, limit=self._candidate_limit)
        return decide(score_candidates(venues, normalized, raw))

    async def _confirm_redirect(
        self,
        result: Redirect,
        normalized: str,
        raw: str,
        chain: RedirectChain,
    ) -> MatchResult:
        """Redirect only to a venue that still exists; recompute once if it is gone."""
        stale_slug = result.venue.slug
        if await self._store.find_exact(stale_slug) is not None:
            return result

        logger.info("Cached redirect target %r no longer exists, recomputing", stale_slug)
        await self._cache.discard(normalized)
        fresh = await self._cache.get_or_resolve(
            normalized, lambda: self._compute(normalized, raw),
        )
        if not isinstance(fresh, Redirect):
            return fresh
        if fresh.venue.slug == stale_slug:
            return NotFound()

        fresh = guard(fresh, chain)
        if isinstance(fresh, Redirect) and await self._store.find_exact(fresh.venue.slug) is None:
            return NotFound()
        return fresh
