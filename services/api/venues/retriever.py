"""
Candidate retrieval for a missing venue slug.

Responsibilities:
- Fan out a fixed, ordered list of candidate generators against the store.
- Merge their results, dedupe by venue id, cap the total.

Non-Responsibilities:
- No scoring.
- No resolution decisions.

Invariant:
Retrieval may return false positives but must not silently hide a store
outage: if every generator fails, StoreUnavailable is raised. A single
failing generator only narrows the result.

New signals (phonetic, alias table, ...) are added as another generator;
the merge below does not change.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from services.api.venues.models import StoreUnavailable, VenueRecord
from services.api.venues.store import VenueStore

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_LIMIT = 50


class CandidateGenerator:
    """One retrieval strategy. Subclasses implement generate()."""

    name = "base"

    async def generate(self, store: VenueStore, normalized: str, raw: str) -> list[VenueRecord]:
        raise NotImplementedError


class ExactSlugGenerator(CandidateGenerator):
    """Venue slug equals the normalized slug."""

    name = "exact"

    async def generate(self, store: VenueStore, normalized: str, raw: str) -> list[VenueRecord]:
        venue = await store.find_exact(normalized)
        return [venue] if venue is not None else []


class ContainmentGenerator(CandidateGenerator):
    """
    Venue slug contains the search term or vice versa.

    Also tries the lowercased raw slug when it differs, in case
    normalization cut away the distinguishing part.
    """

    name = "containment"

    def __init__(self, limit: int = 20, min_length: int = 3) -> None:
        self.limit = limit
        self.min_length = min_length

    async def generate(self, store: VenueStore, normalized: str, raw: str) -> list[VenueRecord]:
        terms = [normalized]
        raw_term = raw.strip().lower()
        if raw_term and raw_term != normalized:
            terms.append(raw_term)

        venues: list[VenueRecord] = []
        for term in terms:
            if len(term) < self.min_length:
                continue
            venues.extend(await store.find_containing(term, self.limit))
        return venues


class SimilarityGenerator(CandidateGenerator):
    """Trigram similarity above a low floor, best first."""

    name = "similar"

    def __init__(self, limit: int = 10, floor: float = 0.5) -> None:
        self.limit = limit
        self.floor = floor

    async def generate(self, store: VenueStore, normalized: str, raw: str) -> list[VenueRecord]:
        matches = await store.find_similar(normalized, self.limit, self.floor)
        return [venue for venue, _similarity in matches]


def default_generators(
    containment_limit: int = 20,
    similar_limit: int = 10,
    similarity_floor: float = 0.5,
) -> list[CandidateGenerator]:
    return [
        ExactSlugGenerator(),
        ContainmentGenerator(limit=containment_limit),
        SimilarityGenerator(limit=similar_limit, floor=similarity_floor),
    ]


class CandidateRetriever:
    """
    Usage:
        retriever = CandidateRetriever(store, timeout_s=2.0)
        venues = await retriever.retrieve("albion-hotel", "albion-hotel-1759813035")
    """

    def __init__(
        self,
        store: VenueStore,
        generators: Optional[Sequence[CandidateGenerator]] = None,
        timeout_s: float = 2.0,
    ) -> None:
        self._store = store
        self._generators = list(generators) if generators is not None else default_generators()
        self._timeout_s = timeout_s

    @property
    def generators(self) -> list[CandidateGenerator]:
        return list(self._generators)

    async def retrieve(
        self,
        normalized: str,
        raw: str,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[VenueRecord]:
        if not normalized or not self._generators:
            return []

        outcomes = await asyncio.gather(
            *(
                asyncio.wait_for(
                    generator.generate(self._store, normalized, raw),
                    timeout=self._timeout_s,
                )
                for generator in self._generators
            ),
            return_exceptions=True,
        )

        merged: dict[object, VenueRecord] = {}
        failures = 0
        for generator, outcome in zip(self._generators, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                failures += 1
                logger.warning(
                    "Candidate generator %r failed for %r: %r",
                    generator.name, normalized, outcome,
                )
                continue
            for venue in outcome:
                merged.setdefault(venue.id, venue)

        if failures == len(self._generators):
            raise StoreUnavailable(
                f"all {failures} candidate generators failed for {normalized!r}"
            )

        candidates = list(merged.values())[:limit]
        logger.debug(
            "Retrieved %d candidates for %r (%d generator failures)",
            len(candidates), normalized, failures,
        )
        return candidates
