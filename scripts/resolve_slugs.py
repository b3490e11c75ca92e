#!/usr/bin/env python3
"""
Resolve a batch of legacy venue slugs and print what the site would serve.

Usage:
    python3 scripts/resolve_slugs.py legacy_slugs.txt
    cat legacy_slugs.txt | python3 scripts/resolve_slugs.py -
    python3 scripts/resolve_slugs.py legacy_slugs.txt --explain

One slug per line; blank lines and lines starting with '#' are skipped.
Run from the repo root. Reads DATABASE_URL like the API; the result cache is bypassed.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import asyncpg

from services.api.config import settings
from services.api.venues.cache import NullResultCache
from services.api.venues.normalizer import normalize
from services.api.venues.resolver import VenueResolver, describe
from services.api.venues.retriever import CandidateRetriever, default_generators
from services.api.venues.scoring import WEIGHTS, score, score_breakdown
from services.api.venues.store import VenueStore


def read_slugs(source: str) -> list[str]:
    text = sys.stdin.read() if source == "-" else Path(source).read_text()
    return [
        line.strip() for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


async def explain(retriever: CandidateRetriever, slug: str) -> None:
    normalized = normalize(slug)
    venues = await retriever.retrieve(normalized, slug, limit=settings.venue_candidate_limit)
    scored = sorted(
        ((score(v.slug, normalized, slug), v) for v in venues),
        key=lambda pair: (-pair[0], pair[1].slug),
    )
    print(f"    normalized: {normalized!r}, {len(venues)} candidates")
    for confidence, venue in scored:
        signals = score_breakdown(venue.slug, normalized, slug)
        parts = " ".join(
            f"{name}={value * WEIGHTS[name]:.2f}" for name, value in signals.items() if value
        )
        print(f"    {confidence:5.2f}  {venue.slug:<40} {parts}")


async def run(slugs: list[str], show_explain: bool) -> dict[str, int]:
    pool = await asyncpg.create_pool(settings.database_url, min_size=1, max_size=4)
    counts = {"redirect": 0, "suggestions": 0, "not_found": 0}
    try:
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
        resolver = VenueResolver(
            store, retriever, NullResultCache(),
            candidate_limit=settings.venue_candidate_limit,
        )

        for slug in slugs:
            result = await resolver.resolve(slug)
            counts[result.outcome] += 1
            print(f"{slug:<50} {describe(result)}")
            if show_explain:
                await explain(retriever, slug)
    finally:
        await pool.close()
    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve legacy venue slugs")
    parser.add_argument("source", help="File with one slug per line, or '-' for stdin")
    parser.add_argument("--explain", action="store_true", help="Print per-candidate score breakdown")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    slugs = read_slugs(args.source)
    if not slugs:
        print("No slugs to resolve.")
        return 0

    counts = asyncio.run(run(slugs, args.explain))
    print()
    print(
        f"{len(slugs)} slugs: {counts['redirect']} redirect, "
        f"{counts['suggestions']} suggestions, {counts['not_found']} not found"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
