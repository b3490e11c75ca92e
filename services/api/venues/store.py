"""
Read-only venue store over the shared Postgres view.

Every query is index-backed, never a full scan:
  find_exact       venues.slug unique btree index
  find_containing  ILIKE '%fragment%'  -> gin_trgm_ops index on venues.slug
                   slug = ANY(windows) -> btree index (slug contained in fragment)
  find_similar     pg_trgm '%' operator -> same GIN index

Required indexes (owned by the upstream schema):
  CREATE UNIQUE INDEX venues_slug_index ON venues (slug);
  CREATE INDEX venues_slug_trgm_idx ON venues USING gin (slug gin_trgm_ops);

Driver, connection and timeout errors are raised as StoreUnavailable.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import asyncpg

from services.api.venues.models import StoreUnavailable, VenueRecord

logger = logging.getLogger(__name__)

# Longest hyphen-aligned window count we are willing to look up by exact slug.
_MAX_WINDOW_TOKENS = 8

_VENUE_COLUMNS = """
    v.id, v.slug, v.name, v.latitude, v.longitude,
    c.id AS city_id, c.slug AS city_slug, c.name AS city_name,
    co.code AS country_code, co.slug AS country_slug
"""

_VENUE_FROM = """
    FROM venues v
    JOIN cities c ON c.id = v.city_id
    JOIN countries co ON co.id = c.country_id
"""


def _escape_like(fragment: str) -> str:
    return fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def slug_windows(fragment: str) -> list[str]:
    """Every hyphen-aligned sub-slug of fragment, longest first.

    'the-phoenix-pub' -> ['the-phoenix-pub', 'the-phoenix', 'phoenix-pub',
                          'the', 'phoenix', 'pub']
    """
    tokens = [t for t in fragment.split("-") if t]
    if len(tokens) > _MAX_WINDOW_TOKENS:
        # venue names sit at the end of event-style slugs
        tokens = tokens[-_MAX_WINDOW_TOKENS:]
    windows: list[str] = []
    for size in range(len(tokens), 0, -1):
        for start in range(0, len(tokens) - size + 1):
            window = "-".join(tokens[start:start + size])
            if window not in windows:
                windows.append(window)
    return windows


class VenueStore:
    """
    Thin read-only query layer.

    Usage:
        store = VenueStore(pool, timeout_s=2.0)
        venue = await store.find_exact("albion-hotel")
    """

    def __init__(self, pool: asyncpg.Pool, timeout_s: float = 2.0) -> None:
        self._pool = pool
        self._timeout_s = timeout_s

    async def _fetch(self, query: str, *args) -> list:
        if self._pool is None:
            raise StoreUnavailable("venue store has no connection pool")
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetch(query, *args, timeout=self._timeout_s)
        except (asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            raise StoreUnavailable(f"venue store query failed: {exc!r}") from exc

    async def find_exact(self, slug: str) -> Optional[VenueRecord]:
        rows = await self._fetch(
            f"SELECT {_VENUE_COLUMNS} {_VENUE_FROM} WHERE v.slug = $1 LIMIT 1",
            slug,
        )
        return VenueRecord.from_row(rows[0]) if rows else None

    async def find_containing(self, fragment: str, limit: int) -> list[VenueRecord]:
        """Venues whose slug contains fragment, or is contained in it."""
        if not fragment:
            return []
        rows = await self._fetch(
            f"""
            SELECT {_VENUE_COLUMNS} {_VENUE_FROM}
            WHERE v.slug ILIKE '%' || $1 || '%'
               OR v.slug = ANY($2::text[])
            ORDER BY length(v.slug) ASC, v.slug ASC
            LIMIT $3
            """,
            _escape_like(fragment),
            slug_windows(fragment),
            limit,
        )
        return [VenueRecord.from_row(row) for row in rows]

    async def find_similar(
        self,
        text: str,
        limit: int,
        floor: float = 0.5,
    ) -> list[tuple[VenueRecord, float]]:
        """Top trigram matches above floor, most similar first."""
        if not text:
            return []
        rows = await self._fetch(
            f"""
            SELECT {_VENUE_COLUMNS}, similarity(v.slug, $1) AS similarity
            {_VENUE_FROM}
            WHERE v.slug % $1
              AND similarity(v.slug, $1) > $2
            ORDER BY similarity DESC, v.slug ASC
            LIMIT $3
            """,
            text,
            floor,
            limit,
        )
        return [(VenueRecord.from_row(row), float(row["similarity"])) for row in rows]
