"""Tests for the asyncpg-backed venue store."""

import asyncio

import asyncpg
import pytest

from services.api.tests.helpers.fake_venue_store import make_fake_pool
from services.api.venues.models import StoreUnavailable, VenueRecord
from services.api.venues.store import VenueStore, _escape_like, slug_windows


def _row(slug="albion-hotel", **extra):
    row = {
        "id": 42,
        "slug": slug,
        "name": "Albion Hotel",
        "latitude": -33.87,
        "longitude": 151.21,
        "city_id": 7,
        "city_slug": "sydney",
        "city_name": "Sydney",
        "country_code": "AU",
        "country_slug": "australia",
    }
    row.update(extra)
    return row


class TestFindExact:
    @pytest.mark.asyncio
    async def test_returns_record(self):
        pool, conn = make_fake_pool()
        conn.fetch.return_value = [_row()]
        store = VenueStore(pool, timeout_s=1.5)

        venue = await store.find_exact("albion-hotel")

        assert isinstance(venue, VenueRecord)
        assert venue.slug == "albion-hotel"
        assert venue.city_slug == "sydney"
        assert venue.country_slug == "australia"
        query, slug = conn.fetch.call_args.args
        assert "v.slug = $1" in query
        assert slug == "albion-hotel"
        assert conn.fetch.call_args.kwargs["timeout"] == 1.5

    @pytest.mark.asyncio
    async def test_missing_is_none(self):
        pool, conn = make_fake_pool()
        conn.fetch.return_value = []

        assert await VenueStore(pool).find_exact("nowhere") is None


class TestFindContaining:
    @pytest.mark.asyncio
    async def test_passes_escaped_fragment_windows_and_limit(self):
        pool, conn = make_fake_pool()
        conn.fetch.return_value = [_row("the-phoenix"), _row("the-phoenix-hotel", id=43)]
        store = VenueStore(pool)

        venues = await store.find_containing("the-phoenix", 20)

        assert [v.slug for v in venues] == ["the-phoenix", "the-phoenix-hotel"]
        query, fragment, windows, limit = conn.fetch.call_args.args
        assert "ILIKE" in query
        assert "ANY($2::text[])" in query
        assert fragment == "the-phoenix"
        assert windows == ["the-phoenix", "the", "phoenix"]
        assert limit == 20

    @pytest.mark.asyncio
    async def test_empty_fragment_skips_query(self):
        pool, conn = make_fake_pool()

        assert await VenueStore(pool).find_containing("", 20) == []
        conn.fetch.assert_not_called()


class TestFindSimilar:
    @pytest.mark.asyncio
    async def test_returns_pairs(self):
        pool, conn = make_fake_pool()
        conn.fetch.return_value = [_row("district-hotel", similarity=0.72)]
        store = VenueStore(pool)

        matches = await store.find_similar("distric-hotel", 10, 0.5)

        assert len(matches) == 1
        venue, similarity = matches[0]
        assert venue.slug == "district-hotel"
        assert similarity == pytest.approx(0.72)
        query, text, floor, limit = conn.fetch.call_args.args
        assert "v.slug % $1" in query
        assert (text, floor, limit) == ("distric-hotel", 0.5, 10)

    @pytest.mark.asyncio
    async def test_empty_text_skips_query(self):
        pool, conn = make_fake_pool()

        assert await VenueStore(pool).find_similar("", 10) == []
        conn.fetch.assert_not_called()


class TestErrorTranslation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        asyncio.TimeoutError(),
        ConnectionRefusedError("connection refused"),
        asyncpg.InterfaceError("pool is closing"),
    ])
    async def test_driver_errors_become_store_unavailable(self, error):
        pool, conn = make_fake_pool()
        conn.fetch.side_effect = error

        with pytest.raises(StoreUnavailable):
            await VenueStore(pool).find_exact("albion-hotel")

    @pytest.mark.asyncio
    async def test_missing_pool_is_store_unavailable(self):
        with pytest.raises(StoreUnavailable):
            await VenueStore(None).find_exact("albion-hotel")

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        pool, conn = make_fake_pool()
        conn.fetch.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await VenueStore(pool).find_exact("albion-hotel")


class TestSlugWindows:
    def test_longest_first(self):
        assert slug_windows("the-phoenix-pub") == [
            "the-phoenix-pub",
            "the-phoenix", "phoenix-pub",
            "the", "phoenix", "pub",
        ]

    def test_deduplicates(self):
        assert slug_windows("a-a") == ["a-a", "a"]

    def test_ignores_empty_tokens(self):
        assert slug_windows("-a--b-") == ["a-b", "a", "b"]

    def test_caps_token_count(self):
        windows = slug_windows("-".join(str(i) for i in range(12)))
        assert windows[0] == "4-5-6-7-8-9-10-11"

    def test_long_event_slug_keeps_venue_tail(self):
        windows = slug_windows("00s-quiz-vol-1-at-border-city-ale-house")
        assert windows[0] == "quiz-vol-1-at-border-city-ale-house"
        assert "border-city-ale-house" in windows


class TestEscapeLike:
    def test_escapes_wildcards(self):
        assert _escape_like("100%_off") == "100\\%\\_off"
        assert _escape_like("a\\b") == "a\\\\b"
