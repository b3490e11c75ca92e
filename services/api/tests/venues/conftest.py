"""
Shared fixtures for the venue resolution test suite.
"""

import pytest

from services.api.tests.helpers.fake_venue_store import FakeVenueStore
from services.api.venues.cache import InMemoryResultCache
from services.api.venues.resolver import VenueResolver
from services.api.venues.retriever import CandidateRetriever


@pytest.fixture
def store():
    return FakeVenueStore(slugs=[
        "albion-hotel",
        "border-city-ale-house",
        "district-hotel",
        "the-phoenix",
        "o-neills",
    ])


@pytest.fixture
def cache():
    return InMemoryResultCache(ttl_seconds=3600)


@pytest.fixture
def resolver(store, cache):
    retriever = CandidateRetriever(store, timeout_s=1.0)
    return VenueResolver(store, retriever, cache)
