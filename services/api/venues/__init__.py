"""
Venue resolution package.

Decides what to serve for a venue slug that no longer exists: a redirect to
the right venue, ranked "did you mean" suggestions, or not found.
"""

from services.api.venues.models import (
    Candidate,
    InvalidInput,
    MatchResult,
    NotFound,
    Redirect,
    StoreUnavailable,
    Suggestions,
    VenueRecord,
)
from services.api.venues.guard import RedirectChain
from services.api.venues.resolver import VenueResolver

__all__ = [
    "Candidate",
    "InvalidInput",
    "MatchResult",
    "NotFound",
    "Redirect",
    "RedirectChain",
    "StoreUnavailable",
    "Suggestions",
    "VenueRecord",
    "VenueResolver",
]
