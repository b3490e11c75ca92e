"""
Venue resolution endpoint: GET /venues/{slug}/resolve

Called by the page layer when /{country}/{city}/{venue_slug} has no venue.
Returns the decision in the API envelope; the page layer turns it into a
301, a disambiguation page, or a 404.
"""

from fastapi import APIRouter, Path, Request

from services.api.venues.guard import RedirectChain
from services.api.venues.models import (
    NotFound,
    Redirect,
    Suggestions,
    VenueRecord,
    result_to_dict,
)

router = APIRouter(prefix="/venues", tags=["venues"])

CONFIDENCE_DIGITS = 4


def venue_path(venue: VenueRecord) -> str:
    """Public page path for a venue: /{country}/{city}/{venue}."""
    if venue.country_slug and venue.city_slug:
        return f"/{venue.country_slug}/{venue.city_slug}/{venue.slug}"
    return f"/venues/{venue.slug}"


@router.get("/{slug}/resolve")
async def resolve_venue(
    request: Request,
    slug: str = Path(..., min_length=1, max_length=255, description="Missing venue slug"),
) -> dict:
    resolver = request.app.state.venue_resolver

    # One chain per external request
    result = await resolver.resolve(slug, chain=RedirectChain())

    data = {"slug": slug, **result_to_dict(result, ndigits=CONFIDENCE_DIGITS)}
    if isinstance(result, Redirect):
        data["location"] = venue_path(result.venue)
    elif isinstance(result, Suggestions):
        for entry, candidate in zip(data["candidates"], result.candidates):
            entry["location"] = venue_path(candidate.venue)
    elif not isinstance(result, NotFound):
        raise TypeError(f"Unhandled match result: {result!r}")

    return {
        "success": True,
        "data": data,
        "requestId": request.state.request_id,
    }
