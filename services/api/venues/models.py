"""
Venue resolution data model.

MatchResult is a closed tagged union of three frozen dataclasses:

    Redirect(venue, confidence)      -- one unambiguous, high-confidence match
    Suggestions(candidates)          -- 1..5 ranked "did you mean" candidates
    NotFound()                       -- nothing worth showing

Consumers dispatch with an isinstance chain that ends in
``raise TypeError(...)`` so a new variant fails loudly everywhere it is not
handled yet.

Serialized form (Redis cache + HTTP envelope):
    {"outcome": "redirect", "venue": {...}, "confidence": 0.97}
    {"outcome": "suggestions", "candidates": [{"venue": {...}, "confidence": 0.8}]}
    {"outcome": "not_found"}
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional, Union


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class VenueResolutionError(Exception):
    """Base class for venue resolution failures."""


class InvalidInput(VenueResolutionError, ValueError):
    """Missing slug is empty or unusable. Never reaches the store."""


class StoreUnavailable(VenueResolutionError):
    """The venue store timed out or refused the connection."""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VenueRecord:
    """A venue row from the read-only store, with its city and country."""
    id: int
    slug: str
    name: str
    city_id: Optional[int] = None
    city_slug: Optional[str] = None
    city_name: Optional[str] = None
    country_code: Optional[str] = None
    country_slug: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_row(cls, row) -> "VenueRecord":
        """Build from an asyncpg.Record (or any mapping with the same keys)."""
        lat = row.get("latitude")
        lng = row.get("longitude")
        return cls(
            id=row["id"],
            slug=row["slug"],
            name=row["name"],
            city_id=row.get("city_id"),
            city_slug=row.get("city_slug"),
            city_name=row.get("city_name"),
            country_code=row.get("country_code"),
            country_slug=row.get("country_slug"),
            latitude=float(lat) if lat is not None else None,
            longitude=float(lng) if lng is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VenueRecord":
        return cls(**data)


@dataclass(frozen=True)
class Candidate:
    """A stored venue paired with its confidence against the current query."""
    venue: VenueRecord
    confidence: float  # 0.0–1.0


# ---------------------------------------------------------------------------
# MatchResult
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Redirect:
    venue: VenueRecord
    confidence: float

    outcome = "redirect"


@dataclass(frozen=True)
class Suggestions:
    candidates: tuple[Candidate, ...]

    outcome = "suggestions"

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValueError("Suggestions must hold at least one candidate; use NotFound")


@dataclass(frozen=True)
class NotFound:
    outcome = "not_found"


MatchResult = Union[Redirect, Suggestions, NotFound]


def result_to_dict(result: MatchResult, ndigits: Optional[int] = None) -> dict[str, Any]:
    """Serialize a MatchResult to a JSON-safe dict.

    Confidence is kept at full precision unless ndigits is given.
    """
    def _confidence(value: float) -> float:
        return round(value, ndigits) if ndigits is not None else value

    if isinstance(result, Redirect):
        return {
            "outcome": Redirect.outcome,
            "venue": result.venue.to_dict(),
            "confidence": _confidence(result.confidence),
        }
    if isinstance(result, Suggestions):
        return {
            "outcome": Suggestions.outcome,
            "candidates": [
                {"venue": c.venue.to_dict(), "confidence": _confidence(c.confidence)}
                for c in result.candidates
            ],
        }
    if isinstance(result, NotFound):
        return {"outcome": NotFound.outcome}
    raise TypeError(f"Unhandled match result: {result!r}")


def result_from_dict(data: dict[str, Any]) -> MatchResult:
    """Inverse of result_to_dict. Raises ValueError on an unknown outcome."""
    outcome = data.get("outcome")
    if outcome == Redirect.outcome:
        return Redirect(
            venue=VenueRecord.from_dict(data["venue"]),
            confidence=float(data["confidence"]),
        )
    if outcome == Suggestions.outcome:
        return Suggestions(candidates=tuple(
            Candidate(venue=VenueRecord.from_dict(c["venue"]), confidence=float(c["confidence"]))
            for c in data["candidates"]
        ))
    if outcome == NotFound.outcome:
        return NotFound()
    raise ValueError(f"Unknown match outcome: {outcome!r}")
