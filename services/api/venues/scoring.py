"""
Confidence scoring for venue slug candidates.

Responsibilities:
- Compute a deterministic confidence in [0, 1] between a stored venue slug
  and a missing slug (normalized + raw form).
- Emit a per-signal breakdown for logging and the resolve_slugs script.

Non-Responsibilities:
- No store access.
- No threshold decisions (see decision.py).

No single metric is enough: edit distance underperforms on short slugs and
prefix matching misses typos, so several weak signals are summed and capped.

| Signal          | Weight | Fires when                                              |
|-----------------|--------|---------------------------------------------------------|
| exact           | 0.40   | candidate == normalized                                 |
| jaro_winkler    | 0.20   | Jaro-Winkler(candidate, normalized), graded             |
| jaro_winkler_raw| 0.05   | Jaro-Winkler(candidate, raw), graded                    |
| prefix_ratio    | 0.15   | shared prefix / longer length, graded                   |
| containment     | 0.10   | either slug is a substring of the other                 |
| starts_with     | 0.25   | candidate starts with normalized + '-' (or equals it)   |
| near_miss       | 0.45   | Levenshtein 1..2, no containment, both >= 4 chars       |

near_miss lets a single typo ('distric-hotel') reach the suggestion band.
Without exact/containment/starts_with it tops out at 0.85, below the
redirect threshold, so typos are suggested but never auto-redirected.
"""

from __future__ import annotations

from typing import Iterable

from rapidfuzz.distance import JaroWinkler, Levenshtein

from services.api.venues.models import Candidate, VenueRecord

WEIGHTS: dict[str, float] = {
    "exact": 0.40,
    "jaro_winkler": 0.20,
    "jaro_winkler_raw": 0.05,
    "prefix_ratio": 0.15,
    "containment": 0.10,
    "starts_with": 0.25,
    "near_miss": 0.45,
}

NEAR_MISS_MAX_EDITS = 2
NEAR_MISS_MIN_LENGTH = 4


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def jaro_winkler(a: str, b: str) -> float:
    """Jaro-Winkler similarity in [0, 1]; 0.0 if either side is empty."""
    if not a or not b:
        return 0.0
    return _clamp(JaroWinkler.similarity(a, b))


def common_prefix_ratio(a: str, b: str) -> float:
    """Shared prefix length over the length of the longer string."""
    longer = max(len(a), len(b))
    if longer == 0:
        return 0.0
    shared = 0
    for ch_a, ch_b in zip(a, b):
        if ch_a != ch_b:
            break
        shared += 1
    return shared / longer


def _contains_either(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def _starts_with_base(candidate_slug: str, normalized: str) -> bool:
    if not normalized or not candidate_slug.startswith(normalized):
        return False
    rest = candidate_slug[len(normalized):]
    return rest == "" or rest.startswith("-")


def _is_near_miss(candidate_slug: str, normalized: str) -> bool:
    if min(len(candidate_slug), len(normalized)) < NEAR_MISS_MIN_LENGTH:
        return False
    if _contains_either(candidate_slug, normalized):
        return False
    distance = Levenshtein.distance(
        candidate_slug, normalized, score_cutoff=NEAR_MISS_MAX_EDITS,
    )
    return 1 <= distance <= NEAR_MISS_MAX_EDITS


def score_breakdown(candidate_slug: str, normalized: str, raw: str) -> dict[str, float]:
    """Per-signal values, each in [0, 1], before weighting."""
    return {
        "exact": 1.0 if normalized and candidate_slug == normalized else 0.0,
        "jaro_winkler": jaro_winkler(candidate_slug, normalized),
        "jaro_winkler_raw": jaro_winkler(candidate_slug, raw),
        "prefix_ratio": _clamp(common_prefix_ratio(candidate_slug, normalized)),
        "containment": 1.0 if _contains_either(candidate_slug, normalized) else 0.0,
        "starts_with": 1.0 if _starts_with_base(candidate_slug, normalized) else 0.0,
        "near_miss": 1.0 if _is_near_miss(candidate_slug, normalized) else 0.0,
    }


def score(candidate_slug: str, normalized: str, raw: str) -> float:
    """Weighted sum of all signals, capped at 1.0."""
    signals = score_breakdown(candidate_slug, normalized, raw)
    total = sum(WEIGHTS[name] * value for name, value in signals.items())
    return _clamp(total)


def score_candidates(
    venues: Iterable[VenueRecord],
    normalized: str,
    raw: str,
) -> list[Candidate]:
    """Pair every venue with its confidence. Order is preserved."""
    return [
        Candidate(venue=venue, confidence=score(venue.slug, normalized, raw))
        for venue in venues
    ]
