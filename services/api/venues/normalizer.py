"""
Slug normalization for missing venue URLs.

Older site generations produced venue slugs that no longer exist:
  - numeric disambiguation suffixes   "albion-hotel-1759813035"  -> "albion-hotel"
  - event-specific slugs              "00s-quiz-at-border-city-ale-house" -> "border-city-ale-house"
  - stray separators                  "the__phoenix-"            -> "the-phoenix"

The normalized slug is only a search aid for candidate retrieval and
scoring. It is never used as a key into the venues table.

normalize() is total and idempotent: normalize(normalize(s)) == normalize(s).
"""

import re
import unicodedata

# Hyphen + 7 or more digits at the end. Shorter runs (years, unit numbers)
# are meaningful and kept.
_NUMERIC_SUFFIX_RE = re.compile(r"(?:-\d{7,})+$")

_EVENT_SEPARATOR = "-at-"

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def clean_separators(slug: str) -> str:
    """Fold accents to ASCII and collapse every separator run into one hyphen.

    'the__phoenix'  -> 'the-phoenix'
    '-the-phoenix-' -> 'the-phoenix'
    'café-de-flore' -> 'cafe-de-flore'
    """
    folded = unicodedata.normalize("NFKD", slug)
    ascii_str = folded.encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG_RE.sub("-", ascii_str.lower()).strip("-")


def strip_numeric_suffix(slug: str) -> str:
    """Drop a trailing '-<7+ digits>' disambiguation id.

    'venue-1759813035' -> 'venue'
    'venue-2024'       -> 'venue-2024'
    """
    return _NUMERIC_SUFFIX_RE.sub("", slug)


def extract_venue_from_event_pattern(slug: str) -> str:
    """Keep what follows the last '-at-' ('trivia-night-at-the-phoenix' -> 'the-phoenix')."""
    idx = slug.rfind(_EVENT_SEPARATOR)
    if idx == -1:
        return slug
    venue_part = slug[idx + len(_EVENT_SEPARATOR):]
    return venue_part or slug


def normalize(raw: str) -> str:
    """
    Normalize a missing venue slug for candidate search.

    Steps:
      1. Lowercase
      2. Strip a trailing numeric id of 7+ digits
      3. Take the part after the last '-at-' (event-specific slugs)
      4. Collapse separators, trim leading/trailing hyphens

    Separators are also canonicalized before step 2, otherwise
    'venue_1234567' or 'quiz_at_venue' would only be fully normalized
    on a second pass.

    Returns "" when nothing usable is left.
    """
    if not raw:
        return ""

    slug = clean_separators(raw.lower())
    slug = strip_numeric_suffix(slug)
    slug = extract_venue_from_event_pattern(slug)
    return clean_separators(slug)
