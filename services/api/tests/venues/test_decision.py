"""Tests for the redirect / suggestions / not-found decision."""

from services.api.tests.helpers.fake_venue_store import make_venue
from services.api.venues.decision import MAX_SUGGESTIONS, decide, rank
from services.api.venues.models import Candidate, NotFound, Redirect, Suggestions


def _candidate(slug: str, confidence: float) -> Candidate:
    return Candidate(venue=make_venue(slug), confidence=confidence)


class TestDecide:
    def test_no_candidates_is_not_found(self):
        assert decide([]) == NotFound()

    def test_noise_is_discarded(self):
        assert decide([_candidate("a", 0.49), _candidate("b", 0.1)]) == NotFound()

    def test_single_strong_candidate_redirects(self):
        result = decide([_candidate("albion-hotel", 0.95)])
        assert isinstance(result, Redirect)
        assert result.venue.slug == "albion-hotel"
        assert result.confidence == 0.95

    def test_redirect_threshold_is_inclusive(self):
        assert isinstance(decide([_candidate("a", 0.90)]), Redirect)

    def test_noise_does_not_block_redirect(self):
        result = decide([_candidate("albion-hotel", 0.95), _candidate("other", 0.3)])
        assert isinstance(result, Redirect)

    def test_two_strong_candidates_never_redirect(self):
        result = decide([_candidate("the-phoenix", 0.97), _candidate("the-phoenix-pub", 0.95)])
        assert isinstance(result, Suggestions)
        assert [c.venue.slug for c in result.candidates] == ["the-phoenix", "the-phoenix-pub"]

    def test_tied_strong_candidates_never_redirect(self):
        result = decide([_candidate("b-venue", 1.0), _candidate("a-venue", 1.0)])
        assert isinstance(result, Suggestions)
        assert [c.venue.slug for c in result.candidates] == ["a-venue", "b-venue"]

    def test_single_medium_candidate_is_suggested(self):
        result = decide([_candidate("district-hotel", 0.76)])
        assert isinstance(result, Suggestions)
        assert result.candidates[0].venue.slug == "district-hotel"

    def test_survivors_below_suggestion_threshold_are_not_found(self):
        assert decide([_candidate("a", 0.65), _candidate("b", 0.55)]) == NotFound()

    def test_suggestions_exclude_weak_survivors(self):
        result = decide([_candidate("a", 0.8), _candidate("b", 0.6)])
        assert [c.venue.slug for c in result.candidates] == ["a"]

    def test_suggestions_capped_and_sorted(self):
        candidates = [_candidate(f"venue-{i}", 0.70 + i * 0.02) for i in range(8)]
        result = decide(candidates)
        assert isinstance(result, Suggestions)
        assert len(result.candidates) == MAX_SUGGESTIONS
        confidences = [c.confidence for c in result.candidates]
        assert confidences == sorted(confidences, reverse=True)
        assert result.candidates[0].venue.slug == "venue-7"


class TestRank:
    def test_confidence_then_slug(self):
        ranked = rank([
            _candidate("c", 0.8),
            _candidate("b", 0.9),
            _candidate("a", 0.8),
        ])
        assert [c.venue.slug for c in ranked] == ["b", "a", "c"]
