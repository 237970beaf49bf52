"""
Test suite for candidate deduplication, ranking and the acceptance gate.

Tests cover:
- Stable ranking by confidence
- Dedup by value, then by position
- Effective acceptance threshold for every strategy tag
- Positional leniency for low-confidence candidates
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boardpass.services import strategies
from boardpass.utils.airports import BUILTIN_AIRPORT_CODES
from boardpass.utils.candidates import Candidate, StrategyKind, create_candidate
from boardpass.utils.scoring import (
    ACCEPTED_BY_POSITION,
    ACCEPTED_BY_THRESHOLD,
    DEFAULT_MIN_CONFIDENCE,
    GENERIC_MIN_CONFIDENCE,
    deduplicate_candidates,
    is_well_positioned,
    minimum_confidence,
    rank_candidates,
    select_best_candidate,
)
import pytest


def make_candidate(value, confidence, position=0, tag="test", context_after=""):
    return Candidate(
        value=value,
        confidence=confidence,
        strategy_tag=tag,
        kind=StrategyKind.GENERIC_FALLBACK,
        position=position,
        context_after=context_after,
    )


class TestCreateCandidate:

    def test_context_windows(self):
        text = "M1DOE/JOHN ABYFMKNE FIHGOMET 0072"
        candidate = create_candidate(
            value="YFMKNE",
            confidence=98,
            strategy_tag="space_delimited[2+6]",
            kind=StrategyKind.SPACE_DELIMITED,
            position=10,
            text=text,
            match_end=19,
        )
        assert candidate.context_before == "M1DOE/JOHN"
        assert candidate.context_after == " FIHGOMET 0072"

    def test_context_before_is_capped(self):
        text = "M1" + "A" * 50 + " ABYFMKNE"
        candidate = create_candidate("YFMKNE", 98, "t", StrategyKind.SPACE_DELIMITED, 52, text, 61)
        assert len(candidate.context_before) == 30

    def test_confidence_is_clamped(self):
        high = create_candidate("ABCDEF", 150, "t", StrategyKind.GENERIC_FALLBACK, 0, "ABCDEF", 6)
        low = create_candidate("ABCDEF", -5, "t", StrategyKind.GENERIC_FALLBACK, 0, "ABCDEF", 6)
        assert high.confidence == 100
        assert low.confidence == 0


class TestRanking:

    def test_highest_confidence_first(self):
        ranked = rank_candidates([
            make_candidate("AAAAAA", 30),
            make_candidate("BBBBBB", 98),
            make_candidate("CCCCCC", 70),
        ])
        assert [c.value for c in ranked] == ["BBBBBB", "CCCCCC", "AAAAAA"]

    def test_ties_keep_discovery_order(self):
        ranked = rank_candidates([
            make_candidate("AAAAAA", 98),
            make_candidate("BBBBBB", 98),
            make_candidate("CCCCCC", 98),
        ])
        assert [c.value for c in ranked] == ["AAAAAA", "BBBBBB", "CCCCCC"]


class TestDeduplication:

    def test_same_value_keeps_highest_confidence(self):
        result = deduplicate_candidates([
            make_candidate("YFMKNE", 30, position=2),
            make_candidate("YFMKNE", 98, position=10),
        ])
        assert len(result) == 1
        assert result[0].confidence == 98
        assert result[0].position == 10

    def test_same_position_keeps_highest_confidence(self):
        result = deduplicate_candidates([
            make_candidate("BYFMKN", 70, position=10),
            make_candidate("YFMKNE", 98, position=10),
        ])
        assert [c.value for c in result] == ["YFMKNE"]

    def test_same_position_equal_confidence_keeps_first(self):
        result = deduplicate_candidates([
            make_candidate("OIFLBU", 98, position=19),
            make_candidate("EOIFLB", 98, position=19),
            make_candidate("REOIFL", 70, position=19),
        ])
        assert [c.value for c in result] == ["OIFLBU"]

    def test_distinct_positions_survive(self):
        result = deduplicate_candidates([
            make_candidate("EGPKZL", 80, position=15),
            make_candidate("SAMUEL", 80, position=0),
        ])
        assert [c.value for c in result] == ["EGPKZL", "SAMUEL"]

    def test_output_order_follows_value_pass(self):
        result = deduplicate_candidates([
            make_candidate("XXXXXX", 30, position=0),
            make_candidate("YFMKNE", 98, position=10),
            make_candidate("BYFMKN", 70, position=20),
        ])
        assert [c.value for c in result] == ["YFMKNE", "BYFMKN", "XXXXXX"]

    def test_empty(self):
        assert deduplicate_candidates([]) == []


class TestMinimumConfidence:
    """
    The stricter threshold is keyed off a marker word that no strategy tag
    carries, so the lower threshold applies uniformly. These tests pin the
    current effective behavior.
    """

    @pytest.mark.parametrize("tag", [
        strategies.SPACE_DELIMITED.name + "[2+6]",
        "carrier_adjacent",
        strategies.BET_FLIGHT.name,
        strategies.SECONDARY_PREAMBLE.name,
        strategies.GENERIC_ET_FLIGHT.name,
        strategies.GENERIC_MAJOR_AIRPORT.name,
        strategies.GENERIC_SIX_LETTER.name,
    ])
    def test_every_strategy_uses_default_threshold(self, tag):
        assert minimum_confidence(tag) == DEFAULT_MIN_CONFIDENCE == 30

    def test_marker_word_raises_threshold(self):
        assert minimum_confidence("pattern générique") == GENERIC_MIN_CONFIDENCE == 40

    def test_unaccented_word_does_not_match(self):
        assert minimum_confidence("generic_six_letter") == 30


class TestPositionalLeniency:

    def test_followed_by_carrier_marker(self):
        candidate = make_candidate("OIFLBU", 30, position=15, context_after="ET 0080")
        assert is_well_positioned(candidate, BUILTIN_AIRPORT_CODES)

    def test_followed_by_spaced_carrier_marker(self):
        candidate = make_candidate("OIFLBU", 30, position=15, context_after="  ET 0080")
        assert is_well_positioned(candidate, BUILTIN_AIRPORT_CODES)

    def test_followed_by_letter_block(self):
        candidate = make_candidate("OIFLBU", 35, position=15, context_after="XYZ 0080")
        assert is_well_positioned(candidate, BUILTIN_AIRPORT_CODES)

    def test_airport_anywhere_after(self):
        candidate = make_candidate("OIFLBU", 30, position=15, context_after=" 12 FIH")
        assert is_well_positioned(candidate, BUILTIN_AIRPORT_CODES)

    def test_too_close_to_header(self):
        candidate = make_candidate("OIFLBU", 30, position=5, context_after="ET 0080")
        assert not is_well_positioned(candidate, BUILTIN_AIRPORT_CODES)

    def test_confidence_outside_window(self):
        high = make_candidate("OIFLBU", 40, position=15, context_after="ET 0080")
        low = make_candidate("OIFLBU", 29, position=15, context_after="ET 0080")
        assert not is_well_positioned(high, BUILTIN_AIRPORT_CODES)
        assert not is_well_positioned(low, BUILTIN_AIRPORT_CODES)

    def test_uncorroborated(self):
        candidate = make_candidate("OIFLBU", 30, position=15, context_after=" 12 34")
        assert not is_well_positioned(candidate, BUILTIN_AIRPORT_CODES)


class TestSelectBestCandidate:

    def test_empty(self):
        assert select_best_candidate([], BUILTIN_AIRPORT_CODES) is None

    def test_high_confidence_accepted_by_threshold(self):
        best = make_candidate("YFMKNE", 98, position=10)
        result = select_best_candidate([best], BUILTIN_AIRPORT_CODES)
        assert result == (best, ACCEPTED_BY_THRESHOLD)

    def test_threshold_is_inclusive(self):
        best = make_candidate("XXXXXX", 30, position=0)
        result = select_best_candidate([best], BUILTIN_AIRPORT_CODES)
        assert result == (best, ACCEPTED_BY_THRESHOLD)

    def test_below_threshold_rejected(self):
        weak = make_candidate("XXXXXX", 20, position=0)
        assert select_best_candidate([weak], BUILTIN_AIRPORT_CODES) is None

    def test_well_positioned_top_candidate(self):
        anchored = make_candidate("OIFLBU", 30, position=15, context_after="ET 0080")

        candidate, accepted_by = select_best_candidate([anchored], BUILTIN_AIRPORT_CODES)
        assert candidate.value == "OIFLBU"
        assert accepted_by == ACCEPTED_BY_POSITION

    def test_only_top_candidate_is_checked_for_position(self):
        """A later, better-positioned tie never displaces the first-ranked candidate."""
        header = make_candidate("JOHNSO", 30, position=2, context_after="N/MARY OIFLBUET 008")
        anchored = make_candidate("OIFLBU", 30, position=15, context_after="ET 0080")

        candidate, accepted_by = select_best_candidate([header, anchored], BUILTIN_AIRPORT_CODES)
        assert candidate.value == "JOHNSO"
        assert accepted_by == ACCEPTED_BY_THRESHOLD

    def test_first_discovered_tie_goes_to_threshold_rule(self):
        early = make_candidate("ABCDEF", 30, position=0, context_after="ET12 1 QWERTYCDG")
        late = make_candidate("QWERTY", 30, position=13, context_after="CDG")

        candidate, accepted_by = select_best_candidate([early, late], BUILTIN_AIRPORT_CODES)
        assert candidate.value == "ABCDEF"
        assert accepted_by == ACCEPTED_BY_THRESHOLD

    def test_leniency_does_not_override_higher_confidence(self):
        strong = make_candidate("EGPKZL", 80, position=15)
        anchored = make_candidate("OIFLBU", 30, position=30, context_after="ET 0080")

        candidate, accepted_by = select_best_candidate([anchored, strong], BUILTIN_AIRPORT_CODES)
        assert candidate.value == "EGPKZL"
        assert accepted_by == ACCEPTED_BY_THRESHOLD
