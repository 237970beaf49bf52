"""
Candidate dataclasses for PNR extraction.

Each candidate represents one hypothesis about where the booking reference
sits in a boarding-pass payload, with the metadata used for deduplication,
ranking and the acceptance gate.
"""

from dataclasses import dataclass
from enum import Enum

# Context windows kept around every match
CONTEXT_BEFORE_CHARS = 30
CONTEXT_AFTER_CHARS = 20

MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100


class StrategyKind(Enum):
    """Recognition strategy families, in waterfall order."""
    SPACE_DELIMITED = "space_delimited"      # M1 NAME/FIRST [dispersal+PNR] XXX
    CARRIER_ADJACENT = "carrier_adjacent"    # [dispersal][PNR][AIRPORT], no separators
    SECONDARY_CARRIER = "secondary_carrier"  # [PNR]BET0150, M1 ... [PNR] XXX
    GENERIC_FALLBACK = "generic_fallback"    # any carrier, low confidence


@dataclass(frozen=True)
class Candidate:
    """
    Candidate booking reference.

    Scoring factors:
    - confidence: Hand-tuned priority of the matching pattern (0-100, higher is better)
    - position: Offset of the match in the normalized text; competing
      readings of the same match share a position
    - context_after: Used by the positional-leniency rule to corroborate
      a low-confidence guess
    """
    value: str
    confidence: int
    strategy_tag: str
    kind: StrategyKind
    position: int
    context_before: str = ""
    context_after: str = ""


def create_candidate(
    value: str,
    confidence: int,
    strategy_tag: str,
    kind: StrategyKind,
    position: int,
    text: str,
    match_end: int
) -> Candidate:
    """
    Create Candidate with computed context windows.

    Args:
        value: Recognized reference
        confidence: Pattern confidence (clamped to 0-100)
        strategy_tag: Name of pattern that matched
        kind: Strategy family that produced the match
        position: Start offset of the match
        text: Full normalized text for context windows
        match_end: End offset of the match

    Returns:
        Candidate with before/after context
    """
    context_before = text[max(0, position - CONTEXT_BEFORE_CHARS):position]
    context_after = text[match_end:match_end + CONTEXT_AFTER_CHARS]

    return Candidate(
        value=value,
        confidence=max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence)),
        strategy_tag=strategy_tag,
        kind=kind,
        position=position,
        context_before=context_before,
        context_after=context_after,
    )
