"""
Deduplication, ranking and the acceptance gate for PNR candidates.

Confidence is a hand-tuned integer priority, not a probability. The highest
surviving candidate is accepted only if it clears the minimum-confidence
threshold, or if it is a low-confidence guess corroborated by its position.
"""

import re
from typing import Dict, FrozenSet, List, Optional, Tuple

from .candidates import Candidate

__all__ = [
    'ACCEPTED_BY_POSITION', 'ACCEPTED_BY_THRESHOLD',
    'deduplicate_candidates', 'rank_candidates', 'minimum_confidence',
    'is_well_positioned', 'select_best_candidate',
]

ACCEPTED_BY_THRESHOLD = "threshold"
ACCEPTED_BY_POSITION = "position"

# Acceptance thresholds
DEFAULT_MIN_CONFIDENCE = 30
GENERIC_MIN_CONFIDENCE = 40
# Tags containing this word get the stricter threshold. No strategy tag uses it,
# so DEFAULT_MIN_CONFIDENCE applies to every candidate (pinned in tests).
GENERIC_TAG_MARKER = "générique"

# Positional leniency window: [30, 40) confidence, past the message header
LENIENCY_MIN_CONFIDENCE = 30
LENIENCY_MAX_CONFIDENCE = 40
LENIENCY_MIN_POSITION = 5

_CORROBORATING_AFTER = re.compile(r'^(ET|\s+ET|[A-Z]{3})')


def rank_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """Sort candidates by confidence, descending. Ties keep discovery order."""
    return sorted(candidates, key=lambda c: c.confidence, reverse=True)


def deduplicate_candidates(candidates: List[Candidate]) -> List[Candidate]:
    """
    Collapse candidates by value, then by position.

    Step 1 keeps the highest-confidence candidate per distinct value.
    Step 2 keeps the highest-confidence candidate per position: a different
    value discovered later at an already-seen position is dropped unless it
    scores strictly higher.

    Args:
        candidates: All candidates from the strategy tier that ran

    Returns:
        Deduplicated candidates in step 1 order (no final re-sort)
    """
    unique_by_value: List[Candidate] = []
    seen_values = set()
    for candidate in rank_candidates(candidates):
        if candidate.value in seen_values:
            continue
        seen_values.add(candidate.value)
        unique_by_value.append(candidate)

    by_position: Dict[int, Candidate] = {}
    for candidate in unique_by_value:
        current = by_position.get(candidate.position)
        if current is None or current.confidence < candidate.confidence:
            by_position[candidate.position] = candidate

    return list(by_position.values())


def minimum_confidence(strategy_tag: str) -> int:
    """Minimum confidence required to accept a candidate from this strategy."""
    if GENERIC_TAG_MARKER in strategy_tag:
        return GENERIC_MIN_CONFIDENCE
    return DEFAULT_MIN_CONFIDENCE


def is_well_positioned(candidate: Candidate, airport_codes: FrozenSet[str]) -> bool:
    """
    Check whether a low-confidence candidate is corroborated by its position.

    The candidate must sit past the message header and be followed by a
    carrier marker, a 3-letter block, or text containing a known airport code.
    """
    if not (LENIENCY_MIN_CONFIDENCE <= candidate.confidence < LENIENCY_MAX_CONFIDENCE):
        return False
    if candidate.position <= LENIENCY_MIN_POSITION:
        return False

    after = candidate.context_after
    if _CORROBORATING_AFTER.match(after):
        return True
    return any(code in after for code in airport_codes)


def select_best_candidate(
    candidates: List[Candidate],
    airport_codes: FrozenSet[str]
) -> Optional[Tuple[Candidate, str]]:
    """
    Run the acceptance gate over deduplicated candidates.

    Args:
        candidates: Deduplicated candidates
        airport_codes: Known airport codes

    Returns:
        (candidate, accepted_by) or None when nothing is acceptable
    """
    if not candidates:
        return None

    best = rank_candidates(candidates)[0]

    if is_well_positioned(best, airport_codes):
        return best, ACCEPTED_BY_POSITION

    if best.confidence < minimum_confidence(best.strategy_tag):
        return None

    return best, ACCEPTED_BY_THRESHOLD
