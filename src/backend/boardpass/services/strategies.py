"""
PNR recognition strategies.

Each strategy is a pure function ``(text, airport_codes) -> List[Candidate]``
over normalized text. A strategy never raises on "no match"; it simply
returns an empty list. Strategies are listed in STRATEGY_PIPELINE from most
to least specific.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, FrozenSet, List, Optional, Tuple

from boardpass.utils.airports import MAJOR_AIRPORT_CODES, is_airport_code, is_city_pair
from boardpass.utils.candidates import Candidate, StrategyKind, create_candidate

StrategyFunc = Callable[[str, FrozenSet[str]], List[Candidate]]


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example, notes and confidence for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    confidence: int = 0
    flags: int = 0
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))


# Start-of-message marker (M1/M2) followed by the name field
PREAMBLE = PatternSpec(
    name='bcbp_preamble',
    pattern=r'M[12][A-Z\s/]+',
    example='M1DOE/JOHN',
    notes='Must start the window directly before a match',
)
PREAMBLE_WINDOW = 30

# Generic tier: window checked for long letter runs (name fields)
LONG_RUN_BEFORE = 10
LONG_RUN_AFTER = 16
_LONG_LETTER_RUN = re.compile(r'[A-Z]{20,}')

PNR_LENGTH = 6

# Dispersal length -> confidence. 2+6 and 3+6 dominate observed data.
DISPERSAL_CONFIDENCE = {
    4: 60,
    3: 98,
    2: 98,
    1: 70,
}

SPACE_DELIMITED = PatternSpec(
    name='space_delimited',
    pattern=r'\s([A-Z]{7,9})\s+[A-Z]',
    example='M1DOE/JOHN ABYFMKNE FIH',
    notes='[dispersal 1-4][PNR 6] between spaces, after M1/M2 name field; the next token is consumed',
)

CARRIER_ADJACENT_CONFIDENCE = 90

BET_FLIGHT = PatternSpec(
    name='secondary_carrier_bet',
    pattern=r'([A-Z]{6})BET\d{3,4}',
    example='M1MBALA/SAMUEL EGPKZLBET0150',
    notes='PNR directly before BET carrier marker and flight digits',
    confidence=80,
)

SECONDARY_PREAMBLE = PatternSpec(
    name='secondary_carrier_preamble',
    pattern=r'M[12]([A-Z\s/]+)([A-Z]{6})\s+([A-Z]{3})',
    example='M1MULUNGU/JEAN JPKZLX FIHGMA',
    notes='Last 6 letters of the name field run, then a 3-letter block',
    confidence=80,
)

GENERIC_CONFIDENCE = 30

GENERIC_ET_FLIGHT = PatternSpec(
    name='generic_et_flight',
    pattern=r'([A-Z]{6})ET\d{2,4}',
    example='XXXXXXET123',
    notes='6 letters before ET flight number',
    confidence=GENERIC_CONFIDENCE,
)

GENERIC_MAJOR_AIRPORT = PatternSpec(
    name='generic_major_airport',
    pattern=r'([A-Z]{6})(' + '|'.join(MAJOR_AIRPORT_CODES) + r')',
    example='OIFLBUCDG',
    notes='6 letters directly before a major airport code',
    confidence=GENERIC_CONFIDENCE,
)

GENERIC_SIX_LETTER = PatternSpec(
    name='generic_six_letter',
    pattern=r'[A-Z]{6}',
    example='... MXTRJE ...',
    notes='Last resort: any 6-letter run outside long name fields',
    confidence=GENERIC_CONFIDENCE,
)


def has_preamble(text: str, position: int) -> bool:
    """Check that the window before a match starts with an M1/M2 name field."""
    window = text[max(0, position - PREAMBLE_WINDOW):position]
    return PREAMBLE.compiled.match(window) is not None


@lru_cache(maxsize=8)
def _adjacency_pattern(airport_codes: FrozenSet[str]) -> re.Pattern:
    alternation = '|'.join(sorted(airport_codes))
    return re.compile(r'([A-Z]{1,4})([A-Z]{6})(' + alternation + r')')


def extract_space_delimited(text: str, airport_codes: FrozenSet[str]) -> List[Candidate]:
    """
    Strategy 1: space-delimited dispersal + reference.

    Every split of the letter block into a 1-4 letter dispersal and a
    6-letter reference becomes its own candidate. Splits are emitted longest
    dispersal first, so among equal-confidence readings the reference that
    ends flush with the block is discovered first.
    """
    candidates = []
    for match in SPACE_DELIMITED.compiled.finditer(text):
        position = match.start()
        if not has_preamble(text, position):
            continue

        letters = match.group(1)
        for dispersal_len in sorted(DISPERSAL_CONFIDENCE, reverse=True):
            pnr_end = dispersal_len + PNR_LENGTH
            if pnr_end > len(letters):
                continue

            pnr = letters[dispersal_len:pnr_end]
            if is_airport_code(pnr, airport_codes):
                continue

            candidates.append(create_candidate(
                value=pnr,
                confidence=DISPERSAL_CONFIDENCE[dispersal_len],
                strategy_tag=f'{SPACE_DELIMITED.name}[{dispersal_len}+6]',
                kind=StrategyKind.SPACE_DELIMITED,
                position=position,
                text=text,
                match_end=match.end(1),
            ))

    return candidates


def extract_carrier_adjacent(text: str, airport_codes: FrozenSet[str]) -> List[Candidate]:
    """Strategy 2: [dispersal][PNR][airport code] glued together after M1/M2."""
    if not airport_codes:
        return []

    candidates = []
    for match in _adjacency_pattern(frozenset(airport_codes)).finditer(text):
        pnr = match.group(2)
        position = match.start()
        if is_airport_code(pnr, airport_codes):
            continue
        if not has_preamble(text, position):
            continue

        candidates.append(create_candidate(
            value=pnr,
            confidence=CARRIER_ADJACENT_CONFIDENCE,
            strategy_tag='carrier_adjacent',
            kind=StrategyKind.CARRIER_ADJACENT,
            position=position,
            text=text,
            match_end=match.end(2),
        ))

    return candidates


def extract_secondary_carrier(text: str, airport_codes: FrozenSet[str]) -> List[Candidate]:
    """Strategy 3: BET carrier marker, then the M1/M2 + 3-letter block layout."""
    candidates = []
    for spec, group in ((BET_FLIGHT, 1), (SECONDARY_PREAMBLE, 2)):
        for match in spec.compiled.finditer(text):
            pnr = match.group(group)
            if is_airport_code(pnr, airport_codes):
                continue

            candidates.append(create_candidate(
                value=pnr,
                confidence=spec.confidence,
                strategy_tag=spec.name,
                kind=StrategyKind.SECONDARY_CARRIER,
                position=match.start(),
                text=text,
                match_end=match.end(group),
            ))

    return candidates


def _in_long_letter_run(text: str, position: int) -> bool:
    window = text[max(0, position - LONG_RUN_BEFORE):position + LONG_RUN_AFTER]
    return _LONG_LETTER_RUN.match(window) is not None


def extract_generic(text: str, airport_codes: FrozenSet[str]) -> List[Candidate]:
    """
    Strategy 4: generic fallback patterns usable for any carrier.

    All tiers score low; values that are airport codes or origin/destination
    pairs (e.g. FIHGOM) are never proposed.
    """
    candidates = []
    for spec in (GENERIC_ET_FLIGHT, GENERIC_MAJOR_AIRPORT, GENERIC_SIX_LETTER):
        for match in spec.compiled.finditer(text):
            pnr = match.group(1) if spec.compiled.groups else match.group(0)
            position = match.start()
            if is_airport_code(pnr, airport_codes) or is_city_pair(pnr, airport_codes):
                continue
            if spec is GENERIC_SIX_LETTER and _in_long_letter_run(text, position):
                continue

            candidates.append(create_candidate(
                value=pnr,
                confidence=spec.confidence,
                strategy_tag=spec.name,
                kind=StrategyKind.GENERIC_FALLBACK,
                position=position,
                text=text,
                match_end=position + PNR_LENGTH,
            ))

    return candidates


# Waterfall order: most specific first
STRATEGY_PIPELINE: Tuple[Tuple[StrategyKind, StrategyFunc], ...] = (
    (StrategyKind.SPACE_DELIMITED, extract_space_delimited),
    (StrategyKind.CARRIER_ADJACENT, extract_carrier_adjacent),
    (StrategyKind.SECONDARY_CARRIER, extract_secondary_carrier),
    (StrategyKind.GENERIC_FALLBACK, extract_generic),
)
