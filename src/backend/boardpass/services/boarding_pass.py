"""
Boarding-pass parser for extracting structured fields from decoded payloads.

The booking reference comes from PnrExtractor; the remaining fields (carrier
format, route, flight number and time, seat, ticket, baggage, passenger
name) are best-effort and fall back to UNK/None instead of raising.
"""

import re
import logging
from typing import FrozenSet, Iterable, Optional, Tuple

from boardpass.models.boarding_pass import UNKNOWN, UNKNOWN_AIRPORT, BaggageInfo, ParsedBoardingPass
from boardpass.services.pnr_extractor import PnrExtractor
from boardpass.utils.text import normalize_raw_data

logger = logging.getLogger(__name__)

FORMAT_AIR_CONGO = "AIR_CONGO"
FORMAT_KENYA_AIRWAYS = "KENYA_AIRWAYS"
FORMAT_ETHIOPIAN = "ETHIOPIAN"
FORMAT_GENERIC = "GENERIC"

# Ethiopian indicator weights; a total of 2 or more classifies the payload
ETHIOPIAN_SCORE_WEIGHTS = {
    'et_flight': 2,
    'addis_ababa': 1,
    'bcbp_shape': 1,
    'm1_with_et': 1,
    'multi_segment': 1,
}
ETHIOPIAN_MIN_SCORE = 2
MULTI_SEGMENT_LENGTH = 250

_ET_FLIGHT = re.compile(r'ET\s*\d{2,4}')
_ET_STANDALONE = re.compile(r'\bET\b')
_BCBP_START = re.compile(r'^M[12]')
_ETHIOPIAN_BCBP_SHAPES = (
    re.compile(r'M[12][A-Z/\s]+[A-Z0-9]{6,7}\s+[A-Z]{3}ADD'),
    re.compile(r'ADD[A-Z]{3}'),
    re.compile(r'[A-Z]{3}ADD'),
    re.compile(r'M[12].*ADD.*ET\s*\d{3,4}'),
)

_KQ_FLIGHT = re.compile(r'KQ\s*0*([1-9]\d{1,3})')
_CARRIER_FLIGHT = re.compile(r'(9U|ET|EK|AF|SN|TK|WB|SA|SR)\s*0*([1-9]\d{0,3})')
_ROUTE_FLIGHT = re.compile(r'[A-Z]{6}ET\s*0*([1-9]\d{0,3})')

# BCBP name field: "M1" + 20 characters
NAME_FIELD_START = 2
NAME_FIELD_WIDTH = 20
_NAME_FIELD = re.compile(r"^M[12]([A-Z][A-Z' -]*)/([A-Z][A-Z ]*)")

_FOUR_DIGITS = re.compile(r'\d{4}')

# Seat blocks: "228Y021A" is class 228Y then seat 021A; 3xx + Y/C/M is a class code
_SEAT_BLOCK = re.compile(r'\d{3}[A-Z]')
_CLASS_BLOCK = re.compile(r'^3\d{2}[YCM]$')
_CABIN_SEAT = re.compile(r'([YC])(\d{3}[A-Z])')
_SHORT_SEAT = re.compile(r'(?<![A-Z])(\d{1,2}[A-Z])(?!\d)')
_SEAT_LEADING_ZEROS = re.compile(r'^0+(\d+[A-Z])')

# Ticket: "2A0712154800800" is 2A + time 0712 + ticket 2154800800
TICKET_LENGTH = 10
TICKET_ZONE_START = 21
TICKET_ZONE_END = 70
_ETHIOPIAN_TICKET = re.compile(r'2A(\d{4})(\d{10})')
_TICKET_ZONE_PATTERNS = (
    (re.compile(r'(\d{13})'), 3),  # 3-digit airline prefix
    (re.compile(r'(\d{12})'), 2),  # 2-digit airline prefix
    (re.compile(r'(\d{10})'), 0),
)
_DIGIT_RUN = re.compile(r'\d{10,}')

# Bag tags: 10-digit base, optionally followed by a 2- or 3-digit count
MAX_BAGS = 20
BAG_BASE_LENGTH = 10
_BAG_TAG_13 = re.compile(r'(\d{10})(\d{3})')
_BAG_TAG_12 = re.compile(r'(\d{10})(\d{2})(?!\d)')
_BAG_TAG_10 = re.compile(r'(\d{10})(?!\d)')
_BAG_BASE = re.compile(r'(\d{10})')
_PIECES = re.compile(r'(\d{1,2})PC', re.IGNORECASE)
_BAG_COUNT_MARKER = re.compile(r'\s+(\d)A\d{3,4}\d+')
_FLIGHT_BEFORE_TAG = re.compile(r'[A-Z]{2}\s+\d{3,4}')


def detect_format(raw_data: str) -> str:
    """
    Detect the carrier family of a boarding pass.

    Air Congo (9U) and Kenya Airways (KQ) are checked first since their
    payloads also carry BET/1ET markers and ET-looking fragments.
    """
    if not raw_data:
        return FORMAT_GENERIC

    if '9U' in raw_data:
        return FORMAT_AIR_CONGO

    if 'KQ' in raw_data:
        return FORMAT_KENYA_AIRWAYS

    score = 0
    if _ET_FLIGHT.search(raw_data):
        score += ETHIOPIAN_SCORE_WEIGHTS['et_flight']
    if 'ADD' in raw_data:
        score += ETHIOPIAN_SCORE_WEIGHTS['addis_ababa']
    if any(pattern.search(raw_data) for pattern in _ETHIOPIAN_BCBP_SHAPES):
        score += ETHIOPIAN_SCORE_WEIGHTS['bcbp_shape']
    if _BCBP_START.match(raw_data) and _ET_STANDALONE.search(raw_data):
        score += ETHIOPIAN_SCORE_WEIGHTS['m1_with_et']
    if '\n' in raw_data or len(raw_data) > MULTI_SEGMENT_LENGTH:
        score += ETHIOPIAN_SCORE_WEIGHTS['multi_segment']

    if score >= ETHIOPIAN_MIN_SCORE:
        return FORMAT_ETHIOPIAN

    return FORMAT_GENERIC


def extract_route(text: str, airport_codes: FrozenSet[str]) -> Tuple[str, str]:
    """
    Extract (departure, arrival) airport codes.

    Tries, in order: two glued codes followed by ET (FIHMDKET), two glued
    codes, two space-separated codes, then the first two codes found.

    Returns:
        (departure, arrival), or ("UNK", "UNK")
    """
    if not text or not airport_codes:
        return UNKNOWN_AIRPORT, UNKNOWN_AIRPORT

    alternation = '|'.join(sorted(airport_codes))
    glued_patterns = (
        re.compile(f'({alternation})({alternation})ET'),
        re.compile(f'({alternation})({alternation})'),
    )
    for pattern in glued_patterns:
        for match in pattern.finditer(text):
            departure, arrival = match.group(1), match.group(2)
            if departure != arrival:
                return departure, arrival

    spaced = re.search(f'({alternation})\\s+({alternation})', text)
    if spaced:
        return spaced.group(1), spaced.group(2)

    found = re.findall(f'({alternation})', text)
    if len(found) >= 2:
        return found[0], found[1]

    return UNKNOWN_AIRPORT, UNKNOWN_AIRPORT


def extract_flight_number(text: str) -> Optional[str]:
    """
    Extract the flight number (carrier + digits, leading zeros stripped).

    BET and 1ET are carrier markers, not Ethiopian flights, and are skipped.
    """
    if not text:
        return None

    kq = _KQ_FLIGHT.search(text)
    if kq:
        return f"KQ{kq.group(1)}"

    for match in _CARRIER_FLIGHT.finditer(text):
        carrier = match.group(1)
        start = match.start()
        if carrier == 'ET' and start > 0 and text[start - 1] in ('B', '1'):
            continue
        return f"{carrier}{match.group(2)}"

    route = _ROUTE_FLIGHT.search(text)
    if route:
        return f"ET{route.group(1)}"

    return None


def extract_passenger_name(text: str, end: Optional[int] = None) -> Optional[str]:
    """
    Extract the passenger name as "SURNAME GIVEN NAMES".

    Args:
        text: Normalized payload
        end: Offset where the booking reference match starts, bounding the
            name field. Without it the fixed 20-character BCBP field is used.

    Returns:
        Passenger name or None
    """
    if not text:
        return None

    if end is not None and end > NAME_FIELD_START:
        name_field = text[:end]
    else:
        field_end = NAME_FIELD_START + NAME_FIELD_WIDTH
        name_field = text[:field_end]
        # Drop a word cut in half by the fixed-width boundary
        if len(text) > field_end and text[field_end].isalpha() and " " in name_field:
            name_field = name_field.rsplit(' ', 1)[0]

    match = _NAME_FIELD.match(name_field)
    if not match:
        return None

    surname = ' '.join(match.group(1).split())
    given_names = ' '.join(match.group(2).split())
    return f"{surname} {given_names}".strip()


def extract_flight_time(text: str) -> Optional[str]:
    """
    Extract the departure time as HH:MM.

    Any 4-digit group that reads as a valid clock time is considered.
    Daytime hours (06-23) beat early-morning hours (01-05), which beat
    00xx; ties go to the first occurrence. 0000-0009 are sequence numbers,
    not times.
    """
    if not text:
        return None

    best = None
    best_priority = 0
    for match in _FOUR_DIGITS.finditer(text):
        value = match.group(0)
        hours, minutes = int(value[:2]), int(value[2:])
        if hours > 23 or minutes > 59:
            continue
        if hours == 0 and minutes < 10:
            continue

        if 6 <= hours <= 23:
            priority = 3
        elif 1 <= hours <= 5:
            priority = 2
        else:
            priority = 1

        if priority > best_priority:
            best, best_priority = value, priority

    if best is None:
        return None
    return f"{best[:2]}:{best[2:]}"


def _clean_seat(seat: str) -> str:
    return _SEAT_LEADING_ZEROS.sub(r'\1', seat, count=1)


def extract_seat_number(text: str) -> Optional[str]:
    """
    Extract the seat number, leading zeros stripped (013A -> 13A).

    Layouts, in order:
    - "335M031G": a class block (3xx + Y/C/M) followed by the seat block
    - "Y013A": seat block right after the cabin letter
    - the first 3-digit + letter block that is not a class block
    - a short "12A" seat
    """
    if not text:
        return None

    blocks = _SEAT_BLOCK.findall(text)
    if len(blocks) >= 2 and _CLASS_BLOCK.match(blocks[0]):
        return _clean_seat(blocks[1])

    cabin = _CABIN_SEAT.search(text)
    if cabin:
        return _clean_seat(cabin.group(2))

    if blocks and not _CLASS_BLOCK.match(blocks[0]):
        return _clean_seat(blocks[0])

    short = _SHORT_SEAT.search(text)
    if short:
        return short.group(1)

    return None


def extract_ticket_number(text: str) -> Optional[str]:
    """
    Extract the 10-digit ticket number, without the airline prefix.

    Tries the Ethiopian "2A" + HHMM + ticket layout, then the BCBP ticket
    zone (offsets 21-70) holding 13, 12 or 10 digits, then any run of 10+
    digits, preferring one that starts with 21-99.
    """
    if not text:
        return None

    ethiopian = _ETHIOPIAN_TICKET.search(text)
    if ethiopian:
        return ethiopian.group(2)

    if len(text) > TICKET_ZONE_START:
        zone = text[TICKET_ZONE_START:TICKET_ZONE_END]
        for pattern, prefix_len in _TICKET_ZONE_PATTERNS:
            match = pattern.search(zone)
            if match:
                return match.group(1)[prefix_len:]

    runs = [run[:TICKET_LENGTH] for run in _DIGIT_RUN.findall(text)]
    for run in runs:
        if 21 <= int(run[:2]) <= 99:
            return run
    if runs:
        return runs[0]

    return None


def _baggage(base_number: str, count: int) -> BaggageInfo:
    base = int(base_number)
    expected_tags = [str(base + i).zfill(BAG_BASE_LENGTH) for i in range(count)]
    return BaggageInfo(count=count, base_number=base_number, expected_tags=expected_tags)


def extract_baggage_ethiopian(text: str) -> Optional[BaggageInfo]:
    """Bag tag as 10-digit base + 3-digit count; 000 means no checked bags."""
    for match in _BAG_TAG_13.finditer(text or ""):
        base_number, count = match.group(1), int(match.group(2))
        if count == 0:
            return BaggageInfo(count=0, base_number=base_number)
        if count > MAX_BAGS:
            continue
        return _baggage(base_number, count)
    return None


def extract_baggage_air_congo(text: str) -> Optional[BaggageInfo]:
    """Bag tag as 10-digit base + 3-digit sequence, base + 2-digit count, or base alone."""
    if not text:
        return None

    tag = _BAG_TAG_13.search(text)
    if tag and 0 < int(tag.group(2)) <= MAX_BAGS:
        return _baggage(tag.group(1), int(tag.group(2)))

    tag = _BAG_TAG_12.search(text)
    if tag and 0 < int(tag.group(2)) <= MAX_BAGS:
        return _baggage(tag.group(1), int(tag.group(2)))

    tag = _BAG_TAG_10.search(text)
    if tag:
        return _baggage(tag.group(1), 1)

    return None


def extract_baggage_generic(text: str) -> Optional[BaggageInfo]:
    """Piece count ("2PC"), the "2A706..." count marker, or a bag tag after a flight number."""
    if not text:
        return None

    pieces = _PIECES.search(text)
    if pieces and 0 < int(pieces.group(1)) <= MAX_BAGS:
        count = int(pieces.group(1))
        base = _BAG_BASE.search(text)
        if base:
            return _baggage(base.group(1), count)
        return BaggageInfo(count=count)

    marker = _BAG_COUNT_MARKER.search(text)
    if marker and int(marker.group(1)) > 0:
        return BaggageInfo(count=int(marker.group(1)))

    tag = _BAG_TAG_10.search(text)
    if tag and _FLIGHT_BEFORE_TAG.search(text[:tag.start()]):
        return _baggage(tag.group(1), 1)

    return None


def extract_baggage_info(text: str, bp_format: str) -> Optional[BaggageInfo]:
    """Extract checked-baggage info using the layout of the detected carrier format."""
    if bp_format == FORMAT_ETHIOPIAN:
        return extract_baggage_ethiopian(text)
    if bp_format == FORMAT_AIR_CONGO:
        return extract_baggage_air_congo(text)
    if bp_format == FORMAT_KENYA_AIRWAYS:
        return extract_baggage_air_congo(text) or extract_baggage_generic(text)
    return extract_baggage_generic(text)


class BoardingPassParser:
    """Service for parsing boarding-pass payloads into structured fields."""

    def __init__(self, extractor: Optional[PnrExtractor] = None, airport_codes: Optional[Iterable[str]] = None):
        """
        Initialize parser.

        Args:
            extractor: PNR extractor to use (built from airport_codes if omitted)
            airport_codes: Known airport codes for a new extractor
        """
        self.extractor = extractor or PnrExtractor(airport_codes)

    def parse(self, raw_data: Optional[str]) -> ParsedBoardingPass:
        """
        Parse a raw payload.

        Args:
            raw_data: Raw decoded payload

        Returns:
            ParsedBoardingPass (pnr is UNKNOWN when unrecognized)
        """
        raw_data = raw_data or ""
        text = normalize_raw_data(raw_data)

        pnr, trace = self.extractor.extract_with_trace(text)
        name_end = trace.position if pnr != UNKNOWN else None
        departure, arrival = extract_route(text, self.extractor.airport_codes)
        bp_format = detect_format(raw_data)

        result = ParsedBoardingPass(
            pnr=pnr,
            format=bp_format,
            departure=departure,
            arrival=arrival,
            flight_number=extract_flight_number(text),
            flight_time=extract_flight_time(text),
            seat_number=extract_seat_number(text),
            ticket_number=extract_ticket_number(text),
            baggage=extract_baggage_info(text, bp_format),
            passenger_name=extract_passenger_name(text, name_end),
            raw_data=raw_data,
        )

        logger.debug("Parsed boarding pass", extra={
            "format": result.format,
            "pnr": result.pnr,
            "flight_number": result.flight_number,
            "departure": result.departure,
            "arrival": result.arrival,
            "seat_number": result.seat_number,
        })

        return result
