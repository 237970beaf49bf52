"""
Pydantic models for extraction results.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

# Sentinel returned when no booking reference is recognized
UNKNOWN = "UNKNOWN"

# Sentinel for an unresolved airport in a route
UNKNOWN_AIRPORT = "UNK"


class ExtractionTrace(BaseModel):
    """Diagnostic record for one extraction call (offline tuning only)."""
    value: str = UNKNOWN
    strategy_tag: Optional[str] = None
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    position: Optional[int] = None
    candidates_considered: int = 0  # Before dedup
    candidates_retained: int = 0  # After dedup
    accepted_by: Optional[str] = None  # 'threshold', 'position' or None


class BaggageInfo(BaseModel):
    """Checked bags announced by the boarding pass."""
    count: int = Field(ge=0, le=20)
    base_number: Optional[str] = None  # First 10-digit bag tag
    expected_tags: List[str] = Field(default_factory=list)


class ParsedBoardingPass(BaseModel):
    """Structured fields recovered from one boarding-pass payload."""
    pnr: str = UNKNOWN
    format: str = "GENERIC"
    departure: str = UNKNOWN_AIRPORT
    arrival: str = UNKNOWN_AIRPORT
    flight_number: Optional[str] = None
    flight_time: Optional[str] = None  # HH:MM
    seat_number: Optional[str] = None
    ticket_number: Optional[str] = None  # 10 digits, no airline prefix
    baggage: Optional[BaggageInfo] = None
    passenger_name: Optional[str] = None
    raw_data: str = ""

    @property
    def needs_review(self) -> bool:
        return self.pnr == UNKNOWN
