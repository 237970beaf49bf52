"""
Text normalization for raw boarding-pass payloads.

Upstream decoders (barcode scanners, OCR, manual transcription) leave
irregular whitespace, tabs, newlines and control characters behind. Every
extraction step works on the canonical form produced here:
- every whitespace run collapsed to a single space
- leading and trailing whitespace removed
"""

from typing import Optional
import re

_WHITESPACE_RUN = re.compile(r'\s+')


def normalize_raw_data(raw_data: Optional[str]) -> str:
    """
    Collapse whitespace runs and trim a raw payload.

    Args:
        raw_data: Raw decoded payload (may be None or empty)

    Returns:
        Canonical working string ("" for empty input)

    Examples:
        >>> normalize_raw_data("  M1DOE/JOHN   ABYFMKNE\\tFIH ")
        'M1DOE/JOHN ABYFMKNE FIH'
        >>> normalize_raw_data("")
        ''
    """
    if not raw_data or not isinstance(raw_data, str):
        return ""

    return _WHITESPACE_RUN.sub(' ', raw_data).strip()
