"""
Airport code reference data.

The known-code set is built once at import time and shared read-only by
every extraction strategy. A candidate booking reference that equals a known
airport code (or is two of them glued together, i.e. a route) is never
accepted.
"""

import logging
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# Airports handled directly plus frequent destinations
_BUILTIN_CODES = (
    # DR Congo
    'FIH', 'FKI', 'GOM', 'FBM', 'KWZ', 'KGA', 'MJM', 'GMA', 'MDK', 'KND',
    'BUX', 'BKY', 'KMN', 'TSH', 'IRP', 'BDT', 'LIQ',
    # East Africa
    'NBO', 'MBA', 'KIS', 'EBB', 'ADD', 'KGL', 'BJM', 'DAR', 'JRO',
    'ZNZ', 'MGQ', 'JUB', 'KRT', 'ASM', 'JIB',
    # West Africa
    'LFW', 'ABJ', 'LOS', 'ABV', 'PHC', 'KAN', 'ACC', 'NKC', 'DKR', 'DSS',
    'BKO', 'OUA', 'NIM', 'COO', 'FNA', 'CKY', 'BJL', 'OXB', 'RAI',
    # Central and Southern Africa
    'DLA', 'NSI', 'LBV', 'POG', 'SSG', 'BGF', 'NDJ', 'BZV', 'PNR', 'LAD',
    'JNB', 'CPT', 'DUR', 'PLZ', 'HRE', 'VFA', 'BUQ', 'LUN', 'NLA', 'LLW',
    'BLZ', 'MPM', 'WDH', 'GBE', 'MRU', 'TNR', 'SEZ',
    # North Africa
    'CMN', 'RAK', 'TNG', 'CAI', 'HRG', 'SSH', 'ALG', 'ORN', 'TUN',
    # Europe
    'CDG', 'ORY', 'NCE', 'LYS', 'MRS', 'BRU', 'AMS', 'FRA', 'MUC', 'BER',
    'DUS', 'HAM', 'LHR', 'LGW', 'DUB', 'MAD', 'BCN', 'LIS', 'OPO',
    'FCO', 'MXP', 'ZRH', 'GVA', 'VIE', 'CPH', 'ARN', 'OSL', 'HEL', 'WAW',
    'PRG', 'BUD', 'ATH', 'IST', 'SVO', 'KBP', 'OTP',
    # Middle East
    'DXB', 'DWC', 'DOH', 'AUH', 'SHJ', 'MCT', 'BAH', 'KWI', 'RUH', 'JED',
    'DMM', 'AMM', 'BEY', 'TLV',
    # Asia
    'PEK', 'PKX', 'PVG', 'SHA', 'HKG', 'TPE', 'HND', 'NRT', 'KIX',
    'ICN', 'SIN', 'KUL', 'BKK', 'CGK', 'MNL', 'DEL', 'BOM', 'BLR', 'KHI',
    'DAC', 'CMB',
    # Americas
    'JFK', 'EWR', 'IAD', 'BOS', 'ATL', 'MIA', 'ORD', 'DFW', 'IAH', 'DEN',
    'LAX', 'SFO', 'SEA', 'LAS', 'PHX', 'YYZ', 'YUL', 'YVR', 'MEX', 'CUN',
    'GRU', 'GIG', 'EZE', 'BOG', 'LIM', 'SCL', 'PTY',
    # Oceania
    'SYD', 'MEL', 'BNE', 'AKL',
    # Russia (Black Sea)
    'AER',
)

# Major hubs recognised directly after a 6-letter reference by the generic tier
MAJOR_AIRPORT_CODES: Tuple[str, ...] = (
    'FIH', 'GMA', 'CDG', 'LHR', 'JFK', 'ORY', 'AER', 'DXB', 'SIN', 'BKK',
    'HND', 'NRT', 'ICN', 'PEK', 'SHA', 'PVG', 'KUL', 'SYD', 'LAX', 'SFO',
    'DEN', 'ATL', 'ORD', 'MIA', 'BOS', 'LAS', 'SEA', 'PHX', 'CUN',
)


def _clean_code(raw: str) -> Optional[str]:
    code = raw.strip().upper()
    if len(code) == 3 and code.isascii() and code.isalpha():
        return code
    return None


def parse_airport_codes(lines: Iterable[str]) -> FrozenSet[str]:
    """Parse airport codes from text lines.

    Each line may hold one or more codes separated by commas or whitespace.
    Anything after ``#`` is a comment. Entries that are not exactly three
    letters are skipped.
    """
    codes = set()
    for line in lines:
        line = line.split('#', 1)[0]
        for token in line.replace(',', ' ').split():
            code = _clean_code(token)
            if code is None:
                logger.warning("Skipping invalid airport code entry: %r", token)
                continue
            codes.add(code)
    return frozenset(codes)


def load_airport_codes(codes_file: Optional[Union[str, Path]] = None) -> FrozenSet[str]:
    """Load the known airport codes.

    Args:
        codes_file: Optional path to a codes feed. Defaults to the built-in list.

    Returns:
        Immutable set of uppercase 3-letter codes

    Raises:
        OSError: If the feed file cannot be read
    """
    if not codes_file:
        return BUILTIN_AIRPORT_CODES

    with open(codes_file, 'r', encoding='utf-8') as f:
        codes = parse_airport_codes(f)

    if not codes:
        logger.warning("Airport codes feed %s is empty, using built-in codes", codes_file)
        return BUILTIN_AIRPORT_CODES

    logger.info("Loaded %d airport codes from %s", len(codes), codes_file)
    return codes


def is_airport_code(value: str, codes: FrozenSet[str]) -> bool:
    """Check whether a value is exactly a known airport code."""
    return value in codes


def is_city_pair(value: str, codes: FrozenSet[str]) -> bool:
    """Check whether a 6-letter value is two known airport codes glued together (e.g. FIHGOM)."""
    return len(value) == 6 and value[:3] in codes and value[3:] in codes


BUILTIN_AIRPORT_CODES: FrozenSet[str] = frozenset(_BUILTIN_CODES)
