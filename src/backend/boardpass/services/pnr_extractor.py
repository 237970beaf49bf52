"""
Booking reference (PNR) extraction from raw boarding-pass payloads.

Runs the recognition strategies as a waterfall: the most specific strategy
that yields any candidate wins the tier, its candidates are deduplicated and
ranked, and the acceptance gate returns either one value or UNKNOWN.
Extraction never raises and holds no mutable state, so one extractor can be
shared by any number of threads.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import FrozenSet, Iterable, List, Optional, Tuple

from boardpass.config import settings
from boardpass.models.boarding_pass import UNKNOWN, ExtractionTrace
from boardpass.services.strategies import STRATEGY_PIPELINE
from boardpass.utils.airports import load_airport_codes
from boardpass.utils.candidates import Candidate
from boardpass.utils.scoring import deduplicate_candidates, rank_candidates, select_best_candidate
from boardpass.utils.text import normalize_raw_data

logger = logging.getLogger(__name__)


class PnrExtractor:
    """Service for recognizing the booking reference in a boarding-pass payload."""

    def __init__(self, airport_codes: Optional[Iterable[str]] = None):
        """
        Initialize extractor with the airport reference set.

        Args:
            airport_codes: Known airport codes. Defaults to the configured feed
                (settings.AIRPORT_CODES_FILE) or the built-in list.
        """
        if airport_codes is None:
            self.airport_codes: FrozenSet[str] = load_airport_codes(settings.AIRPORT_CODES_FILE)
        else:
            self.airport_codes = frozenset(code.upper() for code in airport_codes)

    def collect_candidates(self, text: str) -> List[Candidate]:
        """
        Run strategies in order, stopping at the first that yields candidates.

        Args:
            text: Normalized payload

        Returns:
            Candidates from the first productive strategy (may be empty)
        """
        if not text:
            return []

        for kind, strategy in STRATEGY_PIPELINE:
            candidates = strategy(text, self.airport_codes)
            if candidates:
                logger.debug("Strategy %s produced %d candidate(s)", kind.value, len(candidates))
                return candidates

        return []

    def extract_with_trace(self, raw_data: Optional[str]) -> Tuple[str, ExtractionTrace]:
        """
        Extract the booking reference and a diagnostic trace.

        Args:
            raw_data: Raw decoded payload

        Returns:
            (value or UNKNOWN, trace)
        """
        text = normalize_raw_data(raw_data)
        candidates = self.collect_candidates(text)
        retained = deduplicate_candidates(candidates)
        selected = select_best_candidate(retained, self.airport_codes)

        trace = ExtractionTrace(
            candidates_considered=len(candidates),
            candidates_retained=len(retained),
        )

        if selected is None:
            if retained:
                best = rank_candidates(retained)[0]
                trace.strategy_tag = best.strategy_tag
                trace.confidence = best.confidence
                trace.position = best.position
            self._log_trace(trace)
            return UNKNOWN, trace

        best, accepted_by = selected
        trace.value = best.value
        trace.strategy_tag = best.strategy_tag
        trace.confidence = best.confidence
        trace.position = best.position
        trace.accepted_by = accepted_by
        self._log_trace(trace)
        return best.value, trace

    def extract(self, raw_data: Optional[str]) -> str:
        """
        Extract the booking reference from a raw payload.

        Args:
            raw_data: Raw decoded payload

        Returns:
            Recognized reference, or UNKNOWN (manual review required)
        """
        value, _ = self.extract_with_trace(raw_data)
        return value

    def extract_many(
        self,
        payloads: Iterable[Optional[str]],
        max_workers: Optional[int] = None
    ) -> List[str]:
        """
        Extract references from a batch of payloads, preserving input order.

        Args:
            payloads: Raw payloads
            max_workers: Worker threads (defaults to settings.BATCH_MAX_WORKERS)

        Returns:
            One value (or UNKNOWN) per payload
        """
        payloads = list(payloads)
        if not payloads:
            return []

        workers = max(1, max_workers or settings.BATCH_MAX_WORKERS)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.extract, payloads))

    def _log_trace(self, trace: ExtractionTrace) -> None:
        level = logging.INFO if settings.PNR_TRACE else logging.DEBUG
        if not logger.isEnabledFor(level):
            return

        if trace.value == UNKNOWN:
            logger.log(level, "No PNR accepted", extra=trace.model_dump())
        else:
            logger.log(level, "PNR extracted: %s", trace.value, extra=trace.model_dump())


_default_extractor: Optional[PnrExtractor] = None


def get_default_extractor() -> PnrExtractor:
    """Get the process-wide extractor built from the configured airport codes."""
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = PnrExtractor()
    return _default_extractor


def extract_pnr(raw_data: Optional[str], airport_codes: Optional[Iterable[str]] = None) -> str:
    """
    Extract the booking reference from a raw payload.

    Args:
        raw_data: Raw decoded payload
        airport_codes: Optional reference set; defaults to the configured one

    Returns:
        Recognized reference or UNKNOWN
    """
    if airport_codes is None:
        return get_default_extractor().extract(raw_data)
    return PnrExtractor(airport_codes).extract(raw_data)
