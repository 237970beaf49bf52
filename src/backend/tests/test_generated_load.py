"""
Generated-load regression test.

Builds 10,000 Ethiopian-style payloads, each with a planted booking reference
behind a 2- or 3-letter dispersal, and checks the recovery rate.
"""

import sys
import os
import random
import string
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boardpass.services.pnr_extractor import PnrExtractor
from boardpass.utils.airports import BUILTIN_AIRPORT_CODES
import pytest

BATCH_SIZE = 10000
MIN_RECOVERY_RATE = 0.95

ROUTE_AIRPORTS = ['FIH', 'GOM', 'FBM', 'GMA', 'MDK', 'ADD', 'NBO', 'EBB', 'KGL', 'LFW']


def random_letters(rng, length):
    return ''.join(rng.choice(string.ascii_uppercase) for _ in range(length))


def generate_payload(rng, idx):
    """Return (payload, planted_reference)."""
    last = random_letters(rng, rng.randint(3, 9))
    first = random_letters(rng, rng.randint(3, 9))
    dispersal = random_letters(rng, rng.choice((2, 3)))
    pnr = random_letters(rng, 6)
    departure, arrival = rng.sample(ROUTE_AIRPORTS, 2)

    payload = (
        f"M1{last}/{first} {dispersal}{pnr} {departure}{arrival}ET {idx:04d} "
        f"228Y021A0083 377>8321OO5228BET 907143368{idx % 1000:03d}"
    )
    return payload, pnr


@pytest.fixture(scope="module")
def generated_batch():
    rng = random.Random(20240611)
    return [generate_payload(rng, idx) for idx in range(BATCH_SIZE)]


def test_planted_reference_recovery(generated_batch):
    extractor = PnrExtractor(BUILTIN_AIRPORT_CODES)
    payloads = [payload for payload, _ in generated_batch]

    results = extractor.extract_many(payloads, max_workers=4)

    recovered = sum(1 for result, (_, pnr) in zip(results, generated_batch) if result == pnr)
    rate = recovered / BATCH_SIZE
    print(f"\nRecovered {recovered}/{BATCH_SIZE} planted references ({rate:.1%})")

    assert rate >= MIN_RECOVERY_RATE
    assert not any(result in BUILTIN_AIRPORT_CODES for result in results)
