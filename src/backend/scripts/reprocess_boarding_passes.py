#!/usr/bin/env python3
"""
Batch reprocess boarding-pass payloads and report recognized booking references.

Reads one raw payload per line from a file (or stdin) and prints
"PNR<TAB>payload" per line, or full parsed records as JSON lines with --parse.

Usage:
    python3 scripts/reprocess_boarding_passes.py payloads.txt
    python3 scripts/reprocess_boarding_passes.py payloads.txt --parse
    cat payloads.txt | python3 scripts/reprocess_boarding_passes.py --workers 8
"""

import sys
import os
import argparse
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boardpass.config import settings
from boardpass.models.boarding_pass import UNKNOWN
from boardpass.services.boarding_pass import BoardingPassParser
from boardpass.services.pnr_extractor import PnrExtractor


def read_payloads(path):
    """Read non-empty payload lines from a file path, or stdin for None/'-'."""
    if path in (None, '-'):
        lines = sys.stdin.read().splitlines()
    else:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            lines = f.read().splitlines()
    return [line for line in lines if line.strip()]


def print_summary(values):
    total = len(values)
    unknown = sum(1 for value in values if value == UNKNOWN)
    recognized = total - unknown
    rate = (recognized / total * 100) if total > 0 else 0.0

    print(f"\n{'='*60}", file=sys.stderr)
    print("Reprocessing Complete!", file=sys.stderr)
    print(f"{'='*60}", file=sys.stderr)
    print(f"Total payloads: {total}", file=sys.stderr)
    print(f"Recognized:     {recognized}", file=sys.stderr)
    print(f"UNKNOWN:        {unknown} (manual review required)", file=sys.stderr)
    print(f"Recognition rate: {rate:.1f}%", file=sys.stderr)
    print(f"{'='*60}\n", file=sys.stderr)


def main(argv=None):
    parser_args = argparse.ArgumentParser(description=f'{settings.APP_NAME}: reprocess boarding-pass payloads')
    parser_args.add_argument('input', nargs='?', default='-',
                           help='File with one payload per line (default: stdin)')
    parser_args.add_argument('--parse', '-p', action='store_true',
                           help='Emit full parsed records as JSON lines')
    parser_args.add_argument('--workers', '-w', type=int, default=settings.BATCH_MAX_WORKERS,
                           help='Worker threads for batch extraction')
    parser_args.add_argument('--verbose', '-v', action='store_true',
                           help='Log one trace record per payload')
    args = parser_args.parse_args(argv)

    if settings.DEBUG:
        log_level = logging.DEBUG
    elif args.verbose:
        log_level = logging.INFO
    else:
        log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    if args.verbose:
        settings.PNR_TRACE = True

    try:
        payloads = read_payloads(args.input)
    except OSError as e:
        print(f"Error: cannot read {args.input}: {e}", file=sys.stderr)
        return 1

    extractor = PnrExtractor()

    if args.parse:
        bp_parser = BoardingPassParser(extractor=extractor)
        values = []
        for payload in payloads:
            record = bp_parser.parse(payload)
            values.append(record.pnr)
            print(record.model_dump_json())
    else:
        values = extractor.extract_many(payloads, max_workers=args.workers)
        for value, payload in zip(values, payloads):
            print(f"{value}\t{payload}")

    print_summary(values)
    return 0


if __name__ == '__main__':
    sys.exit(main())
