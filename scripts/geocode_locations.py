#!/usr/bin/env python3
"""CLI script to batch-resolve location names to coordinates."""
import argparse
import asyncio
import json
import sys
from pathlib import Path

from polisgeo.core.batch import BatchResolver, summarize, validate_batch_request
from polisgeo.core.config import LOG_LEVEL, MAX_BATCH_SIZE
from polisgeo.core.geocoder import build_resolver
from polisgeo.core.models import BatchOptions
from polisgeo.gazetteers.csv_provider import CSVProvider
from polisgeo.utils.error_tracking import setup_error_tracking
from polisgeo.utils.logging import setup_logging


def main():
    defaults = BatchOptions()
    parser = argparse.ArgumentParser(description="Resolve Swedish location names to coordinates")
    parser.add_argument("names", nargs="*", help="Location names")
    parser.add_argument("--file", type=Path, help="Text file with one location name per line")
    parser.add_argument("--gazetteer", type=Path, help="Gazetteer CSV (default: built-in table)")
    parser.add_argument("--concurrency", type=int, default=defaults.concurrency)
    parser.add_argument("--delay-ms", type=int, default=defaults.delay_ms)
    parser.add_argument("--retries", type=int, default=defaults.retries)
    parser.add_argument("--retry-delay-ms", type=int, default=defaults.retry_delay_ms)
    parser.add_argument("--timeout-ms", type=int, default=defaults.timeout_ms)
    parser.add_argument("--max-batch-size", type=int, default=MAX_BATCH_SIZE)
    parser.add_argument("--no-external", action="store_true",
                        help="Only use the local gazetteer")
    parser.add_argument("--log-level", default=LOG_LEVEL)

    args = parser.parse_args()
    setup_logging(args.log_level)
    setup_error_tracking()

    names = list(args.names)
    if args.file:
        if not args.file.exists():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            sys.exit(1)
        names.extend(line.strip() for line in args.file.read_text(encoding="utf-8").splitlines() if line.strip())

    try:
        names = validate_batch_request(names, args.max_batch_size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    resolver = build_resolver(
        provider=CSVProvider(args.gazetteer) if args.gazetteer else None,
        enable_external=not args.no_external
    )
    batch_resolver = BatchResolver(resolver, BatchOptions(
        concurrency=args.concurrency,
        delay_ms=args.delay_ms,
        retries=args.retries,
        retry_delay_ms=args.retry_delay_ms,
        timeout_ms=args.timeout_ms
    ))

    results = asyncio.run(batch_resolver.batch_resolve(names))
    output = {
        "statistics": summarize(results).to_dict(),
        "results": [result.to_dict() for result in results],
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
