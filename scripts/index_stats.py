#!/usr/bin/env python3
"""CLI script to build the location index and try lookups against it."""
import argparse
from pathlib import Path

from polisgeo.core.config import FUZZY_CANDIDATE_STRATEGY, FUZZY_THRESHOLD, PREFIX_INDEX_LENGTH
from polisgeo.core.location_index import CANDIDATE_STRATEGIES, LocationIndex
from polisgeo.core.normalization import extract_location, normalize_location_name
from polisgeo.gazetteers.csv_provider import CSVProvider
from polisgeo.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Build the location index and print statistics")
    parser.add_argument("queries", nargs="*", help="Names to look up")
    parser.add_argument("--gazetteer", type=Path, help="Gazetteer CSV (default: built-in table)")
    parser.add_argument("--prefix-length", type=int, default=PREFIX_INDEX_LENGTH)
    parser.add_argument("--fuzzy-threshold", type=int, default=FUZZY_THRESHOLD)
    parser.add_argument("--strategy", choices=CANDIDATE_STRATEGIES, default=FUZZY_CANDIDATE_STRATEGY)
    parser.add_argument("--log-level", default="WARNING")

    args = parser.parse_args()
    setup_logging(args.log_level)

    provider = CSVProvider(args.gazetteer)
    print(f"Building index from {provider.get_name()}...")
    index = LocationIndex.from_provider(
        provider,
        prefix_length=args.prefix_length,
        fuzzy_threshold=args.fuzzy_threshold,
        candidate_strategy=args.strategy
    )
    for key, value in index.stats().items():
        print(f"  {key}: {value}")

    for query in args.queries:
        normalized = normalize_location_name(query, index)
        match = index.find_location(normalized)
        print(f"\n{query!r} -> {normalized!r}")
        print(f"  extracted: {extract_location(query, index)}")
        print(f"  match:     {f'{match.name} ({match.lat}, {match.lon})' if match else None}")
        print(f"  prefix:    {[entry.name for entry in index.find_by_prefix(normalized, 5)]}")
        print(f"  fuzzy:     {[entry.name for entry in index.find_by_fuzzy_match(normalized, limit=5)]}")


if __name__ == "__main__":
    main()
