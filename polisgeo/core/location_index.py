"""In-memory multi-index over the gazetteer.

Four lookup strategies share one build pass:

1. exact name (dict lookup)
2. prefix buckets, for partial names and autocomplete
3. county buckets, for names of the form "<x> län"
4. Levenshtein fuzzy matching, for typos and spelling variants

The index is built once and only read afterwards. Rebuild it with `build()`
to swap datasets (tests, alternate gazetteers).
"""
import re
from typing import Dict, Iterable, List, Optional

from polisgeo.core.config import (
    FUZZY_CANDIDATE_STRATEGY,
    FUZZY_THRESHOLD,
    PREFIX_INDEX_LENGTH,
)
from polisgeo.core.fuzzy import rank_by_distance
from polisgeo.core.models import GazetteerEntry
from polisgeo.gazetteers.base import GazetteerProvider
from polisgeo.utils.logging import log_structured
from polisgeo.utils.timing import Timer

COUNTY_NAME = re.compile(r"^(.*?)\s+län$")
MUNICIPALITY_NAME = re.compile(r"^(.*?)\s+kommun$")
COUNTY_SUFFIX = re.compile(r"\s+län$")

CANDIDATE_STRATEGIES = ("first_letter", "full_scan")

# Number of nearest prefix keys merged when no bucket matches exactly
CLOSEST_PREFIX_COUNT = 3


class LocationIndex:
    """Exact, prefix, county and fuzzy lookups over gazetteer entries."""

    def __init__(
        self,
        entries: Optional[Iterable[GazetteerEntry]] = None,
        prefix_length: int = PREFIX_INDEX_LENGTH,
        fuzzy_threshold: int = FUZZY_THRESHOLD,
        candidate_strategy: str = FUZZY_CANDIDATE_STRATEGY
    ):
        """
        Initialize the index.

        Args:
            entries: Gazetteer entries to index (empty index if None)
            prefix_length: Longest prefix stored in the prefix buckets
            fuzzy_threshold: Default maximum edit distance for fuzzy lookups
            candidate_strategy: "first_letter" scores only names sharing the
                query's first character; "full_scan" scores every name

        Raises:
            ValueError: On a non-positive prefix length or unknown strategy
        """
        if prefix_length < 1:
            raise ValueError(f"prefix_length must be >= 1, got {prefix_length}")
        if candidate_strategy not in CANDIDATE_STRATEGIES:
            raise ValueError(
                f"candidate_strategy must be one of {CANDIDATE_STRATEGIES}, got {candidate_strategy!r}"
            )

        self.prefix_length = prefix_length
        self.fuzzy_threshold = fuzzy_threshold
        self.candidate_strategy = candidate_strategy

        self.by_name: Dict[str, GazetteerEntry] = {}
        self.by_prefix: Dict[str, List[GazetteerEntry]] = {}
        self.by_county: Dict[str, List[GazetteerEntry]] = {}
        self.all_locations: List[GazetteerEntry] = []
        self._by_first_letter: Dict[str, List[GazetteerEntry]] = {}

        if entries is not None:
            self.build(entries)

    @classmethod
    def from_provider(cls, provider: GazetteerProvider, **kwargs) -> "LocationIndex":
        """Build an index from everything a gazetteer provider loads."""
        return cls(provider.load_entries(), **kwargs)

    def build(self, entries: Iterable[GazetteerEntry]):
        """
        (Re)build all indexes from gazetteer entries.

        Later entries overwrite earlier ones with the same name in the exact
        map; prefix and county buckets keep every entry in input order.
        "<x> kommun" entries are also registered under "<x>".
        """
        self.by_name = {}
        self.by_prefix = {}
        self.by_county = {}
        self.all_locations = []
        self._by_first_letter = {}

        with Timer("build_location_index", prefix_length=self.prefix_length) as timer:
            for entry in entries:
                name = entry.name.lower()
                if name != entry.name:
                    entry = GazetteerEntry(name=name, lat=entry.lat, lon=entry.lon)
                if not name:
                    continue

                self.all_locations.append(entry)
                self.by_name[name] = entry
                self._by_first_letter.setdefault(name[0], []).append(entry)

                for length in range(1, min(len(name), self.prefix_length) + 1):
                    self.by_prefix.setdefault(name[:length], []).append(entry)

                county_match = COUNTY_NAME.match(name)
                if county_match:
                    self.by_county.setdefault(county_match.group(1), []).append(entry)

                municipality_match = MUNICIPALITY_NAME.match(name)
                if municipality_match:
                    self.by_name[municipality_match.group(1)] = entry
            timer.add(entries=len(self.all_locations))

        log_structured(
            "info",
            "Location index built",
            **self.stats()
        )

    def stats(self) -> Dict[str, int]:
        """Sizes of the individual indexes."""
        return {
            "entries": len(self.all_locations),
            "named_entries": len(self.by_name),
            "prefixes": len(self.by_prefix),
            "counties": len(self.by_county),
            "prefix_length": self.prefix_length,
        }

    def find_by_exact_name(self, name: Optional[str]) -> Optional[GazetteerEntry]:
        """Case-insensitive exact name lookup."""
        if not name:
            return None
        return self.by_name.get(name.lower())

    def find_by_prefix(self, name: Optional[str], limit: int = 10) -> List[GazetteerEntry]:
        """
        Find entries whose name starts like `name`.

        The input is cut to the indexed prefix length and looked up directly.
        When that bucket is empty, the nearest prefix keys (by edit distance,
        among keys sharing the first character) are merged instead.

        Args:
            name: Location name or partial name
            limit: Maximum number of results to return

        Returns:
            Matching entries (may contain repeated names from the exact bucket)
        """
        if not name:
            return []

        prefix = name.lower()[:self.prefix_length]
        bucket = self.by_prefix.get(prefix)
        if bucket:
            return bucket[:limit]

        same_letter = [key for key in self.by_prefix if key.startswith(prefix[0])]
        closest = rank_by_distance(prefix, same_letter, limit=CLOSEST_PREFIX_COUNT)

        results: Dict[str, GazetteerEntry] = {}
        for key, _distance, _idx in closest:
            for entry in self.by_prefix[key]:
                results.setdefault(entry.name, entry)

        return list(results.values())[:limit]

    def find_by_county(self, county: Optional[str]) -> List[GazetteerEntry]:
        """Entries registered under a county, with or without the " län" suffix."""
        if not county:
            return []
        key = COUNTY_SUFFIX.sub("", county.lower())
        return list(self.by_county.get(key, []))

    def find_by_fuzzy_match(
        self,
        name: Optional[str],
        threshold: Optional[int] = None,
        limit: int = 5
    ) -> List[GazetteerEntry]:
        """
        Find entries within an edit distance of `name`.

        Inputs of three characters or fewer use a threshold of 1; inputs
        shorter than three characters are answered by prefix lookup.

        Args:
            name: Location name to match
            threshold: Maximum edit distance (defaults to the index setting)
            limit: Maximum number of results to return

        Returns:
            Matching entries, closest first
        """
        if not name:
            return []

        lower_name = name.lower()
        if threshold is None:
            threshold = self.fuzzy_threshold

        if len(lower_name) <= 3:
            threshold = 1

        if len(lower_name) < 3:
            return self.find_by_prefix(lower_name, limit)

        candidates = self._fuzzy_candidates(lower_name)
        matches = rank_by_distance(
            lower_name,
            [entry.name for entry in candidates],
            max_distance=threshold,
            limit=limit
        )
        return [candidates[idx] for _name, _distance, idx in matches]

    def _fuzzy_candidates(self, lower_name: str) -> List[GazetteerEntry]:
        if self.candidate_strategy == "full_scan":
            return self.all_locations
        return self._by_first_letter.get(lower_name[0], [])

    def find_location(
        self,
        name: Optional[str],
        fuzzy_threshold: Optional[int] = None,
        try_fuzzy: bool = True,
        try_prefix: bool = True
    ) -> Optional[GazetteerEntry]:
        """
        Progressive search: exact match, then prefix, then fuzzy.

        Args:
            name: Location name to search for
            fuzzy_threshold: Maximum edit distance for the fuzzy stage
            try_fuzzy: Whether to run the fuzzy stage
            try_prefix: Whether to run the prefix stage

        Returns:
            Best matching entry or None
        """
        if not name:
            return None

        exact_match = self.find_by_exact_name(name)
        if exact_match:
            return exact_match

        if try_prefix:
            prefix_matches = self.find_by_prefix(name, 1)
            if prefix_matches:
                return prefix_matches[0]

        if try_fuzzy:
            fuzzy_matches = self.find_by_fuzzy_match(name, fuzzy_threshold, 1)
            if fuzzy_matches:
                return fuzzy_matches[0]

        return None
