"""Location resolver: cache tiers, local index, then the external geocoder."""
from typing import Optional, Tuple

from polisgeo.core.cache import TTLCache
from polisgeo.core.config import (
    ENABLE_EXTERNAL_GEOCODER,
    FAILED_GEOCODING_CACHE_TTL_MS,
    FUZZY_CANDIDATE_STRATEGY,
    FUZZY_THRESHOLD,
    GEOCODING_CACHE_TTL_MS,
    NORMALIZED_NAME_CACHE_TTL_MS,
    PREFIX_INDEX_LENGTH,
)
from polisgeo.core.geocoding_cache import GeocodingCache
from polisgeo.core.location_index import LocationIndex
from polisgeo.core.models import Coordinates, ResolutionSource, ResolveOutcome
from polisgeo.core.nominatim import NominatimClient
from polisgeo.core.normalization import (
    normalize_location_name,
    simple_normalize,
    split_location_parts,
)
from polisgeo.gazetteers.base import GazetteerProvider
from polisgeo.gazetteers.csv_provider import CSVProvider
from polisgeo.utils.logging import log_error, log_structured


class LocationResolver:
    """Resolves raw police-report location strings to coordinates."""

    def __init__(
        self,
        index: LocationIndex,
        cache: GeocodingCache,
        client: Optional[NominatimClient] = None,
        fuzzy_threshold: Optional[int] = None
    ):
        """
        Initialize resolver.

        Args:
            index: Location index built from the gazetteer
            cache: Geocoding cache (success, failure and synonym tiers)
            client: External geocoder; None disables the external fallback
            fuzzy_threshold: Edit distance for local fuzzy lookups
                (defaults to the index setting)
        """
        self.index = index
        self.cache = cache
        self.client = client
        self.fuzzy_threshold = fuzzy_threshold

    async def resolve(self, location_name: Optional[str]) -> Optional[Coordinates]:
        """
        Resolve a location name.

        Never raises: misses and failures are returned as None.
        """
        outcome = await self.resolve_detailed(location_name)
        return outcome.coordinates

    async def resolve_detailed(self, location_name: Optional[str]) -> ResolveOutcome:
        """
        Resolve a location name and report which step answered.

        Args:
            location_name: Raw location string

        Returns:
            ResolveOutcome with coordinates (or None) and the resolution source
        """
        if not location_name or not location_name.strip():
            return ResolveOutcome(
                input_text=location_name or "",
                normalized_text="",
                source=ResolutionSource.INVALID_INPUT
            )

        try:
            outcome = await self._resolve(location_name)
        except Exception as e:
            log_error(e, {"location": location_name, "operation": "resolve"})
            self.cache.cache_failure(location_name)
            return ResolveOutcome(
                input_text=location_name,
                normalized_text=simple_normalize(location_name),
                source=ResolutionSource.ERROR
            )

        log_structured(
            "debug",
            "Location resolved" if outcome.resolved else "Location not resolved",
            location=location_name,
            normalized=outcome.normalized_text,
            source=outcome.source.value
        )
        return outcome

    async def _resolve(self, location_name: str) -> ResolveOutcome:
        simple_name = simple_normalize(location_name)

        cached = self.cache.get_cached_result(location_name)
        if cached is not None:
            return ResolveOutcome(location_name, simple_name, ResolutionSource.CACHE, cached)

        if self.cache.get_cached_failure(location_name):
            return ResolveOutcome(location_name, simple_name, ResolutionSource.CACHED_FAILURE)

        synonym = self.cache.get_cached_normalized_name(location_name)
        if synonym and synonym != simple_name:
            cached = self.cache.get_cached_result(synonym)
            if cached is not None:
                self.cache.cache_result(location_name, cached)
                return ResolveOutcome(location_name, synonym, ResolutionSource.CACHE, cached)

        normalized = synonym or self.normalize(location_name)

        coordinates, source = self._resolve_locally(normalized)
        if coordinates is None and self.client is not None and normalized:
            coordinates = await self.client.geocode(normalized)
            source = ResolutionSource.EXTERNAL

        if coordinates is None:
            self.cache.cache_failure(location_name)
            return ResolveOutcome(location_name, normalized, ResolutionSource.NOT_FOUND)

        self.cache.cache_result(location_name, coordinates)
        if normalized and normalized != simple_name:
            self.cache.cache_result(normalized, coordinates)
        return ResolveOutcome(location_name, normalized, source, coordinates)

    def normalize(self, location_name: str) -> str:
        """
        Fully normalize a name, memoized through the synonym cache tier.

        Only normalizations that differ from the plain lowercase/trim form are
        remembered.
        """
        cached = self.cache.get_cached_normalized_name(location_name)
        if cached:
            return cached

        normalized = normalize_location_name(location_name, self.index)
        if normalized != simple_normalize(location_name):
            self.cache.cache_normalized_name(location_name, normalized)
        return normalized

    def find_known_location(self, normalized_name: str) -> Tuple[Optional[Coordinates], ResolutionSource]:
        """Local index lookup, then county fallback."""
        entry = self.index.find_location(normalized_name, fuzzy_threshold=self.fuzzy_threshold)
        if entry is not None:
            return entry.coordinates, ResolutionSource.LOCAL_INDEX

        county_entries = self.index.find_by_county(normalized_name)
        if county_entries:
            return county_entries[0].coordinates, ResolutionSource.COUNTY

        return None, ResolutionSource.NOT_FOUND

    def _resolve_locally(self, normalized_name: str) -> Tuple[Optional[Coordinates], ResolutionSource]:
        if not normalized_name:
            return None, ResolutionSource.NOT_FOUND

        coordinates, source = self.find_known_location(normalized_name)
        if coordinates is not None:
            return coordinates, source

        parts = split_location_parts(normalized_name)
        if len(parts) > 1:
            # Police titles put the most specific place last
            for part in reversed(parts):
                coordinates, _source = self.find_known_location(part)
                if coordinates is not None:
                    return coordinates, ResolutionSource.MULTI_PART

        return None, ResolutionSource.NOT_FOUND


def build_resolver(
    provider: Optional[GazetteerProvider] = None,
    index: Optional[LocationIndex] = None,
    cache_store: Optional[TTLCache] = None,
    client: Optional[NominatimClient] = None,
    enable_external: bool = ENABLE_EXTERNAL_GEOCODER,
    prefix_length: int = PREFIX_INDEX_LENGTH,
    fuzzy_threshold: int = FUZZY_THRESHOLD,
    candidate_strategy: str = FUZZY_CANDIDATE_STRATEGY,
    success_ttl_ms: int = GEOCODING_CACHE_TTL_MS,
    failure_ttl_ms: int = FAILED_GEOCODING_CACHE_TTL_MS,
    normalized_ttl_ms: int = NORMALIZED_NAME_CACHE_TTL_MS
) -> LocationResolver:
    """
    Build a resolver with its own index, cache and client.

    Setup errors (missing gazetteer file, bad index settings) propagate from
    here; the resulting resolver never raises.

    Args:
        provider: Gazetteer source (defaults to the built-in CSV table)
        index: Prebuilt index; overrides provider and index settings
        cache_store: Backing TTL store (a fresh one by default)
        client: External geocoder (built from config when enable_external)
        enable_external: Whether to fall back to Nominatim at all
        prefix_length: Prefix bucket length for a newly built index
        fuzzy_threshold: Fuzzy edit-distance threshold for a newly built index
        candidate_strategy: Fuzzy candidate strategy for a newly built index
        success_ttl_ms: TTL of cached results
        failure_ttl_ms: TTL of cached failures
        normalized_ttl_ms: TTL of cached normalized names

    Returns:
        Configured LocationResolver
    """
    if index is None:
        index = LocationIndex.from_provider(
            provider or CSVProvider(),
            prefix_length=prefix_length,
            fuzzy_threshold=fuzzy_threshold,
            candidate_strategy=candidate_strategy
        )

    cache = GeocodingCache(
        store=cache_store,
        success_ttl_ms=success_ttl_ms,
        failure_ttl_ms=failure_ttl_ms,
        normalized_ttl_ms=normalized_ttl_ms
    )

    if client is None and enable_external:
        client = NominatimClient()
    elif not enable_external:
        client = None

    return LocationResolver(index=index, cache=cache, client=client)
