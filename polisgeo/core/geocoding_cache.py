"""Tiered caching for geocoding results.

Three namespaces share one TTL store:

- ``geocoding:<name>``            successful results (30 days)
- ``geocoding:failed:<name>``     failed attempts (1 day, so new places get retried)
- ``geocoding:normalized:<name>`` normalized-name synonyms (90 days)

Every key uses the lowercased, trimmed input, independent of the full
normalization rules.
"""
import time
from typing import Any, Dict, Optional

from polisgeo.core.cache import TTLCache
from polisgeo.core.config import (
    FAILED_GEOCODING_CACHE_TTL_MS,
    GEOCODING_CACHE_TTL_MS,
    NORMALIZED_NAME_CACHE_TTL_MS,
)
from polisgeo.core.models import Coordinates
from polisgeo.core.normalization import simple_normalize

CACHE_PREFIX = "geocoding:"
FAILED_PREFIX = "geocoding:failed:"
NORMALIZED_PREFIX = "geocoding:normalized:"


def _is_success_key(key: str) -> bool:
    return (
        key.startswith(CACHE_PREFIX)
        and not key.startswith(FAILED_PREFIX)
        and not key.startswith(NORMALIZED_PREFIX)
    )


class GeocodingCache:
    """Success / failure / synonym tiers over a shared TTL store."""

    def __init__(
        self,
        store: Optional[TTLCache] = None,
        success_ttl_ms: int = GEOCODING_CACHE_TTL_MS,
        failure_ttl_ms: int = FAILED_GEOCODING_CACHE_TTL_MS,
        normalized_ttl_ms: int = NORMALIZED_NAME_CACHE_TTL_MS
    ):
        self.store = store if store is not None else TTLCache()
        self.success_ttl_ms = success_ttl_ms
        self.failure_ttl_ms = failure_ttl_ms
        self.normalized_ttl_ms = normalized_ttl_ms

    def get_cached_result(self, location_name: Optional[str]) -> Optional[Coordinates]:
        """Cached coordinates for a location, or None."""
        key = simple_normalize(location_name)
        if not key:
            return None
        return self.store.get(f"{CACHE_PREFIX}{key}")

    def cache_result(
        self,
        location_name: Optional[str],
        result: Optional[Coordinates],
        ttl_ms: Optional[int] = None
    ):
        """Cache coordinates for a location."""
        key = simple_normalize(location_name)
        if not key or result is None:
            return
        self.store.set(f"{CACHE_PREFIX}{key}", result, self.success_ttl_ms if ttl_ms is None else ttl_ms)

    def get_cached_failure(self, location_name: Optional[str]) -> bool:
        """True if resolving this location failed recently."""
        key = simple_normalize(location_name)
        if not key:
            return False
        return self.store.get(f"{FAILED_PREFIX}{key}") is not None

    def cache_failure(self, location_name: Optional[str], ttl_ms: Optional[int] = None):
        """Record a failed attempt. The stored value is the failure time (epoch ms)."""
        key = simple_normalize(location_name)
        if not key:
            return
        self.store.set(
            f"{FAILED_PREFIX}{key}",
            int(time.time() * 1000),
            self.failure_ttl_ms if ttl_ms is None else ttl_ms
        )

    def get_cached_normalized_name(self, location_name: Optional[str]) -> Optional[str]:
        """Cached full normalization of a location name, or None."""
        key = simple_normalize(location_name)
        if not key:
            return None
        return self.store.get(f"{NORMALIZED_PREFIX}{key}")

    def cache_normalized_name(
        self,
        original_name: Optional[str],
        normalized_name: Optional[str],
        ttl_ms: Optional[int] = None
    ):
        """Remember the full normalization of a location name."""
        key = simple_normalize(original_name)
        if not key or not normalized_name:
            return
        self.store.set(
            f"{NORMALIZED_PREFIX}{key}",
            normalized_name,
            self.normalized_ttl_ms if ttl_ms is None else ttl_ms
        )

    def get_metrics(self) -> Dict[str, Any]:
        """
        Store metrics restricted to the geocoding namespaces.

        Returns:
            Store metrics plus geocoding hit/miss totals and per-tier entry counts
        """
        metrics = self.store.get_metrics()
        keys = [key for key in metrics["keys"] if key.startswith(CACHE_PREFIX)]
        tracked = set(metrics["hits"]) | set(metrics["misses"])
        geocoding_tracked = [key for key in tracked if key.startswith(CACHE_PREFIX)]

        return {
            **metrics,
            "cache_type": "geocoding",
            "geocoding_keys": len(keys),
            "geocoding_hits": sum(metrics["hits"].get(key, 0) for key in geocoding_tracked),
            "geocoding_misses": sum(metrics["misses"].get(key, 0) for key in geocoding_tracked),
            "success_count": sum(1 for key in keys if _is_success_key(key)),
            "failed_count": sum(1 for key in keys if key.startswith(FAILED_PREFIX)),
            "normalized_count": sum(1 for key in keys if key.startswith(NORMALIZED_PREFIX)),
        }
