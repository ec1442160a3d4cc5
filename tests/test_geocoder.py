"""Tests for the location resolver."""
import asyncio

import pytest

from polisgeo.core.cache import TTLCache
from polisgeo.core.config import DAY_MS
from polisgeo.core.geocoder import LocationResolver, build_resolver
from polisgeo.core.geocoding_cache import GeocodingCache
from polisgeo.core.models import Coordinates, ResolutionSource
from polisgeo.core.nominatim import NominatimClient
from polisgeo.gazetteers.mapping_provider import MappingProvider


def resolve(resolver, name):
    return asyncio.run(resolver.resolve(name))


def resolve_detailed(resolver, name):
    return asyncio.run(resolver.resolve_detailed(name))


class BrokenClient:
    """External client that violates its never-raise contract."""

    def __init__(self):
        self.calls = 0

    async def geocode(self, normalized_name):
        self.calls += 1
        raise RuntimeError("unexpected failure")


def test_case_and_whitespace_invariance(shipped_resolver):
    """Test spelling variants of Stockholm resolve identically."""
    expected = Coordinates(lat=59.32938, lon=18.06871)
    assert resolve(shipped_resolver, "Stockholm") == expected
    assert resolve(shipped_resolver, "stockholm") == expected
    assert resolve(shipped_resolver, "  Stockholm  ") == expected


def test_local_hits_are_deterministic(shipped_index):
    """Test cold and warm caches give the same local result."""
    cold = [resolve(build_resolver(index=shipped_index, enable_external=False), "Göteborg") for _ in range(3)]

    warm_resolver = build_resolver(index=shipped_index, enable_external=False)
    warm = [resolve(warm_resolver, "Göteborg") for _ in range(3)]

    assert len(set(cold + warm)) == 1
    assert cold[0] == Coordinates(lat=57.70887, lon=11.97456)
    assert resolve_detailed(warm_resolver, "Göteborg").source == ResolutionSource.CACHE


def test_incident_title_resolves_place(shipped_resolver, shipped_index):
    """Test 'Trafikolycka, Enköping' resolves to Enköping."""
    expected = shipped_index.find_by_exact_name("enköping").coordinates
    assert resolve(shipped_resolver, "Trafikolycka, Enköping") == expected


def test_local_index_source(resolver, fake_client):
    """Test local hits never call the external client."""
    outcome = resolve_detailed(resolver, "i Malmö")
    assert outcome.source == ResolutionSource.LOCAL_INDEX
    assert outcome.normalized_text == "malmö"
    assert outcome.coordinates == Coordinates(lat=55.60587, lon=13.00073)
    assert fake_client.calls == []


def test_multi_part_retry(resolver, fake_client):
    """Test comma segments are tried from last to first."""
    outcome = resolve_detailed(resolver, "Okänd plats, Enköping")
    assert outcome.source == ResolutionSource.MULTI_PART
    assert outcome.coordinates == Coordinates(lat=59.6355, lon=17.07875)
    assert fake_client.calls == []

    outcome = resolve_detailed(resolver, "Olycksplats in Uppsala")
    assert outcome.source == ResolutionSource.MULTI_PART
    assert outcome.coordinates == Coordinates(lat=59.85882, lon=17.63889)


def test_negative_caching(resolver, fake_client):
    """Test a failed name is not looked up externally twice."""
    assert resolve(resolver, "Xyzzyby") is None
    assert fake_client.calls == ["xyzzyby"]

    outcome = resolve_detailed(resolver, "Xyzzyby")
    assert outcome.coordinates is None
    assert outcome.source == ResolutionSource.CACHED_FAILURE
    assert fake_client.calls == ["xyzzyby"]


def test_failure_cache_expires(resolver, fake_client, clock):
    """Test failures are retried after a day."""
    assert resolve(resolver, "Xyzzyby") is None
    clock.advance(DAY_MS / 1000 + 1)
    assert resolve(resolver, "Xyzzyby") is None
    assert fake_client.calls == ["xyzzyby", "xyzzyby"]


def test_external_fallback_is_cached(resolver, fake_client, geocoding_cache, oxelosund):
    """Test external results are cached under raw and normalized names."""
    fake_client.results["oxelösund"] = oxelosund

    outcome = resolve_detailed(resolver, "I Oxelösund")
    assert outcome.source == ResolutionSource.EXTERNAL
    assert outcome.coordinates == oxelosund
    assert fake_client.calls == ["oxelösund"]

    assert geocoding_cache.get_cached_result("i oxelösund") == oxelosund
    assert geocoding_cache.get_cached_result("oxelösund") == oxelosund
    assert geocoding_cache.get_cached_normalized_name("i oxelösund") == "oxelösund"

    outcome = resolve_detailed(resolver, "I Oxelösund")
    assert outcome.source == ResolutionSource.CACHE
    assert fake_client.calls == ["oxelösund"]


def test_normalized_synonym_reuse(resolver, fake_client, geocoding_cache, oxelosund):
    """Test a cached synonym answers even when the raw entry is gone."""
    fake_client.results["oxelösund"] = oxelosund
    resolve(resolver, "i Oxelösund")
    geocoding_cache.store.delete("geocoding:i oxelösund")

    outcome = resolve_detailed(resolver, "i Oxelösund")
    assert outcome.source == ResolutionSource.CACHE
    assert outcome.normalized_text == "oxelösund"
    assert outcome.coordinates == oxelosund
    assert fake_client.calls == ["oxelösund"]
    # Re-cached under the raw name
    assert geocoding_cache.get_cached_result("i oxelösund") == oxelosund


def test_normalization_is_memoized(resolver, geocoding_cache):
    """Test only non-trivial normalizations are remembered."""
    assert resolver.normalize("Trafikolycka, Malmö") == "malmö"
    assert geocoding_cache.get_cached_normalized_name("trafikolycka, malmö") == "malmö"

    assert resolver.normalize("Malmö") == "malmö"
    assert geocoding_cache.get_cached_normalized_name("malmö") is None


@pytest.mark.parametrize("name", [None, "", "   "])
def test_invalid_input(resolver, fake_client, name):
    """Test empty inputs resolve to None without side effects."""
    outcome = resolve_detailed(resolver, name)
    assert outcome.coordinates is None
    assert outcome.source == ResolutionSource.INVALID_INPUT
    assert fake_client.calls == []
    assert len(resolver.cache.store) == 0


@pytest.mark.parametrize("name", ["!!!", "123", "x" * 5000, "ö-–—", ",,,", "i"])
def test_resolve_never_raises(resolver, name):
    """Test odd inputs are handled without exceptions."""
    result = resolve(resolver, name)
    assert result is None or isinstance(result, Coordinates)


def test_unexpected_errors_become_cached_failures(location_index, geocoding_cache):
    """Test exceptions inside the pipeline are contained."""
    client = BrokenClient()
    resolver = LocationResolver(index=location_index, cache=geocoding_cache, client=client)

    outcome = resolve_detailed(resolver, "Xyzzyby")
    assert outcome.coordinates is None
    assert outcome.source == ResolutionSource.ERROR

    assert resolve_detailed(resolver, "Xyzzyby").source == ResolutionSource.CACHED_FAILURE
    assert client.calls == 1


def test_without_external_client(location_index, geocoding_cache):
    """Test misses are final when the external fallback is disabled."""
    resolver = LocationResolver(index=location_index, cache=geocoding_cache)
    outcome = resolve_detailed(resolver, "Xyzzyby")
    assert outcome.source == ResolutionSource.NOT_FOUND
    assert outcome.coordinates is None


def test_outcome_to_dict(resolver):
    """Test outcome serialization."""
    data = resolve_detailed(resolver, "Uppsala").to_dict()
    assert data == {
        "input_text": "Uppsala",
        "normalized_text": "uppsala",
        "source": "local_index",
        "coordinates": {"lat": 59.85882, "lon": 17.63889},
    }


def test_build_resolver_wiring(sample_gazetteer):
    """Test the factory builds an isolated context."""
    store = TTLCache()
    resolver = build_resolver(
        provider=sample_gazetteer,
        cache_store=store,
        enable_external=True,
        fuzzy_threshold=1,
        failure_ttl_ms=1234
    )
    assert isinstance(resolver.client, NominatimClient)
    assert isinstance(resolver.cache, GeocodingCache)
    assert resolver.cache.store is store
    assert resolver.cache.failure_ttl_ms == 1234
    assert resolver.index.fuzzy_threshold == 1
    assert resolver.index.find_by_exact_name("stockholm") is not None

    local_only = build_resolver(provider=sample_gazetteer, enable_external=False)
    assert local_only.client is None
    assert local_only.cache.store is not store


def test_separate_contexts_do_not_share_state():
    """Test two resolvers with different gazetteers stay independent."""
    first = build_resolver(provider=MappingProvider({"kiruna": (67.8557, 20.2253)}), enable_external=False)
    second = build_resolver(provider=MappingProvider({"visby": (57.6348, 18.2944)}), enable_external=False)

    assert resolve(first, "Kiruna") == Coordinates(lat=67.8557, lon=20.2253)
    assert resolve(second, "Kiruna") is None
    assert resolve(second, "Visby") == Coordinates(lat=57.6348, lon=18.2944)
