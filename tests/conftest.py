"""Pytest configuration and fixtures."""
import pytest

from polisgeo.core.cache import TTLCache
from polisgeo.core.geocoder import LocationResolver, build_resolver
from polisgeo.core.geocoding_cache import GeocodingCache
from polisgeo.core.location_index import LocationIndex
from polisgeo.core.models import Coordinates
from polisgeo.gazetteers.csv_provider import CSVProvider
from polisgeo.gazetteers.mapping_provider import MappingProvider

# No names start with n, o, q, x or z, so such inputs miss the index entirely
SAMPLE_LOCATIONS = {
    "stockholm": (59.32938, 18.06871),
    "göteborg": (57.70887, 11.97456),
    "enköping": (59.6355, 17.07875),
    "malmö": (55.60587, 13.00073),
    "uppsala": (59.85882, 17.63889),
    "västerås": (59.61617, 16.55276),
    "stockholms län": (59.32938, 18.06871),
    "skåne län": (55.99, 13.59),
    "tierps kommun": (60.3456, 17.5156),
    "upplands väsby": (59.5184, 17.9113),
}


class FakeClock:
    """Deterministic clock (seconds) for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeClient:
    """Stands in for NominatimClient; records every call."""

    def __init__(self, results=None):
        self.results = dict(results or {})
        self.calls = []

    async def geocode(self, normalized_name):
        self.calls.append(normalized_name)
        return self.results.get(normalized_name)


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def cache_store(clock):
    """TTL store driven by the fake clock."""
    return TTLCache(timer=clock)


@pytest.fixture
def geocoding_cache(cache_store):
    """Geocoding cache over the fake-clock store."""
    return GeocodingCache(store=cache_store)


@pytest.fixture
def sample_gazetteer():
    """Small in-memory gazetteer."""
    return MappingProvider(SAMPLE_LOCATIONS, name="Sample Gazetteer")


@pytest.fixture
def location_index(sample_gazetteer):
    """Index over the sample gazetteer."""
    return LocationIndex.from_provider(sample_gazetteer)


@pytest.fixture
def fake_client():
    """External geocoder stub that finds nothing unless told otherwise."""
    return FakeClient()


@pytest.fixture
def resolver(location_index, geocoding_cache, fake_client):
    """Resolver over the sample gazetteer with a fake external client."""
    return LocationResolver(index=location_index, cache=geocoding_cache, client=fake_client)


@pytest.fixture(scope="session")
def shipped_index():
    """Index over the built-in gazetteer table."""
    return LocationIndex.from_provider(CSVProvider())


@pytest.fixture
def shipped_resolver(shipped_index):
    """Local-only resolver over the built-in gazetteer."""
    return build_resolver(index=shipped_index, enable_external=False)


@pytest.fixture
def oxelosund():
    """Coordinates the fake client returns for an unindexed place."""
    return Coordinates(lat=58.6698, lon=17.1003)
