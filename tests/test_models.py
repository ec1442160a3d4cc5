"""Tests for data models and coordinate strings."""
import dataclasses

import pytest

from polisgeo.core.models import (
    BatchOptions,
    Coordinates,
    GazetteerEntry,
    format_coordinates,
    parse_coordinates,
)


def test_format_coordinates():
    """Test five-decimal formatting."""
    assert format_coordinates(59.32938, 18.06871) == "59.32938,18.06871"
    assert format_coordinates(59.3, 18.0) == "59.30000,18.00000"
    assert format_coordinates(None, 18.0) is None
    assert format_coordinates(float("nan"), 18.0) is None


def test_parse_coordinates():
    """Test parsing coordinate strings."""
    assert parse_coordinates("59.32938,18.06871") == Coordinates(lat=59.32938, lon=18.06871)
    assert parse_coordinates(" 59.3 , 18.0 ") == Coordinates(lat=59.3, lon=18.0)
    assert parse_coordinates("") is None
    assert parse_coordinates(None) is None
    assert parse_coordinates("59.3") is None
    assert parse_coordinates("59.3,18.0,1") is None
    assert parse_coordinates("north,east") is None
    assert parse_coordinates("nan,18.0") is None


def test_records_are_immutable():
    """Test coordinates and entries are frozen."""
    coords = Coordinates(lat=1.0, lon=2.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        coords.lat = 3.0

    entry = GazetteerEntry(name="visby", lat=57.6348, lon=18.2944)
    assert entry.coordinates == Coordinates(lat=57.6348, lon=18.2944)
    assert coords.to_dict() == {"lat": 1.0, "lon": 2.0}


def test_batch_option_defaults():
    """Test batch defaults."""
    options = BatchOptions()
    assert options.concurrency == 5
    assert options.delay_ms == 200
    assert options.retries == 1
    assert options.retry_delay_ms == 1000
    assert options.timeout_ms == 5000
