"""Data models for location resolution."""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from polisgeo.core.config import (
    BATCH_CONCURRENCY,
    BATCH_DELAY_MS,
    BATCH_RETRIES,
    BATCH_RETRY_DELAY_MS,
    BATCH_TIMEOUT_MS,
)


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 point."""
    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class GazetteerEntry:
    """One place name in the gazetteer. Names are stored lowercase."""
    name: str
    lat: float
    lon: float

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lon=self.lon)


class ResolutionSource(str, Enum):
    """Which step of the resolver produced (or refused) a result."""
    CACHE = "cache"
    CACHED_FAILURE = "cached_failure"
    LOCAL_INDEX = "local_index"
    COUNTY = "county"
    MULTI_PART = "multi_part"
    EXTERNAL = "external"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    ERROR = "error"


@dataclass(frozen=True)
class ResolveOutcome:
    """Result of resolving one location name, tagged with its source."""
    input_text: str
    normalized_text: str
    source: ResolutionSource
    coordinates: Optional[Coordinates] = None

    @property
    def resolved(self) -> bool:
        return self.coordinates is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "input_text": self.input_text,
            "normalized_text": self.normalized_text,
            "source": self.source.value,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
        }


@dataclass(frozen=True)
class BatchOptions:
    """Tuning knobs for batch resolution."""
    concurrency: int = BATCH_CONCURRENCY
    delay_ms: int = BATCH_DELAY_MS
    retries: int = BATCH_RETRIES
    retry_delay_ms: int = BATCH_RETRY_DELAY_MS
    timeout_ms: int = BATCH_TIMEOUT_MS


@dataclass(frozen=True)
class BatchResult:
    """Outcome for one unique location in a batch."""
    location: str
    result: Optional[Coordinates]
    success: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "success": self.success,
            "coordinates": self.result.to_dict() if self.success else None,
        }


@dataclass(frozen=True)
class BatchSummary:
    """Aggregate statistics for a batch run."""
    total: int
    successful: int
    failed: int
    success_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": f"{self.success_rate * 100:.2f}%",
        }


def format_coordinates(lat: Optional[float], lon: Optional[float]) -> Optional[str]:
    """
    Format a coordinate pair as "lat,lon" with five decimals.

    Returns:
        The formatted string, or None if either value is missing or NaN
    """
    if lat is None or lon is None or math.isnan(lat) or math.isnan(lon):
        return None
    return f"{lat:.5f},{lon:.5f}"


def parse_coordinates(text: Optional[str]) -> Optional[Coordinates]:
    """Parse a "lat,lon" string back into Coordinates (None when malformed)."""
    if not text:
        return None

    parts = text.split(",")
    if len(parts) != 2:
        return None

    try:
        lat = float(parts[0])
        lon = float(parts[1])
    except ValueError:
        return None

    if math.isnan(lat) or math.isnan(lon):
        return None
    return Coordinates(lat=lat, lon=lon)
