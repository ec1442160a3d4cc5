"""In-memory gazetteer provider for alternate datasets and tests."""
from typing import Any, List, Mapping

from polisgeo.core.models import GazetteerEntry
from polisgeo.gazetteers.base import GazetteerProvider


class MappingProvider(GazetteerProvider):
    """Serves a `{name: {"lat": .., "lon": ..}}` mapping as a gazetteer.

    Values may also be `(lat, lon)` pairs.
    """

    def __init__(self, locations: Mapping[str, Any], name: str = "Mapping Gazetteer"):
        self.locations = locations
        self.name = name

    def load_entries(self) -> List[GazetteerEntry]:
        entries = []
        for place, coords in self.locations.items():
            if isinstance(coords, Mapping):
                lat, lon = coords["lat"], coords["lon"]
            else:
                lat, lon = coords
            entries.append(GazetteerEntry(name=place.strip().lower(), lat=float(lat), lon=float(lon)))
        return entries

    def get_name(self) -> str:
        return self.name
