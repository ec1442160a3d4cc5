"""CSV-based gazetteer provider (the built-in Swedish place table)."""
from pathlib import Path
from typing import List, Optional

import pandas as pd

from polisgeo.core.config import GAZETTEER_PATH
from polisgeo.core.models import GazetteerEntry
from polisgeo.gazetteers.base import GazetteerProvider
from polisgeo.utils.timing import time_function


class CSVProvider(GazetteerProvider):
    """CSV-based gazetteer provider."""

    def __init__(
        self,
        csv_path: Optional[Path] = None,
        name_field: str = "name",
        lat_field: str = "lat",
        lon_field: str = "lon"
    ):
        """
        Initialize CSV provider.

        Args:
            csv_path: Path to CSV file (defaults to GAZETTEER_PATH)
            name_field: Name field name
            lat_field: Latitude field name
            lon_field: Longitude field name
        """
        self.csv_path = Path(csv_path) if csv_path else GAZETTEER_PATH
        self.name_field = name_field
        self.lat_field = lat_field
        self.lon_field = lon_field

    @time_function
    def load_entries(self) -> List[GazetteerEntry]:
        """
        Load gazetteer rows from the CSV file.

        Rows without a name or with unparseable coordinates are skipped.

        Raises:
            FileNotFoundError: If the CSV file does not exist
            ValueError: If a required column is missing
        """
        if not self.csv_path.exists():
            raise FileNotFoundError(f"Gazetteer file not found: {self.csv_path}")

        df = pd.read_csv(
            self.csv_path,
            dtype={self.name_field: str},
            keep_default_na=False,
            encoding="utf-8"
        )

        missing = [
            field for field in (self.name_field, self.lat_field, self.lon_field)
            if field not in df.columns
        ]
        if missing:
            raise ValueError(f"Gazetteer CSV missing required fields: {', '.join(missing)}")

        df[self.name_field] = df[self.name_field].str.strip().str.lower()
        df[self.lat_field] = pd.to_numeric(df[self.lat_field], errors="coerce")
        df[self.lon_field] = pd.to_numeric(df[self.lon_field], errors="coerce")
        df = df.dropna(subset=[self.lat_field, self.lon_field])
        df = df[df[self.name_field] != ""]

        return [
            GazetteerEntry(name=name, lat=float(lat), lon=float(lon))
            for name, lat, lon in zip(df[self.name_field], df[self.lat_field], df[self.lon_field])
        ]

    def get_name(self) -> str:
        """Get provider name."""
        return f"CSV Gazetteer ({self.csv_path.name})"
