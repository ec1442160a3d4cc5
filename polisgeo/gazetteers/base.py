"""Base class for gazetteer providers."""
from abc import ABC, abstractmethod
from typing import List

from polisgeo.core.models import GazetteerEntry


class GazetteerProvider(ABC):
    """Base class for gazetteer data providers."""

    @abstractmethod
    def load_entries(self) -> List[GazetteerEntry]:
        """
        Load every entry of the gazetteer.

        Returns:
            Entries with lowercase names, in source order (order matters:
            later duplicates win in the exact-name index)
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get provider name."""
        pass
