"""Async client for the OpenStreetMap Nominatim search endpoint.

This is the fallback of last resort: every failure (network error, timeout,
non-2xx status, malformed payload) is logged and turned into None.
"""
import asyncio
from typing import Any, Dict, Optional

import httpx

from polisgeo.core.config import (
    NOMINATIM_BASE_URL,
    NOMINATIM_COUNTRY_CODES,
    NOMINATIM_LANGUAGE,
    NOMINATIM_TIMEOUT_MS,
    NOMINATIM_USER_AGENT,
)
from polisgeo.core.models import Coordinates
from polisgeo.utils.logging import log_structured

COUNTRY_SUFFIX = ", Sweden"


class NominatimClient:
    """Geocodes normalized Swedish place names via Nominatim."""

    def __init__(
        self,
        base_url: str = NOMINATIM_BASE_URL,
        user_agent: str = NOMINATIM_USER_AGENT,
        timeout_ms: int = NOMINATIM_TIMEOUT_MS,
        country_codes: str = NOMINATIM_COUNTRY_CODES,
        language: str = NOMINATIM_LANGUAGE,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize client.

        Args:
            base_url: Nominatim root URL (the `/search` path is appended)
            user_agent: User-Agent header required by the Nominatim usage policy
            timeout_ms: Timeout for the whole request, body included
            country_codes: `countrycodes` filter
            language: `accept-language` query parameter
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout_ms = timeout_ms
        self.country_codes = country_codes
        self.language = language
        self.transport = transport
        self.request_count = 0

    def build_params(self, normalized_name: str) -> Dict[str, Any]:
        """Query parameters for one search request."""
        return {
            "q": f"{normalized_name}{COUNTRY_SUFFIX}",
            "format": "json",
            "limit": 1,
            "countrycodes": self.country_codes,
            "accept-language": self.language,
        }

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept-Language": "sv,en",
        }

    async def _search(self, normalized_name: str) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout_ms / 1000.0,
            transport=self.transport
        ) as client:
            response = await client.get(
                f"{self.base_url}/search",
                params=self.build_params(normalized_name),
                headers=self.headers
            )
            await response.aread()
        return response

    async def geocode(self, normalized_name: Optional[str]) -> Optional[Coordinates]:
        """
        Look up one place name.

        Args:
            normalized_name: Already-normalized location name

        Returns:
            Coordinates of the top hit, or None on no result or any failure
        """
        if not normalized_name:
            return None

        self.request_count += 1
        try:
            # httpx timeouts apply per phase; wait_for bounds the whole exchange
            response = await asyncio.wait_for(
                self._search(normalized_name),
                timeout=self.timeout_ms / 1000.0
            )

            if not response.is_success:
                log_structured(
                    "warning",
                    "Nominatim returned an error status",
                    location=normalized_name,
                    status_code=response.status_code
                )
                return None

            data = response.json()
            if not data:
                log_structured("debug", "No results from Nominatim", location=normalized_name)
                return None

            top = data[0]
            return Coordinates(lat=float(top["lat"]), lon=float(top["lon"]))

        except Exception as e:
            log_structured(
                "warning",
                "Nominatim request failed",
                location=normalized_name,
                error=str(e),
                error_type=type(e).__name__
            )
            return None
