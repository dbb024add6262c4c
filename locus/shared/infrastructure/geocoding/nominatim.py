"""
Nominatim (OpenStreetMap) reverse geocoder.

Uses the public ``/reverse`` endpoint with ``format=jsonv2``. Nominatim answers
HTTP 200 with an ``error`` field when nothing is found at a position.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .base import GeocodingError

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Reverse geocoder backed by a Nominatim server."""

    DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = "locus/0.3",
        timeout: float = 10.0,
        language: str = "en",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.language = language
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )

    async def reverse(self, latitude: float, longitude: float) -> Optional[str]:
        params = {
            "format": "jsonv2",
            "lat": f"{latitude:.7f}",
            "lon": f"{longitude:.7f}",
            "accept-language": self.language,
        }
        try:
            response = await self._client.get(f"{self.base_url}/reverse", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise GeocodingError(f"Nominatim returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise GeocodingError(f"Nominatim request failed: {e}") from e
        except ValueError as e:
            raise GeocodingError("Nominatim returned invalid JSON") from e

        return self._parse(data)

    @staticmethod
    def _parse(data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            raise GeocodingError(f"Unexpected Nominatim payload: {type(data).__name__}")
        if "error" in data:
            logger.debug(f"Nominatim: {data['error']}")
            return None

        display_name = data.get("display_name")
        if isinstance(display_name, str) and display_name.strip():
            return display_name.strip()

        address: Dict[str, Any] = data.get("address") or {}
        parts = [
            str(address[key]).strip()
            for key in ("road", "city", "town", "village", "state", "country")
            if address.get(key)
        ]
        return ", ".join(parts) or None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
