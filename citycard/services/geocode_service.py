"""
Geocode Service - reverse geocoding through Nominatim.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from citycard.config import settings
from citycard.exceptions import MalformedUpstreamResponse, UpstreamTransportError

logger = logging.getLogger(__name__)


class GeocodeService:
    """Reverse-geocode coordinates into an address object."""

    def __init__(
        self,
        url: Optional[str] = None,
        user_agent: Optional[str] = None,
        zoom: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.geocoder_url
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.zoom = zoom or settings.geocode_zoom
        self.timeout = timeout or settings.geocode_timeout_seconds
        self._transport = transport

    async def reverse(self, lat: float, lon: float) -> Optional[Dict[str, Any]]:
        """
        Look up the address at (lat, lon).

        Returns the `address` object, or None when the geocoder has none.
        """
        params = {
            "format": "json",
            "lat": lat,
            "lon": lon,
            "zoom": self.zoom,
            "addressdetails": 1,
        }
        headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(self.url, params=params, headers=headers)

        if not response.is_success:
            logger.error(f"Geocoder HTTP error: {response.status_code} {response.text}")
            raise UpstreamTransportError(
                "geocoder",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            raise MalformedUpstreamResponse("Geocoder response is not JSON")

        address = data.get("address") if isinstance(data, dict) else None
        return address if isinstance(address, dict) else None
