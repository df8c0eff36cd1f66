"""
Reverse geocoding proxy.

GET /api/reverse-geocode?lat=<num>&lon=<num> -> {"address": {...} | null}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from citycard.api.deps import get_geocoder
from citycard.exceptions import UpstreamTransportError
from citycard.services.geocode_service import GeocodeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Geocoding"])

NO_STORE = {"Cache-Control": "no-store"}


def _parse_coordinate(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


@router.get("/reverse-geocode")
async def reverse_geocode(
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    geocoder: GeocodeService = Depends(get_geocoder),
) -> JSONResponse:
    """Resolve browser coordinates to an address object."""
    latitude = _parse_coordinate(lat)
    longitude = _parse_coordinate(lon)

    if latitude is None or longitude is None:
        return JSONResponse(
            content={"error": "lat and lon parameters are required"},
            status_code=400,
            headers=NO_STORE,
        )

    try:
        address = await geocoder.reverse(latitude, longitude)
    except UpstreamTransportError as e:
        logger.error(f"Reverse geocode upstream error: {e}")
        return JSONResponse(
            content={"error": "Failed to fetch location data"},
            status_code=502,
            headers=NO_STORE,
        )
    except Exception as e:
        logger.error(f"Error proxying reverse geocode: {e}", exc_info=True)
        return JSONResponse(
            content={"error": "Failed to fetch location data"},
            status_code=500,
            headers=NO_STORE,
        )

    return JSONResponse(content={"address": address}, headers=NO_STORE)
