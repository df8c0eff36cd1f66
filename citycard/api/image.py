"""
Weather card image API.

GET /api/image?city=<name> -> {"imageUrl": ...}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from citycard.api.deps import get_card_service
from citycard.exceptions import InvalidInput
from citycard.services.card_service import CardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Cards"])


@router.get("/image")
async def get_weather_card(
    city: Optional[str] = Query(None, description="City name, any language"),
    service: CardService = Depends(get_card_service),
) -> JSONResponse:
    """
    Get today's weather card for a city.

    Served from storage when it already exists, otherwise generated once
    and stored under the day's cache key.
    """
    city = (city or "").strip()
    if not city:
        return JSONResponse(
            content={"error": "City parameter is required"},
            status_code=400,
        )

    try:
        image_url = await service.get_or_create_card(city)
    except InvalidInput as e:
        return JSONResponse(content={"error": str(e)}, status_code=400)
    except Exception as e:
        logger.error(f"Error generating image for {city!r}: {e}", exc_info=True)
        return JSONResponse(
            content={"error": "Failed to generate image"},
            status_code=500,
        )

    return JSONResponse(content={"imageUrl": image_url})
