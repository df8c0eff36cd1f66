"""
FastAPI dependency providers.

Routes depend on these so tests can swap in fakes through
app.dependency_overrides.
"""

from typing import Optional

from fastapi import Depends
from redis.asyncio.client import Redis

from citycard.config import settings
from citycard.redis import get_redis
from citycard.services.card_service import CardService
from citycard.services.gemini_service import GeminiService
from citycard.services.geocode_service import GeocodeService
from citycard.services.lease_service import CardLease, NullLease
from citycard.services.storage_service import BlobStore, get_blob_store


def get_gateway() -> GeminiService:
    return GeminiService()


def get_store() -> BlobStore:
    """Configured blob store. Raises UpstreamUnavailable when unconfigured."""
    return get_blob_store()


async def get_lease(redis: Optional[Redis] = Depends(get_redis)):
    if redis is None:
        return NullLease()
    return CardLease(redis, ttl_seconds=settings.card_lease_seconds)


def get_geocoder() -> GeocodeService:
    return GeocodeService()


async def get_card_service(
    store: BlobStore = Depends(get_store),
    gateway: GeminiService = Depends(get_gateway),
    lease=Depends(get_lease),
) -> CardService:
    return CardService(store=store, gateway=gateway, lease=lease)
