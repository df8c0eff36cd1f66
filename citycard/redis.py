"""
Redis client configuration using redis-py (asyncio).
Redis is optional: without REDIS_URL the generation lease is disabled.
"""

from typing import Optional
import logging

from redis import asyncio as aioredis
from redis.asyncio.client import Redis

from citycard.config import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper."""

    _client: Optional[Redis] = None

    @classmethod
    def is_configured(cls) -> bool:
        return bool(settings.redis_url)

    @classmethod
    def get_client(cls) -> Redis:
        """Get or create Redis client."""
        if cls._client is None:
            if not settings.redis_url:
                raise RuntimeError("REDIS_URL not set")

            cls._client = aioredis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=5.0,
                health_check_interval=30
            )
            logger.info("Redis client initialized")

        return cls._client

    @classmethod
    async def close(cls):
        """Close Redis client."""
        if cls._client:
            await cls._client.close()
            cls._client = None
            logger.info("Redis client closed")


async def get_redis() -> Optional[Redis]:
    """Dependency for getting redis connection, None when not configured."""
    if not RedisClient.is_configured():
        return None
    return RedisClient.get_client()
