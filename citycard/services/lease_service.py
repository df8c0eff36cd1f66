"""
Generation lease - keeps concurrent misses for one cache key from all
calling the image model.

The first request to miss takes `card-lease:{key}` with SET NX EX. Later
requests wait for the object to appear and then serve it. When the wait
runs out they generate anyway, and the last put wins.
"""

import logging
import uuid
from typing import Optional

from redis.asyncio.client import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

LEASE_PREFIX = "card-lease:"

# Token handed out when no lease is held in Redis
LOCAL_TOKEN = "local"

# Delete only when the stored token is ours
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class NullLease:
    """Lease used without Redis: always granted, duplicate generation accepted."""

    enabled = False

    async def acquire(self, key: str) -> Optional[str]:
        return LOCAL_TOKEN

    async def release(self, key: str, token: str) -> None:
        return None


class CardLease:
    """Redis-backed per-key lease."""

    enabled = True

    def __init__(self, redis: Redis, ttl_seconds: int = 180):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def acquire(self, key: str) -> Optional[str]:
        """Return a token when the lease was taken, None when someone else holds it."""
        token = uuid.uuid4().hex
        try:
            acquired = await self.redis.set(
                LEASE_PREFIX + key,
                token,
                nx=True,
                ex=self.ttl_seconds,
            )
        except RedisError as e:
            # Redis down: generate without a lease, as NullLease does
            logger.warning(
                f"Lease unavailable for {key}, generating without it: {e}",
                extra={"extra": {"cache_key": key}},
            )
            return LOCAL_TOKEN
        if acquired:
            logger.debug(f"Lease acquired for {key}")
            return token
        return None

    async def release(self, key: str, token: str) -> None:
        if token == LOCAL_TOKEN:
            return
        try:
            await self.redis.eval(_RELEASE_SCRIPT, 1, LEASE_PREFIX + key, token)
        except RedisError as e:
            # The TTL expires the lease
            logger.warning(
                f"Lease release failed for {key}: {e}",
                extra={"extra": {"cache_key": key}},
            )
            return
        logger.debug(f"Lease released for {key}")
