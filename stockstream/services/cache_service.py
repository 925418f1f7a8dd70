"""
Redis-backed read cache for category listings.

The cache is a disposable read model: it only ever holds whole listings,
written with a TTL and dropped when a product in the category changes. It
never answers for stock accuracy; purchases always go to the database.

Every listing key has a companion generation counter. Invalidation bumps the
counter and deletes the listing in one MULTI/EXEC. A reader notes the
generation before it queries the database and only writes its listing back if
the generation is still the same, so a listing read before a purchase
committed can never overwrite the invalidation that purchase made.
"""

import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from stockstream.core.config import Settings
from stockstream.core.exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)

CATEGORY_KEY_PREFIX = "products:"
GENERATION_SUFFIX = ":gen"

# KEYS[1] listing, KEYS[2] generation; ARGV[1] expected generation, ARGV[2] value, ARGV[3] ttl
SET_IF_GENERATION_LUA = """
local current = redis.call('GET', KEYS[2]) or '0'
if current == ARGV[1] then
    redis.call('SET', KEYS[1], ARGV[2], 'EX', ARGV[3])
    return 1
end
return 0
"""


def category_cache_key(category: str) -> str:
    """Cache key for a category listing; categories group case-insensitively."""
    return f"{CATEGORY_KEY_PREFIX}{category.lower()}"


def generation_key(key: str) -> str:
    return f"{key}{GENERATION_SUFFIX}"


class ProductCache:
    """Async wrapper over Redis for generation-guarded listing entries."""

    def __init__(self, redis_client: Redis):
        self.redis = redis_client
        self._set_if_generation = redis_client.register_script(SET_IF_GENERATION_LUA)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProductCache":
        client = Redis.from_url(
            settings.REDIS_URL,
            socket_timeout=settings.CACHE_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.CACHE_TIMEOUT_SECONDS,
        )
        return cls(client)

    async def get(self, key: str) -> Optional[bytes]:
        try:
            return await self.redis.get(key)
        except RedisError as e:
            raise CacheUnavailableError(f"Cache GET failed for '{key}': {e}") from e

    async def get_generation(self, key: str) -> int:
        """Current invalidation generation of `key` (0 if never invalidated)."""
        try:
            value = await self.redis.get(generation_key(key))
        except RedisError as e:
            raise CacheUnavailableError(f"Cache GET failed for '{generation_key(key)}': {e}") from e
        return int(value) if value is not None else 0

    async def set_if_generation(self, key: str, value: bytes, ttl: int, generation: int) -> bool:
        """
        Write `value` with a TTL unless `key` was invalidated since `generation`
        was read. Returns False when the write was skipped.
        """
        try:
            written = await self._set_if_generation(
                keys=[key, generation_key(key)],
                args=[str(generation), value, int(ttl)],
            )
        except RedisError as e:
            raise CacheUnavailableError(f"Cache SET failed for '{key}': {e}") from e
        return bool(written)

    async def invalidate(self, key: str) -> None:
        """Drop the listing and bump its generation atomically."""
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.incr(generation_key(key)).delete(key).execute()
        except RedisError as e:
            raise CacheUnavailableError(f"Cache invalidation failed for '{key}': {e}") from e

    async def close(self) -> None:
        await self.redis.aclose()
