import json
import logging
from typing import Any

from redis.asyncio import Redis, RedisError

from todo_api.keyvalue.storage import Storage, ValueNotFoundForKey

logger = logging.getLogger(__name__)


class RedisStorage(Storage):
    """
    Storage shared between workers through Redis.

    Keys are namespaced with ``settings.keyvalue_namespace`` and values are
    stored as JSON so counters and small documents survive the round trip.
    """

    def __init__(self, settings, redis: Redis | None = None):
        self._namespace = settings.keyvalue_namespace
        self._redis = redis or Redis.from_url(
            settings.redis_dsn,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis_pool_size,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    def _key(self, key: str) -> str:
        """Build namespaced key."""
        return f"{self._namespace}{key}"

    def _serialize(self, value: Any) -> str:
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Serialization failed: {e}")
            raise

    def _deserialize(self, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Return raw string if not valid JSON
            return raw

    async def ping(self):
        await self._redis.ping()
        logger.info("Redis connection established")

    async def put(self, key: str, value: Any) -> None:
        await self._redis.set(self._key(key), self._serialize(value))

    async def get(self, key: str) -> Any:
        raw = await self._redis.get(self._key(key))
        if raw is None:
            raise ValueNotFoundForKey(key)
        return self._deserialize(raw)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def incr_by(self, key: str, update: int) -> None:
        await self._redis.incrby(self._key(key), update)

    async def decr_by(self, key: str, update: int) -> None:
        await self._redis.decrby(self._key(key), update)

    async def close(self):
        """Graceful shutdown of the redis connection."""
        try:
            await self._redis.aclose()
            logger.info("Redis connection closed")
        except RedisError as e:
            logger.error(f"Error closing Redis: {e}")
