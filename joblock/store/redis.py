"""
Redis-backed lock store.

Uses ``SET key value NX [EX ttl]`` for atomic acquisition, ``DEL`` for
release, ``EXISTS`` for inspection and a Lua script for compare-and-delete.
Every Redis failure is re-raised as ``StoreCommunicationError``; nothing
is retried here.
"""

import logging

import redis.asyncio as redis_async
from redis.exceptions import RedisError

from joblock.constants import StoreOperation
from joblock.errors import StoreCommunicationError

logger = logging.getLogger(__name__)

_DELETE_IF_VALUE_LUA = """
if redis.call("get", KEYS[1]) == ARGV[1] then
  return redis.call("del", KEYS[1])
else
  return 0
end
"""


class RedisLockStore:
    """
    Lock store on a Redis server.

    The client is created lazily from ``redis_url`` unless one is passed
    in. The caller owns the handle and must ``close()`` it at shutdown.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        client: "redis_async.Redis | None" = None,
        *,
        key_prefix: str = "",
    ):
        """
        Initialize the Redis lock store.

        Args:
            redis_url: Redis connection URL (redis://host:port/db or rediss://...).
            client: Existing ``redis.asyncio`` client to use instead of a URL.
            key_prefix: Namespace prepended to every lock key.
        """
        if redis_url is None and client is None:
            raise ValueError("Either redis_url or client is required")

        self._redis_url = redis_url
        self._redis = client
        self._key_prefix = key_prefix

    def _get_redis(self) -> "redis_async.Redis":
        """Get or create the Redis client."""
        if self._redis is None:
            self._redis = redis_async.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5.0,
                socket_keepalive=True,
            )
            logger.info("Redis lock store connected")
        return self._redis

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def set_if_absent(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        try:
            result = await self._get_redis().set(
                self._full_key(key),
                value,
                nx=True,
                ex=ttl_seconds,
            )
        except RedisError as e:
            raise StoreCommunicationError(StoreOperation.SET_IF_ABSENT, key) from e
        return bool(result)

    async def delete(self, key: str) -> None:
        try:
            await self._get_redis().delete(self._full_key(key))
        except RedisError as e:
            raise StoreCommunicationError(StoreOperation.DELETE, key) from e

    async def delete_if_value(self, key: str, value: str) -> bool:
        try:
            deleted = await self._get_redis().eval(
                _DELETE_IF_VALUE_LUA, 1, self._full_key(key), value
            )
        except RedisError as e:
            raise StoreCommunicationError(StoreOperation.DELETE_IF_VALUE, key) from e
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        try:
            count = await self._get_redis().exists(self._full_key(key))
        except RedisError as e:
            raise StoreCommunicationError(StoreOperation.EXISTS, key) from e
        return count > 0

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis lock store closed")
