"""Redis Key-Value Store — TTL'd string storage for refresh tokens and OTPs.

Invariants:
    - Implements core.repository_protocols.KeyValueStore
    - Every write carries a TTL (no immortal OTPs or refresh tokens)
    - Connection failures surface as ServiceUnavailableError (503), never as raw redis errors
    - ping() never raises: readiness checks read a bool

Design Decisions:
    - redis.asyncio with decode_responses=True: callers deal in str, not bytes
    - Singleton kv_store initialized on startup like db_manager (ADR: no global import side effects)
    - Key builders live here so every service spells keys the same way
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from awoof.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


def refresh_token_key(user_id: object) -> str:
    return f"refresh_token:{user_id}"


def password_reset_key(user_id: object) -> str:
    return f"password_reset:{user_id}"


def whatsapp_otp_key(phone_number: str) -> str:
    return f"whatsapp_otp:{phone_number}"


class RedisStore:
    """KeyValueStore backed by a Redis server."""

    def __init__(self, url: str, socket_timeout: float = 3.0):
        self._client = aioredis.from_url(
            url, decode_responses=True, socket_timeout=socket_timeout,
        )

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.error(f"Redis GET failed: {e}")
            raise ServiceUnavailableError("Cache service unavailable")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            logger.error(f"Redis SET failed: {e}")
            raise ServiceUnavailableError("Cache service unavailable")

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            logger.error(f"Redis DEL failed: {e}")
            raise ServiceUnavailableError("Cache service unavailable")

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()


# Singleton (initialized on startup)
kv_store: RedisStore | None = None


def init_kv_store(url: str) -> RedisStore:
    global kv_store
    kv_store = RedisStore(url)
    return kv_store


async def close_kv_store() -> None:
    global kv_store
    if kv_store:
        await kv_store.close()
        kv_store = None


def get_kv_store() -> RedisStore:
    """FastAPI dependency for the key-value store."""
    if not kv_store:
        raise RuntimeError("Key-value store not initialized")
    return kv_store
