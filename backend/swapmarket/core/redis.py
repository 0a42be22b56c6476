"""Shared Redis client

Only short-lived keys live here (password reset tokens); durable state is in
the database.
"""

from typing import Optional

from redis.asyncio import ConnectionPool, Redis

from swapmarket.core.config import get_settings

settings = get_settings()

KEY_NAMESPACE = "swapmarket"

_pool: Optional[ConnectionPool] = None
_client: Optional[Redis] = None


def redis_key(*parts: str) -> str:
    """Namespaced key, e.g. ``swapmarket:password_reset:<token>``"""
    return ":".join((KEY_NAMESPACE,) + tuple(str(p) for p in parts))


async def get_redis() -> Redis:
    """FastAPI dependency returning the process-wide client"""
    global _pool, _client
    if _client is None:
        _pool = ConnectionPool.from_url(settings.redis_url, decode_responses=True)
        _client = Redis(connection_pool=_pool)
    return _client


async def close_redis() -> None:
    global _pool, _client
    if _client is not None:
        await _client.aclose()
        _client = None
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
