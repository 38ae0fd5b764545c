"""Redis client used by the readiness check."""

import redis.asyncio as redis

from app.core.config_file import get_settings

# Global Redis client instance
_redis_client: redis.Redis | None = None


async def get_redis_client() -> redis.Redis:
    """
    Get the global Redis client, connecting on first use.

    Returns:
        Singleton Redis client instance
    """
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
            decode_responses=True,
        )
    return _redis_client


async def ping_redis() -> bool:
    """Check that Redis answers (used by the readiness probe)."""
    client = await get_redis_client()
    return bool(await client.ping())


async def close_redis_client():
    """Close the Redis client connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
