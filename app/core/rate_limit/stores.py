"""Backing storages for the moving-window rate limiter."""

import logging

from limits.aio.storage import MemoryStorage, Storage
from limits.storage import storage_from_string

from app.core.config_file import get_settings

logger = logging.getLogger(__name__)


def build_storage(backend: str | None = None) -> Storage:
    """Build the limits storage for the configured backend.

    'memory' keeps windows in this process. 'redis' shares them across
    instances through REDIS_URL, using the redis.asyncio client.

    Args:
        backend: 'memory' or 'redis' (defaults to settings.RATE_LIMIT_BACKEND)

    Returns:
        Async limits storage supporting the moving window strategy
    """
    settings = get_settings()
    backend = backend or settings.RATE_LIMIT_BACKEND

    if backend == "redis":
        options: dict[str, str] = {"implementation": "redispy"}
        if settings.REDIS_PASSWORD:
            options["password"] = settings.REDIS_PASSWORD
        logger.info("Rate limiting backed by Redis")
        return storage_from_string(f"async+{settings.REDIS_URL}", **options)

    if backend != "memory":
        logger.warning(f"Unknown rate limit backend '{backend}', using memory")
    return MemoryStorage()
