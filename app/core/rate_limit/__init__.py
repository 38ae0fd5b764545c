"""Rate limiting on top of `limits` storages."""

from app.core.rate_limit.limiter import (
    RATE_LIMITS,
    RateLimitError,
    RateLimitResult,
    RateLimitRule,
    SlidingWindowRateLimiter,
    close_rate_limiter,
    get_client_identifier,
    get_rate_limiter,
)
from app.core.rate_limit.stores import build_storage

__all__ = [
    "RATE_LIMITS",
    "RateLimitError",
    "RateLimitResult",
    "RateLimitRule",
    "SlidingWindowRateLimiter",
    "build_storage",
    "close_rate_limiter",
    "get_client_identifier",
    "get_rate_limiter",
]
