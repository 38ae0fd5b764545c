"""Sliding-window rate limiting for public and authentication endpoints."""

import asyncio
import contextlib
import logging
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.aio.storage import MemoryStorage, Storage
from limits.aio.strategies import MovingWindowRateLimiter

from app.core.config_file import get_settings
from app.core.rate_limit.stores import build_storage

logger = logging.getLogger(__name__)

# Keys with no request in this span are dropped by cleanup()
CLEANUP_MAX_AGE_SECONDS = 60 * 60


@dataclass(frozen=True)
class RateLimitRule:
    """A named limit: at most `limit` requests per `window_seconds`."""

    limit: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed
        remaining: Requests left in the current window
        reset_at: Epoch seconds when the oldest counted request leaves the window
        retry_after: Seconds to wait before retrying (only when denied)
    """

    allowed: bool
    remaining: int
    reset_at: float
    retry_after: int | None = None


class RateLimitError(Exception):
    """Raised when an identifier exceeded its limit."""

    def __init__(self, retry_after: int, reset_at: float):
        super().__init__(f"Rate limit exceeded. Retry after {retry_after} seconds.")
        self.retry_after = retry_after
        self.reset_at = reset_at


def _build_rate_limits() -> dict[str, RateLimitRule]:
    settings = get_settings()
    return {
        "LOGIN": RateLimitRule(
            settings.RATE_LIMIT_LOGIN, settings.RATE_LIMIT_LOGIN_WINDOW_SECONDS
        ),
        "FORM_SUBMISSION": RateLimitRule(
            settings.RATE_LIMIT_FORM_SUBMISSION,
            settings.RATE_LIMIT_FORM_SUBMISSION_WINDOW_SECONDS,
        ),
        "API": RateLimitRule(100, 60),
        "PASSWORD_RESET": RateLimitRule(3, 60 * 60),
    }


RATE_LIMITS: dict[str, RateLimitRule] = _build_rate_limits()


class SlidingWindowRateLimiter:
    """Sliding-window counter keyed by identifier (IP address, email, ...).

    Built on the moving window strategy of `limits`. Denied requests are not
    recorded, so a client that keeps retrying is admitted again as soon as
    its oldest counted request leaves the window.
    """

    def __init__(self, storage: Storage | None = None):
        """Initialize rate limiter.

        Args:
            storage: limits async storage (defaults to an in-memory storage)
        """
        self.storage = storage or MemoryStorage()
        self.strategy = MovingWindowRateLimiter(self.storage)
        # identifier -> limit item -> time of the last admitted request
        self._seen: dict[str, dict[RateLimitItem, float]] = {}
        self._cleanup_task: asyncio.Task | None = None

    @staticmethod
    def _item(limit: int, window_seconds: float) -> RateLimitItem:
        return RateLimitItemPerSecond(limit, max(1, math.ceil(window_seconds)))

    async def check(
        self, identifier: str, limit: int, window_seconds: float
    ) -> RateLimitResult:
        """Check a request against the limit and record it if allowed.

        Args:
            identifier: Unique identifier (IP, email, etc.)
            limit: Maximum number of requests allowed
            window_seconds: Window length in seconds

        Returns:
            RateLimitResult
        """
        item = self._item(limit, window_seconds)
        allowed = await self.strategy.hit(item, identifier)
        window = await self.strategy.get_window_stats(item, identifier)
        now = time.time()

        if not allowed:
            retry_after = max(1, math.ceil(window.reset_time - now))
            logger.warning(
                f"Rate limit exceeded for {identifier} ({limit}/{window_seconds}s), "
                f"retry after {retry_after}s"
            )
            return RateLimitResult(
                allowed=False, remaining=0, reset_at=window.reset_time, retry_after=retry_after
            )

        self._seen.setdefault(identifier, {})[item] = now
        return RateLimitResult(
            allowed=True, remaining=max(0, window.remaining), reset_at=window.reset_time
        )

    async def enforce(self, identifier: str, rule: RateLimitRule) -> RateLimitResult:
        """Check a request against a named rule.

        Raises:
            RateLimitError: If the limit is exceeded
        """
        result = await self.check(identifier, rule.limit, rule.window_seconds)
        if not result.allowed:
            raise RateLimitError(result.retry_after or 1, result.reset_at)
        return result

    async def reset(self, identifier: str) -> None:
        """Reset rate limit for a specific identifier."""
        for item in self._seen.pop(identifier, {}):
            await self.strategy.clear(item, identifier)

    async def clear(self) -> None:
        """Clear all rate limit data."""
        self._seen.clear()
        await self.storage.reset()

    async def stats(self) -> dict[str, int]:
        """Get current stats for the identifiers this instance has admitted."""
        total_requests = 0
        for identifier, items in self._seen.items():
            for item in items:
                window = await self.strategy.get_window_stats(item, identifier)
                total_requests += item.amount - window.remaining
        return {"total_keys": len(self._seen), "total_requests": total_requests}

    async def cleanup(self) -> int:
        """Drop identifiers with no request in the last hour."""
        cutoff = time.time() - CLEANUP_MAX_AGE_SECONDS
        idle = [
            identifier
            for identifier, items in self._seen.items()
            if max(items.values()) <= cutoff
        ]
        for identifier in idle:
            await self.reset(identifier)
        if idle:
            logger.debug(f"Rate limiter cleanup removed {len(idle)} idle key(s)")
        return len(idle)

    def start_cleanup(self, interval_seconds: float) -> None:
        """Run cleanup() periodically on the current event loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval_seconds))

    async def _cleanup_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.cleanup()
            except Exception as e:
                logger.error(f"Rate limiter cleanup failed: {e}", exc_info=True)

    async def close(self) -> None:
        """Stop periodic cleanup; process-local data is discarded."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None
        if isinstance(self.storage, MemoryStorage):
            await self.clear()


def get_client_identifier(headers: Mapping[str, str]) -> str:
    """Get the client identifier (IP address) from proxy headers.

    Args:
        headers: Request headers (case-insensitive mapping)

    Returns:
        First hop of X-Forwarded-For, else X-Real-IP, else CF-Connecting-IP,
        else 'unknown'
    """
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        # X-Forwarded-For may contain multiple IPs, the client is the first one
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    cf_connecting_ip = headers.get("cf-connecting-ip")
    if cf_connecting_ip:
        return cf_connecting_ip

    return "unknown"


_rate_limiter: SlidingWindowRateLimiter | None = None


async def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Get the global rate limiter, backed by the configured storage."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = SlidingWindowRateLimiter(build_storage())
    return _rate_limiter


async def close_rate_limiter() -> None:
    """Stop and discard the global rate limiter."""
    global _rate_limiter
    if _rate_limiter is not None:
        await _rate_limiter.close()
        _rate_limiter = None
