"""
Request limits for the /api routes.

Fixed 15 minute windows per client address, sized by APP_REQUESTS_PER_15_MIN,
the same figure /api/limits advertises. Counters live in process memory.
"""
import time

from fastapi import Request
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from app.core.config import settings
from app.core.errors import RateLimitError
from app.core.logging import get_logger

logger = get_logger("rate_limit")

NAMESPACE = "api"

storage = MemoryStorage()
limiter = FixedWindowRateLimiter(storage)


def api_limit() -> RateLimitItem:
    return parse(f"{settings.APP_REQUESTS_PER_15_MIN}/15 minutes")


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request) -> None:
    """Count the request against its client's window, 429 once it is used up."""
    item = api_limit()
    key = client_key(request)
    if limiter.hit(item, NAMESPACE, key):
        return
    reset_at, _ = limiter.get_window_stats(item, NAMESPACE, key)
    retry_after = max(int(reset_at - time.time()), 1)
    logger.warning("Rate limit hit by %s on %s", key, request.url.path)
    raise RateLimitError("Too many requests, try again in 15 minutes", retry_after=retry_after)
