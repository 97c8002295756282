"""
In-memory rate limiting for fee-spending endpoints.

Every relayed transaction is paid for by the fee wallet, so /tip and
/initialize-fee-vault are limited per client IP.

Uses a simple sliding-window counter per (IP, route) key. The limiter lives
on app.state, so each app instance (and each test app) has its own counters.
Not shared between worker processes.
"""
import time
import logging
from collections import defaultdict

from fastapi import Request

from domain.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Simple in-memory sliding-window rate limiter.

    Tracks request timestamps per key.
    """

    def __init__(self):
        # {key: [timestamp1, timestamp2, ...]}
        self._requests: dict[str, list[float]] = defaultdict(list)

    def _cleanup(self, key: str, window_seconds: int):
        """Remove expired timestamps from the window, dropping keys left empty."""
        cutoff = time.monotonic() - window_seconds
        timestamps = [ts for ts in self._requests.get(key, ()) if ts > cutoff]
        if timestamps:
            self._requests[key] = timestamps
        else:
            self._requests.pop(key, None)

    def check(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """
        Check if a request is allowed under the rate limit, recording it if so.

        Returns:
            True if allowed, False if rate-limited
        """
        self._cleanup(key, window_seconds)

        if len(self._requests.get(key, ())) >= max_requests:
            return False

        self._requests[key].append(time.monotonic())
        return True

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        """Get the number of remaining requests in the current window."""
        self._cleanup(key, window_seconds)
        return max(0, max_requests - len(self._requests.get(key, ())))


def rate_limit(max_requests: int = 10, window_seconds: int = 60):
    """
    FastAPI dependency factory for rate limiting.

    Usage:
        @router.post("/tip", dependencies=[Depends(rate_limit(30, 60))])
        async def tip(...):
            ...
    """
    async def _check_rate_limit(request: Request):
        limiter: RateLimiter = request.app.state.rate_limiter
        client_ip = request.client.host if request.client else "unknown"
        route_path = request.url.path
        key = f"{client_ip}:{route_path}"

        if not limiter.check(key, max_requests, window_seconds):
            remaining = limiter.remaining(key, max_requests, window_seconds)
            logger.warning(
                f"Rate limit exceeded: {client_ip} on {route_path} "
                f"({max_requests}/{window_seconds}s)"
            )
            raise RateLimitError(
                f"Rate limit exceeded. Maximum {max_requests} requests "
                f"per {window_seconds} seconds. Try again later.",
                details={"limit": max_requests, "windowSeconds": window_seconds},
                headers={
                    "Retry-After": str(window_seconds),
                    "X-RateLimit-Limit": str(max_requests),
                    "X-RateLimit-Remaining": str(remaining),
                },
            )

    return _check_rate_limit
