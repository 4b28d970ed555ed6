"""
Rate limiting middleware for API endpoints
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Deque, Dict
import logging

from app.config import settings
from app.utils.auth import current_user

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter, per process

    Clients are keyed by the user id in a valid bearer token, otherwise by
    IP address.
    """

    WINDOWS = (("minute", 60), ("hour", 3600))
    CLEANUP_INTERVAL = 300

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.limits = {"minute": requests_per_minute, "hour": requests_per_hour}

        # {client_id: deque of request timestamps within the last hour}
        self.requests: Dict[str, Deque[float]] = defaultdict(deque)
        self.last_cleanup = time.time()

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        scheme, _, token = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer":
            user = current_user(token.strip())
            if user:
                return f"user:{user.id}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _cleanup_old_entries(self, current_time: float) -> None:
        """Drop expired timestamps and forget clients with none left"""
        cutoff_time = current_time - 3600

        for client_id in list(self.requests.keys()):
            history = self.requests[client_id]
            while history and history[0] <= cutoff_time:
                history.popleft()

            if not history:
                del self.requests[client_id]

        self.last_cleanup = current_time

    def reset(self) -> None:
        self.requests.clear()
        self.last_cleanup = time.time()

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        now = time.time()

        if now - self.last_cleanup >= self.CLEANUP_INTERVAL:
            self._cleanup_old_entries(now)

        history = self.requests[client_id]

        # Drop timestamps older than the widest window
        while history and history[0] <= now - 3600:
            history.popleft()

        for name, seconds in self.WINDOWS:
            count = sum(1 for ts in history if ts > now - seconds)
            limit = self.limits[name]

            if count >= limit:
                logger.warning(f"Rate limit exceeded ({name}): {client_id}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many requests. Limit: {limit} requests per {name}",
                        "retry_after": seconds
                    }
                )

        history.append(now)
        logger.debug(f"Rate limit check passed: {client_id} ({len(history)} requests this hour)")


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
