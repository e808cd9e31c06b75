"""Custom middleware and request-level guards."""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

import redis.asyncio as redis

from storeaway.config import settings
from storeaway.core.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and response times."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log request details and timing.

        Args:
            request: Incoming request
            call_next: Next middleware/route handler

        Returns:
            Response: Route response
        """
        start_time = time.time()

        request_id = request.headers.get("X-Request-ID") or str(time.time_ns())
        request.state.request_id = request_id

        response = await call_next(request)

        duration = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request {request_id}: {request.method} {request.url.path} "
                f"took {duration:.3f}s"
            )
        else:
            logger.debug(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"in {duration:.3f}s"
            )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if not settings.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RateLimiter:
    """Sliding-window rate limiter used as a route dependency."""

    def __init__(
        self,
        requests_per_minute: int = 10,
        key_prefix: str = "api",
    ):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Max requests allowed
            key_prefix: Redis key prefix
        """
        self.requests_per_minute = requests_per_minute
        self.key_prefix = key_prefix
        self._redis: redis.Redis | None = None

    async def get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def __call__(self, request: Request) -> None:
        """Check rate limit for request.

        Raises:
            RateLimitExceeded: If rate limit exceeded
        """
        try:
            redis_client = await self.get_redis()

            client_id = request.client.host if request.client else "unknown"
            if hasattr(request.state, "user_id"):
                client_id = str(request.state.user_id)

            key = f"rate:{self.key_prefix}:{client_id}"
            current_time = int(time.time())
            window_start = current_time - 60

            async with redis_client.pipeline(transaction=True) as pipe:
                await pipe.zremrangebyscore(key, 0, window_start)
                await pipe.zcard(key)
                await pipe.zadd(key, {str(time.time_ns()): current_time})
                await pipe.expire(key, 60)
                results = await pipe.execute()

            if results[1] >= self.requests_per_minute:
                raise RateLimitExceeded()

        except redis.RedisError as e:
            # Redis unavailable: let the request through
            logger.warning(f"Rate limiter unavailable for '{self.key_prefix}': {e}")


# Booking attempts hit the payment processor
booking_limiter = RateLimiter(
    requests_per_minute=settings.booking_rate_limit_per_minute,
    key_prefix="booking",
)
