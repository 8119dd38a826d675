"""
Per-client throttle for the reel proxy.
Each generation holds a provider job for minutes, so POSTs are capped per client per minute
(RATE_LIMIT_PER_MIN). Clients are told apart by X-API-Key, then X-Forwarded-For, then the peer address.
Preflight and GETs are never counted. Without REDIS_URL no limiter is built.
"""
import json
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from studio.logging_config import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60
LIMITED_METHODS = ("POST",)
LIMIT_EXCEEDED_MESSAGE = "Rate limit exceeded. Try again in a minute."


def client_identity(request: Request) -> Optional[str]:
    api_key = request.headers.get("X-API-Key", "").strip()
    if api_key:
        return f"key:{api_key[:32]}"
    forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if forwarded:
        return f"ip:{forwarded}"
    if request.client is not None:
        return f"ip:{request.client.host}"
    return None


class SlidingWindowLimiter:
    """
    Redis sorted set per client: one member per request, scored by arrival time.
    A request is allowed while the set holds at most `limit` members younger than the window.
    Redis being down never blocks traffic.
    """

    def __init__(
        self,
        redis_url: Optional[str],
        limit: int,
        window_seconds: int = WINDOW_SECONDS,
        client: Optional[Redis] = None,
        prefix: str = "rl:reel:",
    ) -> None:
        self.redis_url = redis_url
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._client = client

    @property
    def client(self) -> Redis:
        # One connection pool for the process, opened on first use.
        if self._client is None:
            self._client = Redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    async def allow(self, identity: str) -> bool:
        now = time.time()
        bucket = self.prefix + identity
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(bucket, "-inf", now - self.window_seconds)
                pipe.zadd(bucket, {uuid.uuid4().hex: now})
                pipe.zcard(bucket)
                pipe.expire(bucket, self.window_seconds + 10)
                _, _, in_window, _ = await pipe.execute()
        except (RedisError, OSError) as e:
            logger.warning("rate_limit.redis_unavailable", identity=identity, error=str(e))
            return True
        return in_window <= self.limit

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """429 once a client exceeds its POST allowance; a None limiter disables the check."""

    def __init__(self, app, limiter: Optional[SlidingWindowLimiter]) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.limiter is None or request.method not in LIMITED_METHODS:
            return await call_next(request)
        identity = client_identity(request)
        if identity is None or await self.limiter.allow(identity):
            return await call_next(request)
        logger.info("rate_limit.exceeded", identity=identity, limit=self.limiter.limit)
        return Response(
            content=json.dumps({"error": LIMIT_EXCEEDED_MESSAGE}),
            status_code=429,
            media_type="application/json",
        )
