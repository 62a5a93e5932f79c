import time

from fastapi import Request
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from dealership.platform.config import settings
from dealership.platform.logger import get_logger

logger = get_logger(__name__)

WINDOW_SECONDS = 60


def _too_many_requests(retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "status_code": 429,
            "status": "error",
            "message": "Too Many Requests - Rate limit exceeded.",
            "data": {},
        },
        headers={"Retry-After": str(max(retry_after, 0))},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit per client IP and path for the OTP issuing endpoints."""

    def __init__(self, app):
        super().__init__(app)
        self.redis = None
        self.memory_store = {}
        self._next_prune = 0.0

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "testclient"

        if client_ip in settings.WHITELIST_IPS:
            return await call_next(request)

        path = request.url.path
        limit = settings.RATE_LIMITS.get(path)

        if limit is None:
            return await call_next(request)

        if settings.FORCE_IN_MEMORY_RATE_LIMITER:
            return await self._dispatch_in_memory(request, call_next, client_ip, path, limit)

        try:
            if self.redis is None:
                self.redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)

            key = f"rl:{client_ip}:{path}"
            async with self.redis.pipeline(transaction=True) as pipe:
                # SET NX opens the window with its TTL; INCR keeps that TTL
                pipe.set(key, 0, ex=WINDOW_SECONDS, nx=True)
                pipe.incr(key)
                _, current_count = await pipe.execute()

            if int(current_count) > limit:
                ttl = await self.redis.ttl(key)
                return _too_many_requests(ttl)
        except RedisError as e:
            logger.warning(f"Redis unavailable for rate limiting, using in-memory store: {e}")
            return await self._dispatch_in_memory(request, call_next, client_ip, path, limit)

        return await call_next(request)

    async def _dispatch_in_memory(self, request, call_next, client_ip: str, path: str, limit: int):
        key = f"{client_ip}:{path}"
        now = time.time()
        if now >= self._next_prune:
            self._prune_expired(now)
            self._next_prune = now + WINDOW_SECONDS

        count, expiry = self.memory_store.get(key, (0, now + WINDOW_SECONDS))

        if now > expiry:
            count = 0
            expiry = now + WINDOW_SECONDS

        if count >= limit:
            return _too_many_requests(int(expiry - now))

        self.memory_store[key] = (count + 1, expiry)
        return await call_next(request)

    def _prune_expired(self, now: float) -> None:
        expired = [key for key, (_, expiry) in self.memory_store.items() if now > expiry]
        for key in expired:
            del self.memory_store[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired rate limit windows")
