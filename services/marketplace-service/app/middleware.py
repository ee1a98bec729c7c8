import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .redis_client import redis_client as default_redis_client

logger = logging.getLogger("app.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "request_failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Id"] = request_id

        logger.info(
            "request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "user_sub": getattr(request.state, "user_sub", None),
            },
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_per_minute: int = 120, redis_client=None):
        super().__init__(app)
        self.max_per_minute = max_per_minute
        self.redis = redis_client if redis_client is not None else default_redis_client

    async def dispatch(self, request: Request, call_next):
        if self.redis is None:
            return await call_next(request)
        if request.url.path in ("/docs", "/openapi.json", "/health"):
            return await call_next(request)
        if request.url.path.startswith("/docs/"):
            return await call_next(request)

        ip = request.client.host if request.client else "unknown"
        identity = f"ip:{ip}"

        epoch_minute = int(time.time() // 60)
        key = f"rl:{identity}:{epoch_minute}"

        count = await self.redis.incr(key)
        if count == 1:
            await self.redis.expire(key, 70)

        if count > self.max_per_minute:
            return JSONResponse(
                status_code=429,
                content={
                    "title": "Too many requests",
                    "description": "Please wait a moment and try again.",
                    "variant": "destructive",
                },
            )

        return await call_next(request)
