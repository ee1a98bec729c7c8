import logging
import time

from redis.exceptions import RedisError

from .redis_client import redis_client as default_redis_client

logger = logging.getLogger(__name__)

CLOSED = "CLOSED"
OPEN = "OPEN"
HALF_OPEN = "HALF_OPEN"

FAILURE_WINDOW_SECONDS = 60


class CircuitBreakerOpen(Exception):
    pass


class CircuitBreaker:
    """
    Circuit breaker for data platform calls, shared across instances through Redis.

    The whole state lives in one hash (``breaker:<name>``) holding ``state``,
    ``failures`` and ``opened_at``; a missing hash reads as CLOSED. An OPEN
    breaker rejects calls until ``reset_timeout_seconds`` have passed, then
    lets a single HALF_OPEN trial call through.

    Redis is only bookkeeping: without a client the breaker is disabled, and
    when Redis errors the breaker fails open and the platform call proceeds.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout_seconds: int = 15,
        redis_client=None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout_seconds = reset_timeout_seconds
        self._redis = redis_client if redis_client is not None else default_redis_client

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    @property
    def key(self) -> str:
        return f"breaker:{self.name}"

    def _store_unavailable(self, action: str, error: RedisError) -> None:
        logger.warning("breaker_store_unavailable", extra={"breaker": self.name, "action": action, "error": str(error)})

    async def _snapshot(self) -> dict:
        return await self._redis.hgetall(self.key) or {}

    async def _write(self, ttl: int, **fields) -> None:
        await self._redis.hset(self.key, mapping={k: str(v) for k, v in fields.items()})
        await self._redis.expire(self.key, ttl)

    async def allow_request(self) -> None:
        if not self.enabled:
            return
        try:
            snap = await self._snapshot()
            if snap.get("state", CLOSED) != OPEN:
                return
            elapsed = time.time() - float(snap.get("opened_at") or 0)
            if elapsed < self.reset_timeout_seconds:
                raise CircuitBreakerOpen(f"Circuit breaker OPEN for {self.name}")
            await self._write(self.reset_timeout_seconds + 30, state=HALF_OPEN)
            logger.info("breaker_half_open", extra={"breaker": self.name})
        except RedisError as e:
            self._store_unavailable("allow_request", e)

    async def record_success(self) -> None:
        if not self.enabled:
            return
        try:
            snap = await self._snapshot()
            if snap:
                await self.close()
        except RedisError as e:
            self._store_unavailable("record_success", e)

    async def record_failure(self) -> None:
        if not self.enabled:
            return
        try:
            snap = await self._snapshot()
            if snap.get("state") == HALF_OPEN:
                await self.open()
                return
            failures = await self._redis.hincrby(self.key, "failures", 1)
            if failures == 1:
                await self._redis.expire(self.key, FAILURE_WINDOW_SECONDS)
            if failures >= self.failure_threshold:
                await self.open()
        except RedisError as e:
            self._store_unavailable("record_failure", e)

    async def open(self) -> None:
        await self._write(self.reset_timeout_seconds + 30, state=OPEN, opened_at=time.time(), failures=0)
        logger.warning("breaker_opened", extra={"breaker": self.name})

    async def close(self) -> None:
        await self._redis.delete(self.key)
        logger.info("breaker_closed", extra={"breaker": self.name})

    async def status(self) -> dict:
        if not self.enabled:
            return {"name": self.name, "enabled": False, "state": CLOSED}
        try:
            snap = await self._snapshot()
        except RedisError as e:
            self._store_unavailable("status", e)
            return {"name": self.name, "enabled": True, "state": "UNKNOWN"}
        return {"name": self.name, "enabled": True, "state": snap.get("state", CLOSED)}
