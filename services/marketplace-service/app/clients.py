import logging
from typing import Any, Iterable

import httpx

from .breaker import CircuitBreaker, CircuitBreakerOpen
from .config import (
    PLATFORM_ANON_KEY,
    PLATFORM_AUTH_URL,
    PLATFORM_REST_URL,
    PLATFORM_TIMEOUT,
)
from .errors import PlatformError

logger = logging.getLogger(__name__)

cb_platform = CircuitBreaker("data-platform", failure_threshold=5, reset_timeout_seconds=10)

_RESERVED = set(',()"')


def _in_list(values: Iterable[Any]) -> str:
    items = []
    for v in values:
        s = str(v)
        if any(ch in _RESERVED for ch in s):
            s = '"' + s.replace('"', '\\"') + '"'
        items.append(s)
    return f"in.({','.join(items)})"


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"Data platform responded {resp.status_code}"
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return resp.text


class DataPlatformClient:
    """
    Thin async client for the hosted data platform.

    Table reads/writes go through its REST interface (PostgREST query syntax),
    session calls through its auth endpoint. One instance is bound to at most
    one caller access token.
    """

    def __init__(
        self,
        access_token: str | None = None,
        *,
        rest_url: str = PLATFORM_REST_URL,
        auth_url: str = PLATFORM_AUTH_URL,
        api_key: str = PLATFORM_ANON_KEY,
        timeout: float = PLATFORM_TIMEOUT,
        breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_token = access_token
        self.rest_url = rest_url.rstrip("/")
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.breaker = breaker or cb_platform
        self._transport = transport

    def with_token(self, access_token: str | None) -> "DataPlatformClient":
        return DataPlatformClient(
            access_token,
            rest_url=self.rest_url,
            auth_url=self.auth_url,
            api_key=self.api_key,
            timeout=self.timeout,
            breaker=self.breaker,
            transport=self._transport,
        )

    def _headers(self, access_token: str | None = None) -> dict:
        headers = {"apikey": self.api_key}
        token = access_token or self.access_token or self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _call_with_breaker(
        self,
        method: str,
        url: str,
        *,
        params: list[tuple[str, str]] | None = None,
        payload: Any = None,
        headers: dict | None = None,
    ):
        try:
            await self.breaker.allow_request()
        except CircuitBreakerOpen as e:
            raise PlatformError(str(e), status_code=503)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.request(method, url, params=params, json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.TimeoutException:
            await self.breaker.record_failure()
            raise PlatformError(f"Timeout calling data platform: {url}", status_code=504)
        except httpx.HTTPStatusError as e:
            # client errors are the caller's fault, not platform health
            if e.response.status_code >= 500:
                await self.breaker.record_failure()
            raise PlatformError(_error_message(e.response), status_code=e.response.status_code)
        except httpx.HTTPError as e:
            await self.breaker.record_failure()
            logger.warning("platform_transport_error", extra={"url": url, "error": str(e)})
            raise PlatformError(f"Bad gateway calling data platform: {url}", status_code=502)

        await self.breaker.record_success()
        if resp.content:
            return resp.json()
        return None

    # -------- TABLES --------

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, Iterable[Any]] | None = None,
        order: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[dict]:
        params = [("select", columns)]
        for column, value in (eq or {}).items():
            params.append((column, f"eq.{value}"))
        for column, values in (in_ or {}).items():
            params.append((column, _in_list(values)))
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        rows = await self._call_with_breaker(
            "GET", f"{self.rest_url}/{table}", params=params, headers=self._headers()
        )
        return rows or []

    async def insert(self, table: str, row: dict) -> dict:
        headers = self._headers()
        headers["Prefer"] = "return=representation"
        rows = await self._call_with_breaker(
            "POST", f"{self.rest_url}/{table}", payload=row, headers=headers
        )
        if isinstance(rows, list):
            return rows[0] if rows else dict(row)
        return rows or dict(row)

    # -------- AUTH --------

    async def get_user(self, access_token: str | None = None) -> dict:
        return await self._call_with_breaker(
            "GET", f"{self.auth_url}/user", headers=self._headers(access_token)
        )

    async def sign_out(self, access_token: str | None = None) -> None:
        await self._call_with_breaker(
            "POST", f"{self.auth_url}/logout", headers=self._headers(access_token)
        )
