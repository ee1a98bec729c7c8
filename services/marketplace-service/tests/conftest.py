import json
import time

import httpx
import pytest
from jose import jwt

from app.breaker import CircuitBreaker
from app.clients import DataPlatformClient
from app.config import JWT_ALGORITHM, PLATFORM_JWT_AUDIENCE, PLATFORM_JWT_SECRET

REST = "http://platform.test/rest/v1"
AUTH = "http://platform.test/auth/v1"


def _split_columns(select: str) -> list[str]:
    parts, depth, current = [], 0, ""
    for ch in select:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        current += ch
    if current:
        parts.append(current)
    return [p.strip() for p in parts if p.strip()]


def _project(row: dict, columns: list[str]) -> dict:
    if "*" in columns:
        return dict(row)
    return {c: row.get(c) for c in columns}


def _parse_in(value: str) -> list[str]:
    inner = value[len("in.("):-1]
    return [v.strip('"') for v in inner.split(",")] if inner else []


class FakePlatform:
    """In-memory stand-in for the hosted platform's REST and auth endpoints."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {
            "services": [],
            "workers": [],
            "worker_services": [],
            "profiles": [],
            "reviews": [],
            "bookings": [],
        }
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], tuple[int, dict, str | None]] = {}
        self.users: dict[str, dict] = {}

    def fail(self, method: str, table: str, status: int = 400, message: str = "boom", select: str | None = None):
        """Make calls to a table error; with select, only reads asking for those columns."""
        self.failures[(method, table)] = (status, {"message": message, "code": "P0001"}, select)

    def calls(self, method: str | None = None, table: str | None = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if (method is None or r.method == method)
            and (table is None or r.url.path.rstrip("/").endswith(f"/{table}"))
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1/"):])

        table = path[len("/rest/v1/"):]
        failure = self.failures.get((request.method, table))
        if failure and (failure[2] is None or request.url.params.get("select") == failure[2]):
            status, body, _ = failure
            return httpx.Response(status, json=body)

        if request.method == "GET":
            return httpx.Response(200, json=self._select(table, request.url.params))
        if request.method == "POST":
            row = json.loads(request.content)
            row = {"id": f"{table}-{len(self.tables[table]) + 1}", "status": "requested", **row}
            self.tables[table].append(row)
            return httpx.Response(201, json=[row])
        return httpx.Response(405, json={"message": "method not allowed"})

    def _auth(self, request: httpx.Request, action: str) -> httpx.Response:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        user = self.users.get(token)
        if action == "user":
            if not user:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=user)
        if action == "logout":
            self.users.pop(token, None)
            return httpx.Response(204)
        return httpx.Response(404, json={"msg": "not found"})

    def _select(self, table: str, params: httpx.QueryParams) -> list[dict]:
        rows = list(self.tables[table])
        for key, value in params.multi_items():
            if key in ("select", "order", "limit"):
                continue
            if value.startswith("eq."):
                rows = [r for r in rows if str(r.get(key)) == value[3:]]
            elif value.startswith("in."):
                allowed = set(_parse_in(value))
                rows = [r for r in rows if str(r.get(key)) in allowed]

        order = params.get("order")
        if order:
            column, direction = order.rsplit(".", 1)
            rows.sort(key=lambda r: r.get(column), reverse=(direction == "desc"))
        if params.get("limit"):
            rows = rows[: int(params["limit"])]

        columns = _split_columns(params.get("select", "*"))
        plain = [c for c in columns if "(" not in c]
        embedded = [c for c in columns if "(" in c]
        out = []
        for r in rows:
            item = _project(r, plain)
            for emb in embedded:
                name, inner = emb[:-1].split("(", 1)
                target = next(
                    (s for s in self.tables[name] if s["id"] == r.get(f"{name[:-1]}_id")),
                    None,
                )
                item[name] = _project(target, _split_columns(inner)) if target else None
            out.append(item)
        return out


def make_token(sub: str = "customer-1", email: str = "customer@example.com", **extra) -> str:
    claims = {
        "sub": sub,
        "email": email,
        "aud": PLATFORM_JWT_AUDIENCE,
        "role": "authenticated",
        "exp": int(time.time()) + 3600,
        **extra,
    }
    return jwt.encode(claims, PLATFORM_JWT_SECRET, algorithm=JWT_ALGORITHM)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def breaker() -> CircuitBreaker:
    b = CircuitBreaker("test-platform")
    b._redis = None
    return b


@pytest.fixture
def platform(fake_platform, breaker) -> DataPlatformClient:
    return DataPlatformClient(
        rest_url=REST,
        auth_url=AUTH,
        api_key="anon-key",
        breaker=breaker,
        transport=fake_platform.transport(),
    )


@pytest.fixture
def seeded(fake_platform) -> FakePlatform:
    t = fake_platform.tables
    t["services"] += [
        {"id": "s2", "name": "Plumbing", "description": None, "icon": "🔧", "base_price": 40},
        {"id": "s1", "name": "Electrical", "description": "Wiring", "icon": "⚡", "base_price": 50},
        {"id": "s3", "name": "Painting", "description": None, "icon": "🎨", "base_price": 30},
    ]
    t["workers"] += [
        {"id": "w1", "user_id": "u1", "hourly_rate": 45, "rating": 4.2, "total_jobs": 12,
         "verification_status": "verified", "status": "available", "address": "1 Elm St",
         "bio": "Pipes and more", "experience_years": 6},
        {"id": "w2", "user_id": "u2", "hourly_rate": 60, "rating": 4.8, "total_jobs": 40,
         "verification_status": "verified", "status": "busy", "address": None,
         "bio": None, "experience_years": 10},
        {"id": "w3", "user_id": "u3", "hourly_rate": 30, "rating": 5.0, "total_jobs": 2,
         "verification_status": "pending", "status": "available", "address": None,
         "bio": None, "experience_years": 1},
        {"id": "w4", "user_id": "u4", "hourly_rate": 35, "rating": 3.9, "total_jobs": 5,
         "verification_status": "verified", "status": "available", "address": None,
         "bio": None, "experience_years": 2},
    ]
    t["worker_services"] += [
        {"worker_id": "w1", "service_id": "s2"},
        {"worker_id": "w1", "service_id": "s3"},
        {"worker_id": "w2", "service_id": "s2"},
        {"worker_id": "w3", "service_id": "s2"},
        {"worker_id": "w4", "service_id": "s2"},
        {"worker_id": "w4", "service_id": "s1"},
    ]
    t["profiles"] += [
        {"id": "u1", "full_name": "Alice Pipe", "phone": "555-0101", "avatar_url": None},
        {"id": "u2", "full_name": "Bob Wrench", "phone": None, "avatar_url": "bob.png"},
        {"id": "u3", "full_name": "Carl New", "phone": None, "avatar_url": None},
        {"id": "c1", "full_name": "Dana Customer", "phone": None, "avatar_url": None},
    ]
    t["reviews"] += [
        {"id": "r1", "worker_id": "w1", "customer_id": "c1", "rating": 5,
         "comment": "Great", "created_at": "2024-03-01T10:00:00+00:00"},
        {"id": "r2", "worker_id": "w1", "customer_id": "ghost", "rating": 4,
         "comment": None, "created_at": "2024-04-01T10:00:00+00:00"},
    ]
    return fake_platform
