import os

PLATFORM_URL = (os.getenv("PLATFORM_URL") or "http://localhost:54321").rstrip("/")
PLATFORM_REST_URL = f"{PLATFORM_URL}/rest/v1"
PLATFORM_AUTH_URL = f"{PLATFORM_URL}/auth/v1"
PLATFORM_ANON_KEY = os.getenv("PLATFORM_ANON_KEY") or ""
PLATFORM_TIMEOUT = float(os.getenv("PLATFORM_TIMEOUT") or "3.0")

PLATFORM_JWT_SECRET = os.getenv("PLATFORM_JWT_SECRET") or "dev-secret-change-me"
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM") or "HS256"
PLATFORM_JWT_AUDIENCE = os.getenv("PLATFORM_JWT_AUDIENCE") or "authenticated"

REVIEWS_LIMIT = int(os.getenv("REVIEWS_LIMIT") or "5")

# optional: breaker + rate limiting are disabled without it
REDIS_URL = os.getenv("REDIS_URL")
RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE") or "120")

LOG_LEVEL = os.getenv("LOG_LEVEL") or "INFO"

HOST = os.getenv("HOST") or "0.0.0.0"
PORT = int(os.getenv("PORT") or "8000")
