from fastapi import FastAPI

from .clients import cb_platform
from .config import HOST, PORT, RATE_LIMIT_PER_MINUTE
from .errors import register_error_handlers
from .logging_config import configure_logging
from .middleware import RateLimitMiddleware, RequestLoggingMiddleware
from .routes import router

OPENAPI_TAGS = [
    {"name": "System", "description": "Operational endpoints (health, breaker)."},
    {"name": "Pages", "description": "Landing page and location capture."},
    {"name": "Services", "description": "Service categories and the workers offering them."},
    {"name": "Workers", "description": "Worker profile, reviews and booking requests."},
    {"name": "Session", "description": "Data platform session introspection and sign-out."},
]

configure_logging()

app = FastAPI(title="Home Services Marketplace", openapi_tags=OPENAPI_TAGS)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RateLimitMiddleware, max_per_minute=RATE_LIMIT_PER_MINUTE)

register_error_handlers(app)
app.include_router(router)


@app.get("/health", tags=["System"])
async def health():
    return {
        "status": "ok",
        "service": "marketplace-service",
        "breaker": await cb_platform.status(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
