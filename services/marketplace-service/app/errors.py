from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class MarketplaceError(Exception):
    status_code = 500
    title = "Something went wrong"

    def __init__(self, message: str, *, title: str | None = None):
        super().__init__(message)
        self.message = message
        if title:
            self.title = title

    def to_toast(self) -> dict:
        return {"title": self.title, "description": self.message, "variant": "destructive"}


class ValidationError(MarketplaceError):
    status_code = 400
    title = "Missing information"


class AuthenticationError(MarketplaceError):
    status_code = 401
    title = "Not authenticated"
    redirect = "/auth"

    def to_toast(self) -> dict:
        body = super().to_toast()
        body["redirect"] = self.redirect
        return body


class DataFetchError(MarketplaceError):
    status_code = 502
    title = "Error loading data"


class NotFoundError(DataFetchError):
    status_code = 404
    title = "Not found"


class BookingSubmissionError(MarketplaceError):
    status_code = 502
    title = "Booking failed"


class GeolocationError(MarketplaceError):
    title = "Location unavailable"


class UnsupportedError(GeolocationError):
    status_code = 422


class PermissionDeniedError(GeolocationError):
    status_code = 403


class PlatformError(Exception):
    """Raised by the data platform client; message is the platform's own text."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_toast())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
