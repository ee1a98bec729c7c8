import asyncio
from typing import Callable, Protocol

from .errors import PermissionDeniedError, UnsupportedError
from .schemas import Coordinates, LocationReport

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class PositionError(Exception):
    def __init__(self, code: int, message: str = ""):
        super().__init__(message)
        self.code = code
        self.message = message


class Geolocator(Protocol):
    """Device position source with success/error callback semantics."""

    def get_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_error: Callable[[PositionError], None],
    ) -> None: ...


async def request_current_location(geolocator: Geolocator | None) -> Coordinates:
    """
    Single best-effort position read with the device defaults.

    The coordinates are for display only; nothing here sends them anywhere.
    """
    if geolocator is None:
        raise UnsupportedError("Geolocation is not supported by this browser.")

    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def on_success(coords: Coordinates) -> None:
        if not future.done():
            future.set_result(coords)

    def on_error(error: PositionError) -> None:
        if not future.done():
            future.set_exception(error)

    geolocator.get_current_position(on_success, on_error)

    try:
        return await future
    except PositionError as e:
        if e.code == PERMISSION_DENIED:
            raise PermissionDeniedError(e.message or "Location permission denied.")
        # unavailable/timeout: the device could not produce a fix
        raise UnsupportedError(e.message or "Unable to determine your location.")


class ReportedGeolocator:
    """Replays what the browser reported after it asked the device itself."""

    def __init__(self, report: LocationReport):
        self.report = report

    def get_current_position(self, on_success, on_error) -> None:
        r = self.report
        if r.permission_denied:
            on_error(PositionError(PERMISSION_DENIED, r.error_message or ""))
        elif r.timed_out:
            on_error(PositionError(TIMEOUT, r.error_message or "Timed out waiting for your location."))
        elif r.latitude is None or r.longitude is None:
            on_error(PositionError(POSITION_UNAVAILABLE, r.error_message or ""))
        else:
            on_success(Coordinates(latitude=r.latitude, longitude=r.longitude))


def geolocator_from_report(report: LocationReport) -> Geolocator | None:
    if not report.supported:
        return None
    return ReportedGeolocator(report)
