import asyncio
import logging

from fastapi import APIRouter, Depends

from .browser import filter_services, list_services, list_verified_workers_for_service
from .clients import DataPlatformClient
from .errors import AuthenticationError, PlatformError
from .geolocation import geolocator_from_report, request_current_location
from .landing import landing_page
from .schemas import (
    BookingInput,
    BookingRequest,
    BookingResponse,
    Coordinates,
    LocationReport,
    ServiceBrowserPage,
    SessionRefresh,
    WorkerListPage,
    WorkerPage,
)
from .security import SessionContext, get_platform, get_session, require_session
from .worker_profile import get_recent_reviews, get_worker_profile, submit_booking

logger = logging.getLogger(__name__)

router = APIRouter()


# ================= LANDING =================

@router.get("/", tags=["Pages"])
async def landing():
    return landing_page()


@router.post("/location", response_model=Coordinates, tags=["Pages"])
async def capture_location(report: LocationReport):
    return await request_current_location(geolocator_from_report(report))


# ================= SERVICES =================

@router.get("/services", response_model=ServiceBrowserPage, tags=["Services"])
async def services_page(
    q: str = "",
    session: SessionContext = Depends(require_session),
    platform: DataPlatformClient = Depends(get_platform),
):
    services = await list_services(platform)
    return ServiceBrowserPage(query=q, services=filter_services(services, q))


@router.get("/services/{service_id}/workers", response_model=WorkerListPage, tags=["Services"])
async def service_workers(
    service_id: str,
    session: SessionContext = Depends(require_session),
    platform: DataPlatformClient = Depends(get_platform),
):
    workers = await list_verified_workers_for_service(platform, service_id)
    return WorkerListPage(service_id=service_id, workers=workers)


# ================= WORKERS =================

@router.get("/worker/{worker_id}", response_model=WorkerPage, tags=["Workers"])
async def worker_page(worker_id: str, platform: DataPlatformClient = Depends(get_platform)):
    worker, reviews = await asyncio.gather(
        get_worker_profile(platform, worker_id),
        get_recent_reviews(platform, worker_id),
    )
    return WorkerPage(worker=worker, reviews=reviews)


@router.get("/worker/{worker_id}/reviews", tags=["Workers"])
async def worker_reviews(
    worker_id: str, limit: int = 5, platform: DataPlatformClient = Depends(get_platform)
):
    return await get_recent_reviews(platform, worker_id, limit=max(1, min(limit, 50)))


@router.post("/worker/{worker_id}/bookings", response_model=BookingResponse, tags=["Workers"])
async def book_worker(
    worker_id: str,
    data: BookingRequest,
    session: SessionContext | None = Depends(get_session),
    platform: DataPlatformClient = Depends(get_platform),
):
    booking = await submit_booking(
        platform, BookingInput(worker_id=worker_id, **data.model_dump()), session
    )
    return BookingResponse(booking=booking)


# ================= SESSION =================

@router.get("/auth/session", tags=["Session"])
async def current_session(session: SessionContext = Depends(require_session)):
    return session.summary()


@router.get("/auth/user", tags=["Session"])
async def current_user(
    session: SessionContext = Depends(require_session),
    platform: DataPlatformClient = Depends(get_platform),
):
    try:
        return await platform.get_user(session.access_token)
    except PlatformError as e:
        raise AuthenticationError(e.message)


@router.post("/auth/refresh", tags=["Session"])
async def refresh_session(data: SessionRefresh, session: SessionContext = Depends(require_session)):
    session.refresh(data.access_token)
    return session.summary()


@router.post("/auth/sign-out", tags=["Session"])
async def sign_out(
    session: SessionContext = Depends(require_session),
    platform: DataPlatformClient = Depends(get_platform),
):
    try:
        await platform.sign_out(session.access_token)
    except PlatformError as e:
        logger.warning("sign_out_failed", extra={"user_id": session.user_id, "error": e.message})
    session.clear()
    return {"message": "signed out", "redirect": "/"}
