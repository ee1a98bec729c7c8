import asyncio
import logging

from .browser import fetch_profiles, fetch_worker_services
from .clients import DataPlatformClient
from .config import REVIEWS_LIMIT
from .errors import (
    AuthenticationError,
    BookingSubmissionError,
    DataFetchError,
    NotFoundError,
    PlatformError,
    ValidationError,
)
from .schemas import (
    ANONYMOUS_NAME,
    Booking,
    BookingInput,
    ReviewWithAuthor,
    ServiceSummary,
    Worker,
    WorkerDetail,
    placeholder_profile,
)
from .security import SessionContext

logger = logging.getLogger(__name__)


async def fetch_worker(platform: DataPlatformClient, worker_id: str) -> Worker:
    try:
        rows = await platform.select("workers", "*", eq={"id": worker_id}, limit=1)
    except PlatformError as e:
        raise DataFetchError(e.message, title="Error loading worker profile")
    if not rows:
        raise NotFoundError("Worker not found", title="Error loading worker profile")
    return Worker(**rows[0])


async def get_worker_profile(platform: DataPlatformClient, worker_id: str) -> WorkerDetail:
    worker = await fetch_worker(platform, worker_id)

    profiles, services = await asyncio.gather(
        fetch_profiles(platform, [worker.user_id], "id,full_name,phone,avatar_url"),
        fetch_worker_services(platform, [worker.id]),
    )

    return WorkerDetail(
        **worker.model_dump(),
        profile=profiles.get(worker.user_id) or placeholder_profile(),
        services=services.get(worker.id, []),
    )


async def get_recent_reviews(
    platform: DataPlatformClient, worker_id: str, limit: int = REVIEWS_LIMIT
) -> list[ReviewWithAuthor]:
    """
    Newest reviews for a worker with the reviewer's display name.

    Never raises: the page renders without reviews when anything fails.
    """
    try:
        rows = await platform.select(
            "reviews",
            "*",
            eq={"worker_id": worker_id},
            order="created_at",
            ascending=False,
            limit=limit,
        )
        if not rows:
            return []

        authors = await fetch_profiles(platform, [r["customer_id"] for r in rows], "id,full_name")
        reviews = []
        for r in rows[:limit]:
            author = authors.get(r["customer_id"])
            name = author.full_name if author is not None and author.full_name else ANONYMOUS_NAME
            reviews.append(ReviewWithAuthor(**r, author_name=name))
        return reviews
    except Exception:
        logger.exception("reviews_fetch_failed", extra={"worker_id": worker_id})
        return []


def primary_service(services: list[ServiceSummary], requested: str | None = None) -> ServiceSummary:
    """
    The service a booking is filed under.

    An explicit choice must be one the worker offers; otherwise the first
    entry of the worker's service join is used.
    """
    if requested:
        for s in services:
            if s.id == requested:
                return s
        raise ValidationError("This worker does not offer the selected service.")
    if not services or not services[0].id:
        raise BookingSubmissionError("This worker has no bookable services yet.")
    return services[0]


async def submit_booking(
    platform: DataPlatformClient,
    data: BookingInput,
    session: SessionContext | None,
) -> Booking:
    if not (data.scheduled_at or "").strip() or not (data.customer_address or "").strip():
        raise ValidationError("Please fill in all required fields.")

    if session is None or not session.active:
        raise AuthenticationError("Not authenticated")

    worker = await fetch_worker(platform, data.worker_id)
    services = (await fetch_worker_services(platform, [worker.id])).get(worker.id)
    if services is None:
        raise DataFetchError("Could not load the worker's services.", title="Booking failed")
    service = primary_service(services, data.service_id)

    row = {
        "customer_id": session.user_id,
        "worker_id": worker.id,
        "service_id": service.id,
        "scheduled_at": data.scheduled_at,
        "total_price": worker.hourly_rate,
        "customer_address": data.customer_address,
        "notes": data.notes,
    }

    try:
        inserted = await platform.insert("bookings", row)
    except PlatformError as e:
        raise BookingSubmissionError(e.message)

    logger.info(
        "booking_requested",
        extra={"worker_id": worker.id, "service_id": service.id, "customer_id": session.user_id},
    )
    return Booking(**{**row, **inserted})
