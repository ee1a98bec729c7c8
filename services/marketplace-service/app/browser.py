import asyncio
import logging

from .clients import DataPlatformClient
from .errors import DataFetchError, PlatformError
from .schemas import (
    VERIFIED,
    Profile,
    Service,
    ServiceSummary,
    Worker,
    WorkerListing,
    placeholder_profile,
)

logger = logging.getLogger(__name__)


async def list_services(platform: DataPlatformClient) -> list[Service]:
    try:
        rows = await platform.select("services", "*", order="name")
    except PlatformError as e:
        raise DataFetchError(e.message, title="Error loading services")
    return [Service(**r) for r in rows]


def filter_services(services: list[Service], query: str | None) -> list[Service]:
    if not query:
        return list(services)
    needle = query.lower()
    return [s for s in services if needle in s.name.lower()]


async def fetch_profiles(
    platform: DataPlatformClient, user_ids: list[str], columns: str
) -> dict[str, Profile]:
    """Profiles keyed by user id; an empty dict when the read fails."""
    if not user_ids:
        return {}
    try:
        rows = await platform.select("profiles", columns, in_={"id": sorted(set(user_ids))})
    except PlatformError as e:
        logger.warning("profiles_fetch_failed", extra={"user_ids": user_ids, "error": e.message})
        return {}
    return {r["id"]: Profile(**r) for r in rows if r.get("id")}


async def fetch_worker_services(
    platform: DataPlatformClient, worker_ids: list[str]
) -> dict[str, list[ServiceSummary]]:
    """
    Full service join per worker, in platform row order.

    Workers whose join could not be read are missing from the result.
    """
    if not worker_ids:
        return {}
    try:
        rows = await platform.select(
            "worker_services",
            "worker_id,services(id,name,icon)",
            in_={"worker_id": worker_ids},
        )
    except PlatformError as e:
        logger.warning("worker_services_fetch_failed", extra={"worker_ids": worker_ids, "error": e.message})
        return {}

    joined: dict[str, list[ServiceSummary]] = {wid: [] for wid in worker_ids}
    for r in rows:
        service = r.get("services")
        if not service or r.get("worker_id") not in joined:
            continue
        joined[r["worker_id"]].append(ServiceSummary(**service))
    return joined


async def list_verified_workers_for_service(
    platform: DataPlatformClient, service_id: str
) -> list[WorkerListing]:
    try:
        links = await platform.select("worker_services", "worker_id", eq={"service_id": service_id})
    except PlatformError as e:
        raise DataFetchError(e.message, title="Error loading workers")

    worker_ids = list(dict.fromkeys(link["worker_id"] for link in links if link.get("worker_id")))
    if not worker_ids:
        return []

    try:
        rows = await platform.select(
            "workers",
            "*",
            eq={"verification_status": VERIFIED},
            in_={"id": worker_ids},
            order="rating",
            ascending=False,
        )
    except PlatformError as e:
        raise DataFetchError(e.message, title="Error loading workers")

    workers = [Worker(**r) for r in rows]
    workers = [w for w in workers if w.verification_status == VERIFIED]
    # stable: keeps platform order between equal ratings
    workers.sort(key=lambda w: w.rating, reverse=True)
    if not workers:
        return []

    profiles, services = await asyncio.gather(
        fetch_profiles(platform, [w.user_id for w in workers], "id,full_name,avatar_url"),
        fetch_worker_services(platform, [w.id for w in workers]),
    )

    results = []
    for w in workers:
        profile = profiles.get(w.user_id)
        if profile is None:
            profile = placeholder_profile()
        results.append(
            WorkerListing(
                **w.model_dump(),
                profile=profile,
                services=services.get(w.id, []),
            )
        )
    return results
