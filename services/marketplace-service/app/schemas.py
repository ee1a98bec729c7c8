from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

VERIFIED = "verified"
UNKNOWN_NAME = "Unknown"
ANONYMOUS_NAME = "Anonymous"


class Row(BaseModel):
    # platform rows carry columns this layer never reads
    model_config = ConfigDict(extra="ignore")


# ---- Platform rows ----

class Service(Row):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    base_price: float = 0


class Worker(Row):
    id: str
    user_id: str
    hourly_rate: float
    rating: float = 0
    total_jobs: int = 0
    verification_status: str = "pending"
    status: str = "unavailable"
    address: Optional[str] = None
    bio: Optional[str] = None
    experience_years: int = 0


class Profile(Row):
    id: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class ServiceSummary(Row):
    id: Optional[str] = None
    name: str
    icon: Optional[str] = None


class Review(Row):
    id: str
    worker_id: str
    customer_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: str


class Booking(Row):
    id: Optional[str] = None
    customer_id: str
    worker_id: str
    service_id: str
    scheduled_at: str
    total_price: float
    customer_address: str
    notes: Optional[str] = None
    status: Optional[str] = None


def placeholder_profile() -> Profile:
    return Profile(full_name=UNKNOWN_NAME, phone=None, avatar_url=None)


# ---- Page views ----

class WorkerListing(Worker):
    profile: Profile
    services: List[ServiceSummary] = Field(default_factory=list)


class WorkerDetail(Worker):
    profile: Profile
    services: List[ServiceSummary] = Field(default_factory=list)


class ReviewWithAuthor(Review):
    author_name: str = ANONYMOUS_NAME


class WorkerPage(BaseModel):
    worker: WorkerDetail
    reviews: List[ReviewWithAuthor] = Field(default_factory=list)


class ServiceBrowserPage(BaseModel):
    query: str = ""
    services: List[Service]


class WorkerListPage(BaseModel):
    service_id: str
    workers: List[WorkerListing]


# ---- Inputs ----

class BookingRequest(BaseModel):
    # blank values are rejected by submit_booking, not here, so the caller gets a toast
    scheduled_at: str = ""
    customer_address: str = ""
    notes: Optional[str] = None
    service_id: Optional[str] = None


class BookingInput(BookingRequest):
    worker_id: str


class BookingResponse(BaseModel):
    booking: Booking
    title: str = "Booking requested!"
    description: str = "The worker will receive your booking request shortly."
    redirect: str = "/services"


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationReport(BaseModel):
    """What the browser observed when it asked the device for a position."""
    supported: bool = True
    permission_denied: bool = False
    timed_out: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    error_message: Optional[str] = None


class SessionRefresh(BaseModel):
    access_token: str
