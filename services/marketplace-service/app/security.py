import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .clients import DataPlatformClient
from .config import JWT_ALGORITHM, PLATFORM_JWT_AUDIENCE, PLATFORM_JWT_SECRET
from .errors import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            PLATFORM_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=PLATFORM_JWT_AUDIENCE,
        )
    except JWTError:
        raise AuthenticationError("Invalid or expired session")

    if not payload.get("sub"):
        raise AuthenticationError("Session token has no subject")
    return payload


class SessionContext:
    """
    The caller's platform session, passed explicitly to every page operation.

    Acquired from the bearer token at the start of a request, replaced by
    refresh() when the platform hands out a new access token, and torn down
    by clear() on sign-out.
    """

    def __init__(self, access_token: str, claims: dict):
        self.access_token = access_token
        self.claims = claims

    @classmethod
    def from_token(cls, access_token: str) -> "SessionContext":
        return cls(access_token, decode_token(access_token))

    @property
    def active(self) -> bool:
        return bool(self.access_token and self.claims.get("sub"))

    @property
    def user_id(self) -> str | None:
        return self.claims.get("sub")

    @property
    def email(self) -> str | None:
        return self.claims.get("email")

    @property
    def expires_at(self) -> int | None:
        return self.claims.get("exp")

    def refresh(self, access_token: str) -> None:
        claims = decode_token(access_token)
        if self.user_id and claims["sub"] != self.user_id:
            raise AuthenticationError("Refreshed session belongs to another user")
        self.access_token = access_token
        self.claims = claims

    def clear(self) -> None:
        self.access_token = None
        self.claims = {}

    def summary(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "expires_at": self.expires_at,
            "active": self.active,
        }


def get_session(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionContext | None:
    if not creds or creds.scheme.lower() != "bearer" or not creds.credentials:
        return None

    try:
        session = SessionContext.from_token(creds.credentials)
    except AuthenticationError as e:
        logger.info("session_rejected", extra={"reason": e.message})
        return None

    request.state.user_sub = session.user_id
    return session


def require_session(session: SessionContext | None = Depends(get_session)) -> SessionContext:
    if session is None or not session.active:
        raise AuthenticationError("Please sign in to continue")
    return session


def get_base_platform() -> DataPlatformClient:
    return DataPlatformClient()


def get_platform(
    session: SessionContext | None = Depends(get_session),
    base: DataPlatformClient = Depends(get_base_platform),
) -> DataPlatformClient:
    return base.with_token(session.access_token if session else None)
