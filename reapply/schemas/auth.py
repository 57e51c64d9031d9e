"""Schemas for OAuth credentials, flows and sessions."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as stored by the database) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class FlowPurpose(str, Enum):
    """Why an authorization flow was started."""

    SIGN_IN = "sign_in"
    CONNECT_MAIL = "connect_mail"


class OAuthCredential(BaseModel):
    """Bearer credential for the mail provider."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    token_type: str = "Bearer"

    def is_usable(self, now: datetime | None = None) -> bool:
        """Usable only while the current instant is strictly before expiry."""
        now = now or utc_now()
        return bool(self.access_token) and as_utc(now) < as_utc(self.expires_at)

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.access_token}"


class OAuthStateRecord(BaseModel):
    """Resumption context carried through an authorization redirect."""

    purpose: FlowPurpose
    redirect_uri: str
    session_id: str | None = None
    resume_send: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class CallbackParams(BaseModel):
    """Query parameters received on return from the provider."""

    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None
    purpose: FlowPurpose | None = None


class SessionContext(BaseModel):
    """The authenticated user's session, passed explicitly to every operation."""

    session_id: str
    user_id: str
    email: str
    full_name: str | None = None
    provider_token: str | None = None
    provider_token_expires_at: datetime | None = None

    def provider_credential(self) -> OAuthCredential | None:
        """Return the session-attached credential, if any."""
        if not self.provider_token or not self.provider_token_expires_at:
            return None
        return OAuthCredential(
            access_token=self.provider_token,
            expires_at=self.provider_token_expires_at,
        )


class CallbackResult(BaseModel):
    """Outcome of a completed authorization callback."""

    purpose: FlowPurpose
    session: SessionContext
    redirect_to: str
    resume_send: bool = False


class MailConnectionStatus(BaseModel):
    """Whether the user's mail account is connected with a usable token."""

    connected: bool
    email: str | None = None
    expires_at: datetime | None = None
