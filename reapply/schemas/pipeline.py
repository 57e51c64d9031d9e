"""Schemas for the application submission pipeline."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from reapply.schemas.application import EmailDraft, JobDetails


class PipelineStage(str, Enum):
    """Linear stages of composing and sending an application email."""

    DETAILS = "details"
    EMAIL = "email"
    PREVIEW = "preview"


class PipelineState(BaseModel):
    """In-flight pipeline state for one session.

    Serialized to Redis between requests so that it survives an
    authorization redirect.
    """

    stage: PipelineStage = PipelineStage.DETAILS
    details: JobDetails | None = None
    draft: EmailDraft | None = None
    draft_edited: bool = False
    awaiting_authorization: bool = False
    last_error: str | None = None
    delivered_message_id: str | None = None
    delivered_thread_id: str | None = None
    updated_at: datetime | None = None


class PipelineView(BaseModel):
    """Pipeline state as shown to the client."""

    stage: PipelineStage
    details: JobDetails | None = None
    draft: EmailDraft | None = None
    recruiter_email: str | None = None
    awaiting_authorization: bool = False
    last_error: str | None = None
    can_go_back: bool = False
    can_send: bool = False


class AuthorizationRequiredResponse(BaseModel):
    """Returned when a send is suspended pending mail authorization."""

    status: str = "awaiting_authorization"
    redirect: str = Field(..., description="Provider authorization URL")
