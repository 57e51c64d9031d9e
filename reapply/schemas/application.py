"""Schemas for job applications and the email drafts sent for them."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class WorkMode(str, Enum):
    REMOTE = "Remote"
    HYBRID = "Hybrid"
    ONSITE = "Onsite"


class ApplicationStatus(str, Enum):
    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFERED = "Offered"
    REJECTED = "Rejected"
    REPLY_RECEIVED = "Reply Received"


def _require_text(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} is required")
    return value


def _single_line(value: str, label: str) -> str:
    # Values that end up in a mail header
    if "\r" in value or "\n" in value:
        raise ValueError(f"{label} must not contain line breaks")
    return value


class JobDetails(BaseModel):
    """Details collected in the first pipeline stage."""

    company: str = Field(..., description="Company name")
    position: str = Field(..., description="Position or job title")
    work_mode: WorkMode = Field(default=WorkMode.REMOTE, description="Work mode")
    location: str = Field(..., description="Job location")
    status: ApplicationStatus = Field(
        default=ApplicationStatus.APPLIED, description="Application status"
    )
    applied_date: date = Field(default_factory=date.today)
    description: str | None = Field(default=None, description="Job description")
    recruiter_email: EmailStr = Field(..., description="Recruiter email address")

    @field_validator("company", "position", "location")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return _require_text(value, info.field_name.capitalize())

    @field_validator("company", "position")
    @classmethod
    def _no_line_breaks(cls, value: str, info) -> str:
        return _single_line(value, info.field_name.capitalize())


class EmailDraft(BaseModel):
    """Subject and body of the email sent to the recruiter."""

    subject: str
    body: str

    @field_validator("subject")
    @classmethod
    def _subject_not_blank(cls, value: str) -> str:
        return _single_line(_require_text(value, "Subject"), "Subject")

    @field_validator("body")
    @classmethod
    def _body_not_blank(cls, value: str) -> str:
        return _require_text(value, "Email body")


class JobApplicationRead(BaseModel):
    """A persisted job application."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company: str
    position: str
    work_mode: WorkMode
    location: str | None
    status: ApplicationStatus
    applied_date: date
    description: str | None
    recruiter_email: str
    email_thread_id: str | None
    last_reply_at: datetime | None
    follow_up_count: int


class StatusUpdateRequest(BaseModel):
    """Request to change an application's status."""

    status: ApplicationStatus


class ApplicationStats(BaseModel):
    """Dashboard counters over the user's applications."""

    total_applied: int = 0
    interviewing: int = 0
    offered: int = 0
    rejected: int = 0
    pending: int = 0
    reply_received: int = 0
