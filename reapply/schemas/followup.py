"""Schemas for follow-up scheduling."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_FOLLOW_UP_SUBJECT = "Following up on my application"
DEFAULT_FOLLOW_UP_BODY = (
    "Dear Hiring Manager,\n\n"
    "I hope this email finds you well. I am writing to follow up on my "
    "application for the {Position} role at {Company}.\n\n"
    "I remain very interested in the opportunity and would welcome the chance "
    "to discuss how my skills and experience align with your needs.\n\n"
    "Thank you for your time and consideration.\n\n"
    "Best regards,\n[Your Name]"
)


class FollowUpStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    CANCELLED = "cancelled"
    REPLY_RECEIVED = "reply_received"


class FollowUpTiming(str, Enum):
    IMMEDIATE = "immediate"
    TOMORROW = "tomorrow"
    CUSTOM = "custom"


class FollowUpItem(BaseModel):
    """Configuration of a single follow-up email."""

    timing: FollowUpTiming = Field(default=FollowUpTiming.TOMORROW)
    custom_date: str | None = Field(
        default=None, description="ISO date used when timing is 'custom'"
    )
    subject: str = Field(default=DEFAULT_FOLLOW_UP_SUBJECT, min_length=1)
    body: str = Field(default=DEFAULT_FOLLOW_UP_BODY, min_length=1)


class FollowUpScheduleRequest(BaseModel):
    """Request to schedule follow-ups for one application.

    ``count`` is clamped to 1-5 rather than rejected.
    """

    count: int = Field(default=1, description="Number of follow-ups (1-5)")
    items: list[FollowUpItem] = Field(default_factory=list)


class FollowUpRead(BaseModel):
    """A persisted follow-up."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    scheduled_date: datetime
    email_subject: str
    email_body: str
    status: FollowUpStatus
    timing: FollowUpTiming


class FollowUpScheduleResponse(BaseModel):
    """Result of a scheduling request."""

    job_id: int
    follow_up_count: int
    follow_ups: list[FollowUpRead]
