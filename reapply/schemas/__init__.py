"""Pydantic schemas for request/response validation."""

from reapply.schemas.application import EmailDraft, JobApplicationRead, JobDetails
from reapply.schemas.auth import OAuthCredential, SessionContext
from reapply.schemas.followup import FollowUpScheduleRequest
from reapply.schemas.pipeline import PipelineStage, PipelineState

__all__ = [
    "EmailDraft",
    "FollowUpScheduleRequest",
    "JobApplicationRead",
    "JobDetails",
    "OAuthCredential",
    "PipelineStage",
    "PipelineState",
    "SessionContext",
]
