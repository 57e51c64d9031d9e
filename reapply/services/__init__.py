"""Application services."""

from reapply.services.application_service import ApplicationService
from reapply.services.credential_manager import CredentialManager
from reapply.services.followup_service import FollowUpScheduler
from reapply.services.pipeline import ApplicationPipeline
from reapply.services.submission_service import SubmissionService

__all__ = [
    "ApplicationPipeline",
    "ApplicationService",
    "CredentialManager",
    "FollowUpScheduler",
    "SubmissionService",
]
