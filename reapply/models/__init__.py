"""Database models."""

from reapply.models.application import JobApplication
from reapply.models.followup import FollowUp
from reapply.models.profile import Profile

__all__ = [
    "FollowUp",
    "JobApplication",
    "Profile",
]
