"""Core application components."""

from reapply.core.config import settings
from reapply.core.exceptions import ApplicationError, AuthorizationError
from reapply.core.storage import Base, CredentialStorage, async_session

__all__ = [
    "ApplicationError",
    "AuthorizationError",
    "Base",
    "CredentialStorage",
    "async_session",
    "settings",
]
