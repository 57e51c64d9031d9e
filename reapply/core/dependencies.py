"""FastAPI dependencies shared by the routers."""

from fastapi import Cookie, Depends

from reapply.core.exceptions import unauthorized_exception
from reapply.core.redis_client import SessionStore
from reapply.schemas.auth import SessionContext
from reapply.services.application_service import (
    ApplicationService,
    get_application_service,
)
from reapply.services.credential_manager import CredentialManager
from reapply.services.gmail_client import GmailClient, get_gmail_client
from reapply.services.google_oauth import GoogleOAuthClient, get_oauth_client
from reapply.services.submission_service import SubmissionService

SESSION_COOKIE = "reapply_session"


async def get_optional_session(
    reapply_session: str | None = Cookie(None),
) -> SessionContext | None:
    """Load the session named by the cookie, if any."""
    if not reapply_session:
        return None
    return await SessionStore.get(reapply_session)


async def get_session_context(
    session: SessionContext | None = Depends(get_optional_session),
) -> SessionContext:
    """Require an authenticated session."""
    if session is None:
        raise unauthorized_exception()
    return session


async def get_credential_manager(
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
) -> CredentialManager:
    return CredentialManager(oauth_client)


async def get_submission_service(
    credential_manager: CredentialManager = Depends(get_credential_manager),
    gmail_client: GmailClient = Depends(get_gmail_client),
    application_service: ApplicationService = Depends(get_application_service),
) -> SubmissionService:
    """Create submission service with dependencies."""
    return SubmissionService(credential_manager, gmail_client, application_service)
