"""Authentication router for the Google OAuth flows."""

import html
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from starlette.requests import Request

from reapply.core.config import settings
from reapply.core.dependencies import (
    SESSION_COOKIE,
    get_credential_manager,
    get_optional_session,
    get_session_context,
    get_submission_service,
)
from reapply.core.exceptions import ApplicationError, AuthorizationError
from reapply.schemas.auth import (
    CallbackParams,
    FlowPurpose,
    MailConnectionStatus,
    SessionContext,
)
from reapply.services.credential_manager import CredentialManager
from reapply.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def auth_failure_page(detail: str) -> HTMLResponse:
    """Error page that sends the user back to the home page after a delay."""
    delay = settings.auth_failure_redirect_delay
    content = (
        "<!DOCTYPE html>\n<html><head>"
        f'<meta http-equiv="refresh" content="{delay};url=/">'
        "<title>Authentication failed</title></head><body>"
        f"<p>Authentication failed: {html.escape(detail)}</p>"
        f"<p>Redirecting in {delay} seconds...</p>"
        "</body></html>"
    )
    return HTMLResponse(content=content, status_code=400)


@router.get("/login")
async def login(
    session: SessionContext | None = Depends(get_optional_session),
    manager: CredentialManager = Depends(get_credential_manager),
):
    """Sign in with Google. Mail access is requested in the same consent."""
    url = await manager.initiate(FlowPurpose.SIGN_IN, ctx=session)
    return RedirectResponse(url)


@router.get("/mail/connect")
async def connect_mail(
    ctx: SessionContext = Depends(get_session_context),
    manager: CredentialManager = Depends(get_credential_manager),
):
    """Connect (or reconnect) the signed-in user's mail account."""
    url = await manager.initiate(FlowPurpose.CONNECT_MAIL, ctx=ctx)
    return RedirectResponse(url)


@router.get("/callback")
async def callback(
    request: Request,
    session: SessionContext | None = Depends(get_optional_session),
    manager: CredentialManager = Depends(get_credential_manager),
    submission_service: SubmissionService = Depends(get_submission_service),
):
    """Handle the redirect back from Google for every flow purpose."""
    try:
        params = CallbackParams.model_validate(dict(request.query_params))
        result = await manager.complete_callback(params)
    except ValidationError:
        logger.warning("Malformed OAuth callback parameters")
        detail = "Invalid callback parameters"
    except AuthorizationError as e:
        logger.warning(f"OAuth callback failed: {e.detail}")
        detail = e.detail
    else:
        detail = None

    if detail is not None:
        if session is not None:
            await submission_service.record_authorization_failure(
                session, f"Mail authorization failed: {detail}"
            )
        return auth_failure_page(detail)

    redirect_to = result.redirect_to
    if result.resume_send:
        try:
            application = await submission_service.send(result.session)
            logger.info(f"Resumed send recorded application {application.id}")
            redirect_to = "/"
        except ApplicationError as e:
            # The pipeline keeps the error and stays in preview for a retry.
            logger.error(f"Resumed send failed: {e}")

    response = RedirectResponse(url=redirect_to)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=result.session.session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
    return response


@router.get("/mail/status", response_model=MailConnectionStatus)
async def mail_status(
    ctx: SessionContext = Depends(get_session_context),
    manager: CredentialManager = Depends(get_credential_manager),
):
    """Check whether the mail account is connected with a usable token."""
    return await manager.connection_status(ctx)


@router.post("/mail/disconnect")
async def disconnect_mail(
    ctx: SessionContext = Depends(get_session_context),
    manager: CredentialManager = Depends(get_credential_manager),
):
    await manager.disconnect(ctx)
    return {"connected": False}


@router.post("/logout")
async def logout(
    ctx: SessionContext = Depends(get_session_context),
    manager: CredentialManager = Depends(get_credential_manager),
):
    await manager.sign_out(ctx)
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response
