"""API routes for composing and sending an application email."""

import logging

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from reapply.core.dependencies import get_session_context, get_submission_service
from reapply.core.exceptions import (
    ApplicationError,
    CredentialUnavailable,
    to_http_exception,
)
from reapply.schemas.application import JobApplicationRead
from reapply.schemas.auth import SessionContext
from reapply.schemas.pipeline import AuthorizationRequiredResponse, PipelineView
from reapply.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("", response_model=PipelineView)
async def get_pipeline(
    ctx: SessionContext = Depends(get_session_context),
    service: SubmissionService = Depends(get_submission_service),
):
    """Current stage and contents of the session's pipeline."""
    return await service.get_state(ctx)


@router.post("/details", response_model=PipelineView)
async def submit_details(
    details: dict = Body(...),
    ctx: SessionContext = Depends(get_session_context),
    service: SubmissionService = Depends(get_submission_service),
):
    """Submit job details and move on to the email draft."""
    try:
        return await service.submit_details(ctx, details)
    except ApplicationError as e:
        raise to_http_exception(e)


@router.post("/draft", response_model=PipelineView)
async def save_draft(
    draft: dict = Body(...),
    ctx: SessionContext = Depends(get_session_context),
    service: SubmissionService = Depends(get_submission_service),
):
    """Save the edited draft and move on to the preview."""
    try:
        return await service.save_draft(ctx, draft)
    except ApplicationError as e:
        raise to_http_exception(e)


@router.post("/back", response_model=PipelineView)
async def go_back(
    ctx: SessionContext = Depends(get_session_context),
    service: SubmissionService = Depends(get_submission_service),
):
    try:
        return await service.back(ctx)
    except ApplicationError as e:
        raise to_http_exception(e)


@router.post(
    "/send",
    response_model=JobApplicationRead,
    status_code=status.HTTP_201_CREATED,
    responses={202: {"model": AuthorizationRequiredResponse}},
)
async def send_application(
    ctx: SessionContext = Depends(get_session_context),
    service: SubmissionService = Depends(get_submission_service),
):
    """Send the previewed email and record the application.

    Returns 202 with the provider URL when mail access must be authorized
    first; the send resumes automatically once the provider calls back.
    """
    try:
        application = await service.send(ctx)
    except CredentialUnavailable as e:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=AuthorizationRequiredResponse(
                redirect=e.authorization_url
            ).model_dump(),
        )
    except ApplicationError as e:
        logger.error(f"Send failed for user {ctx.user_id}: {e}")
        raise to_http_exception(e)

    return application


@router.delete("")
async def abandon_pipeline(
    ctx: SessionContext = Depends(get_session_context),
    service: SubmissionService = Depends(get_submission_service),
):
    """Discard the in-flight pipeline. Nothing is persisted."""
    await service.abandon(ctx)
    return {"status": "abandoned"}
