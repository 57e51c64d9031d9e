"""API routes for recorded applications and their follow-ups."""

from fastapi import APIRouter, Depends, Query, status

from reapply.core.dependencies import get_session_context
from reapply.core.exceptions import ApplicationError, to_http_exception
from reapply.schemas.application import (
    ApplicationStats,
    JobApplicationRead,
    StatusUpdateRequest,
)
from reapply.schemas.auth import SessionContext
from reapply.schemas.followup import (
    FollowUpRead,
    FollowUpScheduleRequest,
    FollowUpScheduleResponse,
)
from reapply.services.application_service import (
    ApplicationService,
    get_application_service,
)
from reapply.services.followup_service import (
    FollowUpScheduler,
    get_followup_scheduler,
)

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("", response_model=list[JobApplicationRead])
async def list_applications(
    ctx: SessionContext = Depends(get_session_context),
    service: ApplicationService = Depends(get_application_service),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    """List the user's applications, most recent first."""
    return await service.list_applications(ctx.user_id, limit=limit, offset=offset)


@router.get("/stats", response_model=ApplicationStats)
async def application_stats(
    ctx: SessionContext = Depends(get_session_context),
    service: ApplicationService = Depends(get_application_service),
):
    """Dashboard counters by status."""
    return await service.get_stats(ctx.user_id)


@router.get("/{job_id}", response_model=JobApplicationRead)
async def get_application(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    service: ApplicationService = Depends(get_application_service),
):
    try:
        return await service.get_application(ctx.user_id, job_id)
    except ApplicationError as e:
        raise to_http_exception(e)


@router.patch("/{job_id}/status", response_model=JobApplicationRead)
async def update_status(
    job_id: int,
    request: StatusUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    service: ApplicationService = Depends(get_application_service),
):
    """Change an application's status."""
    try:
        return await service.update_status(ctx.user_id, job_id, request.status)
    except ApplicationError as e:
        raise to_http_exception(e)


@router.post(
    "/{job_id}/follow-ups",
    response_model=FollowUpScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_follow_ups(
    job_id: int,
    request: FollowUpScheduleRequest,
    ctx: SessionContext = Depends(get_session_context),
    scheduler: FollowUpScheduler = Depends(get_followup_scheduler),
):
    """Schedule pending follow-up emails for an application."""
    try:
        follow_ups = await scheduler.schedule(ctx, job_id, request)
    except ApplicationError as e:
        raise to_http_exception(e)

    return FollowUpScheduleResponse(
        job_id=job_id,
        follow_up_count=len(follow_ups),
        follow_ups=[FollowUpRead.model_validate(f) for f in follow_ups],
    )


@router.get("/{job_id}/follow-ups", response_model=list[FollowUpRead])
async def list_follow_ups(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    service: ApplicationService = Depends(get_application_service),
    scheduler: FollowUpScheduler = Depends(get_followup_scheduler),
):
    try:
        await service.get_application(ctx.user_id, job_id)
    except ApplicationError as e:
        raise to_http_exception(e)
    return await scheduler.list_follow_ups(ctx, job_id)
