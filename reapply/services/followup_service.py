"""Follow-up scheduling engine.

Computes scheduled send dates for a batch of follow-ups and stores them as
``pending``. Executing the sends and moving a follow-up to sent, cancelled or
reply_received happens elsewhere.
"""

import logging
import re
from datetime import datetime, timedelta

from sqlalchemy import select, update

from reapply.core.exceptions import NotFoundError
from reapply.core.storage import async_session, to_db_datetime
from reapply.models.application import JobApplication
from reapply.models.followup import FollowUp
from reapply.schemas.auth import SessionContext, utc_now
from reapply.schemas.followup import (
    FollowUpItem,
    FollowUpScheduleRequest,
    FollowUpStatus,
    FollowUpTiming,
)
from reapply.utils.validators import (
    clamp_follow_up_count,
    parse_custom_date,
    validate_follow_up_request,
)

logger = logging.getLogger(__name__)

_POSITION_RE = re.compile(r"\{Position\}|\[Position\]")
_COMPANY_RE = re.compile(r"\{Company\}|\[Company\]")


def compute_scheduled_date(
    timing: FollowUpTiming, custom_date: str | None, now: datetime
) -> datetime:
    """Scheduled instant for a follow-up created at ``now``."""
    if timing is FollowUpTiming.TOMORROW:
        return now + timedelta(days=1)
    if timing is FollowUpTiming.CUSTOM:
        return parse_custom_date(custom_date) or now
    return now


def substitute_placeholders(text: str, position: str, company: str) -> str:
    """Fill in {Position}/{Company} (or [Position]/[Company])."""
    text = _POSITION_RE.sub(lambda _: position, text)
    return _COMPANY_RE.sub(lambda _: company, text)


class FollowUpScheduler:
    """Creates follow-up batches for the user's applications."""

    def build_follow_ups(
        self,
        application: JobApplication,
        request: FollowUpScheduleRequest,
        now: datetime,
    ) -> list[FollowUp]:
        count = clamp_follow_up_count(request.count)
        follow_ups = []
        for index in range(count):
            item = request.items[index] if index < len(request.items) else FollowUpItem()
            scheduled = compute_scheduled_date(item.timing, item.custom_date, now)
            follow_ups.append(
                FollowUp(
                    job_id=application.id,
                    user_id=application.user_id,
                    scheduled_date=to_db_datetime(scheduled),
                    email_subject=substitute_placeholders(
                        item.subject, application.position, application.company
                    ),
                    email_body=substitute_placeholders(
                        item.body, application.position, application.company
                    ),
                    status=FollowUpStatus.PENDING.value,
                    timing=item.timing.value,
                )
            )
        return follow_ups

    async def schedule(
        self,
        ctx: SessionContext,
        job_id: int,
        request: FollowUpScheduleRequest,
        now: datetime | None = None,
    ) -> list[FollowUp]:
        """Store a batch of pending follow-ups for one application.

        The rows and the parent's ``follow_up_count`` are written in one
        transaction. The count is overwritten with the batch size, so
        configuring again replaces the count instead of adding to it.
        """
        validation = validate_follow_up_request(request)
        for warning in validation.warnings:
            logger.warning(f"Follow-ups for application {job_id}: {warning}")

        now = now or utc_now()

        async with async_session() as session:
            result = await session.execute(
                select(JobApplication).where(
                    JobApplication.id == job_id,
                    JobApplication.user_id == ctx.user_id,
                )
            )
            application = result.scalar_one_or_none()
            if application is None:
                raise NotFoundError("Application", job_id)

            follow_ups = self.build_follow_ups(application, request, now)
            session.add_all(follow_ups)
            await session.execute(
                update(JobApplication)
                .where(JobApplication.id == job_id)
                .values(follow_up_count=len(follow_ups))
            )
            await session.commit()
            for follow_up in follow_ups:
                await session.refresh(follow_up)

        logger.info(f"Scheduled {len(follow_ups)} follow-ups for application {job_id}")
        return follow_ups

    async def list_follow_ups(self, ctx: SessionContext, job_id: int) -> list[FollowUp]:
        """Follow-ups of one application, earliest first."""
        async with async_session() as session:
            result = await session.execute(
                select(FollowUp)
                .where(FollowUp.job_id == job_id, FollowUp.user_id == ctx.user_id)
                .order_by(FollowUp.scheduled_date, FollowUp.id)
            )
            return list(result.scalars().all())


def get_followup_scheduler() -> FollowUpScheduler:
    """Dependency to get follow-up scheduler."""
    return FollowUpScheduler()
