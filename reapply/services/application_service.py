"""Persistence operations for job applications."""

import logging

from sqlalchemy import func, select

from reapply.core.exceptions import NotFoundError
from reapply.core.storage import async_session
from reapply.models.application import JobApplication
from reapply.schemas.application import (
    ApplicationStats,
    ApplicationStatus,
    JobDetails,
)

logger = logging.getLogger(__name__)


class ApplicationService:
    """Reads and writes the user's job applications.

    Every query is scoped by ``user_id``.
    """

    async def create_application(
        self,
        user_id: str,
        details: JobDetails,
        email_thread_id: str | None = None,
    ) -> JobApplication:
        """Record an application whose email was sent."""
        async with async_session() as session:
            application = JobApplication(
                user_id=user_id,
                company=details.company,
                position=details.position,
                work_mode=details.work_mode.value,
                location=details.location or None,
                status=details.status.value,
                applied_date=details.applied_date,
                description=details.description or None,
                recruiter_email=str(details.recruiter_email),
                email_thread_id=email_thread_id,
                follow_up_count=0,
            )
            session.add(application)
            await session.commit()
            await session.refresh(application)

        logger.info(
            f"Recorded application {application.id} for user {user_id}: "
            f"{details.position} at {details.company}"
        )
        return application

    async def get_application(self, user_id: str, job_id: int) -> JobApplication:
        """Get one application owned by the user."""
        async with async_session() as session:
            result = await session.execute(
                select(JobApplication).where(
                    JobApplication.id == job_id,
                    JobApplication.user_id == user_id,
                )
            )
            application = result.scalar_one_or_none()

        if application is None:
            raise NotFoundError("Application", job_id)
        return application

    async def list_applications(
        self, user_id: str, limit: int = 100, offset: int = 0
    ) -> list[JobApplication]:
        """List applications, most recently applied first."""
        async with async_session() as session:
            result = await session.execute(
                select(JobApplication)
                .where(JobApplication.user_id == user_id)
                .order_by(JobApplication.applied_date.desc(), JobApplication.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().all())

    async def update_status(
        self, user_id: str, job_id: int, status: ApplicationStatus
    ) -> JobApplication:
        """Set an application's status. Any status may follow any other."""
        async with async_session() as session:
            result = await session.execute(
                select(JobApplication).where(
                    JobApplication.id == job_id,
                    JobApplication.user_id == user_id,
                )
            )
            application = result.scalar_one_or_none()
            if application is None:
                raise NotFoundError("Application", job_id)

            application.status = status.value
            await session.commit()
            await session.refresh(application)

        logger.info(f"Application {job_id} status set to {status.value}")
        return application

    async def get_stats(self, user_id: str) -> ApplicationStats:
        """Count the user's applications by status."""
        async with async_session() as session:
            result = await session.execute(
                select(JobApplication.status, func.count(JobApplication.id))
                .where(JobApplication.user_id == user_id)
                .group_by(JobApplication.status)
            )
            counts = {status: count for status, count in result.all()}

        return ApplicationStats(
            total_applied=sum(counts.values()),
            interviewing=counts.get(ApplicationStatus.INTERVIEWING.value, 0),
            offered=counts.get(ApplicationStatus.OFFERED.value, 0),
            rejected=counts.get(ApplicationStatus.REJECTED.value, 0),
            pending=counts.get(ApplicationStatus.APPLIED.value, 0),
            reply_received=counts.get(ApplicationStatus.REPLY_RECEIVED.value, 0),
        )


def get_application_service() -> ApplicationService:
    """Dependency to get application service."""
    return ApplicationService()
