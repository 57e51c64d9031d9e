"""Submission service: runs the application pipeline against real collaborators."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from reapply.core.exceptions import (
    CredentialUnavailable,
    DeliveryError,
    PersistenceError,
)
from reapply.core.redis_client import PipelineStateStore
from reapply.models.application import JobApplication
from reapply.schemas.application import EmailDraft, JobDetails
from reapply.schemas.auth import SessionContext
from reapply.schemas.pipeline import PipelineView
from reapply.services.application_service import ApplicationService
from reapply.services.credential_manager import CredentialManager
from reapply.services.gmail_client import GmailClient, build_raw_message
from reapply.services.pipeline import ApplicationPipeline

logger = logging.getLogger(__name__)


class SubmissionService:
    """Loads the session's pipeline, applies a transition and saves it back."""

    def __init__(
        self,
        credential_manager: CredentialManager,
        gmail_client: GmailClient,
        application_service: ApplicationService,
        pipeline_store=PipelineStateStore,
    ):
        self.credential_manager = credential_manager
        self.gmail_client = gmail_client
        self.application_service = application_service
        self.pipeline_store = pipeline_store

    async def load(self, ctx: SessionContext) -> ApplicationPipeline:
        state = await self.pipeline_store.get(ctx.session_id)
        return ApplicationPipeline(state)

    async def _save(self, ctx: SessionContext, pipeline: ApplicationPipeline) -> None:
        await self.pipeline_store.save(ctx.session_id, pipeline.state)

    async def get_state(self, ctx: SessionContext) -> PipelineView:
        pipeline = await self.load(ctx)
        return pipeline.view()

    async def submit_details(
        self, ctx: SessionContext, details: JobDetails | dict
    ) -> PipelineView:
        pipeline = await self.load(ctx)
        pipeline.submit_details(details)
        await self._save(ctx, pipeline)
        return pipeline.view()

    async def save_draft(
        self, ctx: SessionContext, draft: EmailDraft | dict
    ) -> PipelineView:
        pipeline = await self.load(ctx)
        pipeline.save_draft(draft)
        await self._save(ctx, pipeline)
        return pipeline.view()

    async def back(self, ctx: SessionContext) -> PipelineView:
        pipeline = await self.load(ctx)
        pipeline.back()
        await self._save(ctx, pipeline)
        return pipeline.view()

    async def record_authorization_failure(
        self, ctx: SessionContext, message: str
    ) -> None:
        """Surface a failed mail authorization on a send that was waiting for it."""
        pipeline = await self.load(ctx)
        if not pipeline.state.awaiting_authorization:
            return
        pipeline.record_failure(message)
        await self._save(ctx, pipeline)

    async def abandon(self, ctx: SessionContext) -> None:
        """Drop the in-flight pipeline. Nothing was persisted yet."""
        await self.pipeline_store.delete(ctx.session_id)

    async def send(self, ctx: SessionContext) -> JobApplication:
        """Send the previewed email and record the application.

        On any credential or delivery failure the pipeline stays in preview
        and can be retried as is. The record is written only after the
        gateway accepted the email, so retries never duplicate it.
        """
        pipeline = await self.load(ctx)
        details, draft = pipeline.begin_send()

        if not pipeline.delivered:
            try:
                credential = await self.credential_manager.get_valid_credential(
                    ctx, resume_send=True
                )
            except CredentialUnavailable:
                pipeline.mark_awaiting_authorization()
                await self._save(ctx, pipeline)
                raise

            try:
                raw = build_raw_message(ctx.email, str(details.recruiter_email), draft)
            except ValueError as e:
                logger.warning(f"Could not build application email: {e}")
                pipeline.record_failure("The email could not be composed from this draft")
                await self._save(ctx, pipeline)
                raise DeliveryError(
                    422, "The email could not be composed from this draft"
                ) from e

            try:
                response = await self.gmail_client.send_message(credential, raw)
            except DeliveryError as e:
                pipeline.record_failure(e.detail)
                await self._save(ctx, pipeline)
                raise

            pipeline.record_delivery(response.get("id"), response.get("threadId"))
            await self._save(ctx, pipeline)
            logger.info(
                f"Sent application email for {details.position} at {details.company}"
            )
        else:
            logger.info("Email already delivered, retrying only the record write")

        try:
            application = await self.application_service.create_application(
                ctx.user_id, details, email_thread_id=pipeline.state.delivered_thread_id
            )
        except SQLAlchemyError as e:
            logger.error(f"Email sent but saving the application failed: {e}")
            pipeline.record_failure(
                "Email was sent but the application could not be saved"
            )
            await self._save(ctx, pipeline)
            raise PersistenceError("Email was sent but the application could not be saved")

        await self.pipeline_store.delete(ctx.session_id)
        return application
