"""Application submission pipeline.

A linear three-stage workflow with backward navigation:

    details -> email -> preview -> (sent)

The pipeline holds one in-flight application and one draft. It performs no
I/O; ``SubmissionService`` loads and persists it around each transition and
runs the send side effects.
"""

from datetime import UTC, datetime

from pydantic import ValidationError

from reapply.core.exceptions import InputValidationError, InvalidTransitionError
from reapply.schemas.application import EmailDraft, JobDetails
from reapply.schemas.pipeline import PipelineStage, PipelineState, PipelineView

DRAFT_BODY_TEMPLATE = (
    "Dear [Recruiter Name],\n\n"
    "I am writing to express my interest in the {position} role at {company}.\n\n"
    "[Introduce yourself and summarize why you are a strong fit.]\n\n"
    "Thank you for your time and consideration.\n\n"
    "Best regards,\n[Your Name]"
)


def generate_email_draft(details: JobDetails) -> EmailDraft:
    """Build the initial draft for a set of job details."""
    return EmailDraft(
        subject=f"Application for {details.position} at {details.company}",
        body=DRAFT_BODY_TEMPLATE.format(
            position=details.position, company=details.company
        ),
    )


def _parse(model, data, label: str):
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = e.errors(
            include_url=False, include_context=False, include_input=False
        )
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in errors)
        raise InputValidationError(f"Invalid {label}: {fields}", errors) from e


class ApplicationPipeline:
    """State machine for composing and sending one application email."""

    def __init__(self, state: PipelineState | None = None):
        self.state = state or PipelineState()

    @property
    def stage(self) -> PipelineStage:
        return self.state.stage

    def _require(self, stage: PipelineStage, action: str) -> None:
        if self.state.stage is not stage:
            raise InvalidTransitionError(self.state.stage.value, action)

    def _require_undelivered(self, action: str) -> None:
        # A delivered email can only be recorded or abandoned, never edited.
        if self.delivered:
            raise InvalidTransitionError(
                f"{self.state.stage.value} (email already sent)", action
            )

    def _touch(self) -> None:
        self.state.updated_at = datetime.now(UTC)

    def submit_details(self, details: JobDetails | dict) -> EmailDraft:
        """details -> email.

        Validation happens before anything changes, so invalid input leaves
        the pipeline exactly as it was. A draft the user already edited is
        kept instead of being re-templated.
        """
        self._require(PipelineStage.DETAILS, "submit job details")
        self._require_undelivered("submit job details")
        details = _parse(JobDetails, details, "job details")

        self.state.details = details
        if self.state.draft is None or not self.state.draft_edited:
            self.state.draft = generate_email_draft(details)
            self.state.draft_edited = False
        self.state.stage = PipelineStage.EMAIL
        self._touch()
        return self.state.draft

    def save_draft(self, draft: EmailDraft | dict) -> EmailDraft:
        """email -> preview."""
        self._require(PipelineStage.EMAIL, "save the draft")
        self._require_undelivered("save the draft")
        draft = _parse(EmailDraft, draft, "email draft")

        if draft != self.state.draft:
            self.state.draft_edited = True
        self.state.draft = draft
        self.state.stage = PipelineStage.PREVIEW
        self._touch()
        return draft

    def back(self) -> PipelineStage:
        """preview -> email, email -> details. Nothing is discarded."""
        self._require_undelivered("go back")
        if self.state.stage is PipelineStage.PREVIEW:
            self.state.stage = PipelineStage.EMAIL
        elif self.state.stage is PipelineStage.EMAIL:
            self.state.stage = PipelineStage.DETAILS
        else:
            raise InvalidTransitionError(self.state.stage.value, "go back")
        self.state.awaiting_authorization = False
        self.state.last_error = None
        self._touch()
        return self.state.stage

    def begin_send(self) -> tuple[JobDetails, EmailDraft]:
        """Return what is about to be sent; only allowed from preview."""
        self._require(PipelineStage.PREVIEW, "send")
        if self.state.details is None or self.state.draft is None:
            raise InvalidTransitionError(self.state.stage.value, "send")
        self.state.last_error = None
        return self.state.details, self.state.draft

    def mark_awaiting_authorization(self) -> None:
        self.state.awaiting_authorization = True
        self._touch()

    def record_failure(self, message: str) -> None:
        """Keep the pipeline in preview with the error shown to the user."""
        self.state.awaiting_authorization = False
        self.state.last_error = message
        self._touch()

    def record_delivery(self, message_id: str | None, thread_id: str | None) -> None:
        """Remember that the gateway accepted the email."""
        self.state.awaiting_authorization = False
        self.state.delivered_message_id = message_id or "delivered"
        self.state.delivered_thread_id = thread_id
        self._touch()

    @property
    def delivered(self) -> bool:
        return self.state.delivered_message_id is not None

    def view(self) -> PipelineView:
        details = self.state.details
        return PipelineView(
            stage=self.state.stage,
            details=details,
            draft=self.state.draft,
            recruiter_email=str(details.recruiter_email) if details else None,
            awaiting_authorization=self.state.awaiting_authorization,
            last_error=self.state.last_error,
            can_go_back=(
                self.state.stage is not PipelineStage.DETAILS and not self.delivered
            ),
            can_send=self.state.stage is PipelineStage.PREVIEW,
        )
