from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from childcare.client.api import ApiResult
from childcare.client.assignments import AssignmentService, Id
from childcare.client.grading import ingest_submission
from childcare.grading.lifecycle import LifecycleError, SubmissionState, ensure_can_submit, submission_state
from childcare.schemas.submission import SubmissionRead


class SubmissionSession:
    """Parent-side view of one assignment: the latest submission, if any, and (re)submitting it."""

    def __init__(
        self,
        service: AssignmentService,
        assignment_id: Id,
        latest: Optional[SubmissionRead] = None,
    ):
        self.service = service
        self.assignment_id = assignment_id
        self.latest = latest
        self.submitting = False
        self.errors: dict[str, str] = {}

    @property
    def state(self) -> SubmissionState:
        if self.latest is None:
            return SubmissionState.UNSUBMITTED
        if self.latest.graded_at is not None:
            return SubmissionState.GRADED
        return submission_state(self.latest.status)

    @property
    def is_resubmission(self) -> bool:
        return self.latest is not None

    async def submit(
        self,
        submission_text: str = "",
        attachments: Optional[list[dict]] = None,
        submitted_at: Optional[datetime] = None,
    ) -> ApiResult:
        try:
            ensure_can_submit(self.state)
        except LifecycleError as e:
            self.errors["submit"] = str(e)
            return ApiResult.fail(str(e))

        self.submitting = True
        try:
            result = await self.service.submit_assignment(
                self.assignment_id,
                submission_text=submission_text,
                attachments=attachments,
                submitted_at=submitted_at,
            )
        finally:
            self.submitting = False

        if not result.success:
            self.errors["submit"] = result.error
            return result

        try:
            self.latest = ingest_submission(result.data)
        except ValidationError as e:
            self.errors["submit"] = str(e)
            return ApiResult.fail(str(e))

        self.errors = {}
        return ApiResult.ok(self.latest, message=result.message)
