import logging
from typing import Any, Optional

from pydantic import ValidationError

from childcare.client.api import ApiResult
from childcare.client.assignments import AssignmentService, Id
from childcare.grading.lifecycle import GradeValidationError, SubmissionState, require_letter_grade
from childcare.schemas.submission import SubmissionRead

logger = logging.getLogger(__name__)

ALREADY_GRADING_MESSAGE = "A grade for this submission is already being saved"


def ingest_submission(raw: Any) -> SubmissionRead:
    return SubmissionRead.model_validate(raw)


class GradingSession:
    """
    Teacher-side grading state for one assignment.

    Owns the list of submissions and only replaces entries after the server
    confirms a change, so a failed request leaves everything as it was.
    `in_flight` holds the ids of submissions with a grade request outstanding.
    """

    def __init__(self, service: AssignmentService, assignment_id: Id):
        self.service = service
        self.assignment_id = assignment_id
        self.submissions: list[SubmissionRead] = []
        self.in_flight: set = set()
        self.loading = False
        self.errors: dict[str, str] = {}

    def get(self, submission_id: Id) -> Optional[SubmissionRead]:
        return next((s for s in self.submissions if str(s.id) == str(submission_id)), None)

    async def load(self) -> ApiResult:
        self.loading = True
        try:
            result = await self.service.get_assignment_submissions(self.assignment_id)
        finally:
            self.loading = False

        if not result.success:
            logger.error("Error loading submissions: %s", result.error)
            self.errors["load"] = result.error
            return result

        try:
            self.submissions = [ingest_submission(s) for s in result.data or []]
        except ValidationError as e:
            self.errors["load"] = str(e)
            return ApiResult.fail(str(e))

        self.errors.pop("load", None)
        return ApiResult.ok(self.submissions)

    async def grade(self, submission_id: Id, grade: Any, feedback: str = "") -> ApiResult:
        try:
            letter = require_letter_grade(grade)
        except GradeValidationError as e:
            self.errors["grade"] = str(e)
            return ApiResult.fail(str(e))

        key = str(submission_id)
        if key in self.in_flight:
            return ApiResult.fail(ALREADY_GRADING_MESSAGE)

        self.in_flight.add(key)
        try:
            result = await self.service.grade_assignment_submission(
                submission_id,
                {"grade": letter.value, "feedback": feedback, "status": SubmissionState.GRADED.value},
            )
        finally:
            self.in_flight.discard(key)

        if not result.success:
            self.errors["submit"] = result.error
            return result

        try:
            graded = ingest_submission(result.data)
        except ValidationError as e:
            self.errors["submit"] = str(e)
            return ApiResult.fail(str(e))

        self.submissions = [graded if str(s.id) == key else s for s in self.submissions]
        self.errors = {}
        return ApiResult.ok(graded, message=result.message)
