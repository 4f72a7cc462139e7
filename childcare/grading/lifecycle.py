from enum import Enum
from typing import Any, Optional

from childcare.grading.grades import (
    LegacyGrade,
    LetterGrade,
    coerce_to_letter_grade,
    normalize_letter_grade,
)

GRADE_REQUIRED_MESSAGE = "Grade is required"
LETTER_GRADE_REQUIRED_MESSAGE = "Please select a letter grade (A-E)"
ALREADY_GRADED_MESSAGE = "This assignment has already been graded and cannot be resubmitted."


class SubmissionState(str, Enum):
    UNSUBMITTED = "unsubmitted"
    SUBMITTED = "submitted"
    GRADED = "graded"
    NEEDS_REVISION = "needs_revision"
    INCOMPLETE = "incomplete"


# values that may appear in Submission.status (UNSUBMITTED means "no record")
SUBMISSION_STATUSES = [s.value for s in SubmissionState if s is not SubmissionState.UNSUBMITTED]

SUBMITTABLE_FROM = {
    SubmissionState.UNSUBMITTED,
    SubmissionState.SUBMITTED,
    SubmissionState.NEEDS_REVISION,
    SubmissionState.INCOMPLETE,
}
GRADABLE_FROM = {SubmissionState.SUBMITTED, SubmissionState.GRADED}


class LifecycleError(Exception):
    """Raised when a submission transition is not allowed from its current state."""


class GradeValidationError(LifecycleError):
    pass


def submission_state(status: Optional[str]) -> SubmissionState:
    """
    Map a stored status onto a lifecycle state.

    None means there is no submission record yet. Unknown strings are treated
    as "submitted" since a record exists but nothing has graded it.
    """
    if status is None:
        return SubmissionState.UNSUBMITTED
    try:
        state = SubmissionState(status.strip().lower())
    except ValueError:
        return SubmissionState.SUBMITTED
    if state is SubmissionState.UNSUBMITTED:
        return SubmissionState.SUBMITTED
    return state


def ensure_can_submit(state: SubmissionState) -> None:
    if state is SubmissionState.GRADED:
        raise LifecycleError(ALREADY_GRADED_MESSAGE)
    if state not in SUBMITTABLE_FROM:
        raise LifecycleError(f"Cannot submit from state '{state.value}'")


def ensure_can_grade(state: SubmissionState) -> None:
    if state not in GRADABLE_FROM:
        raise LifecycleError(f"Cannot grade a submission in state '{state.value}'")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_letter_grade(value: Any) -> LetterGrade:
    """Grade-form check: only a letter A-E is accepted."""
    letter = normalize_letter_grade(value)
    if letter is None:
        raise GradeValidationError(LETTER_GRADE_REQUIRED_MESSAGE)
    return letter


def resolve_incoming_grade(value: Any) -> LetterGrade:
    """
    Service-side check: letters are taken as-is, legacy numeric scores are
    converted to their band so stored grades are always canonical.
    """
    if _is_blank(value):
        raise GradeValidationError(GRADE_REQUIRED_MESSAGE)
    letter = coerce_to_letter_grade(value)
    if letter is None:
        raise GradeValidationError(LETTER_GRADE_REQUIRED_MESSAGE)
    return letter


def is_consistent(status: Optional[str], grade: Any) -> bool:
    """True when status is "graded" exactly when the grade resolves to a letter."""
    if isinstance(grade, LegacyGrade):
        has_letter = grade.letter is not None
    else:
        has_letter = coerce_to_letter_grade(grade) is not None
    return (submission_state(status) is SubmissionState.GRADED) == has_letter
