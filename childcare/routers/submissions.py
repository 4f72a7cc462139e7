import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import and_
from sqlalchemy.orm import Session

from childcare.core.deps import get_db
from childcare.core.permissions import require_parent, require_teacher
from childcare.grading.lifecycle import (
    GradeValidationError,
    LifecycleError,
    SubmissionState,
    ensure_can_grade,
    ensure_can_submit,
    resolve_incoming_grade,
    submission_state,
)
from childcare.models.assignment import Assignment
from childcare.models.submission import Submission
from childcare.models.user import User
from childcare.schemas.envelope import Envelope, success_response
from childcare.schemas.submission import SubmissionCreate, SubmissionGradeUpdate, SubmissionRead

logger = logging.getLogger(__name__)

router = APIRouter()

UNKNOWN_CHILD = "Unknown Child"


def _ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return a


def _child_name(parent: Optional[User]) -> str:
    if parent is None:
        return UNKNOWN_CHILD
    return parent.child_name or parent.full_name or UNKNOWN_CHILD


def _read_with_family(sub: Submission) -> SubmissionRead:
    """Teacher views show which child a submission belongs to."""
    read = SubmissionRead.model_validate(sub)
    read.child_name = _child_name(sub.student)
    read.parent_email = sub.student.email if sub.student else None
    return read


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@router.post(
    "/submit",
    response_model=Envelope[SubmissionRead],
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_parent),
):
    if payload.assignment_id is None:
        raise HTTPException(status_code=400, detail="Assignment ID is required")

    assignment = _ensure_assignment_exists(db, payload.assignment_id)

    existing = (
        db.query(Submission)
        .filter(
            and_(
                Submission.assignment_id == assignment.id,
                Submission.student_id == me.id,
            )
        )
        .first()
    )

    try:
        ensure_can_submit(submission_state(existing.status if existing else None))
    except LifecycleError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    now = datetime.now(timezone.utc)
    submitted_at = payload.submitted_at or now
    attachments = [att.model_dump() for att in payload.attachments or []]

    if existing:
        # resubmission overwrites the same record and clears any earlier review
        existing.submission_text = payload.submission_text or ""
        existing.attachments = attachments
        existing.submitted_at = submitted_at
        existing.status = SubmissionState.SUBMITTED.value
        existing.grade = None
        existing.feedback = None
        existing.graded_at = None
        existing.updated_at = now
        sub = existing
    else:
        sub = Submission(
            assignment_id=assignment.id,
            student_id=me.id,
            submission_text=payload.submission_text or "",
            attachments=attachments,
            submitted_at=submitted_at,
            status=SubmissionState.SUBMITTED.value,
        )
        db.add(sub)

    _commit(db)
    db.refresh(sub)

    logger.info(
        "Submission %s for assignment %s by user %s (%s)",
        sub.id,
        assignment.id,
        me.id,
        "resubmitted" if existing else "new",
    )
    return success_response(SubmissionRead.model_validate(sub), message="Assignment submitted successfully")


@router.get(
    "/{assignment_id:int}/submissions",
    response_model=Envelope[list[SubmissionRead]],
)
def list_submissions_for_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    _ensure_assignment_exists(db, assignment_id)

    subs = (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at.asc(), Submission.id.asc())
        .all()
    )
    return success_response([_read_with_family(s) for s in subs])


@router.get(
    "/student/{student_id:int}/submissions",
    response_model=Envelope[list[SubmissionRead]],
)
def list_submissions_for_student(
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    subs = (
        db.query(Submission)
        .filter(Submission.student_id == student_id)
        .order_by(Submission.submitted_at.asc(), Submission.id.asc())
        .all()
    )
    return success_response([_read_with_family(s) for s in subs])


@router.put(
    "/submissions/{submission_id:int}/grade",
    response_model=Envelope[SubmissionRead],
)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    try:
        letter = resolve_incoming_grade(payload.grade)
    except GradeValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    sub = db.query(Submission).filter(Submission.id == submission_id).first()
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")

    try:
        ensure_can_grade(submission_state(sub.status))
    except LifecycleError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    now = datetime.now(timezone.utc)

    # regrading overwrites; submitted_at is never touched here
    sub.grade = letter.value
    sub.feedback = payload.feedback or ""
    sub.status = payload.status
    sub.graded_at = now
    sub.updated_at = now

    _commit(db)
    db.refresh(sub)

    logger.info("Submission %s graded %s by user %s", sub.id, letter.value, teacher.id)
    return success_response(_read_with_family(sub), message="Assignment graded successfully")
