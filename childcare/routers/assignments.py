import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from childcare.core.current_user import get_current_user
from childcare.core.deps import get_db
from childcare.core.permissions import require_teacher
from childcare.models.assignment import Assignment
from childcare.models.submission import Submission
from childcare.models.user import User
from childcare.schemas.assignment import AssignmentCreate, AssignmentRead, AssignmentUpdate
from childcare.schemas.envelope import Envelope, success_response

logger = logging.getLogger(__name__)

router = APIRouter()

# everything else on an assignment is metadata and stays editable
LOCKED_ONCE_SUBMITTED = {"skill_id"}
NOT_NULL_FIELDS = {"skill_id", "title", "attachments"}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return a


def _skill_assignments(db: Session, skill_id: str):
    return db.query(Assignment).filter(Assignment.skill_id == skill_id).order_by(Assignment.id.asc())


def _read_all(assignments) -> list[AssignmentRead]:
    return [AssignmentRead.model_validate(a) for a in assignments]


@router.get("/skill/{skill_id}", response_model=Envelope[list[AssignmentRead]])
def list_assignments(
    skill_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response(_read_all(_skill_assignments(db, skill_id).all()))


@router.get("/skill/{skill_id}/search", response_model=Envelope[list[AssignmentRead]])
def search_assignments(
    skill_id: str,
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = _skill_assignments(db, skill_id)
    if search_term:
        pattern = f"%{search_term}%"
        q = q.filter(
            or_(
                Assignment.title.ilike(pattern),
                Assignment.description.ilike(pattern),
                Assignment.instructions.ilike(pattern),
            )
        )
    return success_response(_read_all(q.all()))


@router.get("/skill/{skill_id}/type/{assignment_type}", response_model=Envelope[list[AssignmentRead]])
def list_assignments_by_type(
    skill_id: str,
    assignment_type: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = _skill_assignments(db, skill_id).filter(Assignment.type == assignment_type)
    return success_response(_read_all(q.all()))


@router.get("/skill/{skill_id}/due-soon", response_model=Envelope[list[AssignmentRead]])
def list_assignments_due_soon(
    skill_id: str,
    days: int = Query(7, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Assignments due within `days` from now. Overdue ones are included; undated ones are not."""
    cutoff = datetime.now(timezone.utc) + timedelta(days=days)
    due = [
        a
        for a in _skill_assignments(db, skill_id).filter(Assignment.due_date.is_not(None)).all()
        if _as_utc(a.due_date) <= cutoff
    ]
    return success_response(_read_all(due))


@router.get("/{assignment_id:int}", response_model=Envelope[AssignmentRead])
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success_response(AssignmentRead.model_validate(_ensure_assignment_exists(db, assignment_id)))


@router.post(
    "",
    response_model=Envelope[AssignmentRead],
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    a = Assignment(
        skill_id=payload.skill_id,
        title=payload.title,
        description=payload.description,
        instructions=payload.instructions,
        type=payload.type,
        due_date=payload.due_date,
        attachments=[att.model_dump() for att in payload.attachments],
        created_by=teacher.id,
    )
    db.add(a)
    db.commit()
    db.refresh(a)

    logger.info("Assignment %s created in skill %s by user %s", a.id, a.skill_id, teacher.id)
    return success_response(AssignmentRead.model_validate(a), message="Assignment created successfully")


@router.put("/{assignment_id:int}", response_model=Envelope[AssignmentRead])
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    a = _ensure_assignment_exists(db, assignment_id)
    updates = payload.model_dump(exclude_unset=True)

    has_submissions = db.query(Submission.id).filter(Submission.assignment_id == a.id).first() is not None
    if has_submissions:
        if any(
            field in updates and updates[field] != getattr(a, field)
            for field in LOCKED_ONCE_SUBMITTED
        ):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Assignment already has submissions; only its details can be edited",
            )

    for field, value in updates.items():
        if value is None and field in NOT_NULL_FIELDS:
            continue
        setattr(a, field, value)
    a.updated_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(a)
    return success_response(AssignmentRead.model_validate(a))


@router.delete("/{assignment_id:int}", response_model=Envelope[None])
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    a = _ensure_assignment_exists(db, assignment_id)
    db.delete(a)
    db.commit()

    logger.info("Assignment %s deleted by user %s", assignment_id, teacher.id)
    return success_response(message="Assignment deleted successfully")
