from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import Field, computed_field, field_serializer, field_validator

from childcare.grading.grades import (
    Grade,
    LetterGrade,
    format_letter_grade,
    get_letter_grade_chip_color,
    grade_letter,
    grade_to_storage,
    parse_grade,
)
from childcare.schemas.assignment import Attachment
from childcare.schemas.base import CamelModel


class SubmissionCreate(CamelModel):
    # optional here so a missing id is a 400 with a readable message, not a 422
    assignment_id: Optional[int] = None
    submission_text: Optional[str] = ""
    attachments: Optional[list[Attachment]] = None
    submitted_at: Optional[datetime] = None


class SubmissionGradeUpdate(CamelModel):
    grade: Union[str, float, None] = None
    feedback: Optional[str] = ""
    status: Literal["graded"] = "graded"


class SubmissionRead(CamelModel):
    id: int
    assignment_id: int
    student_id: int
    submission_text: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    submitted_at: datetime
    status: str

    # parsed once here; raw legacy values are kept for round-tripping
    grade: Optional[Grade] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # teacher listings only
    child_name: Optional[str] = None
    parent_email: Optional[str] = None

    @field_validator("grade", mode="before")
    @classmethod
    def _ingest_grade(cls, value):
        return parse_grade(value)

    @field_validator("submission_text", mode="before")
    @classmethod
    def _text_or_empty(cls, value):
        return value or ""

    @field_serializer("grade")
    def _dump_grade(self, grade: Optional[Grade]):
        return grade_to_storage(grade)

    @computed_field(alias="letterGrade")
    @property
    def letter_grade(self) -> Optional[LetterGrade]:
        return grade_letter(self.grade)

    @computed_field(alias="gradeDisplay")
    @property
    def grade_display(self) -> str:
        return format_letter_grade(grade_to_storage(self.grade))

    @computed_field(alias="gradeColor")
    @property
    def grade_color(self) -> str:
        return get_letter_grade_chip_color(grade_to_storage(self.grade))
