from datetime import datetime
from typing import Optional

from pydantic import Field

from childcare.schemas.base import CamelModel


class Attachment(CamelModel):
    id: Optional[str] = None
    name: str
    size: Optional[int] = None
    type: Optional[str] = None
    url: Optional[str] = None


class AssignmentCreate(CamelModel):
    skill_id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    type: Optional[str] = None
    due_date: Optional[datetime] = None
    attachments: list[Attachment] = Field(default_factory=list)


class AssignmentUpdate(CamelModel):
    skill_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    type: Optional[str] = None
    due_date: Optional[datetime] = None
    attachments: Optional[list[Attachment]] = None


class AssignmentRead(CamelModel):
    id: int
    skill_id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    type: Optional[str] = None
    due_date: Optional[datetime] = None
    attachments: list[Attachment] = Field(default_factory=list)
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
