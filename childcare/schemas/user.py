from typing import Optional

from childcare.schemas.base import CamelModel


class UserCreate(CamelModel):
    email: str
    password: str
    full_name: Optional[str] = None
    child_name: Optional[str] = None


class UserRead(CamelModel):
    id: int
    email: str
    full_name: Optional[str] = None
    child_name: Optional[str] = None
    role: str
