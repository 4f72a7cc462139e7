from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from childcare.db.base_class import Base

ROLE_PARENT = "parent"
ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column(String(255))
    # parents submit on behalf of one child
    child_name: Mapped[str | None] = mapped_column(String(255))
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=ROLE_PARENT)

    submissions = relationship(
        "Submission", back_populates="student", cascade="all, delete-orphan"
    )
