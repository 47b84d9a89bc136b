from datetime import datetime

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom.db.base_class import Base
from classroom.models.enums import Role


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    email: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    owned_assignments = relationship(
        "Assignment", back_populates="tutor", cascade="all, delete"
    )

    assignment_links = relationship(
        "AssignmentStudent", back_populates="student", cascade="all, delete"
    )

    submissions = relationship(
        "Submission", back_populates="student", cascade="all, delete"
    )
