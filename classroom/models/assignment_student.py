from sqlalchemy import Column, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base
from classroom.models.enums import AssignmentStatus


class AssignmentStudent(Base):
    """One row per student on an assignment's roster, carrying their progress."""

    __tablename__ = "assignment_students"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(
        Integer,
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(
        Enum(AssignmentStatus, name="assignment_status"),
        nullable=False,
        default=AssignmentStatus.SCHEDULED,
    )

    __table_args__ = (
        UniqueConstraint(
            "assignment_id", "student_id", name="uq_assignment_students_assignment_student"
        ),
    )

    assignment = relationship("Assignment", back_populates="roster")
    student = relationship("User", back_populates="assignment_links")
