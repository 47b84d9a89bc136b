from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    remark = Column(Text, nullable=False)

    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Grading fields (nullable until graded)
    grade = Column(String(50), nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions")
