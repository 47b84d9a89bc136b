from typing import Optional

from pydantic import BaseModel, Field

from classroom.core.timeutil import UTCDateTime
from classroom.schemas.user import StudentRef


class SubmissionCreate(BaseModel):
    assignment_id: int = Field(ge=1)
    remark: str = Field(min_length=10, max_length=2000)


class SubmissionGrade(BaseModel):
    assignment_id: int = Field(ge=1)
    student_id: int = Field(ge=1)
    grade: str = Field(min_length=1, max_length=50)
    feedback: Optional[str] = None


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    remark: str
    submitted_at: UTCDateTime
    grade: Optional[str] = None
    feedback: Optional[str] = None
    graded_at: Optional[UTCDateTime] = None

    class Config:
        from_attributes = True


class SubmissionWithStudent(SubmissionRead):
    student: StudentRef
