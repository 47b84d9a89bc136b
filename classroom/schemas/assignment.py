import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, PositiveInt, model_validator

from classroom.core.timeutil import UTCDateTime, as_utc, utcnow
from classroom.models.enums import AssignmentStatus
from classroom.schemas.submission import SubmissionWithStudent


class PublishedFilter(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    ONGOING = "ONGOING"


class StatusFilter(str, enum.Enum):
    ALL = "ALL"
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    SUBMITTED = "SUBMITTED"


class AssignmentCreate(BaseModel):
    description: str = Field(min_length=10, max_length=1000)
    student_ids: Optional[list[PositiveInt]] = None
    published_at: Optional[datetime] = None
    deadline: Optional[datetime] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.published_at and as_utc(self.published_at) < utcnow():
            raise ValueError("Published date cannot be in the past")
        if self.published_at and self.deadline:
            if as_utc(self.deadline) <= as_utc(self.published_at):
                raise ValueError("Deadline must be after published date")
        return self


class AssignmentUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=10, max_length=1000)
    student_ids: Optional[list[PositiveInt]] = None
    published_at: Optional[datetime] = None
    deadline: Optional[datetime] = None


class RosterEntry(BaseModel):
    id: int
    username: str
    status: AssignmentStatus


class AssignmentRead(BaseModel):
    id: int
    description: str
    tutor_id: int
    published_at: UTCDateTime
    deadline: Optional[UTCDateTime]
    created_at: UTCDateTime
    students: list[RosterEntry] = []


class AssignmentDetailRead(AssignmentRead):
    submissions: list[SubmissionWithStudent] = []


class FeedPagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class AssignmentFeed(BaseModel):
    assignments: list[AssignmentRead]
    pagination: FeedPagination


class AssignmentDeleted(BaseModel):
    message: str
