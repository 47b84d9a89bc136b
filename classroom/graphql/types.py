from datetime import datetime
from typing import Optional

import strawberry

from classroom.core.timeutil import as_utc
from classroom.models.enums import AssignmentStatus as AssignmentStatusEnum
from classroom.models.enums import Role as RoleEnum

Role = strawberry.enum(RoleEnum, name="Role")
AssignmentStatus = strawberry.enum(AssignmentStatusEnum, name="AssignmentStatus")


@strawberry.type
class User:
    id: strawberry.ID
    username: str
    role: Role

    @classmethod
    def from_model(cls, user) -> "User":
        return cls(id=strawberry.ID(str(user.id)), username=user.username, role=user.role)


@strawberry.type
class RosterEntry:
    id: strawberry.ID
    username: str
    status: AssignmentStatus

    @classmethod
    def from_model(cls, link) -> "RosterEntry":
        return cls(
            id=strawberry.ID(str(link.student_id)),
            username=link.student.username,
            status=link.status,
        )


@strawberry.type
class Submission:
    id: strawberry.ID
    remark: str
    grade: Optional[str]
    feedback: Optional[str]
    graded_at: Optional[datetime]
    student: User

    @classmethod
    def from_model(cls, submission) -> "Submission":
        return cls(
            id=strawberry.ID(str(submission.id)),
            remark=submission.remark,
            grade=submission.grade,
            feedback=submission.feedback,
            graded_at=as_utc(submission.graded_at),
            student=User.from_model(submission.student),
        )


@strawberry.type
class Assignment:
    id: strawberry.ID
    description: str
    tutor_id: strawberry.ID
    published_at: Optional[datetime]
    deadline: Optional[datetime]
    students: list[RosterEntry]
    submissions: list[Submission]

    @classmethod
    def from_model(cls, assignment, submissions=()) -> "Assignment":
        return cls(
            id=strawberry.ID(str(assignment.id)),
            description=assignment.description,
            tutor_id=strawberry.ID(str(assignment.tutor_id)),
            published_at=as_utc(assignment.published_at),
            deadline=as_utc(assignment.deadline),
            students=[RosterEntry.from_model(link) for link in assignment.roster],
            submissions=[Submission.from_model(s) for s in submissions],
        )


@strawberry.type
class AuthPayload:
    token: str
    user: User
