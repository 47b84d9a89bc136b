"""
GraphQL schema for the classroom API.

Resolvers go through the same services as the REST routers; request input is
checked with the REST pydantic schemas so both surfaces accept and reject the
same payloads.
"""
from datetime import datetime
from typing import Optional

import pydantic
import strawberry
from fastapi import Depends
from sqlalchemy.orm import Session
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from classroom.core.current_user import get_optional_user
from classroom.core.errors import AuthorizationError, ValidationError
from classroom.db.session import get_db
from classroom.graphql.types import Assignment, AuthPayload, Role, Submission, User
from classroom.models.enums import Role as RoleEnum
from classroom.models.user import User as UserModel
from classroom.schemas.assignment import AssignmentCreate
from classroom.schemas.submission import SubmissionCreate
from classroom.schemas.user import LoginRequest
from classroom.services import assignment_service, auth_service


def get_context(
    db: Session = Depends(get_db),
    user: UserModel | None = Depends(get_optional_user),
) -> dict:
    return {"db": db, "user": user}


def _require_user(info: Info) -> UserModel:
    user = info.context["user"]
    if user is None:
        raise AuthorizationError("Authentication required")
    return user


def _to_int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def _check(schema, **fields):
    try:
        return schema(**fields)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        message = f"{location}: {first['msg']}" if location else first["msg"]
        raise ValidationError(message)


@strawberry.type
class Query:
    @strawberry.field
    def assignment(self, info: Info, id: strawberry.ID) -> Optional[Assignment]:
        user = _require_user(info)
        details = assignment_service.get_assignment_details(
            info.context["db"], user.id, user.role, _to_int(id, "id")
        )
        return Assignment.from_model(details.assignment, details.submissions)


@strawberry.type
class Mutation:
    @strawberry.mutation
    def login(self, info: Info, username: str, role: Role) -> AuthPayload:
        payload = _check(LoginRequest, username=username, role=role)
        user, token = auth_service.login(info.context["db"], payload.username, payload.role)
        return AuthPayload(token=token, user=User.from_model(user))

    @strawberry.mutation
    def create_assignment(
        self,
        info: Info,
        description: str,
        student_ids: Optional[list[strawberry.ID]] = None,
        published_at: Optional[datetime] = None,
        deadline: Optional[datetime] = None,
    ) -> Assignment:
        user = _require_user(info)
        if user.role != RoleEnum.TUTOR:
            raise AuthorizationError("Only tutors can create assignments")

        ids = None
        if student_ids is not None:
            ids = [_to_int(sid, "studentIds") for sid in student_ids]
        payload = _check(
            AssignmentCreate,
            description=description,
            student_ids=ids,
            published_at=published_at,
            deadline=deadline,
        )

        assignment = assignment_service.create_assignment(
            info.context["db"],
            user.id,
            payload.description,
            student_ids=payload.student_ids,
            published_at=payload.published_at,
            deadline=payload.deadline,
        )
        return Assignment.from_model(assignment)

    @strawberry.mutation
    def submit_assignment(self, info: Info, assignment_id: strawberry.ID, remark: str) -> Submission:
        user = _require_user(info)
        if user.role != RoleEnum.STUDENT:
            raise AuthorizationError("Only students can submit")

        payload = _check(
            SubmissionCreate,
            assignment_id=_to_int(assignment_id, "assignmentId"),
            remark=remark,
        )
        submission = assignment_service.add_submission(
            info.context["db"], user.id, payload.assignment_id, payload.remark
        )
        return Submission.from_model(submission)


schema = strawberry.Schema(query=Query, mutation=Mutation)

graphql_router = GraphQLRouter(schema, context_getter=get_context)
