from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from classroom.core.config import settings
from classroom.core.current_user import get_current_user
from classroom.core.permissions import require_student, require_tutor
from classroom.db.session import get_db
from classroom.models.assignment import Assignment
from classroom.models.user import User
from classroom.schemas.assignment import (
    AssignmentCreate,
    AssignmentDeleted,
    AssignmentDetailRead,
    AssignmentFeed,
    AssignmentRead,
    AssignmentUpdate,
    PublishedFilter,
    StatusFilter,
)
from classroom.schemas.submission import (
    SubmissionCreate,
    SubmissionGrade,
    SubmissionRead,
    SubmissionWithStudent,
)
from classroom.services import assignment_service

router = APIRouter()


def _roster_rows(links) -> list[dict]:
    return [
        {
            "id": link.student_id,
            "username": link.student.username,
            "status": link.status,
        }
        for link in links
    ]


def _assignment_row(assignment: Assignment, links) -> dict:
    return {
        "id": assignment.id,
        "description": assignment.description,
        "tutor_id": assignment.tutor_id,
        "published_at": assignment.published_at,
        "deadline": assignment.deadline,
        "created_at": assignment.created_at,
        "students": _roster_rows(links),
    }


@router.post(
    "",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Some student IDs are invalid"},
    },
)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    tutor: User = Depends(require_tutor),
):
    assignment = assignment_service.create_assignment(
        db,
        tutor.id,
        payload.description,
        student_ids=payload.student_ids,
        published_at=payload.published_at,
        deadline=payload.deadline,
    )
    return _assignment_row(assignment, assignment.roster)


@router.get("/feed", response_model=AssignmentFeed)
def assignment_feed(
    published_at: Optional[PublishedFilter] = Query(default=None),
    status_filter: Optional[StatusFilter] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    feed = assignment_service.get_assignment_feed(
        db,
        me.id,
        me.role,
        published_at=published_at,
        status=status_filter,
        page=page,
        limit=limit,
    )

    return {
        "assignments": [
            _assignment_row(a, assignment_service.visible_roster(a, me.id, me.role))
            for a in feed.assignments
        ],
        "pagination": {
            "current_page": feed.current_page,
            "total_pages": feed.total_pages,
            "total_items": feed.total_items,
            "items_per_page": feed.items_per_page,
        },
    }


@router.post(
    "/submit",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Not assigned to this assignment"},
        409: {"description": "Submission already exists"},
    },
)
def submit_assignment(
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    student: User = Depends(require_student),
):
    return assignment_service.add_submission(
        db, student.id, payload.assignment_id, payload.remark
    )


@router.post(
    "/grade",
    response_model=SubmissionRead,
    responses={
        404: {"description": "Assignment or submission not found"},
    },
)
def grade_submission(
    payload: SubmissionGrade,
    db: Session = Depends(get_db),
    tutor: User = Depends(require_tutor),
):
    return assignment_service.grade_submission(
        db,
        payload.assignment_id,
        payload.student_id,
        tutor.id,
        payload.grade,
        payload.feedback,
    )


@router.get("/{assignment_id}", response_model=AssignmentDetailRead)
def assignment_details(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    details = assignment_service.get_assignment_details(db, me.id, me.role, assignment_id)

    row = _assignment_row(details.assignment, details.assignment.roster)
    row["submissions"] = [
        SubmissionWithStudent.model_validate(s) for s in details.submissions
    ]
    return row


@router.put("/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    tutor: User = Depends(require_tutor),
):
    assignment = assignment_service.update_assignment(
        db,
        assignment_id,
        tutor.id,
        description=payload.description,
        student_ids=payload.student_ids,
        published_at=payload.published_at,
        deadline=payload.deadline,
    )
    return _assignment_row(assignment, assignment.roster)


@router.delete("/{assignment_id}", response_model=AssignmentDeleted)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    tutor: User = Depends(require_tutor),
):
    assignment_service.delete_assignment(db, assignment_id, tutor.id)
    return {"message": "Assignment deleted successfully"}
