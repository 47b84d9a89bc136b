"""Assignment lifecycle: creation, roster, submission, grading and feeds.

Every function takes the request's SQLAlchemy session first and raises a
:class:`classroom.core.errors.ServiceError` subclass on any precondition
failure. Nothing here knows about HTTP or GraphQL.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from classroom.core.errors import (
    AuthorizationError,
    DuplicateSubmissionError,
    NotAssignedError,
    NotFoundError,
    NotFoundOrUnauthorizedError,
    ValidationError,
)
from classroom.core.timeutil import as_utc, utcnow
from classroom.models.assignment import Assignment
from classroom.models.assignment_student import AssignmentStudent
from classroom.models.enums import AssignmentStatus, Role
from classroom.models.submission import Submission
from classroom.models.user import User
from classroom.schemas.assignment import PublishedFilter, StatusFilter

logger = logging.getLogger(__name__)

OPEN_STATUSES = (AssignmentStatus.SCHEDULED, AssignmentStatus.ONGOING)


@dataclass
class AssignmentDetails:
    assignment: Assignment
    submissions: list[Submission]


@dataclass
class FeedPage:
    assignments: list[Assignment]
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _resolve_students(db: Session, student_ids) -> list[User]:
    """All-or-nothing lookup of student users; raises on any unknown id."""
    wanted = set(student_ids)
    if not wanted:
        return []

    students = (
        db.query(User)
        .filter(User.id.in_(wanted), User.role == Role.STUDENT)
        .all()
    )
    if len(students) != len(wanted):
        raise ValidationError("Some student IDs are invalid")
    return students


def _get_owned_assignment(db: Session, assignment_id: int, tutor_id: int, action: str) -> Assignment:
    assignment = (
        db.query(Assignment)
        .filter(Assignment.id == assignment_id, Assignment.tutor_id == tutor_id)
        .first()
    )
    if not assignment:
        raise NotFoundOrUnauthorizedError(
            f"Assignment not found or you are not authorized to {action} it"
        )
    return assignment


def create_assignment(
    db: Session,
    tutor_id: int,
    description: str,
    student_ids=None,
    published_at: datetime | None = None,
    deadline: datetime | None = None,
) -> Assignment:
    if not description or not description.strip():
        raise ValidationError("Description is required")

    # resolve the roster first so an invalid id writes nothing
    students = _resolve_students(db, student_ids or [])

    assignment = Assignment(
        tutor_id=tutor_id,
        description=description,
        published_at=as_utc(published_at) or utcnow(),
        deadline=as_utc(deadline),
    )
    assignment.roster = [AssignmentStudent(student_id=s.id) for s in students]
    db.add(assignment)
    _commit(db)
    db.refresh(assignment)

    logger.info(
        "Tutor %s created assignment %s with %d student(s)",
        tutor_id,
        assignment.id,
        len(students),
    )
    return assignment


def _reconcile_roster(assignment: Assignment, students: list[User]) -> tuple[set, set]:
    wanted = {s.id for s in students}
    current = {link.student_id for link in assignment.roster}

    removed = current - wanted
    added = wanted - current

    for link in [x for x in assignment.roster if x.student_id in removed]:
        assignment.roster.remove(link)
    for student_id in sorted(added):
        assignment.roster.append(AssignmentStudent(student_id=student_id))

    return added, removed


def update_assignment(
    db: Session,
    assignment_id: int,
    tutor_id: int,
    description: str | None = None,
    student_ids=None,
    published_at: datetime | None = None,
    deadline: datetime | None = None,
) -> Assignment:
    """Apply the supplied fields; absent or empty ones keep their prior value.

    ``student_ids`` (when not None) is the complete new roster. Students kept
    across the update retain their status.
    """
    assignment = _get_owned_assignment(db, assignment_id, tutor_id, "update")

    students = _resolve_students(db, student_ids) if student_ids is not None else None

    if description:
        assignment.description = description
    if published_at:
        assignment.published_at = as_utc(published_at)
    if deadline:
        assignment.deadline = as_utc(deadline)

    added, removed = set(), set()
    if students is not None:
        added, removed = _reconcile_roster(assignment, students)

    _commit(db)
    db.refresh(assignment)

    logger.info(
        "Tutor %s updated assignment %s (roster +%d -%d)",
        tutor_id,
        assignment.id,
        len(added),
        len(removed),
    )
    return assignment


def delete_assignment(db: Session, assignment_id: int, tutor_id: int) -> bool:
    assignment = _get_owned_assignment(db, assignment_id, tutor_id, "delete")

    db.delete(assignment)
    _commit(db)

    logger.info("Tutor %s deleted assignment %s", tutor_id, assignment_id)
    return True


def add_submission(db: Session, student_id: int, assignment_id: int, remark: str) -> Submission:
    if not remark or not remark.strip():
        raise ValidationError("Remark is required")

    link = (
        db.query(AssignmentStudent)
        .filter(
            AssignmentStudent.assignment_id == assignment_id,
            AssignmentStudent.student_id == student_id,
        )
        .first()
    )
    if not link:
        raise NotAssignedError("Assignment not found or you are not assigned to it")

    existing = (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
        .first()
    )
    if existing:
        raise DuplicateSubmissionError("Submission already exists")

    submission = Submission(
        assignment_id=assignment_id,
        student_id=student_id,
        remark=remark,
    )
    db.add(submission)
    link.status = AssignmentStatus.SUBMITTED

    # submission row and status change land in the same transaction
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Concurrent duplicate submission for assignment %s by student %s",
            assignment_id,
            student_id,
        )
        raise DuplicateSubmissionError("Submission already exists")
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    logger.info("Student %s submitted assignment %s", student_id, assignment_id)
    return submission


def grade_submission(
    db: Session,
    assignment_id: int,
    student_id: int,
    tutor_id: int,
    grade: str,
    feedback: str | None = None,
) -> Submission:
    if not grade:
        raise ValidationError("Grade is required")

    _get_owned_assignment(db, assignment_id, tutor_id, "grade")

    submission = (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
        .first()
    )
    if not submission:
        raise NotFoundError("Submission not found")

    # re-grading overwrites
    submission.grade = grade
    submission.feedback = feedback or None
    submission.graded_at = utcnow()

    _commit(db)
    db.refresh(submission)

    logger.info(
        "Tutor %s graded student %s on assignment %s",
        tutor_id,
        student_id,
        assignment_id,
    )
    return submission


def get_assignment_details(db: Session, user_id: int, role, assignment_id: int) -> AssignmentDetails:
    """Load an assignment with roster and submissions, scoped to the caller.

    Students must be on the roster and only see their own submission; tutors
    must own the assignment and see every submission.
    """
    assignment = (
        db.query(Assignment)
        .options(
            selectinload(Assignment.roster).joinedload(AssignmentStudent.student),
            selectinload(Assignment.submissions).joinedload(Submission.student),
        )
        .filter(Assignment.id == assignment_id)
        .first()
    )
    if not assignment:
        raise NotFoundError("Assignment not found")

    submissions = list(assignment.submissions)

    if role == Role.STUDENT:
        if not any(link.student_id == user_id for link in assignment.roster):
            raise NotAssignedError("You are not assigned to this assignment")
        submissions = [s for s in submissions if s.student_id == user_id]
    elif role == Role.TUTOR:
        if assignment.tutor_id != user_id:
            raise AuthorizationError("You are not authorized to view this assignment")
    else:
        raise AuthorizationError("Unknown role")

    return AssignmentDetails(assignment=assignment, submissions=submissions)


def visible_roster(assignment: Assignment, user_id: int, role) -> list[AssignmentStudent]:
    if role == Role.STUDENT:
        return [link for link in assignment.roster if link.student_id == user_id]
    return list(assignment.roster)


def get_assignment_feed(
    db: Session,
    user_id: int,
    role,
    published_at=None,
    status=None,
    page: int = 1,
    limit: int = 10,
) -> FeedPage:
    if page < 1:
        raise ValidationError("Page must be a positive integer")
    if limit < 1:
        raise ValidationError("Limit must be a positive integer")

    now = utcnow()
    query = db.query(Assignment)

    if role == Role.TUTOR:
        query = query.filter(Assignment.tutor_id == user_id)
    elif role == Role.STUDENT:
        query = query.join(
            AssignmentStudent, AssignmentStudent.assignment_id == Assignment.id
        ).filter(AssignmentStudent.student_id == user_id)
    else:
        raise AuthorizationError("Unknown role")

    if published_at == PublishedFilter.SCHEDULED:
        query = query.filter(Assignment.published_at > now)
    elif published_at == PublishedFilter.ONGOING:
        query = query.filter(Assignment.published_at <= now)

    # status is derived from the caller's own roster row, so tutors skip it
    if role == Role.STUDENT and status and status != StatusFilter.ALL:
        if status == StatusFilter.PENDING:
            query = query.filter(AssignmentStudent.status.in_(OPEN_STATUSES))
        elif status == StatusFilter.OVERDUE:
            query = query.filter(
                AssignmentStudent.status.in_(OPEN_STATUSES),
                Assignment.deadline.is_not(None),
                Assignment.deadline < now,
            )
        elif status == StatusFilter.SUBMITTED:
            query = query.filter(AssignmentStudent.status == AssignmentStatus.SUBMITTED)

    total_items = query.count()

    assignments = (
        query.options(selectinload(Assignment.roster).joinedload(AssignmentStudent.student))
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return FeedPage(
        assignments=assignments,
        current_page=page,
        total_pages=math.ceil(total_items / limit),
        total_items=total_items,
        items_per_page=limit,
    )
