from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import false

from classroom.core.errors import (
    AuthorizationError,
    DuplicateSubmissionError,
    NotAssignedError,
    NotFoundError,
    NotFoundOrUnauthorizedError,
    ValidationError,
)
from classroom.models.assignment import Assignment
from classroom.models.assignment_student import AssignmentStudent
from classroom.models.enums import AssignmentStatus, Role
from classroom.models.submission import Submission
from classroom.services import assignment_service as svc


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _status(db, assignment_id: int, student_id: int):
    link = (
        db.query(AssignmentStudent)
        .filter(
            AssignmentStudent.assignment_id == assignment_id,
            AssignmentStudent.student_id == student_id,
        )
        .first()
    )
    return link.status if link else None


# --- create ---------------------------------------------------------------

def test_create_defaults_owner_and_published_at(db, users):
    alice = users["alice"]
    before = datetime.now(timezone.utc) - timedelta(seconds=1)

    a = svc.create_assignment(db, alice.id, "Read chapters 1-3 and summarize")

    assert a.tutor_id == alice.id
    assert a.deadline is None
    assert a.roster == []
    published = _utc(a.published_at)
    assert before <= published <= datetime.now(timezone.utc) + timedelta(seconds=1)


def test_create_attaches_roster_at_default_status(db, users):
    a = svc.create_assignment(
        db,
        users["alice"].id,
        "Essay on the French revolution",
        student_ids=[users["bob"].id, users["dave"].id],
    )

    assert sorted(link.student_id for link in a.roster) == sorted(
        [users["bob"].id, users["dave"].id]
    )
    assert all(link.status == AssignmentStatus.SCHEDULED for link in a.roster)


def test_create_collapses_duplicate_student_ids(db, users):
    bob = users["bob"]
    a = svc.create_assignment(
        db, users["alice"].id, "Duplicate ids are fine", student_ids=[bob.id, bob.id]
    )
    assert [link.student_id for link in a.roster] == [bob.id]


@pytest.mark.parametrize("bad_id", [999999, "carol"])
def test_create_with_invalid_student_writes_nothing(db, users, bad_id):
    # an unknown id, or a user who is not a student
    invalid = users[bad_id].id if isinstance(bad_id, str) else bad_id

    with pytest.raises(ValidationError, match="Some student IDs are invalid"):
        svc.create_assignment(
            db,
            users["alice"].id,
            "Should never be stored",
            student_ids=[users["bob"].id, invalid],
        )

    assert db.query(AssignmentStudent).count() == 0
    assert db.query(Assignment).count() == 0


def test_create_requires_description(db, users):
    with pytest.raises(ValidationError):
        svc.create_assignment(db, users["alice"].id, "   ")


# --- update ---------------------------------------------------------------

def test_update_by_non_owner_matches_missing_assignment(db, users):
    a = svc.create_assignment(db, users["alice"].id, "Owned by alice")

    with pytest.raises(NotFoundOrUnauthorizedError) as not_owner:
        svc.update_assignment(db, a.id, users["carol"].id, description="hijacked text")
    with pytest.raises(NotFoundOrUnauthorizedError) as missing:
        svc.update_assignment(db, 999999, users["carol"].id, description="hijacked text")

    assert str(not_owner.value) == str(missing.value)
    db.refresh(a)
    assert a.description == "Owned by alice"


def test_update_keeps_fields_that_are_not_supplied(db, users):
    deadline = datetime.now(timezone.utc) + timedelta(days=3)
    a = svc.create_assignment(
        db, users["alice"].id, "Original description", deadline=deadline
    )
    published = a.published_at

    updated = svc.update_assignment(db, a.id, users["alice"].id, description="")

    assert updated.description == "Original description"
    assert updated.published_at == published
    assert _utc(updated.deadline).replace(microsecond=0) == deadline.replace(microsecond=0)


def test_update_roster_keeps_status_of_retained_students(db, users):
    alice, bob, dave = users["alice"], users["bob"], users["dave"]
    a = svc.create_assignment(db, alice.id, "Roster test", student_ids=[bob.id, dave.id])
    svc.add_submission(db, bob.id, a.id, "My finished homework")

    svc.update_assignment(db, a.id, alice.id, student_ids=[bob.id])
    assert _status(db, a.id, bob.id) == AssignmentStatus.SUBMITTED
    assert _status(db, a.id, dave.id) is None

    svc.update_assignment(db, a.id, alice.id, student_ids=[bob.id, dave.id])
    assert _status(db, a.id, bob.id) == AssignmentStatus.SUBMITTED
    assert _status(db, a.id, dave.id) == AssignmentStatus.SCHEDULED


def test_update_with_empty_roster_clears_it(db, users):
    a = svc.create_assignment(
        db, users["alice"].id, "Clear me", student_ids=[users["bob"].id]
    )

    updated = svc.update_assignment(db, a.id, users["alice"].id, student_ids=[])

    assert updated.roster == []


def test_update_with_invalid_roster_changes_nothing(db, users):
    alice, bob = users["alice"], users["bob"]
    a = svc.create_assignment(db, alice.id, "Stable description", student_ids=[bob.id])

    with pytest.raises(ValidationError):
        svc.update_assignment(
            db, a.id, alice.id, description="Changed description", student_ids=[999999]
        )

    db.expire_all()
    a = db.get(Assignment, a.id)
    assert a.description == "Stable description"
    assert [link.student_id for link in a.roster] == [bob.id]


# --- delete ---------------------------------------------------------------

def test_delete_by_non_owner_fails(db, users):
    a = svc.create_assignment(db, users["alice"].id, "Not yours to delete")

    with pytest.raises(NotFoundOrUnauthorizedError):
        svc.delete_assignment(db, a.id, users["carol"].id)
    assert db.get(Assignment, a.id) is not None


def test_delete_cascades_to_roster_and_submissions(db, users):
    alice, bob = users["alice"], users["bob"]
    a = svc.create_assignment(db, alice.id, "Short lived", student_ids=[bob.id])
    svc.add_submission(db, bob.id, a.id, "Submitted before deletion")
    assignment_id = a.id

    assert svc.delete_assignment(db, assignment_id, alice.id) is True

    assert db.get(Assignment, assignment_id) is None
    assert db.query(AssignmentStudent).filter_by(assignment_id=assignment_id).count() == 0
    assert db.query(Submission).filter_by(assignment_id=assignment_id).count() == 0


# --- submit / grade -------------------------------------------------------

def test_second_submission_is_rejected(db, users):
    bob = users["bob"]
    a = svc.create_assignment(db, users["alice"].id, "Submit once", student_ids=[bob.id])

    first = svc.add_submission(db, bob.id, a.id, "First and only attempt")
    assert first.remark == "First and only attempt"
    assert _status(db, a.id, bob.id) == AssignmentStatus.SUBMITTED

    with pytest.raises(DuplicateSubmissionError):
        svc.add_submission(db, bob.id, a.id, "Trying again later on")
    assert db.query(Submission).filter_by(assignment_id=a.id).count() == 1


def test_concurrent_duplicate_submission_is_rejected(db, users, other_session, monkeypatch):
    bob = users["bob"]
    a = svc.create_assignment(db, users["alice"].id, "Race to submit", student_ids=[bob.id])

    real_query = db.query
    raced = []

    def query(*entities):
        q = real_query(*entities)
        if entities == (Submission,) and not raced:
            # the other request commits between our existence check and our insert
            raced.append(True)
            other_session.add(Submission(assignment_id=a.id, student_id=bob.id, remark="Got there first"))
            other_session.commit()
            return q.filter(false())
        return q

    monkeypatch.setattr(db, "query", query)

    with pytest.raises(DuplicateSubmissionError):
        svc.add_submission(db, bob.id, a.id, "Lost the race by a hair")

    assert raced
    rows = db.query(Submission).filter_by(assignment_id=a.id, student_id=bob.id).all()
    assert [s.remark for s in rows] == ["Got there first"]
    assert _status(db, a.id, bob.id) == AssignmentStatus.SCHEDULED


def test_submission_requires_roster_membership(db, users):
    a = svc.create_assignment(
        db, users["alice"].id, "Bob only", student_ids=[users["bob"].id]
    )

    with pytest.raises(NotAssignedError):
        svc.add_submission(db, users["dave"].id, a.id, "I was never assigned")
    with pytest.raises(NotAssignedError):
        svc.add_submission(db, users["bob"].id, 999999, "No such assignment")


def test_grade_requires_owner_and_submission(db, users):
    alice, bob = users["alice"], users["bob"]
    a = svc.create_assignment(db, alice.id, "Grade me", student_ids=[bob.id])

    with pytest.raises(NotFoundError):
        svc.grade_submission(db, a.id, bob.id, alice.id, "B")

    svc.add_submission(db, bob.id, a.id, "Please grade this one")
    with pytest.raises(NotFoundOrUnauthorizedError):
        svc.grade_submission(db, a.id, bob.id, users["carol"].id, "F")


def test_regrading_overwrites(db, users):
    alice, bob = users["alice"], users["bob"]
    a = svc.create_assignment(db, alice.id, "Grade twice", student_ids=[bob.id])
    svc.add_submission(db, bob.id, a.id, "Work to be graded")

    svc.grade_submission(db, a.id, bob.id, alice.id, "C", "Needs work")
    graded = svc.grade_submission(db, a.id, bob.id, alice.id, "B")

    assert graded.grade == "B"
    assert graded.feedback is None
    assert graded.graded_at is not None


# --- details --------------------------------------------------------------

def test_details_for_unassigned_student(db, users):
    a = svc.create_assignment(
        db, users["alice"].id, "Bob only", student_ids=[users["bob"].id]
    )

    with pytest.raises(NotAssignedError):
        svc.get_assignment_details(db, users["dave"].id, Role.STUDENT, a.id)


def test_details_student_sees_only_own_submission(db, users):
    alice, bob, dave = users["alice"], users["bob"], users["dave"]
    a = svc.create_assignment(db, alice.id, "Two students", student_ids=[bob.id, dave.id])
    svc.add_submission(db, bob.id, a.id, "Bob's submission here")
    svc.add_submission(db, dave.id, a.id, "Dave's submission here")

    details = svc.get_assignment_details(db, bob.id, Role.STUDENT, a.id)
    assert [s.student_id for s in details.submissions] == [bob.id]
    assert len(details.assignment.roster) == 2

    details = svc.get_assignment_details(db, alice.id, Role.TUTOR, a.id)
    assert sorted(s.student_id for s in details.submissions) == sorted([bob.id, dave.id])
    assert {s.student.username for s in details.submissions} == {"bob", "dave"}


def test_details_without_submissions_is_empty_list(db, users):
    a = svc.create_assignment(
        db, users["alice"].id, "Nothing yet", student_ids=[users["bob"].id]
    )

    details = svc.get_assignment_details(db, users["bob"].id, "STUDENT", a.id)

    assert details.submissions == []


def test_details_for_other_tutor_and_missing_id(db, users):
    a = svc.create_assignment(db, users["alice"].id, "Alice's assignment")

    with pytest.raises(AuthorizationError):
        svc.get_assignment_details(db, users["carol"].id, Role.TUTOR, a.id)
    with pytest.raises(NotFoundError):
        svc.get_assignment_details(db, users["alice"].id, Role.TUTOR, 999999)


# --- feed -----------------------------------------------------------------

def test_feed_page_past_the_end(db, users):
    for i in range(5):
        svc.create_assignment(db, users["alice"].id, f"Assignment number {i}")

    page = svc.get_assignment_feed(db, users["alice"].id, Role.TUTOR, page=3, limit=10)

    assert page.assignments == []
    assert page.total_pages == 1
    assert page.total_items == 5
    assert page.current_page == 3
    assert page.items_per_page == 10


def test_feed_is_newest_first_and_paginated(db, users):
    ids = [
        svc.create_assignment(db, users["alice"].id, f"Ordered assignment {i}").id
        for i in range(3)
    ]

    first = svc.get_assignment_feed(db, users["alice"].id, Role.TUTOR, page=1, limit=2)
    second = svc.get_assignment_feed(db, users["alice"].id, Role.TUTOR, page=2, limit=2)

    assert [a.id for a in first.assignments] == [ids[2], ids[1]]
    assert [a.id for a in second.assignments] == [ids[0]]
    assert first.total_pages == 2


def test_feed_is_scoped_by_role(db, users):
    alice, carol, bob = users["alice"], users["carol"], users["bob"]
    mine = svc.create_assignment(db, alice.id, "Alice's for bob", student_ids=[bob.id])
    svc.create_assignment(db, alice.id, "Alice's for nobody")
    theirs = svc.create_assignment(db, carol.id, "Carol's for bob", student_ids=[bob.id])

    tutor_feed = svc.get_assignment_feed(db, carol.id, Role.TUTOR)
    assert [a.id for a in tutor_feed.assignments] == [theirs.id]

    student_feed = svc.get_assignment_feed(db, bob.id, Role.STUDENT)
    assert {a.id for a in student_feed.assignments} == {mine.id, theirs.id}
    assert student_feed.total_items == 2


def test_feed_published_at_filter(db, users):
    alice = users["alice"]
    now = datetime.now(timezone.utc)
    future = svc.create_assignment(
        db, alice.id, "Published tomorrow", published_at=now + timedelta(days=1)
    )
    past = svc.create_assignment(
        db, alice.id, "Published yesterday", published_at=now - timedelta(days=1)
    )

    scheduled = svc.get_assignment_feed(db, alice.id, Role.TUTOR, published_at="SCHEDULED")
    ongoing = svc.get_assignment_feed(db, alice.id, Role.TUTOR, published_at="ONGOING")

    assert [a.id for a in scheduled.assignments] == [future.id]
    assert [a.id for a in ongoing.assignments] == [past.id]


def test_feed_status_filters_for_students(db, users):
    alice, bob = users["alice"], users["bob"]
    now = datetime.now(timezone.utc)
    overdue = svc.create_assignment(
        db, alice.id, "Deadline passed", student_ids=[bob.id], deadline=now - timedelta(hours=1)
    )
    pending = svc.create_assignment(
        db, alice.id, "Deadline ahead", student_ids=[bob.id], deadline=now + timedelta(days=2)
    )
    done = svc.create_assignment(db, alice.id, "Already handed in", student_ids=[bob.id])
    svc.add_submission(db, bob.id, done.id, "Handed in on time")

    def ids(status):
        feed = svc.get_assignment_feed(db, bob.id, Role.STUDENT, status=status)
        return {a.id for a in feed.assignments}

    assert ids("PENDING") == {overdue.id, pending.id}
    assert ids("OVERDUE") == {overdue.id}
    assert ids("SUBMITTED") == {done.id}
    assert ids("ALL") == {overdue.id, pending.id, done.id}
    assert ids(None) == {overdue.id, pending.id, done.id}


def test_feed_status_filter_ignored_for_tutors(db, users):
    alice = users["alice"]
    svc.create_assignment(db, alice.id, "Nobody submitted this")

    feed = svc.get_assignment_feed(db, alice.id, Role.TUTOR, status="SUBMITTED")

    assert feed.total_items == 1


def test_feed_student_sees_only_own_roster_entry(db, users):
    bob, dave = users["bob"], users["dave"]
    a = svc.create_assignment(
        db, users["alice"].id, "Shared assignment", student_ids=[bob.id, dave.id]
    )

    feed = svc.get_assignment_feed(db, bob.id, Role.STUDENT)
    entries = svc.visible_roster(feed.assignments[0], bob.id, Role.STUDENT)

    assert feed.assignments[0].id == a.id
    assert [link.student_id for link in entries] == [bob.id]
    assert len(svc.visible_roster(feed.assignments[0], users["alice"].id, Role.TUTOR)) == 2


def test_feed_rejects_bad_paging(db, users):
    with pytest.raises(ValidationError):
        svc.get_assignment_feed(db, users["alice"].id, Role.TUTOR, page=0)
    with pytest.raises(ValidationError):
        svc.get_assignment_feed(db, users["alice"].id, Role.TUTOR, limit=0)


# --- end to end -----------------------------------------------------------

def test_tutor_student_grading_scenario(db, users):
    alice, bob = users["alice"], users["bob"]

    a = svc.create_assignment(
        db, alice.id, "Read chapters 1-3 and summarize", student_ids=[bob.id]
    )
    svc.add_submission(db, bob.id, a.id, "Done, see attached notes")
    graded = svc.grade_submission(db, a.id, bob.id, alice.id, "A", "Great work")

    assert graded.grade == "A"
    assert graded.feedback == "Great work"
    assert graded.graded_at is not None
    assert graded.remark == "Done, see attached notes"
    assert _status(db, a.id, bob.id) == AssignmentStatus.SUBMITTED
