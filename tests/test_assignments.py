import asyncio
from datetime import date, timedelta

import pytest

from examdesk.models.assignment import AssignmentStatus, ExamAssignment
from examdesk.models.user import UserRole
from examdesk.services.assignment import (
    assign_exam, complete_assignment, expire_overdue_assignments, get_assignment, list_assignments,
    start_assignment, update_assignment
)
from examdesk.utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError


@pytest.fixture
def setup(make_user, make_company, make_manager, make_question, make_exam):
    owner = make_user()
    company = make_company(owner)
    manager = make_manager(company)
    exam = make_exam([make_question("x", 10)])
    return owner, manager, exam


def _assign(db, exam, managers, actor=None, **kwargs):
    actor = actor or managers[0].company.owner
    return asyncio.run(assign_exam(db, actor, exam.id, [m.id for m in managers], **kwargs))


def _seed(db, exam, manager, status=AssignmentStatus.ASSIGNED, attempts=0, max_attempts=1):
    assignment = ExamAssignment(
        exam_id=exam.id,
        manager_id=manager.id,
        status=status,
        attempts=attempts,
        max_attempts=max_attempts,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def test_assign_creates_one_row_per_manager(db, setup, make_manager):
    owner, manager, exam = setup
    other = make_manager(manager.company)

    assignments = _assign(db, exam, [manager, other])

    assert len(assignments) == 2
    for assignment in assignments:
        assert assignment.status == AssignmentStatus.ASSIGNED
        assert assignment.attempts == 0
        assert assignment.max_attempts == 1


def test_assign_skips_existing_pairs(db, setup):
    owner, manager, exam = setup
    _assign(db, exam, [manager])

    assert _assign(db, exam, [manager]) == []
    assert len(asyncio.run(list_assignments(db, owner, exam_id=exam.id))) == 1


def test_assign_unknown_manager_is_not_found(db, setup):
    owner, manager, exam = setup
    with pytest.raises(NotFoundError) as exc_info:
        asyncio.run(assign_exam(db, owner, exam.id, [manager.id, "missing"]))
    assert "manager_ids" in exc_info.value.errors
    assert asyncio.run(list_assignments(db, owner)) == []


def test_start_consumes_an_attempt(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager], max_attempts=2)[0]

    started = asyncio.run(start_assignment(db, owner, assignment.id))

    assert started.status == AssignmentStatus.STARTED
    assert started.attempts == 1


def test_start_twice_conflicts(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager], max_attempts=3)[0]
    asyncio.run(start_assignment(db, owner, assignment.id))

    with pytest.raises(ConflictError) as exc_info:
        asyncio.run(start_assignment(db, owner, assignment.id))
    assert exc_info.value.data.attempts == 1


def test_start_without_attempts_left_is_forbidden(db, setup):
    owner, manager, exam = setup
    assignment = _seed(db, exam, manager, attempts=1, max_attempts=1)

    with pytest.raises(ForbiddenError):
        asyncio.run(start_assignment(db, owner, assignment.id))

    db.expire_all()
    assert asyncio.run(get_assignment(db, owner, assignment.id)).attempts == 1


def test_single_attempt_starts_once_then_conflicts(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager], max_attempts=1)[0]

    started = asyncio.run(start_assignment(db, owner, assignment.id))
    assert (started.status, started.attempts) == (AssignmentStatus.STARTED, 1)

    with pytest.raises(ConflictError) as exc_info:
        asyncio.run(start_assignment(db, owner, assignment.id))
    assert exc_info.value.data.attempts == 1


def test_manager_starts_own_assignment(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager])[0]
    started = asyncio.run(start_assignment(db, manager.user, assignment.id))
    assert started.status == AssignmentStatus.STARTED


def test_other_owner_cannot_start(db, setup, make_user):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager])[0]
    with pytest.raises(ForbiddenError):
        asyncio.run(start_assignment(db, make_user(role=UserRole.OWNER), assignment.id))


def test_complete_then_complete_again_conflicts(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager])[0]
    asyncio.run(start_assignment(db, owner, assignment.id))

    completed = asyncio.run(complete_assignment(db, owner, assignment.id))
    assert completed.status == AssignmentStatus.COMPLETED

    with pytest.raises(ConflictError):
        asyncio.run(complete_assignment(db, owner, assignment.id))


def test_max_attempts_cannot_drop_below_used_attempts(db, setup):
    owner, manager, exam = setup
    assignment = _seed(db, exam, manager, attempts=2, max_attempts=3)

    with pytest.raises(ValidationError):
        asyncio.run(update_assignment(db, owner, assignment.id, {"max_attempts": 1}))


def test_expire_marks_only_overdue_assigned_rows(db, setup, make_manager):
    owner, manager, exam = setup
    late_manager = make_manager(manager.company)
    busy_manager = make_manager(manager.company)
    due = date(2026, 5, 1)
    overdue = _assign(db, exam, [late_manager], due_date=due)[0]
    started = _assign(db, exam, [busy_manager], due_date=due)[0]
    current = _assign(db, exam, [manager], due_date=due + timedelta(days=30))[0]
    asyncio.run(start_assignment(db, owner, started.id))

    expired = asyncio.run(expire_overdue_assignments(db, today=due + timedelta(days=1)))

    assert expired == 1
    db.expire_all()
    statuses = {a.id: a.status for a in asyncio.run(list_assignments(db, owner))}
    assert statuses[overdue.id] == AssignmentStatus.EXPIRED
    assert statuses[started.id] == AssignmentStatus.STARTED
    assert statuses[current.id] == AssignmentStatus.ASSIGNED


def test_completed_assignment_cannot_be_reopened(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager], max_attempts=2)[0]
    asyncio.run(start_assignment(db, owner, assignment.id))
    asyncio.run(complete_assignment(db, owner, assignment.id))

    with pytest.raises(ConflictError):
        asyncio.run(update_assignment(db, owner, assignment.id, {"status": AssignmentStatus.ASSIGNED}))

    db.expire_all()
    stored = asyncio.run(get_assignment(db, owner, assignment.id))
    assert stored.status == AssignmentStatus.COMPLETED
    with pytest.raises(ConflictError):
        asyncio.run(start_assignment(db, owner, assignment.id))


def test_status_update_cannot_start_or_complete(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager])[0]
    for status in (AssignmentStatus.STARTED, AssignmentStatus.COMPLETED):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(update_assignment(db, owner, assignment.id, {"status": status}))
        assert "status" in exc_info.value.errors


def test_status_moves_between_assigned_and_expired(db, setup):
    owner, manager, exam = setup
    assignment = _assign(db, exam, [manager])[0]

    expired = asyncio.run(update_assignment(db, owner, assignment.id, {"status": AssignmentStatus.EXPIRED}))
    assert expired.status == AssignmentStatus.EXPIRED

    reopened = asyncio.run(update_assignment(db, owner, assignment.id, {"status": AssignmentStatus.ASSIGNED}))
    assert reopened.status == AssignmentStatus.ASSIGNED


def test_assign_needs_company_owner(db, setup, make_user):
    owner, manager, exam = setup
    with pytest.raises(ForbiddenError):
        _assign(db, exam, [manager], actor=make_user(role=UserRole.OWNER))
    with pytest.raises(ForbiddenError):
        _assign(db, exam, [manager], actor=manager.user)
    assert asyncio.run(list_assignments(db, owner)) == []


def test_list_only_shows_visible_managers(db, setup, make_user):
    owner, manager, exam = setup
    _assign(db, exam, [manager])
    stranger = make_user(role=UserRole.OWNER)
    admin = make_user(role=UserRole.ADMIN)

    assert asyncio.run(list_assignments(db, stranger)) == []
    assert len(asyncio.run(list_assignments(db, manager.user))) == 1
    assert len(asyncio.run(list_assignments(db, owner))) == 1
    assert len(asyncio.run(list_assignments(db, admin))) == 1
