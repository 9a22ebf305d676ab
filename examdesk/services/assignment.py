import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from examdesk.models.assignment import AssignmentStatus, ExamAssignment
from examdesk.models.company import Manager
from examdesk.models.exam import Exam
from examdesk.models.user import User
from examdesk.services.access import (
    ensure_can_act_for_manager, ensure_can_manage_company, limit_to_visible_managers
)
from examdesk.services.lookup import ensure_all_exist, get_or_404
from examdesk.utils.errors import ConflictError, ForbiddenError, ValidationError
from examdesk.utils.time import utcnow, utctoday

logger = logging.getLogger(__name__)


async def assign_exam(
    db: Session,
    actor: User,
    exam_id: str,
    manager_ids: List[str],
    due_date: Optional[date] = None,
    max_attempts: Optional[int] = None,
) -> List[ExamAssignment]:
    """
    Assign an exam to each manager. Managers who already hold an assignment
    for this exam are skipped; only the new rows are returned. The actor must
    manage the company of every listed manager.
    """
    get_or_404(db, Exam, exam_id, "Exam")
    ensure_all_exist(db, Manager, manager_ids, "manager_ids")
    for manager in db.query(Manager).filter(Manager.id.in_(manager_ids)).all():
        ensure_can_manage_company(actor, manager.company)

    already_assigned = {
        row[0]
        for row in db.query(ExamAssignment.manager_id)
        .filter(ExamAssignment.exam_id == exam_id, ExamAssignment.manager_id.in_(manager_ids))
        .all()
    }

    assignments = []
    for manager_id in dict.fromkeys(manager_ids):
        if manager_id in already_assigned:
            continue
        assignment = ExamAssignment(
            exam_id=exam_id,
            manager_id=manager_id,
            assigned_date=utctoday(),
            due_date=due_date,
            status=AssignmentStatus.ASSIGNED,
            attempts=0,
            max_attempts=max_attempts or 1,
        )
        db.add(assignment)
        assignments.append(assignment)

    db.commit()
    for assignment in assignments:
        db.refresh(assignment)
    logger.info(f"Assigned exam {exam_id} to {len(assignments)} manager(s)")
    return assignments


async def list_assignments(
    db: Session,
    actor: User,
    exam_id: Optional[str] = None,
    manager_id: Optional[str] = None,
    status: Optional[AssignmentStatus] = None,
) -> List[ExamAssignment]:
    query = limit_to_visible_managers(db.query(ExamAssignment), ExamAssignment.manager_id, actor)
    if exam_id:
        query = query.filter(ExamAssignment.exam_id == exam_id)
    if manager_id:
        query = query.filter(ExamAssignment.manager_id == manager_id)
    if status:
        query = query.filter(ExamAssignment.status == status)
    return query.order_by(ExamAssignment.created_at.desc()).all()


async def get_assignment(db: Session, actor: User, assignment_id: str) -> ExamAssignment:
    assignment = get_or_404(db, ExamAssignment, assignment_id, "Assignment")
    ensure_can_act_for_manager(actor, assignment.manager)
    return assignment


# Statuses that only start_assignment and complete_assignment may set
_ACTION_STATUSES = (AssignmentStatus.STARTED, AssignmentStatus.COMPLETED)


async def update_assignment(db: Session, actor: User, assignment_id: str, update_data: Dict[str, Any]) -> ExamAssignment:
    """
    Edit due date, quota or status. Status may only move between assigned
    and expired; started and completed assignments keep their status.
    """
    assignment = await get_assignment(db, actor, assignment_id)
    max_attempts = update_data.get("max_attempts")
    if max_attempts is None:
        update_data.pop("max_attempts", None)
    if max_attempts is not None and max_attempts < assignment.attempts:
        raise ValidationError.for_field("max_attempts", "max_attempts cannot be lower than attempts already used")

    status = update_data.pop("status", None)
    if status is not None and status != assignment.status:
        if status in _ACTION_STATUSES:
            raise ValidationError.for_field("status", "Use the start or complete action to change this status")
        if assignment.status in _ACTION_STATUSES:
            raise ConflictError(f"A {assignment.status.value} assignment cannot change status", data=assignment)
        update_data["status"] = status

    for key, value in update_data.items():
        setattr(assignment, key, value)
    db.commit()
    db.refresh(assignment)
    return assignment


async def delete_assignment(db: Session, actor: User, assignment_id: str) -> None:
    assignment = await get_assignment(db, actor, assignment_id)
    db.delete(assignment)
    db.commit()


async def start_assignment(db: Session, actor: User, assignment_id: str) -> ExamAssignment:
    """
    assigned -> started, consuming one attempt. The transition is a single
    conditional UPDATE so concurrent starts cannot both succeed.
    """
    assignment = await get_assignment(db, actor, assignment_id)

    started = db.execute(
        update(ExamAssignment)
        .where(
            ExamAssignment.id == assignment.id,
            ExamAssignment.status == AssignmentStatus.ASSIGNED,
            ExamAssignment.attempts < ExamAssignment.max_attempts,
        )
        .values(
            status=AssignmentStatus.STARTED,
            attempts=ExamAssignment.attempts + 1,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )

    if started.rowcount != 1:
        db.rollback()
        db.refresh(assignment)
        if assignment.status != AssignmentStatus.ASSIGNED:
            raise ConflictError("This exam has already been started", data=assignment)
        raise ForbiddenError("No attempts left for this exam")

    db.commit()
    db.refresh(assignment)
    logger.info(f"Assignment {assignment.id} started, attempt {assignment.attempts}/{assignment.max_attempts}")
    return assignment


async def complete_assignment(db: Session, actor: User, assignment_id: str) -> ExamAssignment:
    """
    Mark the assignment completed. Whether an exam result was finalized is
    not checked here.
    """
    assignment = await get_assignment(db, actor, assignment_id)

    completed = db.execute(
        update(ExamAssignment)
        .where(
            ExamAssignment.id == assignment.id,
            ExamAssignment.status != AssignmentStatus.COMPLETED,
        )
        .values(status=AssignmentStatus.COMPLETED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )

    if completed.rowcount != 1:
        db.rollback()
        db.refresh(assignment)
        raise ConflictError("This exam has already been completed", data=assignment)

    db.commit()
    db.refresh(assignment)
    logger.info(f"Assignment {assignment.id} completed")
    return assignment


async def expire_overdue_assignments(db: Session, today: Optional[date] = None) -> int:
    """assigned -> expired for every assignment past its due date."""
    today = today or utctoday()
    expired = db.execute(
        update(ExamAssignment)
        .where(
            ExamAssignment.status == AssignmentStatus.ASSIGNED,
            ExamAssignment.due_date.is_not(None),
            ExamAssignment.due_date < today,
        )
        .values(status=AssignmentStatus.EXPIRED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info(f"Expired {expired.rowcount} overdue assignment(s)")
    return expired.rowcount
