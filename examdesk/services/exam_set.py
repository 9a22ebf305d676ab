import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from examdesk.core.security import generate_exam_credentials, get_password_hash, verify_password
from examdesk.models.company import Manager
from examdesk.models.exam import Exam
from examdesk.models.exam_set import ExamSet, ExamSetItem, ExamSetStatus
from examdesk.models.user import User
from examdesk.services.access import ensure_can_act_for_manager, limit_to_visible_managers
from examdesk.services.lookup import ensure_all_exist, get_or_404

logger = logging.getLogger(__name__)


def _unused_credentials(db: Session) -> Tuple[str, str]:
    while True:
        username, password = generate_exam_credentials()
        if not db.query(ExamSet.id).filter(ExamSet.username == username).first():
            return username, password


async def create_exam_set(db: Session, actor: User, set_data: Dict[str, Any]) -> Tuple[ExamSet, Dict[str, str]]:
    """
    Create an exam set for a manager with one item per exam, in order.
    Returns the set and the plaintext credentials, which are not stored.
    """
    manager = get_or_404(db, Manager, set_data["manager_id"], "Manager")
    ensure_can_act_for_manager(actor, manager)
    exam_ids = list(dict.fromkeys(set_data.pop("exam_ids")))
    ensure_all_exist(db, Exam, exam_ids, "exam_ids")

    username, password = _unused_credentials(db)
    exam_set = ExamSet(
        **set_data,
        username=username,
        password_hash=get_password_hash(password),
        status=ExamSetStatus.PENDING,
    )
    for index, exam_id in enumerate(exam_ids):
        exam_set.items.append(ExamSetItem(exam_id=exam_id, order=index + 1, status="not_started"))

    db.add(exam_set)
    db.commit()
    db.refresh(exam_set)
    logger.info(f"Created exam set {exam_set.id} with {len(exam_ids)} exam(s)")
    return exam_set, {"username": username, "password": password}


async def list_exam_sets(
    db: Session, actor: User, manager_id: Optional[str] = None, status: Optional[ExamSetStatus] = None
) -> List[ExamSet]:
    query = limit_to_visible_managers(db.query(ExamSet), ExamSet.manager_id, actor)
    if manager_id:
        query = query.filter(ExamSet.manager_id == manager_id)
    if status:
        query = query.filter(ExamSet.status == status)
    return query.order_by(ExamSet.created_at).all()


async def get_exam_set(db: Session, actor: User, exam_set_id: str) -> ExamSet:
    exam_set = get_or_404(db, ExamSet, exam_set_id, "Exam set")
    ensure_can_act_for_manager(actor, exam_set.manager)
    return exam_set


async def update_exam_set(db: Session, actor: User, exam_set_id: str, update_data: Dict[str, Any]) -> ExamSet:
    exam_set = await get_exam_set(db, actor, exam_set_id)
    for key, value in update_data.items():
        setattr(exam_set, key, value)
    db.commit()
    db.refresh(exam_set)
    return exam_set


async def delete_exam_set(db: Session, actor: User, exam_set_id: str) -> None:
    exam_set = await get_exam_set(db, actor, exam_set_id)
    db.delete(exam_set)
    db.commit()


async def add_exams(db: Session, actor: User, exam_set_id: str, exam_ids: List[str]) -> ExamSet:
    """Append exams after the current last item; exams already in the set are skipped."""
    exam_set = await get_exam_set(db, actor, exam_set_id)
    ensure_all_exist(db, Exam, exam_ids, "exam_ids")

    current_max = (
        db.query(func.max(ExamSetItem.order)).filter(ExamSetItem.exam_set_id == exam_set.id).scalar() or 0
    )
    present = {item.exam_id for item in exam_set.items}
    for index, exam_id in enumerate(exam_ids):
        if exam_id in present:
            continue
        exam_set.items.append(
            ExamSetItem(exam_id=exam_id, order=current_max + index + 1, status="not_started")
        )
        present.add(exam_id)

    db.commit()
    db.refresh(exam_set)
    return exam_set


async def authenticate_exam_set(db: Session, username: str, password: str) -> Optional[ExamSet]:
    exam_set = db.query(ExamSet).filter(ExamSet.username == username).first()
    if not exam_set or not verify_password(password, exam_set.password_hash):
        return None
    return exam_set
