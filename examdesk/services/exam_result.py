import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from examdesk.models.company import Manager
from examdesk.models.exam import Exam
from examdesk.models.exam_set import ExamSet
from examdesk.models.result import ExamResult, ExamResultStatus
from examdesk.models.user import User
from examdesk.services.access import ensure_can_act_for_manager, limit_to_visible_managers
from examdesk.services.lookup import get_or_404
from examdesk.services.scoring import has_passed, is_correct, normalize_answers, score_answers
from examdesk.utils.errors import ConflictError, ForbiddenError, ServiceError
from examdesk.utils.time import minutes_between, utcnow

logger = logging.getLogger(__name__)


def _find_for_triple(db: Session, exam_set_id: str, exam_id: str, manager_id: str) -> Optional[ExamResult]:
    return (
        db.query(ExamResult)
        .filter(
            ExamResult.exam_set_id == exam_set_id,
            ExamResult.exam_id == exam_id,
            ExamResult.manager_id == manager_id,
        )
        .first()
    )


def build_summary(result: ExamResult) -> Dict[str, Any]:
    return {
        "score": result.score or 0,
        "total_score": result.total_score or 0,
        "percentage": result.percentage or 0.0,
        "status": result.status,
        "passed": result.status == ExamResultStatus.PASSED,
        "time_spent_minutes": result.time_spent or 0,
        "started_at": result.started_at,
        "completed_at": result.completed_at,
    }


async def start_exam_result(
    db: Session,
    actor: User,
    exam_set_id: str,
    exam_id: str,
    manager_id: str,
    now: Optional[datetime] = None,
) -> ExamResult:
    """
    Open the single result row for (exam set, exam, manager). A second start
    is rejected whatever the state of the existing row.
    """
    get_or_404(db, ExamSet, exam_set_id, "Exam set")
    get_or_404(db, Exam, exam_id, "Exam")
    manager = get_or_404(db, Manager, manager_id, "Manager")
    ensure_can_act_for_manager(actor, manager)

    existing = _find_for_triple(db, exam_set_id, exam_id, manager_id)
    if existing:
        raise ConflictError("This exam has already been started", data=existing)

    result = ExamResult(
        exam_set_id=exam_set_id,
        exam_id=exam_id,
        manager_id=manager_id,
        status=ExamResultStatus.IN_PROGRESS,
        started_at=now or utcnow(),
    )
    db.add(result)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent start
        db.rollback()
        existing = _find_for_triple(db, exam_set_id, exam_id, manager_id)
        raise ConflictError("This exam has already been started", data=existing)

    db.refresh(result)
    logger.info(f"Started exam result {result.id} for manager {manager_id}")
    return result


async def list_exam_results(
    db: Session,
    actor: User,
    exam_set_id: Optional[str] = None,
    manager_id: Optional[str] = None,
    status: Optional[ExamResultStatus] = None,
) -> List[ExamResult]:
    query = limit_to_visible_managers(db.query(ExamResult), ExamResult.manager_id, actor)
    if exam_set_id:
        query = query.filter(ExamResult.exam_set_id == exam_set_id)
    if manager_id:
        query = query.filter(ExamResult.manager_id == manager_id)
    if status:
        query = query.filter(ExamResult.status == status)
    return query.order_by(ExamResult.started_at.desc()).all()


async def get_exam_result(db: Session, actor: User, result_id: str) -> ExamResult:
    result = get_or_404(db, ExamResult, result_id, "Exam result")
    ensure_can_act_for_manager(actor, result.manager)
    return result


async def save_draft(db: Session, actor: User, result_id: str, answers: Dict[str, Any]) -> ExamResult:
    """Replace the stored answers of an unfinished attempt; status is untouched."""
    result = await get_exam_result(db, actor, result_id)

    saved = db.execute(
        update(ExamResult)
        .where(ExamResult.id == result.id, ExamResult.status == ExamResultStatus.IN_PROGRESS)
        .values(answers=normalize_answers(answers), updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if saved.rowcount != 1:
        db.rollback()
        raise ForbiddenError("A completed exam result cannot be edited")

    db.commit()
    db.refresh(result)
    return result


async def submit_exam_result(
    db: Session,
    actor: User,
    result_id: str,
    answers: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Tuple[ExamResult, Dict[str, Any]]:
    """
    Score the answers against the exam's questions and finalize the result.
    This is the only transition out of in_progress and it happens once.
    """
    result = await get_exam_result(db, actor, result_id)
    if result.status != ExamResultStatus.IN_PROGRESS:
        raise ConflictError("This exam has already been submitted", data=result)

    exam = result.exam
    answers = normalize_answers(answers)
    earned, total, percentage = score_answers(exam.questions, answers)
    status = ExamResultStatus.PASSED if has_passed(percentage, exam.passing_score) else ExamResultStatus.FAILED

    now = now or utcnow()
    time_spent = minutes_between(result.started_at, now)

    finalized = db.execute(
        update(ExamResult)
        .where(ExamResult.id == result.id, ExamResult.status == ExamResultStatus.IN_PROGRESS)
        .values(
            answers=answers,
            score=earned,
            total_score=total,
            percentage=percentage,
            status=status,
            completed_at=now,
            time_spent=time_spent,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if finalized.rowcount != 1:
        db.rollback()
        db.refresh(result)
        raise ConflictError("This exam has already been submitted", data=result)

    db.commit()
    db.refresh(result)
    logger.info(
        f"Finalized exam result {result.id}: {earned}/{total} ({percentage}%) {status.value}"
    )
    return result, build_summary(result)


async def build_result_report(db: Session, actor: User, result_id: str) -> Dict[str, Any]:
    result = await get_exam_result(db, actor, result_id)
    if not result.is_finalized:
        raise ServiceError("This exam has not been completed yet")

    answers = normalize_answers(result.answers)
    questions = []
    for question in result.exam.questions:
        user_answer = answers.get(str(question.id))
        correct = is_correct(question, user_answer)
        questions.append({
            "question_id": question.id,
            "question": question.question,
            "user_answer": user_answer,
            "correct_answer": question.correct_answer,
            "is_correct": correct,
            "score": question.score if correct else 0,
            "max_score": question.score,
        })

    return {
        "result": result,
        "exam": result.exam,
        "summary": build_summary(result),
        "questions": questions,
    }


async def delete_exam_result(db: Session, actor: User, result_id: str) -> None:
    result = await get_exam_result(db, actor, result_id)
    db.delete(result)
    db.commit()
