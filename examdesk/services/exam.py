from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from examdesk.models.exam import Difficulty, Exam, ExamQuestion, ExamStatus, Question, QuestionType
from examdesk.models.user import User
from examdesk.services.access import ensure_can_edit_authored
from examdesk.services.lookup import ensure_all_exist, get_or_404


async def create_question(db: Session, actor: User, question_data: Dict[str, Any]) -> Question:
    question = Question(**question_data, created_by=actor.id)
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


async def list_questions(
    db: Session,
    type: Optional[QuestionType] = None,
    difficulty: Optional[Difficulty] = None,
    category: Optional[str] = None,
) -> List[Question]:
    query = db.query(Question)
    if type:
        query = query.filter(Question.type == type)
    if difficulty:
        query = query.filter(Question.difficulty == difficulty)
    if category:
        query = query.filter(Question.category == category)
    return query.order_by(Question.created_at).all()


async def update_question(db: Session, actor: User, question_id: str, update_data: Dict[str, Any]) -> Question:
    # Scores of finalized results are frozen, so editing a used question
    # only affects attempts submitted afterwards.
    question = get_or_404(db, Question, question_id, "Question")
    ensure_can_edit_authored(actor, question, "question")
    for key, value in update_data.items():
        setattr(question, key, value)
    db.commit()
    db.refresh(question)
    return question


async def delete_question(db: Session, actor: User, question_id: str) -> None:
    question = get_or_404(db, Question, question_id, "Question")
    ensure_can_edit_authored(actor, question, "question")
    db.delete(question)
    db.commit()


async def create_exam(db: Session, actor: User, exam_data: Dict[str, Any]) -> Exam:
    """
    Create an exam; question_ids, when given, are attached in list order
    starting at 1.
    """
    question_ids = exam_data.pop("question_ids", None) or []
    ensure_all_exist(db, Question, question_ids, "question_ids")

    exam = Exam(**exam_data, created_by=actor.id)
    if exam.status is None:
        exam.status = ExamStatus.DRAFT
    for index, question_id in enumerate(dict.fromkeys(question_ids)):
        exam.question_links.append(ExamQuestion(question_id=question_id, order=index + 1))

    db.add(exam)
    db.commit()
    db.refresh(exam)
    return exam


async def list_exams(db: Session, status: Optional[ExamStatus] = None) -> List[Exam]:
    query = db.query(Exam)
    if status:
        query = query.filter(Exam.status == status)
    return query.order_by(Exam.created_at).all()


async def update_exam(db: Session, actor: User, exam_id: str, update_data: Dict[str, Any]) -> Exam:
    exam = get_or_404(db, Exam, exam_id, "Exam")
    ensure_can_edit_authored(actor, exam, "exam")
    for key, value in update_data.items():
        setattr(exam, key, value)
    db.commit()
    db.refresh(exam)
    return exam


async def delete_exam(db: Session, actor: User, exam_id: str) -> None:
    exam = get_or_404(db, Exam, exam_id, "Exam")
    ensure_can_edit_authored(actor, exam, "exam")
    db.delete(exam)
    db.commit()


async def attach_questions(db: Session, actor: User, exam_id: str, questions: List[Dict[str, Any]]) -> Exam:
    """Add or reorder questions without detaching the ones not mentioned."""
    exam = get_or_404(db, Exam, exam_id, "Exam")
    ensure_can_edit_authored(actor, exam, "exam")
    ensure_all_exist(db, Question, [q["question_id"] for q in questions], "questions")

    links = {link.question_id: link for link in exam.question_links}
    for entry in questions:
        link = links.get(entry["question_id"])
        if link:
            link.order = entry["order"]
        else:
            link = ExamQuestion(question_id=entry["question_id"], order=entry["order"])
            exam.question_links.append(link)
            links[entry["question_id"]] = link

    db.commit()
    db.refresh(exam)
    return exam


async def detach_question(db: Session, actor: User, exam_id: str, question_id: str) -> Exam:
    exam = get_or_404(db, Exam, exam_id, "Exam")
    ensure_can_edit_authored(actor, exam, "exam")
    get_or_404(db, Question, question_id, "Question")
    exam.question_links = [link for link in exam.question_links if link.question_id != question_id]
    db.commit()
    db.refresh(exam)
    return exam
