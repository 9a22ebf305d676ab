from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.exam import Exam, ExamStatus
from examdesk.models.user import User
from examdesk.schemas.common import Envelope
from examdesk.schemas.exam import ExamCreate, ExamResponse, ExamUpdate, QuestionAttach
from examdesk.services.auth import get_current_user
from examdesk.services.exam import (
    attach_questions, create_exam, delete_exam, detach_question, list_exams, update_exam
)
from examdesk.services.lookup import get_or_404

router = APIRouter(prefix="/exams", tags=["exams"])


@router.get("", response_model=Envelope[List[ExamResponse]])
async def list_exams_route(
    status: Optional[ExamStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_exams(db, status=status)}


@router.post("", response_model=Envelope[ExamResponse], status_code=status.HTTP_201_CREATED)
async def create_exam_route(
    exam_data: ExamCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    exam = await create_exam(db, current_user, exam_data.model_dump())
    return {"success": True, "message": "Exam created", "data": exam}


@router.get("/{exam_id}", response_model=Envelope[ExamResponse])
async def get_exam(
    exam_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, Exam, exam_id, "Exam")}


@router.put("/{exam_id}", response_model=Envelope[ExamResponse])
async def update_exam_route(
    exam_id: str,
    update_data: ExamUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    exam = await update_exam(db, current_user, exam_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Exam updated", "data": exam}


@router.delete("/{exam_id}", response_model=Envelope)
async def delete_exam_route(
    exam_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_exam(db, current_user, exam_id)
    return {"success": True, "message": "Exam deleted"}


@router.post("/{exam_id}/questions", response_model=Envelope[ExamResponse])
async def attach_questions_route(
    exam_id: str,
    payload: QuestionAttach,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    exam = await attach_questions(db, current_user, exam_id, [q.model_dump() for q in payload.questions])
    return {"success": True, "message": "Questions added to the exam", "data": exam}


@router.delete("/{exam_id}/questions/{question_id}", response_model=Envelope[ExamResponse])
async def detach_question_route(
    exam_id: str,
    question_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    exam = await detach_question(db, current_user, exam_id, question_id)
    return {"success": True, "message": "Question removed from the exam", "data": exam}
