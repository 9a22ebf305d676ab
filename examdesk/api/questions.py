from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.exam import Difficulty, Question, QuestionType
from examdesk.models.user import User
from examdesk.schemas.common import Envelope
from examdesk.schemas.exam import QuestionCreate, QuestionResponse, QuestionUpdate
from examdesk.services.auth import get_current_user
from examdesk.services.exam import create_question, delete_question, list_questions, update_question
from examdesk.services.lookup import get_or_404

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("", response_model=Envelope[List[QuestionResponse]])
async def list_questions_route(
    type: Optional[QuestionType] = None,
    difficulty: Optional[Difficulty] = None,
    category: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    questions = await list_questions(db, type=type, difficulty=difficulty, category=category)
    return {"success": True, "data": questions}


@router.post("", response_model=Envelope[QuestionResponse], status_code=status.HTTP_201_CREATED)
async def create_question_route(
    question_data: QuestionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    question = await create_question(db, current_user, question_data.model_dump())
    return {"success": True, "message": "Question created", "data": question}


@router.get("/{question_id}", response_model=Envelope[QuestionResponse])
async def get_question(
    question_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, Question, question_id, "Question")}


@router.put("/{question_id}", response_model=Envelope[QuestionResponse])
async def update_question_route(
    question_id: str,
    update_data: QuestionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    question = await update_question(db, current_user, question_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Question updated", "data": question}


@router.delete("/{question_id}", response_model=Envelope)
async def delete_question_route(
    question_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_question(db, current_user, question_id)
    return {"success": True, "message": "Question deleted"}
