from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.exam_set import ExamSetStatus
from examdesk.models.user import User
from examdesk.schemas.common import Envelope
from examdesk.schemas.exam_set import (
    ExamSetAddExams, ExamSetCreate, ExamSetCreated, ExamSetLogin, ExamSetResponse, ExamSetUpdate
)
from examdesk.services.auth import get_current_user
from examdesk.services.exam_set import (
    add_exams, authenticate_exam_set, create_exam_set, delete_exam_set, get_exam_set,
    list_exam_sets, update_exam_set
)
from examdesk.utils.errors import AuthError

router = APIRouter(prefix="/exam-sets", tags=["exam-sets"])


@router.get("", response_model=Envelope[List[ExamSetResponse]])
async def list_exam_sets_route(
    manager_id: Optional[str] = None,
    status: Optional[ExamSetStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_exam_sets(db, current_user, manager_id=manager_id, status=status)}


@router.post("", response_model=Envelope[ExamSetCreated], status_code=status.HTTP_201_CREATED)
async def create_exam_set_route(
    set_data: ExamSetCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """
    Create an exam set. The generated password is only ever returned here.
    """
    exam_set, credentials = await create_exam_set(db, current_user, set_data.model_dump())
    return {
        "success": True,
        "message": "Exam set created",
        "data": {"exam_set": exam_set, "credentials": credentials},
    }


@router.post("/login", response_model=Envelope[ExamSetResponse])
async def exam_set_login(payload: ExamSetLogin, db: Session = Depends(get_db)) -> Any:
    exam_set = await authenticate_exam_set(db, payload.username, payload.password)
    if not exam_set:
        raise AuthError("Incorrect exam username or password")
    return {"success": True, "data": exam_set}


@router.get("/{exam_set_id}", response_model=Envelope[ExamSetResponse])
async def get_exam_set_route(
    exam_set_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await get_exam_set(db, current_user, exam_set_id)}


@router.put("/{exam_set_id}", response_model=Envelope[ExamSetResponse])
async def update_exam_set_route(
    exam_set_id: str,
    update_data: ExamSetUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    exam_set = await update_exam_set(db, current_user, exam_set_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Exam set updated", "data": exam_set}


@router.delete("/{exam_set_id}", response_model=Envelope)
async def delete_exam_set_route(
    exam_set_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_exam_set(db, current_user, exam_set_id)
    return {"success": True, "message": "Exam set deleted"}


@router.post("/{exam_set_id}/exams", response_model=Envelope[ExamSetResponse])
async def add_exams_route(
    exam_set_id: str,
    payload: ExamSetAddExams,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    exam_set = await add_exams(db, current_user, exam_set_id, payload.exam_ids)
    return {"success": True, "message": "Exams added to the set", "data": exam_set}
