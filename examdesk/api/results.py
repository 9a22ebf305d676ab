from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.result import ExamResultStatus
from examdesk.models.user import User
from examdesk.schemas.common import Envelope
from examdesk.schemas.result import (
    AnswersPayload, ExamResultResponse, ExamResultStart, ResultReport, SubmissionResponse
)
from examdesk.services.auth import get_current_user
from examdesk.services.exam_result import (
    build_result_report, delete_exam_result, get_exam_result, list_exam_results, save_draft,
    start_exam_result, submit_exam_result
)

router = APIRouter(prefix="/exam-results", tags=["exam-results"])


@router.get("", response_model=Envelope[List[ExamResultResponse]])
async def list_results(
    exam_set_id: Optional[str] = None,
    manager_id: Optional[str] = None,
    status: Optional[ExamResultStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    results = await list_exam_results(
        db, current_user, exam_set_id=exam_set_id, manager_id=manager_id, status=status
    )
    return {"success": True, "data": results}


@router.post("", response_model=Envelope[ExamResultResponse], status_code=status.HTTP_201_CREATED)
async def start_result(
    payload: ExamResultStart,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    result = await start_exam_result(
        db, current_user, payload.exam_set_id, payload.exam_id, payload.manager_id
    )
    return {"success": True, "message": "Exam started", "data": result}


@router.get("/{result_id}", response_model=Envelope[ExamResultResponse])
async def get_result(
    result_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await get_exam_result(db, current_user, result_id)}


@router.put("/{result_id}", response_model=Envelope[ExamResultResponse])
async def save_answers(
    result_id: str,
    payload: AnswersPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Save a draft of the answers without finishing the exam"""
    result = await save_draft(db, current_user, result_id, payload.answers)
    return {"success": True, "message": "Answers saved", "data": result}


@router.delete("/{result_id}", response_model=Envelope)
async def delete_result(
    result_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_exam_result(db, current_user, result_id)
    return {"success": True, "message": "Exam result deleted"}


@router.post("/{result_id}/submit", response_model=Envelope[SubmissionResponse])
async def submit_result(
    result_id: str,
    payload: AnswersPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    result, summary = await submit_exam_result(db, current_user, result_id, payload.answers)
    return {
        "success": True,
        "message": "Exam submitted",
        "data": {"result": result, "summary": summary},
    }


@router.get("/{result_id}/report", response_model=Envelope[ResultReport])
async def result_report(
    result_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await build_result_report(db, current_user, result_id)}
