from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.assessment import AssessmentStatus
from examdesk.models.user import User
from examdesk.schemas.assessment import (
    AssessmentDetail, AssessmentProgress, AssessmentResponse, AssessmentStart, AssessmentSubmit
)
from examdesk.schemas.common import Envelope
from examdesk.services.assessment import (
    delete_assessment, get_assessment, list_assessments, save_progress, start_assessment, submit_assessment
)
from examdesk.services.auth import get_current_user

router = APIRouter(prefix="/assessments", tags=["assessments"])


@router.get("", response_model=Envelope[List[AssessmentResponse]])
async def list_assessments_route(
    manager_id: Optional[str] = None,
    status: Optional[AssessmentStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assessments = await list_assessments(db, current_user, manager_id=manager_id, status=status)
    return {"success": True, "data": assessments}


@router.post("", response_model=Envelope[AssessmentResponse], status_code=status.HTTP_201_CREATED)
async def start_assessment_route(
    payload: AssessmentStart,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assessment = await start_assessment(db, current_user, payload.manager_id, payload.template_id)
    return {"success": True, "message": "Assessment started", "data": assessment}


@router.get("/{assessment_id}", response_model=Envelope[AssessmentDetail])
async def get_assessment_route(
    assessment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """The assessment together with its template's steps and questions"""
    return {"success": True, "data": await get_assessment(db, current_user, assessment_id)}


@router.put("/{assessment_id}", response_model=Envelope[AssessmentResponse])
async def save_progress_route(
    assessment_id: str,
    payload: AssessmentProgress,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assessment = await save_progress(db, current_user, assessment_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Assessment progress saved", "data": assessment}


@router.post("/{assessment_id}/submit", response_model=Envelope[AssessmentResponse])
async def submit_assessment_route(
    assessment_id: str,
    payload: AssessmentSubmit,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assessment = await submit_assessment(db, current_user, assessment_id, payload.answers)
    return {"success": True, "message": "Assessment submitted", "data": assessment}


@router.delete("/{assessment_id}", response_model=Envelope)
async def delete_assessment_route(
    assessment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_assessment(db, current_user, assessment_id)
    return {"success": True, "message": "Assessment deleted"}
