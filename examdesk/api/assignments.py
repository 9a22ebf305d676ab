from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.assignment import AssignmentStatus
from examdesk.models.user import User
from examdesk.schemas.assignment import AssignmentCreate, AssignmentResponse, AssignmentUpdate
from examdesk.schemas.common import Envelope
from examdesk.services.assignment import (
    assign_exam, complete_assignment, delete_assignment, get_assignment, list_assignments,
    start_assignment, update_assignment
)
from examdesk.services.auth import get_current_user

router = APIRouter(prefix="/exam-assignments", tags=["exam-assignments"])


@router.get("", response_model=Envelope[List[AssignmentResponse]])
async def list_assignments_route(
    exam_id: Optional[str] = None,
    manager_id: Optional[str] = None,
    status: Optional[AssignmentStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assignments = await list_assignments(
        db, current_user, exam_id=exam_id, manager_id=manager_id, status=status
    )
    return {"success": True, "data": assignments}


@router.post("", response_model=Envelope[List[AssignmentResponse]], status_code=status.HTTP_201_CREATED)
async def create_assignments(
    payload: AssignmentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Assign one exam to several managers; existing pairs are left alone."""
    assignments = await assign_exam(
        db,
        current_user,
        payload.exam_id,
        payload.manager_ids,
        due_date=payload.due_date,
        max_attempts=payload.max_attempts,
    )
    return {"success": True, "message": f"Exam assigned to {len(assignments)} manager(s)", "data": assignments}


@router.get("/{assignment_id}", response_model=Envelope[AssignmentResponse])
async def get_assignment_route(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await get_assignment(db, current_user, assignment_id)}


@router.put("/{assignment_id}", response_model=Envelope[AssignmentResponse])
async def update_assignment_route(
    assignment_id: str,
    update_data: AssignmentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assignment = await update_assignment(
        db, current_user, assignment_id, update_data.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Assignment updated", "data": assignment}


@router.delete("/{assignment_id}", response_model=Envelope)
async def delete_assignment_route(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_assignment(db, current_user, assignment_id)
    return {"success": True, "message": "Assignment deleted"}


@router.post("/{assignment_id}/start", response_model=Envelope[AssignmentResponse])
async def start_assignment_route(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assignment = await start_assignment(db, current_user, assignment_id)
    return {"success": True, "message": "Exam started", "data": assignment}


@router.post("/{assignment_id}/complete", response_model=Envelope[AssignmentResponse])
async def complete_assignment_route(
    assignment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    assignment = await complete_assignment(db, current_user, assignment_id)
    return {"success": True, "message": "Exam completed", "data": assignment}
