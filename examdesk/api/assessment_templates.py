from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from examdesk.db.base import get_db
from examdesk.models.assessment import AssessmentQuestion, AssessmentStep, AssessmentTemplate, AssessmentTemplateStatus
from examdesk.models.user import User
from examdesk.schemas.assessment import (
    AssessmentQuestionCreate, AssessmentQuestionResponse, AssessmentQuestionUpdate, AssessmentStepCreate,
    AssessmentStepResponse, AssessmentStepUpdate, AssessmentTemplateCreate, AssessmentTemplateResponse,
    AssessmentTemplateUpdate, ReorderPayload
)
from examdesk.schemas.common import Envelope
from examdesk.services.assessment import (
    create_question, create_step, create_template, delete_question, delete_step, delete_template,
    list_questions, list_steps, list_templates, update_question, update_step, update_template
)
from examdesk.services.auth import get_current_user
from examdesk.services.lookup import get_or_404

router = APIRouter(prefix="/assessment-templates", tags=["assessment-templates"])
steps_router = APIRouter(prefix="/assessment-steps", tags=["assessment-steps"])
questions_router = APIRouter(prefix="/assessment-questions", tags=["assessment-questions"])


@router.get("", response_model=Envelope[List[AssessmentTemplateResponse]])
async def list_templates_route(
    status: Optional[AssessmentTemplateStatus] = None,
    category: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_templates(db, status=status, category=category)}


@router.post("", response_model=Envelope[AssessmentTemplateResponse], status_code=status.HTTP_201_CREATED)
async def create_template_route(
    template_data: AssessmentTemplateCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    template = await create_template(db, current_user, template_data.model_dump())
    return {"success": True, "message": "Assessment template created", "data": template}


@router.get("/{template_id}", response_model=Envelope[AssessmentTemplateResponse])
async def get_template(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, AssessmentTemplate, template_id, "Assessment template")}


@router.put("/{template_id}", response_model=Envelope[AssessmentTemplateResponse])
async def update_template_route(
    template_id: str,
    update_data: AssessmentTemplateUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    template = await update_template(db, current_user, template_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Assessment template updated", "data": template}


@router.delete("/{template_id}", response_model=Envelope)
async def delete_template_route(
    template_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_template(db, current_user, template_id)
    return {"success": True, "message": "Assessment template deleted"}


@steps_router.get("", response_model=Envelope[List[AssessmentStepResponse]])
async def list_steps_route(
    template_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_steps(db, template_id=template_id)}


@steps_router.post("", response_model=Envelope[AssessmentStepResponse], status_code=status.HTTP_201_CREATED)
async def create_step_route(
    step_data: AssessmentStepCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    step = await create_step(db, current_user, step_data.model_dump())
    return {"success": True, "message": "Assessment step created", "data": step}


@steps_router.get("/{step_id}", response_model=Envelope[AssessmentStepResponse])
async def get_step(
    step_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, AssessmentStep, step_id, "Assessment step")}


@steps_router.put("/{step_id}", response_model=Envelope[AssessmentStepResponse])
async def update_step_route(
    step_id: str,
    update_data: AssessmentStepUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    step = await update_step(db, current_user, step_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Assessment step updated", "data": step}


@steps_router.patch("/{step_id}/reorder", response_model=Envelope[AssessmentStepResponse])
async def reorder_step(
    step_id: str,
    payload: ReorderPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    step = await update_step(db, current_user, step_id, {"order": payload.order})
    return {"success": True, "message": "Step order updated", "data": step}


@steps_router.delete("/{step_id}", response_model=Envelope)
async def delete_step_route(
    step_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_step(db, current_user, step_id)
    return {"success": True, "message": "Assessment step deleted"}


@questions_router.get("", response_model=Envelope[List[AssessmentQuestionResponse]])
async def list_questions_route(
    step_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": await list_questions(db, step_id=step_id)}


@questions_router.post("", response_model=Envelope[AssessmentQuestionResponse], status_code=status.HTTP_201_CREATED)
async def create_question_route(
    question_data: AssessmentQuestionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    question = await create_question(db, current_user, question_data.model_dump())
    return {"success": True, "message": "Assessment question created", "data": question}


@questions_router.get("/{question_id}", response_model=Envelope[AssessmentQuestionResponse])
async def get_question(
    question_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    return {"success": True, "data": get_or_404(db, AssessmentQuestion, question_id, "Assessment question")}


@questions_router.put("/{question_id}", response_model=Envelope[AssessmentQuestionResponse])
async def update_question_route(
    question_id: str,
    update_data: AssessmentQuestionUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    question = await update_question(db, current_user, question_id, update_data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Assessment question updated", "data": question}


@questions_router.patch("/{question_id}/reorder", response_model=Envelope[AssessmentQuestionResponse])
async def reorder_question(
    question_id: str,
    payload: ReorderPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    question = await update_question(db, current_user, question_id, {"order": payload.order})
    return {"success": True, "message": "Question order updated", "data": question}


@questions_router.delete("/{question_id}", response_model=Envelope)
async def delete_question_route(
    question_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    await delete_question(db, current_user, question_id)
    return {"success": True, "message": "Assessment question deleted"}
