"""
Assessment templates (ordered steps of ordered questions) and the
assessments managers fill in from them.

An assessment stays a draft while the manager moves through the steps and
saves progress. Submitting it is one-way: a submitted assessment can no
longer be edited, resubmitted or deleted.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from examdesk.models.assessment import (
    Assessment, AssessmentQuestion, AssessmentStatus, AssessmentStep, AssessmentTemplate,
    AssessmentTemplateStatus
)
from examdesk.models.company import Manager
from examdesk.models.user import User
from examdesk.services.access import (
    ensure_can_act_for_manager, ensure_can_edit_authored, limit_to_visible_managers
)
from examdesk.services.lookup import get_or_404
from examdesk.services.scoring import normalize_answers
from examdesk.utils.errors import ConflictError, ForbiddenError, ValidationError
from examdesk.utils.time import utcnow

logger = logging.getLogger(__name__)

TEMPLATE = "assessment template"


def _apply_changes(obj, update_data: Dict[str, Any], nullable=()) -> None:
    # An explicit null only clears columns that may be empty
    for key, value in update_data.items():
        if value is None and key not in nullable:
            continue
        setattr(obj, key, value)


async def create_template(db: Session, actor: User, template_data: Dict[str, Any]) -> AssessmentTemplate:
    """Create a template, with its steps and their questions when given."""
    steps = template_data.pop("steps", None) or []
    template = AssessmentTemplate(**template_data, created_by=actor.id)
    if template.status is None:
        template.status = AssessmentTemplateStatus.DRAFT

    for step_data in steps:
        questions = step_data.pop("questions", None) or []
        step = AssessmentStep(**step_data)
        step.questions = [AssessmentQuestion(**question) for question in questions]
        template.steps.append(step)

    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info(f"Created assessment template {template.id} with {len(steps)} step(s)")
    return template


async def list_templates(
    db: Session,
    status: Optional[AssessmentTemplateStatus] = None,
    category: Optional[str] = None,
) -> List[AssessmentTemplate]:
    query = db.query(AssessmentTemplate)
    if status:
        query = query.filter(AssessmentTemplate.status == status)
    if category:
        query = query.filter(AssessmentTemplate.category == category)
    return query.order_by(AssessmentTemplate.created_at).all()


async def update_template(db: Session, actor: User, template_id: str, update_data: Dict[str, Any]) -> AssessmentTemplate:
    template = get_or_404(db, AssessmentTemplate, template_id, "Assessment template")
    ensure_can_edit_authored(actor, template, TEMPLATE)
    _apply_changes(template, update_data, nullable=("description",))
    db.commit()
    db.refresh(template)
    return template


async def delete_template(db: Session, actor: User, template_id: str) -> None:
    template = get_or_404(db, AssessmentTemplate, template_id, "Assessment template")
    ensure_can_edit_authored(actor, template, TEMPLATE)
    db.delete(template)
    db.commit()


async def create_step(db: Session, actor: User, step_data: Dict[str, Any]) -> AssessmentStep:
    template = get_or_404(db, AssessmentTemplate, step_data["template_id"], "Assessment template")
    ensure_can_edit_authored(actor, template, TEMPLATE)
    step = AssessmentStep(**step_data)
    db.add(step)
    db.commit()
    db.refresh(step)
    return step


async def list_steps(db: Session, template_id: Optional[str] = None) -> List[AssessmentStep]:
    query = db.query(AssessmentStep)
    if template_id:
        query = query.filter(AssessmentStep.template_id == template_id)
    return query.order_by(AssessmentStep.order).all()


async def update_step(db: Session, actor: User, step_id: str, update_data: Dict[str, Any]) -> AssessmentStep:
    """Also serves the reorder action, which only sends order."""
    step = get_or_404(db, AssessmentStep, step_id, "Assessment step")
    ensure_can_edit_authored(actor, step.template, TEMPLATE)
    _apply_changes(step, update_data, nullable=("description",))
    db.commit()
    db.refresh(step)
    return step


async def delete_step(db: Session, actor: User, step_id: str) -> None:
    step = get_or_404(db, AssessmentStep, step_id, "Assessment step")
    ensure_can_edit_authored(actor, step.template, TEMPLATE)
    db.delete(step)
    db.commit()


async def create_question(db: Session, actor: User, question_data: Dict[str, Any]) -> AssessmentQuestion:
    step = get_or_404(db, AssessmentStep, question_data["step_id"], "Assessment step")
    ensure_can_edit_authored(actor, step.template, TEMPLATE)
    question = AssessmentQuestion(**question_data)
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


async def list_questions(db: Session, step_id: Optional[str] = None) -> List[AssessmentQuestion]:
    query = db.query(AssessmentQuestion)
    if step_id:
        query = query.filter(AssessmentQuestion.step_id == step_id)
    return query.order_by(AssessmentQuestion.order).all()


async def update_question(db: Session, actor: User, question_id: str, update_data: Dict[str, Any]) -> AssessmentQuestion:
    question = get_or_404(db, AssessmentQuestion, question_id, "Assessment question")
    ensure_can_edit_authored(actor, question.step.template, TEMPLATE)
    _apply_changes(question, update_data, nullable=("options",))
    db.commit()
    db.refresh(question)
    return question


async def delete_question(db: Session, actor: User, question_id: str) -> None:
    question = get_or_404(db, AssessmentQuestion, question_id, "Assessment question")
    ensure_can_edit_authored(actor, question.step.template, TEMPLATE)
    db.delete(question)
    db.commit()


def _open_draft(db: Session, manager_id: str, template_id: str) -> Optional[Assessment]:
    return (
        db.query(Assessment)
        .filter(
            Assessment.manager_id == manager_id,
            Assessment.template_id == template_id,
            Assessment.status == AssessmentStatus.DRAFT,
        )
        .first()
    )


async def start_assessment(db: Session, actor: User, manager_id: str, template_id: str) -> Assessment:
    """
    Open a draft for the manager at step 1. A manager holds at most one draft
    per template; submitted assessments do not block a new one.
    """
    manager = get_or_404(db, Manager, manager_id, "Manager")
    get_or_404(db, AssessmentTemplate, template_id, "Assessment template")
    ensure_can_act_for_manager(actor, manager)

    existing = _open_draft(db, manager_id, template_id)
    if existing:
        raise ConflictError("This manager already has an assessment in progress", data=existing)

    assessment = Assessment(
        manager_id=manager_id,
        template_id=template_id,
        current_step=1,
        status=AssessmentStatus.DRAFT,
    )
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    logger.info(f"Started assessment {assessment.id} for manager {manager_id}")
    return assessment


async def list_assessments(
    db: Session,
    actor: User,
    manager_id: Optional[str] = None,
    status: Optional[AssessmentStatus] = None,
) -> List[Assessment]:
    query = limit_to_visible_managers(db.query(Assessment), Assessment.manager_id, actor)
    if manager_id:
        query = query.filter(Assessment.manager_id == manager_id)
    if status:
        query = query.filter(Assessment.status == status)
    return query.order_by(Assessment.created_at.desc()).all()


async def get_assessment(db: Session, actor: User, assessment_id: str) -> Assessment:
    assessment = get_or_404(db, Assessment, assessment_id, "Assessment")
    ensure_can_act_for_manager(actor, assessment.manager)
    return assessment


async def save_progress(db: Session, actor: User, assessment_id: str, progress: Dict[str, Any]) -> Assessment:
    """Store the current step and/or the answers so far of a draft."""
    assessment = await get_assessment(db, actor, assessment_id)

    values: Dict[str, Any] = {}
    current_step = progress.get("current_step")
    if current_step is not None:
        step_count = len(assessment.template.steps)
        if step_count and current_step > step_count:
            raise ValidationError.for_field(
                "current_step", f"This assessment has only {step_count} step(s)"
            )
        values["current_step"] = current_step
    if progress.get("answers") is not None:
        values["answers"] = normalize_answers(progress["answers"])

    saved = db.execute(
        update(Assessment)
        .where(Assessment.id == assessment.id, Assessment.status == AssessmentStatus.DRAFT)
        .values(**values, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if saved.rowcount != 1:
        db.rollback()
        raise ForbiddenError("A submitted assessment cannot be edited")

    db.commit()
    db.refresh(assessment)
    return assessment


def _unanswered_required(template: AssessmentTemplate, answers: Dict[str, Any]) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for step in template.steps:
        for question in step.questions:
            if not question.required:
                continue
            value = answers.get(str(question.id))
            if value is None or value == "" or value == []:
                errors[f"answers.{question.id}"] = ["This question is required"]
    return errors


async def submit_assessment(db: Session, actor: User, assessment_id: str, answers: Dict[str, Any]) -> Assessment:
    assessment = await get_assessment(db, actor, assessment_id)
    if assessment.status == AssessmentStatus.SUBMITTED:
        raise ConflictError("This assessment has already been submitted", data=assessment)

    answers = normalize_answers(answers)
    errors = _unanswered_required(assessment.template, answers)
    if errors:
        raise ValidationError("Some required questions are not answered", errors=errors)

    now = utcnow()
    submitted = db.execute(
        update(Assessment)
        .where(Assessment.id == assessment.id, Assessment.status == AssessmentStatus.DRAFT)
        .values(answers=answers, status=AssessmentStatus.SUBMITTED, submitted_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if submitted.rowcount != 1:
        db.rollback()
        db.refresh(assessment)
        raise ConflictError("This assessment has already been submitted", data=assessment)

    db.commit()
    db.refresh(assessment)
    logger.info(f"Assessment {assessment.id} submitted")
    return assessment


async def delete_assessment(db: Session, actor: User, assessment_id: str) -> None:
    assessment = await get_assessment(db, actor, assessment_id)
    if assessment.status == AssessmentStatus.SUBMITTED:
        raise ForbiddenError("A submitted assessment cannot be deleted")
    db.delete(assessment)
    db.commit()
