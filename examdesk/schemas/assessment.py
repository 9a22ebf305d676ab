from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from examdesk.models.assessment import AssessmentQuestionType, AssessmentStatus, AssessmentTemplateStatus


class AssessmentQuestionBase(BaseModel):
    question: str = Field(..., min_length=1)
    type: AssessmentQuestionType
    options: Optional[List[str]] = None
    required: bool = True
    order: int = Field(..., ge=0)


class AssessmentQuestionCreate(AssessmentQuestionBase):
    step_id: str


class AssessmentQuestionUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    type: Optional[AssessmentQuestionType] = None
    options: Optional[List[str]] = None
    required: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)


class AssessmentQuestionResponse(AssessmentQuestionBase):
    id: str
    step_id: str

    class Config:
        from_attributes = True


class AssessmentStepBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    order: int = Field(..., ge=0)


class AssessmentStepCreate(AssessmentStepBase):
    template_id: str


class AssessmentStepUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)


class AssessmentStepResponse(AssessmentStepBase):
    id: str
    template_id: str
    questions: List[AssessmentQuestionResponse] = []

    class Config:
        from_attributes = True


class TemplateStepIn(AssessmentStepBase):
    """A step created together with its template"""
    questions: List[AssessmentQuestionBase] = []


class AssessmentTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=255)
    estimated_time: int = Field(..., ge=1)
    status: Optional[AssessmentTemplateStatus] = None
    steps: List[TemplateStepIn] = []


class AssessmentTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    estimated_time: Optional[int] = Field(None, ge=1)
    status: Optional[AssessmentTemplateStatus] = None


class AssessmentTemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    estimated_time: int
    status: AssessmentTemplateStatus
    created_by: Optional[str] = None
    steps: List[AssessmentStepResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ReorderPayload(BaseModel):
    order: int = Field(..., ge=0)


class AssessmentStart(BaseModel):
    manager_id: str
    template_id: str


class AssessmentProgress(BaseModel):
    current_step: Optional[int] = Field(None, ge=1)
    # question_id -> answer; replaces the stored answers
    answers: Optional[Dict[str, Any]] = None


class AssessmentSubmit(BaseModel):
    answers: Dict[str, Any] = Field(...)


class AssessmentResponse(BaseModel):
    id: str
    manager_id: str
    template_id: str
    current_step: int
    answers: Optional[Dict[str, Any]] = None
    status: AssessmentStatus
    score: Optional[int] = None
    submitted_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssessmentDetail(AssessmentResponse):
    template: AssessmentTemplateResponse
