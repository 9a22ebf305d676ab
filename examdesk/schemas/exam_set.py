from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from examdesk.models.exam_set import ExamSetStatus
from examdesk.schemas.exam import ExamSummary


class ExamSetCreate(BaseModel):
    manager_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    exam_ids: List[str] = Field(..., min_length=1)
    assigned_date: Optional[date] = None
    exam_date: Optional[date] = None
    due_date: Optional[date] = None


class ExamSetUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    exam_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[ExamSetStatus] = None


class ExamSetAddExams(BaseModel):
    exam_ids: List[str] = Field(..., min_length=1)


class ExamSetLogin(BaseModel):
    username: str
    password: str


class ExamSetItemResponse(BaseModel):
    id: str
    exam_id: str
    order: int
    status: str
    exam: Optional[ExamSummary] = None

    class Config:
        from_attributes = True


class ExamSetResponse(BaseModel):
    id: str
    manager_id: str
    title: str
    description: Optional[str] = None
    assigned_date: Optional[date] = None
    exam_date: Optional[date] = None
    due_date: Optional[date] = None
    status: ExamSetStatus
    username: str
    items: List[ExamSetItemResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ExamSetCredentials(BaseModel):
    username: str
    # Returned once, at creation; only the hash is stored
    password: str


class ExamSetCreated(BaseModel):
    exam_set: ExamSetResponse
    credentials: ExamSetCredentials
