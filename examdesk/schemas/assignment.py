from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime

from examdesk.models.assignment import AssignmentStatus
from examdesk.schemas.exam import ExamSummary
from examdesk.utils.time import utctoday


class AssignmentCreate(BaseModel):
    exam_id: str
    manager_ids: List[str] = Field(..., min_length=1)
    due_date: Optional[date] = None
    max_attempts: Optional[int] = Field(None, ge=1)

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and value <= utctoday():
            raise ValueError("due_date must be after today")
        return value


class AssignmentUpdate(BaseModel):
    due_date: Optional[date] = None
    max_attempts: Optional[int] = Field(None, ge=1)
    status: Optional[AssignmentStatus] = None


class AssignmentResponse(BaseModel):
    id: str
    exam_id: str
    manager_id: str
    assigned_date: date
    due_date: Optional[date] = None
    status: AssignmentStatus
    attempts: int
    max_attempts: int
    exam: Optional[ExamSummary] = None
    created_at: datetime

    class Config:
        from_attributes = True
