from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from examdesk.models.result import ExamResultStatus
from examdesk.schemas.exam import ExamSummary


class ExamResultStart(BaseModel):
    exam_set_id: str
    exam_id: str
    manager_id: str


class AnswersPayload(BaseModel):
    # question_id -> submitted value (string, list for checkbox, number for rating)
    answers: Dict[str, Any] = Field(...)


class ExamResultResponse(BaseModel):
    id: str
    exam_set_id: str
    exam_id: str
    manager_id: str
    answers: Optional[Dict[str, Any]] = None
    score: Optional[int] = None
    total_score: Optional[int] = None
    percentage: Optional[float] = None
    status: ExamResultStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None

    class Config:
        from_attributes = True


class ResultSummary(BaseModel):
    score: int
    total_score: int
    percentage: float
    status: ExamResultStatus
    passed: bool
    time_spent_minutes: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class SubmissionResponse(BaseModel):
    result: ExamResultResponse
    summary: ResultSummary


class QuestionOutcome(BaseModel):
    question_id: str
    question: str
    user_answer: Any = None
    correct_answer: str
    is_correct: bool
    score: int
    max_score: int


class ResultReport(BaseModel):
    result: ExamResultResponse
    exam: ExamSummary
    summary: ResultSummary
    questions: List[QuestionOutcome]
