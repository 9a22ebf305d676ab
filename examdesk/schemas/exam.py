from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from examdesk.models.exam import Difficulty, ExamStatus, QuestionType


class QuestionBase(BaseModel):
    question: str = Field(..., min_length=1)
    type: QuestionType
    options: Optional[List[str]] = None
    correct_answer: str
    score: int = Field(..., ge=0)
    difficulty: Difficulty
    category: str = Field(..., min_length=1, max_length=255)


class QuestionCreate(QuestionBase):
    pass


class QuestionUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    type: Optional[QuestionType] = None
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    score: Optional[int] = Field(None, ge=0)
    difficulty: Optional[Difficulty] = None
    category: Optional[str] = Field(None, min_length=1, max_length=255)


class QuestionResponse(QuestionBase):
    id: str
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExamCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    duration: int = Field(..., ge=1)
    passing_score: int = Field(..., ge=0, le=100)
    status: Optional[ExamStatus] = None
    # Attached in the given order
    question_ids: Optional[List[str]] = None


class ExamUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[ExamStatus] = None


class QuestionOrder(BaseModel):
    question_id: str
    order: int = Field(..., ge=0)


class QuestionAttach(BaseModel):
    questions: List[QuestionOrder] = Field(..., min_length=1)


class ExamResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    duration: int
    passing_score: int
    status: ExamStatus
    created_by: Optional[str] = None
    questions: List[QuestionResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True


class ExamSummary(BaseModel):
    """Exam header without its questions"""
    id: str
    title: str
    duration: int
    passing_score: int

    class Config:
        from_attributes = True
