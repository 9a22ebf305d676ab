from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
import uuid

from examdesk.db.base import Base, enum_type
from examdesk.utils.time import utcnow


class ExamResultStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"


class ExamResult(Base):
    """One attempt at one exam of an exam set by one manager."""
    __tablename__ = "exam_results"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    exam_set_id = Column(String, ForeignKey("exam_sets.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_id = Column(String, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    manager_id = Column(String, ForeignKey("managers.id", ondelete="CASCADE"), nullable=False, index=True)
    # question_id -> submitted value
    answers = Column(JSON, nullable=True)
    score = Column(Integer, nullable=True)
    total_score = Column(Integer, nullable=True)
    percentage = Column(Float, nullable=True)
    status = Column(enum_type(ExamResultStatus), nullable=False, default=ExamResultStatus.IN_PROGRESS, index=True)
    started_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime, nullable=True)
    # Whole minutes
    time_spent = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    exam_set = relationship("ExamSet", back_populates="results")
    exam = relationship("Exam", back_populates="results")
    manager = relationship("Manager", back_populates="results")

    __table_args__ = (
        UniqueConstraint("exam_set_id", "exam_id", "manager_id", name="uq_exam_results_set_exam_manager"),
    )

    @property
    def is_finalized(self) -> bool:
        return self.status != ExamResultStatus.IN_PROGRESS
