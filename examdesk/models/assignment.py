from sqlalchemy import CheckConstraint, Column, String, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
import uuid

from examdesk.db.base import Base, enum_type
from examdesk.utils.time import utcnow, utctoday


class AssignmentStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"
    EXPIRED = "expired"


class ExamAssignment(Base):
    __tablename__ = "exam_assignments"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    exam_id = Column(String, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    manager_id = Column(String, ForeignKey("managers.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_date = Column(Date, nullable=False, default=utctoday)
    due_date = Column(Date, nullable=True)
    status = Column(enum_type(AssignmentStatus), nullable=False, default=AssignmentStatus.ASSIGNED)
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    exam = relationship("Exam", back_populates="assignments", lazy="joined")
    manager = relationship("Manager", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("exam_id", "manager_id", name="uq_exam_assignments_exam_manager"),
        CheckConstraint("attempts <= max_attempts", name="ck_exam_assignments_attempt_quota"),
    )
