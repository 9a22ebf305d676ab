from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
import uuid

from examdesk.db.base import Base, enum_type
from examdesk.utils.time import utcnow


class ExamSetStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ExamSet(Base):
    """A bundle of exams delivered to one manager under shared credentials."""
    __tablename__ = "exam_sets"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    manager_id = Column(String, ForeignKey("managers.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    assigned_date = Column(Date, nullable=True)
    exam_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    status = Column(enum_type(ExamSetStatus), nullable=False, default=ExamSetStatus.PENDING)
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    manager = relationship("Manager", back_populates="exam_sets")
    results = relationship("ExamResult", back_populates="exam_set", cascade="all, delete-orphan")
    items = relationship(
        "ExamSetItem",
        back_populates="exam_set",
        order_by="ExamSetItem.order",
        cascade="all, delete-orphan",
    )


class ExamSetItem(Base):
    __tablename__ = "exam_set_items"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    exam_set_id = Column(String, ForeignKey("exam_sets.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_id = Column(String, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="not_started")
    created_at = Column(DateTime, default=utcnow)

    exam_set = relationship("ExamSet", back_populates="items")
    exam = relationship("Exam", back_populates="set_items")

    __table_args__ = (
        UniqueConstraint("exam_set_id", "exam_id", name="uq_exam_set_items_set_exam"),
    )
