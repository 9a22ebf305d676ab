from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
import uuid

from examdesk.db.base import Base, enum_type
from examdesk.utils.time import utcnow


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    DESCRIPTIVE = "descriptive"
    CHECKBOX = "checkbox"
    RATING = "rating"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ExamStatus(str, enum.Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class Question(Base):
    __tablename__ = "questions"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    question = Column(Text, nullable=False)
    type = Column(enum_type(QuestionType), nullable=False, index=True)
    options = Column(JSON, nullable=True)
    correct_answer = Column(Text, nullable=False)
    score = Column(Integer, nullable=False, default=0)
    difficulty = Column(enum_type(Difficulty), nullable=False, index=True)
    category = Column(String(255), nullable=False, index=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    exam_links = relationship("ExamQuestion", back_populates="question", cascade="all, delete-orphan")


class ExamQuestion(Base):
    """Ordered membership of a question in an exam."""
    __tablename__ = "exam_questions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    exam_id = Column(String, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    exam = relationship("Exam", back_populates="question_links")
    question = relationship("Question", back_populates="exam_links")

    __table_args__ = (
        UniqueConstraint("exam_id", "question_id", name="uq_exam_questions_exam_question"),
    )


class Exam(Base):
    __tablename__ = "exams"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # Minutes
    duration = Column(Integer, nullable=False)
    # Percentage threshold, inclusive
    passing_score = Column(Integer, nullable=False)
    status = Column(enum_type(ExamStatus), nullable=False, default=ExamStatus.DRAFT)
    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    question_links = relationship(
        "ExamQuestion",
        back_populates="exam",
        order_by="ExamQuestion.order",
        cascade="all, delete-orphan",
    )
    creator = relationship("User")
    set_items = relationship("ExamSetItem", back_populates="exam", cascade="all, delete-orphan")
    assignments = relationship("ExamAssignment", back_populates="exam", cascade="all, delete-orphan")
    results = relationship("ExamResult", back_populates="exam", cascade="all, delete-orphan")

    @property
    def questions(self):
        return [link.question for link in self.question_links]
