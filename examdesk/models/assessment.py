from sqlalchemy import Boolean, Column, String, Integer, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
import enum
import uuid

from examdesk.db.base import Base, enum_type
from examdesk.utils.time import utcnow


class AssessmentTemplateStatus(str, enum.Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class AssessmentQuestionType(str, enum.Enum):
    TEXT = "text"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    RATING = "rating"


class AssessmentStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


class AssessmentTemplate(Base):
    """A multi-step questionnaire that managers fill in; nothing is graded."""
    __tablename__ = "assessment_templates"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(255), nullable=False, index=True)
    # Minutes
    estimated_time = Column(Integer, nullable=False)
    status = Column(enum_type(AssessmentTemplateStatus), nullable=False, default=AssessmentTemplateStatus.DRAFT)
    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    steps = relationship(
        "AssessmentStep",
        back_populates="template",
        order_by="AssessmentStep.order",
        cascade="all, delete-orphan",
    )
    assessments = relationship("Assessment", back_populates="template", cascade="all, delete-orphan")
    creator = relationship("User")


class AssessmentStep(Base):
    __tablename__ = "assessment_steps"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    template_id = Column(String, ForeignKey("assessment_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    template = relationship("AssessmentTemplate", back_populates="steps")
    questions = relationship(
        "AssessmentQuestion",
        back_populates="step",
        order_by="AssessmentQuestion.order",
        cascade="all, delete-orphan",
    )


class AssessmentQuestion(Base):
    __tablename__ = "assessment_questions"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    step_id = Column(String, ForeignKey("assessment_steps.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    type = Column(enum_type(AssessmentQuestionType), nullable=False)
    options = Column(JSON, nullable=True)
    required = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    step = relationship("AssessmentStep", back_populates="questions")


class Assessment(Base):
    """One manager's run through a template, saved step by step."""
    __tablename__ = "assessments"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    manager_id = Column(String, ForeignKey("managers.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(String, ForeignKey("assessment_templates.id", ondelete="CASCADE"), nullable=False, index=True)
    # 1-based
    current_step = Column(Integer, nullable=False, default=1)
    # question_id -> answer
    answers = Column(JSON, nullable=True)
    status = Column(enum_type(AssessmentStatus), nullable=False, default=AssessmentStatus.DRAFT, index=True)
    score = Column(Integer, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    manager = relationship("Manager", back_populates="assessments")
    template = relationship("AssessmentTemplate", back_populates="assessments")
