from sqlalchemy import Boolean, Column, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
import uuid

from examdesk.db.base import Base, enum_type
from examdesk.utils.time import utcnow


class CompanyStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class ManagerStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Company(Base):
    __tablename__ = "companies"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    legal_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(enum_type(CompanyStatus), nullable=False, default=CompanyStatus.ACTIVE)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("User")
    managers = relationship("Manager", back_populates="company", cascade="all, delete-orphan")


class Manager(Base):
    __tablename__ = "managers"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    status = Column(enum_type(ManagerStatus), nullable=False, default=ManagerStatus.ACTIVE)
    exam_status = Column(String(20), nullable=False, default="not_started")
    can_view_results = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", lazy="joined")
    company = relationship("Company", back_populates="managers")
    exam_sets = relationship("ExamSet", back_populates="manager", cascade="all, delete-orphan")
    assignments = relationship("ExamAssignment", back_populates="manager", cascade="all, delete-orphan")
    results = relationship("ExamResult", back_populates="manager", cascade="all, delete-orphan")
    assessments = relationship("Assessment", back_populates="manager", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_managers_company_user"),
    )
