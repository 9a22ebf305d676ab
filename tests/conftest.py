import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from examdesk.core.config import settings
from examdesk.db.base import Base, get_db
from examdesk.models import (
    Company, CompanyStatus, Difficulty, Exam, ExamQuestion, ExamStatus, Manager, ManagerStatus,
    Question, QuestionType, User, UserRole, UserStatus,
)
from examdesk.services.auth import issue_session
from examdesk.services.exam_set import create_exam_set
from main import app


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "OTP_EXPOSE_CODE", True)
    monkeypatch.setattr(settings, "SMS_GATEWAY_URL", "")
    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    monkeypatch.setattr(settings, "SUPABASE_KEY", "")
    monkeypatch.setattr(settings, "MEDIA_ROOT", str(tmp_path / "media"))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(phone=None, role=UserRole.OWNER, name=None, status=UserStatus.ACTIVE):
        counter["n"] += 1
        phone = phone or f"0912{counter['n']:07d}"
        user = User(phone=phone, name=name or f"User {phone[-4:]}", role=role, status=status)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(db):
    def _auth_headers(user):
        token = asyncio.run(issue_session(db, user))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def make_company(db):
    def _make_company(owner, name="Acme"):
        company = Company(name=name, owner_id=owner.id, status=CompanyStatus.ACTIVE)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company

    return _make_company


@pytest.fixture
def make_manager(db, make_user):
    def _make_manager(company, user=None):
        user = user or make_user(role=UserRole.MANAGER)
        manager = Manager(
            company_id=company.id,
            user_id=user.id,
            status=ManagerStatus.ACTIVE,
            exam_status="not_started",
            can_view_results=False,
        )
        db.add(manager)
        db.commit()
        db.refresh(manager)
        return manager

    return _make_manager


@pytest.fixture
def make_question(db):
    def _make_question(correct_answer="x", score=10, type=QuestionType.MULTIPLE_CHOICE, options=None):
        question = Question(
            question=f"Pick {correct_answer}",
            type=type,
            options=options,
            correct_answer=correct_answer,
            score=score,
            difficulty=Difficulty.EASY,
            category="general",
        )
        db.add(question)
        db.commit()
        db.refresh(question)
        return question

    return _make_question


@pytest.fixture
def make_exam(db):
    def _make_exam(questions=(), passing_score=60, title="Onboarding"):
        exam = Exam(title=title, duration=30, passing_score=passing_score, status=ExamStatus.ACTIVE)
        for index, question in enumerate(questions):
            exam.question_links.append(ExamQuestion(question_id=question.id, order=index + 1))
        db.add(exam)
        db.commit()
        db.refresh(exam)
        return exam

    return _make_exam


@pytest.fixture
def make_exam_set(db):
    def _make_exam_set(actor, manager, exams):
        exam_set, _ = asyncio.run(create_exam_set(db, actor, {
            "manager_id": manager.id,
            "title": "Quarterly review",
            "exam_ids": [exam.id for exam in exams],
        }))
        return exam_set

    return _make_exam_set
