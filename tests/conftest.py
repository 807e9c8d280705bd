"""Pytest configuration and shared fixtures."""
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.models.entities import Base, User, Enrolment, Activity
from shared.models.domain import GenerationResult
from shared.utils.constants import ROLE_STUDENT, ROLE_TEACHER

COURSE_ID = 10


@pytest.fixture(scope="function")
def db_session():
    """
    Create a test database session with in-memory SQLite.

    This fixture creates a fresh database for each test function,
    ensuring test isolation.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def users(db_session):
    """Two students and one teacher enrolled in COURSE_ID."""
    student = User(id=1, firstname="Alice", lastname="Anders", email="alice@example.com")
    other = User(id=2, firstname="Bob", lastname="Brown", email="bob@example.com")
    teacher = User(id=3, firstname="Tina", lastname="Teach", email="tina@example.com")
    db_session.add_all([student, other, teacher])
    db_session.add_all([
        Enrolment(user_id=1, course_id=COURSE_ID, role=ROLE_STUDENT),
        Enrolment(user_id=2, course_id=COURSE_ID, role=ROLE_STUDENT),
        Enrolment(user_id=3, course_id=COURSE_ID, role=ROLE_TEACHER),
    ])
    db_session.commit()
    return {"student": student, "other": other, "teacher": teacher}


@pytest.fixture
def activity(db_session, users):
    """Activity with 2 attempts of 3 interactions each."""
    activity = Activity(
        course_id=COURSE_ID,
        name="Photosynthesis chat",
        intro="Ask the bot about plants.",
        prompt_text="You are a biology tutor.",
        channel="default",
        attempts=2,
        interactions=3,
        completion_attempts_enabled=True,
        completion_attempts_count=2,
        completion_share_enabled=True,
        created_at=datetime(2025, 1, 1),
        updated_at=datetime(2025, 1, 1),
    )
    db_session.add(activity)
    db_session.commit()
    db_session.refresh(activity)
    return activity


class FakeLLMService:
    """Stands in for LLMService; records prompts and returns canned replies."""

    provider = "fake"

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.calls = []

    def generate(self, context_id, user_id, prompt_text, channel=None):
        self.calls.append({
            "context_id": context_id,
            "user_id": user_id,
            "prompt_text": prompt_text,
            "channel": channel,
        })
        if self.fail_with:
            return GenerationResult(success=False, error_message=self.fail_with)
        return GenerationResult(success=True, content=f"reply {len(self.calls)}")


@pytest.fixture
def fake_llm():
    return FakeLLMService()


@pytest.fixture
def failing_llm():
    return FakeLLMService(fail_with="provider timed out")


@pytest.fixture
def auth_headers():
    """Build bearer headers carrying a signed session token for a user."""
    from auth.middleware.auth_middleware import issue_session_token

    def _headers(user_id, sesskey="key-1"):
        return {"Authorization": f"Bearer {issue_session_token(user_id, sesskey=sesskey)}"}

    return _headers
