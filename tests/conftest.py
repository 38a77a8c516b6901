"""
Pytest configuration and fixtures for the feedback service tests.

The database URL must point at in-memory SQLite before any application
module is imported, since the engine is created at import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("APP_ENV", "test")

import pytest
from fastapi.testclient import TestClient

from skillsync_feedback.core.database import Base, SessionLocal, engine
from skillsync_feedback.main import app
from skillsync_feedback.models.feedback import Feedback


@pytest.fixture(autouse=True)
def clean_database():
    """Recreate the schema for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def valid_feedback_payload():
    """Valid feedback submission payload."""
    return {
        "comment": "Great course",
        "rating": 5,
        "userId": 1,
        "courseId": 10,
    }


@pytest.fixture
def make_feedback(db):
    """Insert a feedback row directly, bypassing the service."""
    from skillsync_feedback.services.feedback_service import utcnow

    def _make(**overrides):
        now = utcnow()
        values = {
            "comment": "Solid content",
            "rating": 4,
            "user_id": 1,
            "course_id": 10,
            "status": "New",
            "is_anonymous": False,
            "submission_timestamp": now,
            "last_updated_timestamp": now,
        }
        values.update(overrides)
        feedback = Feedback(**values)
        db.add(feedback)
        db.commit()
        db.refresh(feedback)
        return feedback

    return _make
