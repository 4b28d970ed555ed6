"""
Pytest configuration and shared fixtures for the test suite.
Settings come from the environment, so it is populated before any app import.
"""
import os
import uuid
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6399/0")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")
os.environ.setdefault("RATE_LIMIT_PER_HOUR", "100000")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import LearningTrack, Lesson, LearningTrackLesson
from app.utils.auth import LearnerSession, create_access_token
from app.utils.cache import cache_service
from app.utils.rate_limiter import rate_limiter

# Wednesday
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Keep tests off any local Redis"""
    monkeypatch.setattr(cache_service, "redis_client", None)
    rate_limiter.reset()


# ----- In-memory DB -----
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def learner():
    return LearnerSession(user_id=uuid.uuid4(), email="learner@example.com", roles=["user"])


@pytest.fixture
def make_track(db_session):
    """Create a track with n published lessons at order 0..n-1"""

    def _make_track(lesson_count=3, **fields):
        fields.setdefault("title", "Data Protection Basics")
        fields.setdefault("schedule_type", "flexible")
        fields.setdefault("status", "published")
        track = LearningTrack(**fields)
        db_session.add(track)
        db_session.flush()

        for index in range(lesson_count):
            lesson = Lesson(
                title=f"Lesson {index + 1}",
                description=f"Part {index + 1}",
                estimated_duration=15,
                status="published",
            )
            db_session.add(lesson)
            db_session.flush()
            db_session.add(LearningTrackLesson(
                learning_track_id=track.id,
                lesson_id=lesson.id,
                order_index=index,
            ))

        db_session.commit()
        db_session.refresh(track)
        return track

    return _make_track


# ----- API client -----
@pytest.fixture
def api_client(session_factory):
    """FastAPI TestClient with the in-memory DB behind get_db"""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.database import get_db

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user_id, email="learner@example.com"):
        return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}

    return _auth_headers
