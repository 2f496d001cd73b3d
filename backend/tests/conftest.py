import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import classgrid.models  # noqa: E402,F401
from classgrid.api.deps import get_db, get_recommender  # noqa: E402
from classgrid.db.base import Base  # noqa: E402
from classgrid.main import app  # noqa: E402


class FakeRecommender:
    """Stands in for the recommender client; answers per group name."""

    def __init__(self):
        self.responses = {}
        self.calls = []

    def recommend(self, constraints, *, level, group_name=None):
        self.calls.append({"constraints": constraints, "level": level, "group_name": group_name})
        result = self.responses.get(group_name, [])
        if isinstance(result, Exception):
            raise result
        return result


def make_section(
    course_code="CS101",
    day="Monday",
    start="14:00",
    end="15:00",
    room="A101",
    section_label="A",
    student_count=20,
    capacity=30,
):
    return {
        "course_code": course_code,
        "section_label": section_label,
        "window": {"day": day, "start": start, "end": end},
        "room": room,
        "student_count": student_count,
        "capacity": capacity,
    }


def make_recommendation(course_code="CS101", day="Monday", start="14:00", end="15:00", room="A101", students=3):
    return {
        "course_code": course_code,
        "section_label": "A",
        "timeslot": {"day": day, "start": start, "end": end},
        "room": room,
        "allocated_student_ids": [f"student-{index}" for index in range(students)],
        "justification": "Afternoon slot",
        "confidence_score": 0.9,
    }


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def recommender():
    return FakeRecommender()


@pytest.fixture()
def client(session_factory, recommender):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_recommender] = lambda: recommender

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
