"""Shared fixtures: an app on in-memory SQLite, seeded users and tokens."""

import os
import sys
import uuid

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fastapi.testclient import TestClient

from luct_reporting.config import Settings
from luct_reporting.lifecycle import Role
from luct_reporting.main import create_app
from luct_reporting.middleware.auth import hash_password, token_for_user
from luct_reporting.models.user import User
from luct_reporting.schemas.report import ReportCreate

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    # Closed before the client shutdown disposes the engine
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    def _make(role: Role, username: str = None, name: str = None) -> User:
        username = username or f"{role.value}_{uuid.uuid4().hex[:8]}"
        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=f"{username}@luct.ac.ls",
            name=name or username.replace("_", " ").title(),
            password_hash=PASSWORD_HASH,
            role=role.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def lecturer(make_user):
    return make_user(Role.LECTURER, "thabo", "Thabo Mokoena")


@pytest.fixture
def principal(make_user):
    return make_user(Role.PRINCIPAL_LECTURER, "palesa", "Palesa Nthako")


@pytest.fixture
def leader(make_user):
    return make_user(Role.PROGRAM_LEADER, "lerato", "Lerato Sefali")


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, "karabo", "Karabo Mohapi")


@pytest.fixture
def auth_headers(test_settings):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {token_for_user(user, test_settings)}"}

    return _headers


@pytest.fixture
def report_payload():
    """A complete report submission as the frontend sends it."""
    return {
        "faculty_name": "Faculty of Information & Communication Technology",
        "class_name": "BSCSM Year 2",
        "week_of_reporting": "Week 6",
        "date_of_lecture": "2025-03-10",
        "course_name": "Web Application Development",
        "course_code": "BIWA2110",
        "lecturer_name": "Thabo Mokoena",
        "actual_students_present": 25,
        "total_registered_students": 30,
        "venue": "Hall 6",
        "scheduled_time": "08:30",
        "topic_taught": "REST APIs with Express",
        "learning_outcomes": "Students can design CRUD endpoints",
        "recommendations": "More lab time",
    }


@pytest.fixture
def report_fields(report_payload):
    """The same submission after request parsing, ready for the service layer."""
    return ReportCreate(**report_payload).model_dump()
