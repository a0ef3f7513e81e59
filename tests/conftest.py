"""
Pytest configuration and shared fixtures for the ApplyTrack tests.
"""
import os
import sys
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import patch

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault("TESTING", "true")

from applytrack.main import app
from applytrack.config.settings import get_settings
from applytrack.models.db.database import get_db, Base, enable_sqlite_foreign_keys
from applytrack.models.db import crud
from applytrack.models.db.application import Application


# Test Database Setup
@pytest.fixture(scope="function")
def test_db_engine():
    """A fresh in-memory SQLite database per test, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def test_client(test_db_session):
    """Create a test client with overridden database dependency."""
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# User Fixtures
@pytest.fixture
def test_user_data():
    """Sample user data for testing."""
    return {
        "email": "test@example.com",
        "password": "testpassword123",
        "first_name": "Test",
        "last_name": "User",
    }


def register_and_get_headers(client, user_data):
    response = client.post("/api/auth/register", json=user_data)
    assert response.status_code == 201, response.text
    token = response.json()["token"]
    # Authenticate through the header only so several users can share a client.
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_client, test_user_data):
    """Register the default user and return bearer headers for it."""
    return register_and_get_headers(test_client, test_user_data)


@pytest.fixture
def second_user_headers(test_client):
    return register_and_get_headers(test_client, {
        "email": "other@example.com",
        "password": "otherpassword123",
    })


@pytest.fixture
def test_user(test_db_session, auth_headers, test_user_data):
    """The registered default user as a database row."""
    return crud.get_user_by_email(test_db_session, test_user_data["email"])


# Application Fixtures
@pytest.fixture
def create_application(test_client, auth_headers):
    """POST an application for the default user; returns the created record."""
    def _create(headers=None, **fields):
        payload = {"company_name": "Acme Corp", "job_title": "Backend Engineer"}
        payload.update(fields)
        for key, value in list(payload.items()):
            if isinstance(value, date):
                payload[key] = value.isoformat()
        response = test_client.post(
            "/api/applications", json=payload, headers=headers or auth_headers
        )
        assert response.status_code == 201, response.text
        return response.json()["application"]
    return _create


@pytest.fixture
def insert_application(test_db_session):
    """Insert an application row directly, for control over timestamps."""
    def _insert(user_id, **fields):
        values = {
            "company_name": "Acme Corp",
            "job_title": "Backend Engineer",
            "status": "Applied",
            "created_at": datetime(2024, 1, 1, 12, 0, 0),
            "updated_at": datetime(2024, 1, 1, 12, 0, 0),
        }
        values.update(fields)
        row = Application(user_id=user_id, **values)
        test_db_session.add(row)
        test_db_session.commit()
        test_db_session.refresh(row)
        return row
    return _insert


# Resume Upload Fixtures
@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Point resume storage at a temporary directory."""
    target = tmp_path / "resumes"
    monkeypatch.setattr(get_settings(), "upload_directory", str(target))
    return target


@pytest.fixture
def upload_resume(test_client, auth_headers, upload_dir):
    def _upload(name="resume.pdf", content=b"%PDF-1.4 sample resume", mime="application/pdf", headers=None):
        response = test_client.post(
            "/api/resumes/upload",
            files={"resume": (name, content, mime)},
            headers=headers or auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["resume"]
    return _upload


# AI Mocks
@pytest.fixture
def mock_gemini():
    """Replace the Gemini call; set ``return_value`` or ``side_effect`` per test."""
    with patch("applytrack.services.gemini_service._generate_text") as mock_generate:
        yield mock_generate
