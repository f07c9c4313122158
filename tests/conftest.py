"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- FastAPI test client
- An in-memory outbox replacing Celery queueing
- Factories for users and companies
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import get_password_hash
from app.models.company import Company
from app.models.user import PermissionLevel, User, UserRole
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "SecurePass123!"


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    Tables are dropped after the test completes.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """
    FastAPI test client with overridden database dependency.

    The lifespan runs, so the app gets its (in-memory) session manager.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def session_manager(client):
    return app.state.session_manager


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """
    Replace broker queueing with an in-memory outbox.

    Each queued task is recorded as {"task": name, **kwargs}.
    """
    sent = []

    def fake_queue(task, args, kwargs):
        sent.append({"task": task.name, **kwargs})
        return (True, "test-task-id", "")

    monkeypatch.setattr("app.core.celery_utils._queue_task_sync", fake_queue)
    return sent


@pytest.fixture
def broker_down(monkeypatch):
    """Make every queue attempt fail as if Redis were unreachable."""
    def failing_queue(task, args, kwargs):
        return (False, "", "Error 111 connecting to localhost:6379. Connection refused.")

    monkeypatch.setattr("app.core.celery_utils._queue_task_sync", failing_queue)


@pytest.fixture
def create_company(db_session):
    def _create(name="Acme Manufacturing", short_name="ACMEMA", is_contractor=False, **fields):
        company = Company(name=name, short_name=short_name, is_contractor=is_contractor, **fields)
        db_session.add(company)
        db_session.commit()
        db_session.refresh(company)
        return company

    return _create


@pytest.fixture
def create_user(db_session):
    def _create(
        email="user@example.com",
        password=DEFAULT_PASSWORD,
        role=UserRole.TEAM_MEMBER,
        permission_level=PermissionLevel.EDITOR,
        company_id=None,
        is_email_verified=True,
        hashed_password=None,
        **fields
    ):
        user = User(
            email=email,
            hashed_password=hashed_password or get_password_hash(password),
            first_name=fields.pop("first_name", "Test"),
            last_name=fields.pop("last_name", "User"),
            role=role,
            permission_level=permission_level,
            company_id=company_id,
            is_email_verified=is_email_verified,
            **fields
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create


@pytest.fixture
def login(client):
    """Log in through the API; the client keeps the session cookie."""
    def _login(email, password=DEFAULT_PASSWORD, **extra):
        return client.post("/api/auth/login", json={"email": email, "password": password, **extra})

    return _login


@pytest.fixture
def registration_payload():
    """Fields shared by every registration path."""
    def _payload(account_type, email="new@example.com", **fields):
        payload = {
            "accountType": account_type,
            "email": email,
            "password": DEFAULT_PASSWORD,
            "firstName": "Jamie",
            "lastName": "Rivera",
        }
        payload.update(fields)
        return payload

    return _payload


@pytest.fixture
def session_factory(db_session):
    """Session factory bound to the test engine (tables already created)."""
    return TestingSessionLocal
