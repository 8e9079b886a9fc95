"""
Central pytest configuration for the CureConnect tests.

Environment variables are set before anything from ``cureconnect`` is
imported so the lazy engine, the password hasher and the app factory all
see the test configuration.
"""

import os
from datetime import date

import pytest

# Test database configuration (set early so import-time settings use it)
os.environ["DATABASE_URL"] = "sqlite:///:memory:"  # Shared in-memory SQLite
os.environ["TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "0"  # Disable rate limiting in tests
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-the-test-suite"
os.environ.pop("SMTP_HOST", None)  # No outgoing email from tests
os.environ.pop("SENTRY_DSN", None)

from tests.factories.dates import future_weekday  # noqa: E402
from tests.config.markers import (  # noqa: E402,F401
    pytest_collection_modifyitems,
    pytest_configure,
    response_helper,
)

DEFAULT_PASSWORD = "secret123"
ADMIN_EMAIL = "admin@cureconnect.test"


@pytest.fixture
def next_monday() -> date:
    return future_weekday(0)


@pytest.fixture
def app():
    """Application with a freshly created schema for every test."""
    from cureconnect.db.session import create_tables, drop_tables
    from cureconnect.main import create_app

    application = create_app()
    drop_tables()
    create_tables()

    yield application

    drop_tables()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    from cureconnect.db.session import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class ApiHelper:
    """Account setup through the public endpoints."""

    def __init__(self, client):
        self.client = client

    @staticmethod
    def headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    def register(
        self,
        name: str,
        email: str,
        role: str = "patient",
        password: str = DEFAULT_PASSWORD,
        **profile,
    ):
        payload = {"name": name, "email": email, "password": password, "role": role}
        payload.update(profile)
        return self.client.post("/api/auth/register", json=payload)

    def login(self, email: str, password: str = DEFAULT_PASSWORD):
        return self.client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )

    def token_for(self, email: str, password: str = DEFAULT_PASSWORD) -> str:
        response = self.login(email, password)
        assert response.status_code == 200, response.get_json()
        return response.get_json()["data"]["token"]

    def register_patient(self, name="Jane Patient", email="jane@example.com"):
        """Register a patient and return (user id, token)."""
        response = self.register(name, email)
        assert response.status_code == 201, response.get_json()
        data = response.get_json()["data"]
        return data["user"]["id"], data["token"]

    def admin_token(self) -> str:
        from cureconnect.controllers.auth_controller import build_auth_service
        from cureconnect.db.session import SessionLocal

        db = SessionLocal()
        try:
            build_auth_service(db).ensure_admin(ADMIN_EMAIL, DEFAULT_PASSWORD)
        finally:
            db.close()
        return self.token_for(ADMIN_EMAIL)

    def register_doctor(
        self, name="Gregory House", email="house@example.com", **profile
    ) -> str:
        profile.setdefault("specialization", "Cardiology")
        profile.setdefault("location", "Princeton")
        profile.setdefault("fees", 150)
        response = self.register(name, email, role="doctor", **profile)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["data"]["user"]["id"]

    def set_doctor_status(self, doctor_id: str, status: str, reason=None):
        payload = {"status": status}
        if reason:
            payload["reason"] = reason
        return self.client.patch(
            f"/api/doctors/{doctor_id}/status",
            json=payload,
            headers=self.headers(self.admin_token()),
        )

    def active_doctor(
        self, name="Gregory House", email="house@example.com", **profile
    ):
        """Register and approve a doctor; returns (doctor id, token)."""
        doctor_id = self.register_doctor(name, email, **profile)
        response = self.set_doctor_status(doctor_id, "active")
        assert response.status_code == 200, response.get_json()
        return doctor_id, self.token_for(email)

    def book(self, token: str, doctor_id: str, day: date, time: str = "9:00 AM"):
        return self.client.post(
            "/api/appointments",
            json={"doctor_id": doctor_id, "date": day.isoformat(), "time": time},
            headers=self.headers(token),
        )


@pytest.fixture
def api(client):
    return ApiHelper(client)
