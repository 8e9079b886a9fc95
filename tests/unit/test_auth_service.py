"""
Unit tests for AuthService: registration, login gates, logout and token checks.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    StateConflictError,
    ValidationError,
)
from cureconnect.core.security import create_user_token, hash_password
from cureconnect.domain.entities import Doctor, Patient, User
from cureconnect.schemas.dtos import LoginRequest, RegisterRequest
from cureconnect.services.auth_service import (
    BLOCKED_DOCTOR_LOGIN,
    INACTIVE_PATIENT_MESSAGE,
    INVALID_CREDENTIALS,
    AuthService,
)
from tests.factories.repository_factories import (
    DoctorRepositoryFactory,
    PatientRepositoryFactory,
    RevokedTokenRepositoryFactory,
    UserRepositoryFactory,
)

PASSWORD = "secret123"


@pytest.fixture
def user_repo() -> Mock:
    repo = UserRepositoryFactory.create_mock_full()

    def _create(user, password_hash):
        user.id = "user-1"
        return user

    repo.create.side_effect = _create
    return repo


@pytest.fixture
def doctor_repo() -> Mock:
    return DoctorRepositoryFactory.create_mock_full()


@pytest.fixture
def patient_repo() -> Mock:
    return PatientRepositoryFactory.create_mock_full()


@pytest.fixture
def token_repo() -> Mock:
    return RevokedTokenRepositoryFactory.create_mock_full()


@pytest.fixture
def service(user_repo, doctor_repo, patient_repo, token_repo) -> AuthService:
    return AuthService(user_repo, doctor_repo, patient_repo, token_repo)


def _stored_user(user_repo, role="patient", id="user-1"):
    user = User(id=id, name="Jane Patient", email="jane@example.com", role=role)
    user_repo.get_by_email.return_value = user
    user_repo.get_by_id.return_value = user
    user_repo.get_password_hash.return_value = hash_password(PASSWORD)
    return user


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.auth
class TestRegistration:
    def test_patient_registration_returns_token(self, service, patient_repo):
        result = service.register(
            RegisterRequest(name="Jane Patient", email="jane@example.com", password=PASSWORD)
        )

        assert result.token
        assert result.user.role == "patient"
        assert result.user.status == "active"
        patient_repo.create.assert_called_once()

    def test_doctor_registration_starts_pending(self, service, doctor_repo):
        result = service.register(
            RegisterRequest(
                name="Dr. House",
                email="house@example.com",
                password=PASSWORD,
                role="doctor",
                specialization="Diagnostics",
            )
        )

        assert result.user.status == "pending"
        created = doctor_repo.create.call_args[0][0]
        assert created.id == "user-1"
        assert created.specialization == "Diagnostics"

    def test_duplicate_email(self, service, user_repo):
        _stored_user(user_repo)

        with pytest.raises(StateConflictError):
            service.register(
                RegisterRequest(name="Jane", email="jane@example.com", password=PASSWORD)
            )

    def test_admin_cannot_self_register(self, service):
        with pytest.raises(ValidationError):
            service.register(
                RegisterRequest(
                    name="Mallory", email="m@example.com", password=PASSWORD, role="admin"
                )
            )

    def test_short_password(self, service):
        with pytest.raises(ValidationError):
            service.register(
                RegisterRequest(name="Jane", email="jane@example.com", password="123")
            )


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.auth
class TestLogin:
    def test_valid_credentials(self, service, user_repo, patient_repo):
        _stored_user(user_repo)
        patient_repo.get_by_id.return_value = Patient(id="user-1")

        result = service.login(LoginRequest(email="jane@example.com", password=PASSWORD))

        assert result.user.id == "user-1"
        assert result.expires_in > 0

    def test_wrong_password(self, service, user_repo):
        _stored_user(user_repo)

        with pytest.raises(AuthenticationError) as exc_info:
            service.login(LoginRequest(email="jane@example.com", password="nope-nope"))

        assert exc_info.value.message == INVALID_CREDENTIALS

    def test_unknown_email(self, service):
        with pytest.raises(AuthenticationError):
            service.login(LoginRequest(email="ghost@example.com", password=PASSWORD))

    @pytest.mark.parametrize("status", ["pending", "rejected"])
    def test_unapproved_doctor_is_refused(self, service, user_repo, doctor_repo, status):
        _stored_user(user_repo, role="doctor")
        doctor_repo.get_by_id.return_value = Doctor(
            id="user-1", specialization="Cardiology", status=status
        )

        with pytest.raises(AuthorizationError) as exc_info:
            service.login(LoginRequest(email="jane@example.com", password=PASSWORD))

        assert exc_info.value.message == BLOCKED_DOCTOR_LOGIN[status]

    def test_suspended_doctor_may_sign_in(self, service, user_repo, doctor_repo):
        _stored_user(user_repo, role="doctor")
        doctor_repo.get_by_id.return_value = Doctor(
            id="user-1", specialization="Cardiology", status="suspended"
        )

        result = service.login(LoginRequest(email="jane@example.com", password=PASSWORD))

        assert result.user.status == "suspended"

    def test_inactive_patient_is_refused(self, service, user_repo, patient_repo):
        _stored_user(user_repo)
        patient_repo.get_by_id.return_value = Patient(id="user-1", status="inactive")

        with pytest.raises(AuthorizationError) as exc_info:
            service.login(LoginRequest(email="jane@example.com", password=PASSWORD))

        assert exc_info.value.message == INACTIVE_PATIENT_MESSAGE


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.auth
class TestTokens:
    def test_authenticate_token_builds_context(self, service, user_repo, patient_repo):
        _stored_user(user_repo)
        patient_repo.get_by_id.return_value = Patient(id="user-1")

        actor = service.authenticate_token(create_user_token("user-1", "patient"))

        assert actor.id == "user-1"
        assert actor.is_patient
        assert actor.account_status == "active"
        assert actor.token_id

    def test_role_comes_from_the_database(self, service, user_repo, patient_repo):
        _stored_user(user_repo, role="patient")
        patient_repo.get_by_id.return_value = Patient(id="user-1")

        actor = service.authenticate_token(create_user_token("user-1", "admin"))

        assert actor.role == "patient"

    def test_revoked_token(self, service, user_repo, token_repo):
        _stored_user(user_repo)
        token_repo.is_revoked.return_value = True

        assert service.authenticate_token(create_user_token("user-1", "patient")) is None

    def test_garbage_token(self, service):
        assert service.authenticate_token("not-a-jwt") is None
        assert service.authenticate_token(None) is None

    def test_deleted_user(self, service):
        assert service.authenticate_token(create_user_token("gone", "patient")) is None

    def test_logout_revokes_jti(self, service, token_repo):
        expires = datetime.now(timezone.utc) + timedelta(hours=1)
        actor = AuthContext(
            id="user-1", role="patient", token_id="jti-1", token_expires_at=expires
        )

        service.logout(actor)

        token_repo.revoke.assert_called_once_with("jti-1", "user-1", expires)
        token_repo.purge_expired.assert_called_once()


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.auth
class TestEnsureAdmin:
    def test_creates_admin_once(self, service, user_repo):
        admin, created = service.ensure_admin("admin@example.com", PASSWORD)

        assert created is True
        assert admin.role == "admin"

        user_repo.get_by_email.return_value = admin
        again, created = service.ensure_admin("admin@example.com", PASSWORD)

        assert created is False
        assert again is admin

    def test_email_taken_by_other_role(self, service, user_repo):
        _stored_user(user_repo, role="doctor")

        with pytest.raises(StateConflictError):
            service.ensure_admin("jane@example.com", PASSWORD)

    def test_weak_admin_password(self, service):
        with pytest.raises(ValidationError):
            service.ensure_admin("admin@example.com", "123")
