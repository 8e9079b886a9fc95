"""
Authentication use-cases: registration, login, logout and token checks.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from cureconnect.core.auth_decorators import (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    ROLE_PATIENT,
    AuthContext,
)
from cureconnect.core.config import JWT_EXPIRATION_HOURS
from cureconnect.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from cureconnect.core.logging_config import get_logger
from cureconnect.core.security import (
    MIN_PASSWORD_LENGTH,
    create_user_token,
    get_token_claims,
    hash_password,
    verify_password,
)
from cureconnect.domain.entities import Doctor, Patient, User
from cureconnect.domain.interfaces import (
    IDoctorRepository,
    IPatientRepository,
    IRevokedTokenRepository,
    IUserRepository,
)
from cureconnect.schemas.dtos import (
    AuthTokenResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"

# Doctor statuses that may not sign in, with the reason shown to them
BLOCKED_DOCTOR_LOGIN = {
    "pending": "Your account is under review. Please wait for approval.",
    "rejected": (
        "Your application was rejected. "
        "Please contact support for more information."
    ),
}
INACTIVE_PATIENT_MESSAGE = (
    "Your account is currently inactive. Please contact support to reactivate it."
)


class AuthService:
    """Application service for account and session use-cases.

    Sessions are stateless JWTs; logout stores the token's ``jti`` in the
    revoked-token table and :meth:`authenticate_token` rejects it afterwards.
    """

    def __init__(
        self,
        user_repo: IUserRepository,
        doctor_repo: IDoctorRepository,
        patient_repo: IPatientRepository,
        token_repo: IRevokedTokenRepository,
    ) -> None:
        self.user_repo = user_repo
        self.doctor_repo = doctor_repo
        self.patient_repo = patient_repo
        self.token_repo = token_repo

    def register(self, request: RegisterRequest) -> AuthTokenResponse:
        """Create a patient or doctor account and return a session token.

        Business Rules:
        - Only patient and doctor accounts can self-register
        - Email must be unique
        - Doctors start in ``pending`` until an admin approves them
        """
        request.validate()

        if self.user_repo.get_by_email(request.email):
            raise StateConflictError("User already exists")

        try:
            user = User(name=request.name, email=request.email, role=request.role)
            doctor = None
            if request.role == ROLE_DOCTOR:
                doctor = Doctor(
                    name=request.name,
                    email=request.email,
                    specialization=request.specialization or "",
                    location=request.location or "",
                    bio=request.bio,
                    experience=request.experience or 0,
                    education=request.education,
                    fees=request.fees or 0.0,
                    available_days=request.available_days,
                    available_time_slots=request.available_time_slots,
                    status="pending",
                )
        except ValueError as e:
            raise ValidationError(str(e)) from e

        created = self.user_repo.create(user, hash_password(request.password))
        if doctor is not None:
            doctor.id = created.id
            profile = self.doctor_repo.create(doctor)
            status = profile.status
        else:
            profile = self.patient_repo.create(Patient(id=created.id))
            status = profile.status

        logger.info(
            "Account registered",
            extra={"context": {"user_id": created.id, "role": created.role}},
        )
        return self._token_response(created, status)

    def login(self, request: LoginRequest) -> AuthTokenResponse:
        request.validate()

        user = self.user_repo.get_by_email(request.email)
        if user is None or not verify_password(
            request.password, self.user_repo.get_password_hash(user.id)
        ):
            logger.warning(
                "Failed login attempt", extra={"context": {"email": request.email}}
            )
            raise AuthenticationError(INVALID_CREDENTIALS)

        status = self._account_status(user)
        if user.role == ROLE_DOCTOR and status in BLOCKED_DOCTOR_LOGIN:
            raise AuthorizationError(BLOCKED_DOCTOR_LOGIN[status])
        if user.role == ROLE_PATIENT and status == "inactive":
            raise AuthorizationError(INACTIVE_PATIENT_MESSAGE)

        logger.info(
            "User logged in", extra={"context": {"user_id": user.id, "role": user.role}}
        )
        return self._token_response(user, status)

    def logout(self, actor: AuthContext) -> None:
        """Revoke the token the actor authenticated with."""
        if not actor.token_id:
            return
        expires_at = actor.token_expires_at or datetime.now(timezone.utc)
        self.token_repo.revoke(actor.token_id, actor.id, expires_at)
        purged = self.token_repo.purge_expired(datetime.now(timezone.utc))
        logger.info(
            "User logged out",
            extra={"context": {"user_id": actor.id, "purged_tokens": purged}},
        )

    def authenticate_token(self, token: Optional[str]) -> Optional[AuthContext]:
        """Resolve a bearer token into an AuthContext, or None when unusable.

        Role and account status come from the database, not from the token.
        """
        if not token:
            return None
        claims = get_token_claims(token)
        if claims is None:
            return None
        if self.token_repo.is_revoked(claims["jti"]):
            return None

        user = self.user_repo.get_by_id(claims["user_id"])
        if user is None:
            return None

        status = self._account_status(user)
        if user.role == ROLE_DOCTOR and status == "rejected":
            return None
        if user.role == ROLE_PATIENT and status == "inactive":
            return None

        return AuthContext(
            id=user.id,
            role=user.role,
            name=user.name,
            email=user.email,
            account_status=status,
            token_id=claims["jti"],
            token_expires_at=claims["expires_at"],
        )

    def me(self, actor: AuthContext) -> UserResponse:
        user = self.user_repo.get_by_id(actor.id)
        if user is None:
            raise NotFoundError.for_resource("User")
        return UserResponse.from_domain(user, status=self._account_status(user))

    def ensure_admin(
        self, email: str, password: str, name: str = "Admin User"
    ) -> Tuple[User, bool]:
        """Create the admin account unless it already exists.

        Returns:
            (admin user, whether it was created now)
        """
        if not email or "@" not in email:
            raise ValidationError("ADMIN_EMAIL must be a valid email address")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"ADMIN_PASSWORD must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        existing = self.user_repo.get_by_email(email)
        if existing is not None:
            if existing.role != ROLE_ADMIN:
                raise StateConflictError(
                    f"{email} is already registered as a {existing.role}"
                )
            return existing, False

        admin = self.user_repo.create(
            User(name=name, email=email, role=ROLE_ADMIN), hash_password(password)
        )
        logger.info("Admin account created", extra={"context": {"user_id": admin.id}})
        return admin, True

    def _account_status(self, user: User) -> Optional[str]:
        if user.role == ROLE_DOCTOR:
            doctor = self.doctor_repo.get_by_id(user.id)
            return doctor.status if doctor else None
        if user.role == ROLE_PATIENT:
            patient = self.patient_repo.get_by_id(user.id)
            return patient.status if patient else None
        return None

    @staticmethod
    def _token_response(user: User, status: Optional[str]) -> AuthTokenResponse:
        token = create_user_token(user.id, user.role)
        return AuthTokenResponse.create(
            token, user, expires_in=JWT_EXPIRATION_HOURS * 3600, status=status
        )
