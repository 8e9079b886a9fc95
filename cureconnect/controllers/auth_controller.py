from flask import Blueprint
from flask_login import login_required

from cureconnect.core.api_utils import api_response, get_json_payload
from cureconnect.core.auth_decorators import require_current_user
from cureconnect.core.limiter_config import AUTH_RATE_LIMIT, limiter
from cureconnect.db.session import SessionLocal
from cureconnect.repositories.doctor_repo import DoctorRepository
from cureconnect.repositories.patient_repo import PatientRepository
from cureconnect.repositories.token_repo import RevokedTokenRepository
from cureconnect.repositories.user_repo import UserRepository
from cureconnect.schemas.dtos import LoginRequest, RegisterRequest
from cureconnect.services.auth_service import AuthService

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def build_auth_service(db) -> AuthService:
    return AuthService(
        UserRepository(db),
        DoctorRepository(db),
        PatientRepository(db),
        RevokedTokenRepository(db),
    )


@auth_bp.route("/register", methods=["POST"])
@limiter.limit(AUTH_RATE_LIMIT)
def register():
    """Register a patient or doctor.

    Expected JSON: {"name", "email", "password", "role": "patient"|"doctor"}
    plus the doctor profile fields when role is "doctor".
    Returns the session token and the user.
    """
    register_request = RegisterRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        result = build_auth_service(db).register(register_request)
        return api_response(True, "Registration successful", result.to_dict(), 201)
    finally:
        db.close()


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(AUTH_RATE_LIMIT)
def login():
    login_request = LoginRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        result = build_auth_service(db).login(login_request)
        return api_response(True, "Login successful", result.to_dict())
    finally:
        db.close()


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    """Revoke the bearer token used for this request."""
    actor = require_current_user()

    db = SessionLocal()
    try:
        build_auth_service(db).logout(actor)
        return api_response(True, "Logged out successfully")
    finally:
        db.close()


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    actor = require_current_user()

    db = SessionLocal()
    try:
        user = build_auth_service(db).me(actor)
        return api_response(True, "Current user", user.to_dict())
    finally:
        db.close()
