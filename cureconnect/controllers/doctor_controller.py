from flask import Blueprint, request

from cureconnect.core.api_utils import api_response, get_json_payload, parse_bool_arg
from cureconnect.core.auth_decorators import (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    get_current_user,
    require_current_user,
    roles_required,
)
from cureconnect.core.exceptions import ValidationError
from cureconnect.core.limiter_config import READ_RATE_LIMIT, WRITE_RATE_LIMIT, limiter
from cureconnect.db.session import SessionLocal
from cureconnect.repositories.doctor_repo import DoctorRepository
from cureconnect.schemas.dtos import (
    DoctorAvailabilityRequest,
    DoctorResponse,
    DoctorSearchFilters,
    DoctorStatusRequest,
    DoctorUpdateRequest,
)
from cureconnect.services.doctor_service import DoctorService

from .appointment_controller import build_appointment_service

doctor_bp = Blueprint("doctors", __name__, url_prefix="/api/doctors")


def build_doctor_service(db) -> DoctorService:
    return DoctorService(DoctorRepository(db), build_appointment_service(db))


def _filters_from_args() -> DoctorSearchFilters:
    min_rating = request.args.get("min_rating")
    try:
        min_rating = float(min_rating) if min_rating else None
    except ValueError:
        raise ValidationError("min_rating must be a number") from None
    return DoctorSearchFilters(
        specialization=request.args.get("specialization") or None,
        location=request.args.get("location") or None,
        is_available=parse_bool_arg("is_available"),
        min_rating=min_rating,
        status=request.args.get("status") or None,
    )


@doctor_bp.route("", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
def list_doctors():
    """Public directory. Admins may also filter by ?status=."""
    db = SessionLocal()
    try:
        doctors = build_doctor_service(db).list_doctors(
            _filters_from_args(), get_current_user()
        )
        data = [DoctorResponse.from_domain(d).to_dict() for d in doctors]
        return api_response(True, f"{len(data)} doctor(s) found", data)
    finally:
        db.close()


@doctor_bp.route("/search", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
def search_doctors():
    db = SessionLocal()
    try:
        doctors = build_doctor_service(db).search(
            _filters_from_args(), get_current_user()
        )
        data = [DoctorResponse.from_domain(d).to_dict() for d in doctors]
        return api_response(True, f"{len(data)} doctor(s) found", data)
    finally:
        db.close()


@doctor_bp.route("/<doctor_id>", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
def get_doctor(doctor_id):
    db = SessionLocal()
    try:
        doctor = build_doctor_service(db).get(doctor_id, get_current_user())
        return api_response(True, "Doctor found", DoctorResponse.from_domain(doctor).to_dict())
    finally:
        db.close()


@doctor_bp.route("/<doctor_id>", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR, ROLE_ADMIN)
def update_doctor(doctor_id):
    """Update profile fields. Email, password and role are ignored."""
    actor = require_current_user()
    update_request = DoctorUpdateRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        doctor = build_doctor_service(db).update_profile(actor, doctor_id, update_request)
        return api_response(
            True, "Doctor profile updated", DoctorResponse.from_domain(doctor).to_dict()
        )
    finally:
        db.close()


@doctor_bp.route("/<doctor_id>/availability", methods=["PATCH"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR, ROLE_ADMIN)
def update_availability(doctor_id):
    actor = require_current_user()
    availability_request = DoctorAvailabilityRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        doctor = build_doctor_service(db).update_availability(
            actor, doctor_id, availability_request
        )
        return api_response(
            True, "Availability updated", DoctorResponse.from_domain(doctor).to_dict()
        )
    finally:
        db.close()


@doctor_bp.route("/<doctor_id>/status", methods=["PATCH"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_ADMIN)
def update_doctor_status(doctor_id):
    """Expected JSON: {"status": "pending|active|rejected|suspended", "reason"?}"""
    actor = require_current_user()
    status_request = DoctorStatusRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        doctor = build_doctor_service(db).update_status(actor, doctor_id, status_request)
        return api_response(
            True,
            f"Doctor status updated to {doctor.status}",
            DoctorResponse.from_domain(doctor).to_dict(),
        )
    finally:
        db.close()


@doctor_bp.route("/<doctor_id>", methods=["DELETE"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_ADMIN)
def delete_doctor(doctor_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        build_doctor_service(db).delete(actor, doctor_id)
        return api_response(True, "Doctor deleted successfully")
    finally:
        db.close()
