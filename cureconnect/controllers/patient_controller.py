from flask import Blueprint, request
from flask_login import login_required

from cureconnect.core.api_utils import api_response, get_json_payload
from cureconnect.core.auth_decorators import (
    ROLE_ADMIN,
    ROLE_PATIENT,
    require_current_user,
    roles_required,
)
from cureconnect.core.limiter_config import READ_RATE_LIMIT, WRITE_RATE_LIMIT, limiter
from cureconnect.db.session import SessionLocal
from cureconnect.repositories.patient_repo import PatientRepository
from cureconnect.schemas.dtos import (
    PatientResponse,
    PatientStatusRequest,
    PatientUpdateRequest,
)
from cureconnect.services.patient_service import PatientService

patient_bp = Blueprint("patients", __name__, url_prefix="/api/patients")


@patient_bp.route("", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@roles_required(ROLE_ADMIN)
def list_patients():
    actor = require_current_user()

    db = SessionLocal()
    try:
        patients = PatientService(PatientRepository(db)).list_patients(
            actor, status=request.args.get("status") or None
        )
        data = [PatientResponse.from_domain(p).to_dict() for p in patients]
        return api_response(True, f"{len(data)} patient(s) found", data)
    finally:
        db.close()


@patient_bp.route("/<patient_id>", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def get_patient(patient_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        patient = PatientService(PatientRepository(db)).get(actor, patient_id)
        return api_response(
            True, "Patient found", PatientResponse.from_domain(patient).to_dict()
        )
    finally:
        db.close()


@patient_bp.route("/<patient_id>", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT, ROLE_ADMIN)
def update_patient(patient_id):
    actor = require_current_user()
    update_request = PatientUpdateRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        patient = PatientService(PatientRepository(db)).update_profile(
            actor, patient_id, update_request
        )
        return api_response(
            True, "Profile updated", PatientResponse.from_domain(patient).to_dict()
        )
    finally:
        db.close()


@patient_bp.route("/<patient_id>/status", methods=["PATCH"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_ADMIN)
def update_patient_status(patient_id):
    actor = require_current_user()
    status_request = PatientStatusRequest(
        status=str(get_json_payload().get("status") or "").strip()
    )

    db = SessionLocal()
    try:
        patient = PatientService(PatientRepository(db)).update_status(
            actor, patient_id, status_request
        )
        return api_response(
            True,
            f"Patient status updated to {patient.status}",
            PatientResponse.from_domain(patient).to_dict(),
        )
    finally:
        db.close()
