import io

from flask import Blueprint, request, send_file
from flask_login import login_required

from cureconnect.core.api_utils import api_response, get_json_payload
from cureconnect.core.auth_decorators import (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    require_current_user,
    roles_required,
)
from cureconnect.core.limiter_config import READ_RATE_LIMIT, WRITE_RATE_LIMIT, limiter
from cureconnect.db.session import SessionLocal
from cureconnect.repositories.appointment_repo import AppointmentRepository
from cureconnect.repositories.doctor_repo import DoctorRepository
from cureconnect.repositories.prescription_repo import PrescriptionRepository
from cureconnect.schemas.dtos import (
    PrescriptionRequest,
    PrescriptionResponse,
    PrescriptionStatusRequest,
    PrescriptionUpdateRequest,
)
from cureconnect.services.prescription_service import PrescriptionService

prescription_bp = Blueprint(
    "prescriptions", __name__, url_prefix="/api/prescriptions"
)


def build_prescription_service(db) -> PrescriptionService:
    return PrescriptionService(
        PrescriptionRepository(db), AppointmentRepository(db), DoctorRepository(db)
    )


def _payload(prescription) -> dict:
    return PrescriptionResponse.from_domain(prescription).to_dict()


@prescription_bp.route("", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def list_prescriptions():
    actor = require_current_user()

    db = SessionLocal()
    try:
        prescriptions = build_prescription_service(db).list_for(
            actor,
            patient_id=request.args.get("patient_id") or None,
            doctor_id=request.args.get("doctor_id") or None,
            status=request.args.get("status") or None,
        )
        data = [_payload(p) for p in prescriptions]
        return api_response(True, f"{len(data)} prescription(s) found", data)
    finally:
        db.close()


@prescription_bp.route("", methods=["POST"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR)
def create_prescription():
    """Expected JSON: {"appointment_id", "medications": [{name, dosage,
    frequency, duration}, ...], "notes"?, "follow_up_date"?}"""
    actor = require_current_user()
    create_request = PrescriptionRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        prescription = build_prescription_service(db).create(actor, create_request)
        return api_response(True, "Prescription created", _payload(prescription), 201)
    finally:
        db.close()


@prescription_bp.route("/appointment/<appointment_id>", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR)
def save_prescription_for_appointment(appointment_id):
    """Create the appointment's prescription or replace the existing one."""
    actor = require_current_user()
    payload = get_json_payload()
    payload["appointment_id"] = appointment_id
    save_request = PrescriptionRequest.from_payload(payload)

    db = SessionLocal()
    try:
        prescription, created = build_prescription_service(db).save_for_appointment(
            actor, save_request
        )
        if created:
            return api_response(
                True, "Prescription created", _payload(prescription), 201
            )
        return api_response(True, "Prescription updated", _payload(prescription))
    finally:
        db.close()


@prescription_bp.route("/<prescription_id>", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def get_prescription(prescription_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        prescription = build_prescription_service(db).get(actor, prescription_id)
        return api_response(True, "Prescription found", _payload(prescription))
    finally:
        db.close()


@prescription_bp.route("/<prescription_id>", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR, ROLE_ADMIN)
def update_prescription(prescription_id):
    actor = require_current_user()
    update_request = PrescriptionUpdateRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        prescription = build_prescription_service(db).update(
            actor, prescription_id, update_request
        )
        return api_response(True, "Prescription updated", _payload(prescription))
    finally:
        db.close()


@prescription_bp.route("/<prescription_id>/status", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR, ROLE_ADMIN)
def update_prescription_status(prescription_id):
    actor = require_current_user()
    status_request = PrescriptionStatusRequest(
        status=str(get_json_payload().get("status") or "").strip()
    )

    db = SessionLocal()
    try:
        prescription = build_prescription_service(db).update_status(
            actor, prescription_id, status_request
        )
        return api_response(
            True,
            f"Prescription marked {prescription.status}",
            _payload(prescription),
        )
    finally:
        db.close()


@prescription_bp.route("/<prescription_id>", methods=["DELETE"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR, ROLE_ADMIN)
def delete_prescription(prescription_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        build_prescription_service(db).delete(actor, prescription_id)
        return api_response(True, "Prescription deleted successfully")
    finally:
        db.close()


@prescription_bp.route("/<prescription_id>/download", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def download_prescription(prescription_id):
    """Render the prescription to PDF and send it as an attachment."""
    actor = require_current_user()

    db = SessionLocal()
    try:
        content, filename = build_prescription_service(db).render_pdf(
            actor, prescription_id
        )
    finally:
        db.close()

    return send_file(
        io.BytesIO(content),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )
