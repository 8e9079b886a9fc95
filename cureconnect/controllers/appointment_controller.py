"""
Appointment controller.

Handles HTTP concerns only: parse the request into a DTO, hand it to
AppointmentService together with the caller's AuthContext, and wrap the
result in the standard envelope. Errors propagate to the app-level handlers.
"""

from flask import Blueprint, request
from flask_login import login_required

from cureconnect.core.api_utils import api_response, get_json_payload
from cureconnect.core.auth_decorators import (
    ROLE_ADMIN,
    ROLE_DOCTOR,
    ROLE_PATIENT,
    require_current_user,
    roles_required,
)
from cureconnect.core.limiter_config import READ_RATE_LIMIT, WRITE_RATE_LIMIT, limiter
from cureconnect.db.session import SessionLocal
from cureconnect.domain.scheduling import TIME_SLOTS
from cureconnect.repositories.appointment_repo import AppointmentRepository
from cureconnect.repositories.doctor_repo import DoctorRepository
from cureconnect.repositories.user_repo import UserRepository
from cureconnect.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentDetailsRequest,
    AppointmentRescheduleRequest,
    AppointmentResponse,
    AppointmentStatusRequest,
    FeedbackRequest,
)
from cureconnect.services.appointment_service import AppointmentService
from cureconnect.services.notification_service import NotificationService

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def build_appointment_service(db) -> AppointmentService:
    return AppointmentService(
        AppointmentRepository(db),
        DoctorRepository(db),
        UserRepository(db),
        notifier=NotificationService(),
    )


def _payload(appointment) -> dict:
    return AppointmentResponse.from_domain(appointment).to_dict()


@appointment_bp.route("/slots", methods=["GET"])
def list_time_slots():
    """The fixed daily slot grid (no authentication required)."""
    return api_response(True, "Daily time slots", list(TIME_SLOTS))


@appointment_bp.route("/availability", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def get_availability():
    """Free slots for ?doctor_id=&date=[&exclude_id=] in grid order."""
    db = SessionLocal()
    try:
        availability = build_appointment_service(db).available_slots(
            request.args.get("doctor_id", ""),
            request.args.get("date", ""),
            exclude_id=request.args.get("exclude_id") or None,
        )
        return api_response(True, "Available time slots", availability.to_dict())
    finally:
        db.close()


@appointment_bp.route("", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def list_appointments():
    actor = require_current_user()

    db = SessionLocal()
    try:
        appointments = build_appointment_service(db).list_for(
            actor,
            doctor_id=request.args.get("doctor_id") or None,
            on_date=request.args.get("date") or None,
            status=request.args.get("status") or None,
        )
        data = [_payload(a) for a in appointments]
        return api_response(True, f"{len(data)} appointment(s) found", data)
    finally:
        db.close()


@appointment_bp.route("", methods=["POST"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT)
def create_appointment():
    """Book an appointment.

    Expected JSON: {"doctor_id", "date": "YYYY-MM-DD", "time": "9:30 AM",
    "symptoms"?, "notes"?}
    """
    actor = require_current_user()
    create_request = AppointmentCreateRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).book(actor, create_request)
        return api_response(
            True, "Appointment booked successfully", _payload(appointment), 201
        )
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def get_appointment(appointment_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).get(actor, appointment_id)
        return api_response(True, "Appointment found", _payload(appointment))
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>/reschedule", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT, ROLE_ADMIN)
def reschedule_appointment(appointment_id):
    actor = require_current_user()
    reschedule_request = AppointmentRescheduleRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).reschedule(
            actor, appointment_id, reschedule_request
        )
        return api_response(
            True, "Appointment rescheduled successfully", _payload(appointment)
        )
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>/status", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@login_required
def update_appointment_status(appointment_id):
    actor = require_current_user()
    status_request = AppointmentStatusRequest.from_payload(get_json_payload())
    status_request.validate()

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).change_status(
            actor, appointment_id, status_request.status
        )
        return api_response(
            True, f"Appointment {appointment.status}", _payload(appointment)
        )
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>/details", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@login_required
def update_appointment_details(appointment_id):
    actor = require_current_user()
    details_request = AppointmentDetailsRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).update_details(
            actor, appointment_id, details_request
        )
        return api_response(True, "Appointment details updated", _payload(appointment))
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>/complete", methods=["PUT"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_DOCTOR, ROLE_ADMIN)
def complete_appointment(appointment_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).complete(actor, appointment_id)
        return api_response(
            True, "Appointment completed successfully", _payload(appointment)
        )
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>/feedback", methods=["POST"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT)
def submit_feedback(appointment_id):
    actor = require_current_user()
    feedback_request = FeedbackRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        appointment = build_appointment_service(db).submit_feedback(
            actor, appointment_id, feedback_request
        )
        return api_response(
            True, "Feedback submitted successfully", _payload(appointment), 201
        )
    finally:
        db.close()


@appointment_bp.route("/<appointment_id>", methods=["DELETE"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT, ROLE_ADMIN)
def delete_appointment(appointment_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        build_appointment_service(db).delete(actor, appointment_id)
        return api_response(True, "Appointment deleted successfully")
    finally:
        db.close()
