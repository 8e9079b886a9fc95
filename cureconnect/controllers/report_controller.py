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
from cureconnect.repositories.report_repo import ReportRepository
from cureconnect.schemas.dtos import ReportCreateRequest, ReportResponse
from cureconnect.services.report_service import ReportService

report_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@report_bp.route("", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def list_reports():
    """Patients get their own reports; doctors and admins pass ?patient_id=."""
    actor = require_current_user()

    db = SessionLocal()
    try:
        reports = ReportService(ReportRepository(db)).list_for(
            actor, patient_id=request.args.get("patient_id") or None
        )
        data = [ReportResponse.from_domain(r).to_dict() for r in reports]
        return api_response(True, f"{len(data)} report(s) found", data)
    finally:
        db.close()


@report_bp.route("", methods=["POST"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT)
def create_report():
    actor = require_current_user()
    create_request = ReportCreateRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        report = ReportService(ReportRepository(db)).create(actor, create_request)
        return api_response(
            True, "Report added", ReportResponse.from_domain(report).to_dict(), 201
        )
    finally:
        db.close()


@report_bp.route("/<report_id>", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def get_report(report_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        report = ReportService(ReportRepository(db)).get(actor, report_id)
        return api_response(
            True, "Report found", ReportResponse.from_domain(report).to_dict()
        )
    finally:
        db.close()


@report_bp.route("/<report_id>", methods=["DELETE"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT, ROLE_ADMIN)
def delete_report(report_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        ReportService(ReportRepository(db)).delete(actor, report_id)
        return api_response(True, "Report deleted successfully")
    finally:
        db.close()
