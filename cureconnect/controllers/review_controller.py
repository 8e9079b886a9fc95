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
from cureconnect.repositories.appointment_repo import AppointmentRepository
from cureconnect.repositories.review_repo import ReviewRepository
from cureconnect.schemas.dtos import (
    ReviewCreateRequest,
    ReviewResponse,
    ReviewStatusRequest,
)
from cureconnect.services.review_service import ReviewService

review_bp = Blueprint("reviews", __name__, url_prefix="/api/reviews")


def build_review_service(db) -> ReviewService:
    return ReviewService(ReviewRepository(db), AppointmentRepository(db))


@review_bp.route("", methods=["GET"])
@limiter.limit(READ_RATE_LIMIT)
@login_required
def list_reviews():
    actor = require_current_user()

    db = SessionLocal()
    try:
        reviews = build_review_service(db).list_for(
            actor,
            doctor_id=request.args.get("doctor_id") or None,
            status=request.args.get("status") or None,
        )
        data = [ReviewResponse.from_domain(r).to_dict() for r in reviews]
        return api_response(True, f"{len(data)} review(s) found", data)
    finally:
        db.close()


@review_bp.route("", methods=["POST"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_PATIENT)
def create_review():
    """Expected JSON: {"appointment_id", "rating": 1-5, "comment"?}"""
    actor = require_current_user()
    create_request = ReviewCreateRequest.from_payload(get_json_payload())

    db = SessionLocal()
    try:
        review = build_review_service(db).create(actor, create_request)
        return api_response(
            True,
            "Review submitted for moderation",
            ReviewResponse.from_domain(review).to_dict(),
            201,
        )
    finally:
        db.close()


@review_bp.route("/<review_id>/status", methods=["PATCH"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_ADMIN)
def moderate_review(review_id):
    actor = require_current_user()
    status_request = ReviewStatusRequest(
        status=str(get_json_payload().get("status") or "").strip()
    )

    db = SessionLocal()
    try:
        review = build_review_service(db).update_status(actor, review_id, status_request)
        return api_response(
            True,
            f"Review {review.status}",
            ReviewResponse.from_domain(review).to_dict(),
        )
    finally:
        db.close()


@review_bp.route("/<review_id>", methods=["DELETE"])
@limiter.limit(WRITE_RATE_LIMIT)
@roles_required(ROLE_ADMIN)
def delete_review(review_id):
    actor = require_current_user()

    db = SessionLocal()
    try:
        build_review_service(db).delete(actor, review_id)
        return api_response(True, "Review deleted successfully")
    finally:
        db.close()
