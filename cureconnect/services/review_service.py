from typing import List, Optional

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
)
from cureconnect.core.logging_config import get_logger
from cureconnect.domain.entities import Review
from cureconnect.domain.interfaces import IAppointmentRepository, IReviewRepository
from cureconnect.domain.lifecycle import COMPLETED
from cureconnect.schemas.dtos import ReviewCreateRequest, ReviewStatusRequest

logger = get_logger(__name__)

ALREADY_REVIEWED = "This appointment has already been reviewed."


class ReviewService:
    """Patient reviews of doctors, moderated by admins.

    New reviews start ``pending``; only ``approved`` ones are shown to doctors
    and count toward a doctor's rating.
    """

    def __init__(
        self, review_repo: IReviewRepository, appointment_repo: IAppointmentRepository
    ) -> None:
        self.review_repo = review_repo
        self.appointment_repo = appointment_repo

    def create(self, actor: AuthContext, request: ReviewCreateRequest) -> Review:
        request.validate()
        if not actor.is_patient:
            raise AuthorizationError("Only patients can review doctors.")

        appointment = self.appointment_repo.get_by_id(request.appointment_id)
        if appointment is None:
            raise NotFoundError.for_resource("Appointment")
        if appointment.patient_id != actor.id:
            raise AuthorizationError("You can only review your own appointments")
        if appointment.status != COMPLETED:
            raise StateConflictError("Only completed appointments can be reviewed")
        if self.review_repo.get_by_appointment_id(appointment.id) is not None:
            raise StateConflictError(ALREADY_REVIEWED)

        review = self.review_repo.create(
            Review(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                patient_name=appointment.patient_name,
                doctor_id=appointment.doctor_id,
                doctor_name=appointment.doctor_name,
                rating=request.rating,
                comment=request.comment,
                status="pending",
            )
        )
        logger.info(
            "Review submitted",
            extra={"context": {"review_id": review.id, "doctor_id": review.doctor_id}},
        )
        return review

    def list_for(
        self,
        actor: AuthContext,
        doctor_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Review]:
        if status is not None:
            ReviewStatusRequest(status=status).validate()
        if actor.is_admin:
            return self.review_repo.list(doctor_id=doctor_id, status=status)
        if actor.is_doctor:
            return self.review_repo.list(doctor_id=actor.id, status="approved")
        return self.review_repo.list(patient_id=actor.id, status=status)

    def update_status(
        self, actor: AuthContext, review_id: str, request: ReviewStatusRequest
    ) -> Review:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can moderate reviews.")
        request.validate()

        review = self.review_repo.update_status(review_id, request.status)
        if review is None:
            raise NotFoundError.for_resource("Review")
        logger.info(
            "Review moderated",
            extra={"context": {"review_id": review_id, "status": request.status}},
        )
        return review

    def delete(self, actor: AuthContext, review_id: str) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can delete reviews.")
        if not self.review_repo.delete(review_id):
            raise NotFoundError.for_resource("Review")
