"""
Doctor directory and doctor account management.
"""

from typing import List, Optional

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.exceptions import AuthorizationError, NotFoundError
from cureconnect.core.logging_config import get_logger
from cureconnect.domain.entities import Doctor
from cureconnect.domain.interfaces import IDoctorRepository
from cureconnect.domain.lifecycle import ensure_doctor_active
from cureconnect.schemas.dtos import (
    DoctorAvailabilityRequest,
    DoctorSearchFilters,
    DoctorStatusRequest,
    DoctorUpdateRequest,
)

logger = get_logger(__name__)

SUSPENSION_REASON = "Doctor has been suspended"


class DoctorService:
    """Application service for doctor use-cases.

    Business Rules:
    - Only active doctors are listed publicly; admins see every status
    - Profile edits never touch email, password or role
    - Suspending a doctor cancels their open appointments
    """

    def __init__(self, doctor_repo: IDoctorRepository, appointment_service=None):
        self.doctor_repo = doctor_repo
        self.appointment_service = appointment_service

    def list_doctors(
        self,
        filters: Optional[DoctorSearchFilters] = None,
        actor: Optional[AuthContext] = None,
    ) -> List[Doctor]:
        filters = filters or DoctorSearchFilters()
        filters.validate()

        status = filters.status if actor is not None and actor.is_admin else "active"
        doctors = self.doctor_repo.list(
            specialization=filters.specialization,
            location=filters.location,
            is_available=filters.is_available,
            status=status,
        )
        if filters.min_rating is not None:
            doctors = [d for d in doctors if d.rating >= filters.min_rating]
        return doctors

    def search(
        self, filters: DoctorSearchFilters, actor: Optional[AuthContext] = None
    ) -> List[Doctor]:
        """Directory search, best rated first."""
        doctors = self.list_doctors(filters, actor)
        return sorted(doctors, key=lambda d: (-d.rating, -d.review_count, d.name))

    def get(self, doctor_id: str, actor: Optional[AuthContext] = None) -> Doctor:
        doctor = self.doctor_repo.get_by_id(doctor_id)
        if doctor is None:
            raise NotFoundError.for_resource("Doctor")
        visible = doctor.status == "active" or (
            actor is not None and (actor.is_admin or actor.id == doctor.id)
        )
        if not visible:
            raise NotFoundError.for_resource("Doctor")
        return doctor

    def update_profile(
        self, actor: AuthContext, doctor_id: str, request: DoctorUpdateRequest
    ) -> Doctor:
        request.validate()
        doctor = self._get_editable(actor, doctor_id)

        for attr in (
            "name",
            "specialization",
            "location",
            "bio",
            "experience",
            "education",
            "fees",
            "profile_image",
        ):
            value = getattr(request, attr)
            if value is not None:
                setattr(doctor, attr, value)

        updated = self.doctor_repo.update(doctor)
        logger.info(
            "Doctor profile updated",
            extra={"context": {"doctor_id": doctor_id, "by": actor.role}},
        )
        return updated

    def update_availability(
        self, actor: AuthContext, doctor_id: str, request: DoctorAvailabilityRequest
    ) -> Doctor:
        request.validate()
        doctor = self._get_editable(actor, doctor_id)

        if request.available_days is not None:
            doctor.available_days = request.available_days
        if request.available_time_slots is not None:
            doctor.available_time_slots = request.available_time_slots
        if request.is_available is not None:
            doctor.is_available = request.is_available

        return self.doctor_repo.update(doctor)

    def update_status(
        self, actor: AuthContext, doctor_id: str, request: DoctorStatusRequest
    ) -> Doctor:
        """Approve, reject, suspend or reinstate a doctor (admin only)."""
        request.validate()
        if not actor.is_admin:
            raise AuthorizationError("Only admins can change a doctor's status.")

        doctor = self.doctor_repo.get_by_id(doctor_id)
        if doctor is None:
            raise NotFoundError.for_resource("Doctor")

        previous = doctor.status
        doctor.status = request.status
        updated = self.doctor_repo.update(doctor)
        logger.info(
            "Doctor status changed",
            extra={
                "context": {
                    "doctor_id": doctor_id,
                    "from": previous,
                    "to": request.status,
                }
            },
        )

        if (
            request.status == "suspended"
            and previous != "suspended"
            and self.appointment_service is not None
        ):
            self.appointment_service.cancel_for_suspended_doctor(
                doctor_id, request.reason or SUSPENSION_REASON
            )
        return updated

    def delete(self, actor: AuthContext, doctor_id: str) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can delete doctors.")
        if not self.doctor_repo.delete(doctor_id):
            raise NotFoundError.for_resource("Doctor")
        logger.info("Doctor deleted", extra={"context": {"doctor_id": doctor_id}})

    def _get_editable(self, actor: AuthContext, doctor_id: str) -> Doctor:
        if not actor.is_admin:
            if not actor.is_doctor or actor.id != doctor_id:
                raise AuthorizationError("Not authorized to update this doctor")
            ensure_doctor_active(actor.account_status)

        doctor = self.doctor_repo.get_by_id(doctor_id)
        if doctor is None:
            raise NotFoundError.for_resource("Doctor")
        return doctor
