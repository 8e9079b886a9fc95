from typing import List, Optional

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.exceptions import AuthorizationError, NotFoundError
from cureconnect.core.logging_config import get_logger
from cureconnect.domain.entities import EmergencyContact, Patient
from cureconnect.domain.interfaces import IPatientRepository
from cureconnect.schemas.dtos import PatientStatusRequest, PatientUpdateRequest

logger = get_logger(__name__)

_PROFILE_FIELDS = (
    "name",
    "date_of_birth",
    "gender",
    "phone_number",
    "address",
    "medical_history",
    "blood_group",
    "allergies",
    "profile_image",
)


class PatientService:
    """Patient profiles: self-service for patients, management for admins."""

    def __init__(self, patient_repo: IPatientRepository) -> None:
        self.patient_repo = patient_repo

    def list_patients(
        self, actor: AuthContext, status: Optional[str] = None
    ) -> List[Patient]:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can list patients.")
        if status is not None:
            PatientStatusRequest(status=status).validate()
        return self.patient_repo.list(status=status)

    def get(self, actor: AuthContext, patient_id: str) -> Patient:
        """Patients see themselves; doctors and admins may look anyone up."""
        if actor.is_patient and actor.id != patient_id:
            raise AuthorizationError("Not authorized to view this patient")
        return self._get(patient_id)

    def update_profile(
        self, actor: AuthContext, patient_id: str, request: PatientUpdateRequest
    ) -> Patient:
        request.validate()
        if not (actor.is_admin or (actor.is_patient and actor.id == patient_id)):
            raise AuthorizationError("Not authorized to update this patient")

        patient = self._get(patient_id)
        for attr in _PROFILE_FIELDS:
            value = getattr(request, attr)
            if value is not None:
                setattr(patient, attr, value)
        if request.emergency_contact is not None:
            patient.emergency_contact = EmergencyContact(**request.emergency_contact)

        return self.patient_repo.update(patient)

    def update_status(
        self, actor: AuthContext, patient_id: str, request: PatientStatusRequest
    ) -> Patient:
        if not actor.is_admin:
            raise AuthorizationError("Only admins can change a patient's status.")
        request.validate()

        patient = self._get(patient_id)
        patient.status = request.status
        updated = self.patient_repo.update(patient)
        logger.info(
            "Patient status changed",
            extra={"context": {"patient_id": patient_id, "status": request.status}},
        )
        return updated

    def _get(self, patient_id: str) -> Patient:
        patient = self.patient_repo.get_by_id(patient_id)
        if patient is None:
            raise NotFoundError.for_resource("Patient")
        return patient
