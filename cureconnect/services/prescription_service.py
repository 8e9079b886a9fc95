"""
Prescription service.

An appointment carries at most one prescription, and only once the
appointment is completed. Doctors write prescriptions for their own
appointments; patients read and download theirs.
"""

import time
from datetime import datetime
from typing import List, Optional, Tuple

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.config import APP_TZ
from cureconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
)
from cureconnect.core.logging_config import get_logger, log_performance
from cureconnect.domain.entities import Prescription
from cureconnect.domain.interfaces import (
    IAppointmentRepository,
    IDoctorRepository,
    IPrescriptionRepository,
)
from cureconnect.domain.lifecycle import COMPLETED, ensure_doctor_active
from cureconnect.domain.prescriptions import DUPLICATE_MESSAGE, find_prescription
from cureconnect.schemas.dtos import (
    PrescriptionRequest,
    PrescriptionStatusRequest,
    PrescriptionUpdateRequest,
)
from cureconnect.services.prescription_pdf import PrescriptionPDFGenerator

logger = get_logger(__name__)


class PrescriptionService:
    def __init__(
        self,
        prescription_repo: IPrescriptionRepository,
        appointment_repo: IAppointmentRepository,
        doctor_repo: IDoctorRepository,
        pdf_generator: Optional[PrescriptionPDFGenerator] = None,
    ):
        self.prescription_repo = prescription_repo
        self.appointment_repo = appointment_repo
        self.doctor_repo = doctor_repo
        self.pdf_generator = pdf_generator or PrescriptionPDFGenerator()

    def list_for(
        self,
        actor: AuthContext,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Prescription]:
        if actor.is_patient:
            patient_id = actor.id
        elif actor.is_doctor:
            doctor_id = actor.id
        if status is not None:
            PrescriptionStatusRequest(status=status).validate()

        prescriptions = self.prescription_repo.list(
            patient_id=patient_id, doctor_id=doctor_id
        )
        if status is not None:
            prescriptions = [p for p in prescriptions if p.status == status]
        return prescriptions

    def get(self, actor: AuthContext, prescription_id: str) -> Prescription:
        prescription = self.prescription_repo.get_by_id(prescription_id)
        if prescription is None:
            raise NotFoundError.for_resource("Prescription")
        if actor.is_patient and prescription.patient_id != actor.id:
            raise AuthorizationError("Not authorized to view this prescription")
        if actor.is_doctor and prescription.doctor_id != actor.id:
            raise AuthorizationError("Not authorized to view this prescription")
        return prescription

    def create(self, actor: AuthContext, request: PrescriptionRequest) -> Prescription:
        """Write the prescription for a completed appointment of the caller.

        Business Rules:
        - Caller is a doctor whose account is not suspended
        - Appointment exists, is assigned to the caller and is completed
        - The appointment has no prescription yet
        """
        request.validate()
        appointment = self._get_prescribable(actor, request.appointment_id)
        if self.prescription_repo.get_by_appointment_id(appointment.id) is not None:
            raise StateConflictError(DUPLICATE_MESSAGE)

        prescription = self.prescription_repo.create(
            Prescription(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                doctor_id=appointment.doctor_id,
                patient_name=appointment.patient_name,
                doctor_name=appointment.doctor_name,
                medications=request.medications,
                notes=request.notes,
                follow_up_date=request.follow_up_date,
            )
        )
        logger.info(
            "Prescription created",
            extra={
                "context": {
                    "prescription_id": prescription.id,
                    "appointment_id": appointment.id,
                    "medications": len(prescription.medications),
                }
            },
        )
        return prescription

    def save_for_appointment(
        self, actor: AuthContext, request: PrescriptionRequest
    ) -> Tuple[Prescription, bool]:
        """Create the appointment's prescription, or replace the existing one.

        Returns:
            (prescription, whether it was created)
        """
        request.validate()
        appointment = self._get_prescribable(actor, request.appointment_id)
        existing = find_prescription(
            appointment.id,
            self.prescription_repo.list(doctor_id=appointment.doctor_id),
        )
        if existing is None:
            return self.create(actor, request), True

        existing.medications = request.medications
        existing.notes = request.notes
        existing.follow_up_date = request.follow_up_date
        return self.prescription_repo.update(existing), False

    def update(
        self, actor: AuthContext, prescription_id: str, request: PrescriptionUpdateRequest
    ) -> Prescription:
        request.validate()
        prescription = self._get_writable(actor, prescription_id)

        if request.medications is not None:
            prescription.medications = request.medications
        if request.notes is not None:
            prescription.notes = request.notes
        if request.follow_up_date is not None:
            prescription.follow_up_date = request.follow_up_date
        if request.status is not None:
            self._apply_status(prescription, request.status)

        return self.prescription_repo.update(prescription)

    def update_status(
        self, actor: AuthContext, prescription_id: str, request: PrescriptionStatusRequest
    ) -> Prescription:
        request.validate()
        prescription = self._get_writable(actor, prescription_id)
        self._apply_status(prescription, request.status)
        updated = self.prescription_repo.update(prescription)
        logger.info(
            "Prescription status changed",
            extra={
                "context": {"prescription_id": prescription_id, "status": request.status}
            },
        )
        return updated

    def delete(self, actor: AuthContext, prescription_id: str) -> None:
        prescription = self._get_writable(actor, prescription_id)
        self.prescription_repo.delete(prescription.id)
        logger.info(
            "Prescription deleted", extra={"context": {"prescription_id": prescription_id}}
        )

    def render_pdf(self, actor: AuthContext, prescription_id: str) -> Tuple[bytes, str]:
        """Render the prescription as a PDF. Returns (content, file name)."""
        prescription = self.get(actor, prescription_id)
        doctor = self.doctor_repo.get_by_id(prescription.doctor_id)

        start = time.perf_counter()
        content = self.pdf_generator.generate(prescription, doctor)
        log_performance(
            "render_prescription_pdf",
            (time.perf_counter() - start) * 1000,
            prescription_id=prescription.id,
            size_bytes=len(content),
        )
        return content, f"prescription_{prescription.id}.pdf"

    @staticmethod
    def _apply_status(prescription: Prescription, status: str) -> None:
        prescription.status = status
        if status == "expired":
            prescription.expiry_date = datetime.now(APP_TZ).date()

    def _get_prescribable(self, actor: AuthContext, appointment_id: str):
        if not actor.is_doctor:
            raise AuthorizationError("Only doctors can write prescriptions.")
        ensure_doctor_active(actor.account_status)

        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError.for_resource("Appointment")
        if appointment.doctor_id != actor.id:
            raise AuthorizationError("Not authorized to prescribe for this appointment")
        if appointment.status != COMPLETED:
            raise StateConflictError(
                "Prescription can only be created for completed appointments"
            )
        return appointment

    def _get_writable(self, actor: AuthContext, prescription_id: str) -> Prescription:
        if actor.is_patient:
            raise AuthorizationError("Patients cannot modify prescriptions.")
        if actor.is_doctor:
            ensure_doctor_active(actor.account_status)
        return self.get(actor, prescription_id)
