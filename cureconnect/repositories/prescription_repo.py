from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from cureconnect.core.exceptions import StateConflictError
from cureconnect.db.base import Prescription as DbPrescription
from cureconnect.domain.entities import Medication, Prescription
from cureconnect.domain.interfaces import IPrescriptionRepository
from cureconnect.domain.prescriptions import DUPLICATE_MESSAGE


class PrescriptionRepository(IPrescriptionRepository):
    """Prescriptions, unique per appointment at the storage layer."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, prescription_id: str) -> Optional[Prescription]:
        row = self.db.get(DbPrescription, prescription_id)
        return self._to_domain(row) if row else None

    def get_by_appointment_id(self, appointment_id: str) -> Optional[Prescription]:
        row = (
            self.db.query(DbPrescription)
            .filter(DbPrescription.appointment_id == appointment_id)
            .first()
        )
        return self._to_domain(row) if row else None

    def list(
        self, patient_id: Optional[str] = None, doctor_id: Optional[str] = None
    ) -> List[Prescription]:
        query = self.db.query(DbPrescription)
        if patient_id:
            query = query.filter(DbPrescription.patient_id == patient_id)
        if doctor_id:
            query = query.filter(DbPrescription.doctor_id == doctor_id)
        rows = query.order_by(DbPrescription.created_at.desc()).all()
        return [self._to_domain(row) for row in rows]

    def create(self, prescription: Prescription) -> Prescription:
        row = DbPrescription(appointment_id=prescription.appointment_id)
        self._apply(row, prescription)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise StateConflictError(DUPLICATE_MESSAGE) from e
        self.db.refresh(row)
        return self._to_domain(row)

    def update(self, prescription: Prescription) -> Prescription:
        row = self.db.get(DbPrescription, prescription.id) if prescription.id else None
        if row is None:
            raise ValueError(f"Prescription with ID {prescription.id} not found")

        self._apply(row, prescription)
        self.db.commit()
        self.db.refresh(row)
        return self._to_domain(row)

    def delete(self, prescription_id: str) -> bool:
        row = self.db.get(DbPrescription, prescription_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    @staticmethod
    def _apply(row: DbPrescription, prescription: Prescription) -> None:
        row.patient_id = prescription.patient_id
        row.doctor_id = prescription.doctor_id
        row.patient_name = prescription.patient_name
        row.doctor_name = prescription.doctor_name
        row.medications = [medication.to_dict() for medication in prescription.medications]
        row.notes = prescription.notes
        row.status = prescription.status
        row.follow_up_date = prescription.follow_up_date
        row.expiry_date = prescription.expiry_date

    @staticmethod
    def _to_domain(row: DbPrescription) -> Prescription:
        return Prescription(
            id=row.id,
            appointment_id=row.appointment_id,
            patient_id=row.patient_id,
            doctor_id=row.doctor_id,
            patient_name=row.patient_name,
            doctor_name=row.doctor_name,
            medications=[Medication(**entry) for entry in row.medications or []],
            notes=row.notes,
            status=row.status,
            follow_up_date=row.follow_up_date,
            expiry_date=row.expiry_date,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
