"""
Appointment repository implementation.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from cureconnect.core.exceptions import StateConflictError
from cureconnect.db.base import Appointment as DbAppointment
from cureconnect.domain.entities import Appointment as DomainAppointment
from cureconnect.domain.interfaces import IAppointmentRepository
from cureconnect.domain.scheduling import SLOT_TAKEN_MESSAGE, slot_sort_key

logger = logging.getLogger(__name__)


def sort_appointments(appointments: List[DomainAppointment]) -> List[DomainAppointment]:
    """Order by day, then grid position (labels do not sort as strings)."""
    return sorted(appointments, key=lambda a: (a.date, slot_sort_key(a.time)))


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations.

    Writes that collide with the partial unique index on
    (doctor_id, date, time) for non-cancelled rows surface as
    StateConflictError.
    """

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, appointment_id: str) -> Optional[DomainAppointment]:
        db_appointment = self.db.get(DbAppointment, appointment_id)
        return self._to_domain(db_appointment) if db_appointment else None

    def list(
        self,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        on_date: Optional[date] = None,
        statuses: Optional[List[str]] = None,
    ) -> List[DomainAppointment]:
        query = self.db.query(DbAppointment)
        if patient_id:
            query = query.filter(DbAppointment.patient_id == patient_id)
        if doctor_id:
            query = query.filter(DbAppointment.doctor_id == doctor_id)
        if on_date:
            query = query.filter(DbAppointment.appointment_date == on_date)
        if statuses:
            query = query.filter(DbAppointment.status.in_(statuses))
        return sort_appointments([self._to_domain(row) for row in query.all()])

    def get_for_doctor_on_date(
        self, doctor_id: str, on_date: date
    ) -> List[DomainAppointment]:
        return self.list(doctor_id=doctor_id, on_date=on_date)

    def create(self, appointment: DomainAppointment) -> DomainAppointment:
        db_appointment = DbAppointment()
        self._apply(db_appointment, appointment)
        self.db.add(db_appointment)
        self._commit_slot_write(appointment)
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def update(self, appointment: DomainAppointment) -> DomainAppointment:
        if not appointment.id:
            raise ValueError("Appointment ID is required for update")

        db_appointment = self.db.get(DbAppointment, appointment.id)
        if not db_appointment:
            raise ValueError(f"Appointment with ID {appointment.id} not found")

        self._apply(db_appointment, appointment)
        self._commit_slot_write(appointment)
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def delete(self, appointment_id: str) -> bool:
        db_appointment = self.db.get(DbAppointment, appointment_id)
        if not db_appointment:
            return False

        self.db.delete(db_appointment)
        self.db.commit()
        return True

    def _commit_slot_write(self, appointment: DomainAppointment) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Appointment write rejected by slot uniqueness",
                extra={
                    "context": {
                        "doctor_id": appointment.doctor_id,
                        "date": str(appointment.date),
                        "time": appointment.time,
                        "error": str(e.orig),
                    }
                },
            )
            raise StateConflictError(SLOT_TAKEN_MESSAGE) from e

    @staticmethod
    def _apply(db_appointment: DbAppointment, appointment: DomainAppointment) -> None:
        db_appointment.patient_id = appointment.patient_id
        db_appointment.doctor_id = appointment.doctor_id
        db_appointment.patient_name = appointment.patient_name
        db_appointment.doctor_name = appointment.doctor_name
        db_appointment.appointment_date = appointment.date
        db_appointment.appointment_time = appointment.time
        db_appointment.symptoms = appointment.symptoms
        db_appointment.notes = appointment.notes
        db_appointment.status = appointment.status
        db_appointment.follow_up = appointment.follow_up
        db_appointment.meeting_link = appointment.meeting_link
        db_appointment.feedback_rating = appointment.feedback_rating
        db_appointment.feedback_comment = appointment.feedback_comment

    @staticmethod
    def _to_domain(db_appointment: DbAppointment) -> DomainAppointment:
        """Convert database model to domain entity."""
        return DomainAppointment(
            id=db_appointment.id,
            patient_id=db_appointment.patient_id,
            doctor_id=db_appointment.doctor_id,
            patient_name=db_appointment.patient_name,
            doctor_name=db_appointment.doctor_name,
            date=db_appointment.appointment_date,
            time=db_appointment.appointment_time,
            symptoms=db_appointment.symptoms,
            notes=db_appointment.notes,
            status=db_appointment.status,
            follow_up=bool(db_appointment.follow_up),
            meeting_link=db_appointment.meeting_link,
            feedback_rating=db_appointment.feedback_rating,
            feedback_comment=db_appointment.feedback_comment,
            created_at=db_appointment.created_at,
            updated_at=db_appointment.updated_at,
        )
