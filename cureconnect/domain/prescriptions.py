"""
One prescription per appointment.

These helpers work on prescriptions already loaded in memory and decide
whether a submission for an appointment should update an existing record
or create a new one.
"""

from typing import Iterable, List, Optional

from .entities import Appointment, Prescription
from .lifecycle import COMPLETED

DUPLICATE_MESSAGE = "A prescription already exists for this appointment."


def find_prescription(
    appointment_id: str, prescriptions: Iterable[Prescription]
) -> Optional[Prescription]:
    """Return the prescription attached to ``appointment_id``, if any."""
    for prescription in prescriptions:
        if prescription.appointment_id == appointment_id:
            return prescription
    return None


def has_prescription(appointment_id: str, prescriptions: Iterable[Prescription]) -> bool:
    return find_prescription(appointment_id, prescriptions) is not None


def candidate_appointments(
    appointments: Iterable[Appointment], prescriptions: Iterable[Prescription]
) -> List[Appointment]:
    """Completed appointments that do not have a prescription yet."""
    prescribed = {p.appointment_id for p in prescriptions}
    return [
        appointment
        for appointment in appointments
        if appointment.status == COMPLETED and appointment.id not in prescribed
    ]
