# Controllers package initialization
# Each module exposes one Flask Blueprint registered by create_app

from . import (
    appointment_controller,
    auth_controller,
    doctor_controller,
    health_controller,
    patient_controller,
    prescription_controller,
    report_controller,
    review_controller,
)

__all__ = [
    "appointment_controller",
    "auth_controller",
    "doctor_controller",
    "health_controller",
    "patient_controller",
    "prescription_controller",
    "report_controller",
    "review_controller",
]
