# Repositories package
# SQLAlchemy implementations of the interfaces in cureconnect.domain.interfaces

from .appointment_repo import AppointmentRepository
from .doctor_repo import DoctorRepository
from .patient_repo import PatientRepository
from .prescription_repo import PrescriptionRepository
from .report_repo import ReportRepository
from .review_repo import ReviewRepository
from .token_repo import RevokedTokenRepository
from .user_repo import UserRepository

__all__ = [
    "AppointmentRepository",
    "DoctorRepository",
    "PatientRepository",
    "PrescriptionRepository",
    "ReportRepository",
    "ReviewRepository",
    "RevokedTokenRepository",
    "UserRepository",
]
