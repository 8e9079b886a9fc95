"""
Domain entities - Pure business logic, no framework dependencies.

Each entity validates its own invariants in ``__post_init__`` and raises
ValueError when they do not hold.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from .lifecycle import APPOINTMENT_STATUSES, PENDING
from .scheduling import WEEKDAYS, is_valid_slot

USER_ROLES = ("patient", "doctor", "admin")
DOCTOR_STATUSES = ("pending", "active", "rejected", "suspended")
PATIENT_STATUSES = ("active", "inactive")
GENDERS = ("male", "female", "other")
BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
PRESCRIPTION_STATUSES = ("active", "expired", "cancelled")
REVIEW_STATUSES = ("pending", "approved", "flagged")
REPORT_TYPES = ("lab", "imaging", "pathology", "prescription", "vaccination", "other")


@dataclass
class User:
    """An account of any role."""

    id: Optional[str] = None
    name: str = ""
    email: str = ""
    role: str = "patient"
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Name is required")
        if not self.email or "@" not in self.email:
            raise ValueError("Valid email is required")
        if self.role not in USER_ROLES:
            raise ValueError(f"Invalid role: {self.role}")


@dataclass
class Doctor:
    """A doctor's public profile joined with the account name and email.

    ``rating`` and ``review_count`` are derived from approved reviews.
    """

    id: Optional[str] = None
    name: str = ""
    email: str = ""
    specialization: str = ""
    location: str = ""
    bio: Optional[str] = None
    experience: int = 0
    education: Optional[str] = None
    fees: float = 0.0
    available_days: List[str] = field(default_factory=list)
    available_time_slots: List[str] = field(default_factory=list)
    is_available: bool = True
    status: str = "pending"
    profile_image: Optional[str] = None
    rating: float = 0.0
    review_count: int = 0
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.specialization:
            raise ValueError("Specialization is required")
        if self.status not in DOCTOR_STATUSES:
            raise ValueError(f"Invalid doctor status: {self.status}")
        if self.experience < 0:
            raise ValueError("Experience cannot be negative")
        if self.fees < 0:
            raise ValueError("Fees cannot be negative")
        for day in self.available_days:
            if day not in WEEKDAYS:
                raise ValueError(f"Invalid weekday: {day}")
        for slot in self.available_time_slots:
            if not is_valid_slot(slot):
                raise ValueError(f"Invalid time slot: {slot}")

    @property
    def is_suspended(self) -> bool:
        return self.status == "suspended"

    def accepts(self, weekday: str, time_slot: str) -> bool:
        """Whether the doctor's schedule covers the weekday and slot.

        Empty ``available_days`` / ``available_time_slots`` mean no restriction.
        """
        if self.available_days and weekday not in self.available_days:
            return False
        if self.available_time_slots and time_slot not in self.available_time_slots:
            return False
        return True


@dataclass
class EmergencyContact:
    name: str = ""
    relationship: str = ""
    phone_number: str = ""


@dataclass
class Patient:
    id: Optional[str] = None
    name: str = ""
    email: str = ""
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: List[str] = field(default_factory=list)
    emergency_contact: Optional[EmergencyContact] = None
    status: str = "active"
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.gender is not None and self.gender not in GENDERS:
            raise ValueError(f"Invalid gender: {self.gender}")
        if self.blood_group is not None and self.blood_group not in BLOOD_GROUPS:
            raise ValueError(f"Invalid blood group: {self.blood_group}")
        if self.status not in PATIENT_STATUSES:
            raise ValueError(f"Invalid patient status: {self.status}")


@dataclass
class Appointment:
    """One scheduled consultation between a patient and a doctor."""

    id: Optional[str] = None
    patient_id: str = ""
    doctor_id: str = ""
    patient_name: str = ""
    doctor_name: str = ""
    date: Optional[date] = None
    time: str = ""
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    status: str = PENDING
    follow_up: bool = False
    meeting_link: Optional[str] = None
    feedback_rating: Optional[int] = None
    feedback_comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.patient_id:
            raise ValueError("Patient is required")
        if not self.doctor_id:
            raise ValueError("Doctor is required")
        if self.date is None:
            raise ValueError("Date is required")
        if not self.time:
            raise ValueError("Time is required")
        if self.status not in APPOINTMENT_STATUSES:
            raise ValueError(f"Invalid appointment status: {self.status}")
        if self.feedback_rating is not None and not 1 <= self.feedback_rating <= 5:
            raise ValueError("Rating must be between 1 and 5")

    @property
    def has_feedback(self) -> bool:
        return self.feedback_rating is not None


@dataclass
class Medication:
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""

    def __post_init__(self):
        for attr in ("name", "dosage", "frequency", "duration"):
            value = getattr(self, attr)
            if not value or not str(value).strip():
                raise ValueError(f"Medication {attr} is required")

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
        }


@dataclass
class Prescription:
    id: Optional[str] = None
    appointment_id: str = ""
    patient_id: str = ""
    doctor_id: str = ""
    patient_name: str = ""
    doctor_name: str = ""
    medications: List[Medication] = field(default_factory=list)
    notes: Optional[str] = None
    status: str = "active"
    follow_up_date: Optional[date] = None
    expiry_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.appointment_id:
            raise ValueError("Appointment is required")
        if not self.medications:
            raise ValueError("At least one medication is required")
        if self.status not in PRESCRIPTION_STATUSES:
            raise ValueError(f"Invalid prescription status: {self.status}")


@dataclass
class Review:
    id: Optional[str] = None
    appointment_id: str = ""
    patient_id: str = ""
    patient_name: str = ""
    doctor_id: str = ""
    doctor_name: str = ""
    rating: int = 0
    comment: str = ""
    status: str = "pending"
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.appointment_id:
            raise ValueError("Appointment is required")
        if isinstance(self.rating, bool) or not isinstance(self.rating, int):
            raise ValueError("Rating must be a whole number")
        if not 1 <= self.rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        if self.status not in REVIEW_STATUSES:
            raise ValueError(f"Invalid review status: {self.status}")


@dataclass
class Report:
    """Metadata for a medical report uploaded by a patient."""

    id: Optional[str] = None
    patient_id: str = ""
    patient_name: str = ""
    report_type: str = "other"
    title: str = ""
    description: Optional[str] = None
    file_url: str = ""
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    issued_date: Optional[date] = None
    institution: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("Report title is required")
        if not self.file_url:
            raise ValueError("Report file URL is required")
        if self.report_type not in REPORT_TYPES:
            raise ValueError(f"Invalid report type: {self.report_type}")
        if self.file_size is not None and self.file_size < 0:
            raise ValueError("File size cannot be negative")
