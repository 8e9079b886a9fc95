"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs are built from a JSON body with ``from_payload`` and checked
with ``validate()``; response DTOs are built with ``from_domain`` and
serialized with ``to_dict()`` (dates as ISO strings).
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from cureconnect.core.exceptions import ValidationError
from cureconnect.core.security import MIN_PASSWORD_LENGTH
from cureconnect.domain.entities import (
    BLOOD_GROUPS,
    DOCTOR_STATUSES,
    GENDERS,
    PATIENT_STATUSES,
    PRESCRIPTION_STATUSES,
    REPORT_TYPES,
    REVIEW_STATUSES,
    Medication,
)
from cureconnect.domain.lifecycle import validate_status
from cureconnect.domain.scheduling import WEEKDAYS, is_valid_slot, parse_iso_day

REGISTRATION_ROLES = ("patient", "doctor")


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def _parse_day(value: Any, field_name: str) -> Optional[date]:
    if value in (None, ""):
        return None
    try:
        return parse_iso_day(value)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}. Expected YYYY-MM-DD.") from None


def _parse_int(value: Any, field_name: str) -> Optional[int]:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number") from None


def _parse_float(value: Any, field_name: str) -> Optional[float]:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None


def _parse_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_str_list(value: Any, field_name: str) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [part for part in value.split(",")]
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be a list")
    return [str(item).strip() for item in value if str(item).strip()]


# ===========================
# Auth
# ===========================


@dataclass
class RegisterRequest:
    """DTO for account registration. Doctors also send their profile."""

    name: str
    email: str
    password: str
    role: str = "patient"
    specialization: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    experience: Optional[int] = None
    education: Optional[str] = None
    fees: Optional[float] = None
    available_days: List[str] = field(default_factory=list)
    available_time_slots: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "RegisterRequest":
        return cls(
            name=_clean(data.get("name")) or "",
            email=(_clean(data.get("email")) or "").lower(),
            password=data.get("password") or "",
            role=_clean(data.get("role")) or "patient",
            specialization=_clean(data.get("specialization")),
            location=_clean(data.get("location")),
            bio=_clean(data.get("bio")),
            experience=_parse_int(data.get("experience"), "Experience"),
            education=_clean(data.get("education")),
            fees=_parse_float(data.get("fees"), "Fees"),
            available_days=_parse_str_list(data.get("available_days"), "available_days")
            or [],
            available_time_slots=_parse_str_list(
                data.get("available_time_slots"), "available_time_slots"
            )
            or [],
        )

    def validate(self) -> None:
        if not self.name or len(self.name.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters")
        if not self.email or "@" not in self.email:
            raise ValidationError("Valid email is required")
        if not isinstance(self.password, str) or len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if self.role not in REGISTRATION_ROLES:
            raise ValidationError("Role must be patient or doctor")
        if self.role == "doctor":
            if not self.specialization:
                raise ValidationError("Specialization is required for doctors")
            if self.fees is not None and self.fees < 0:
                raise ValidationError("Fees cannot be negative")
            if self.experience is not None and self.experience < 0:
                raise ValidationError("Experience cannot be negative")
            _validate_schedule(self.available_days, self.available_time_slots)


@dataclass
class LoginRequest:
    email: str
    password: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "LoginRequest":
        return cls(
            email=(_clean(data.get("email")) or "").lower(),
            password=data.get("password") or "",
        )

    def validate(self) -> None:
        if not self.email or not self.password:
            raise ValidationError("Please provide an email and password")


@dataclass
class UserResponse:
    """DTO for user API responses."""

    id: str
    name: str
    email: str
    role: str
    profile_image: Optional[str]
    status: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, user, status: Optional[str] = None) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            profile_image=user.profile_image,
            status=status,
            created_at=user.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        return data


@dataclass
class AuthTokenResponse:
    """DTO for authentication token responses."""

    token: str
    user: UserResponse
    expires_in: int  # seconds

    @classmethod
    def create(
        cls, token: str, user, expires_in: int, status: Optional[str] = None
    ) -> "AuthTokenResponse":
        return cls(
            token=token,
            user=UserResponse.from_domain(user, status=status),
            expires_in=expires_in,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "user": self.user.to_dict(),
            "expires_in": self.expires_in,
        }


# ===========================
# Doctors
# ===========================


def _validate_schedule(days: Optional[List[str]], slots: Optional[List[str]]) -> None:
    for day in days or []:
        if day not in WEEKDAYS:
            raise ValidationError(
                f"Invalid available day '{day}'. Use full weekday names, e.g. Monday."
            )
    for slot in slots or []:
        if not is_valid_slot(slot):
            raise ValidationError(
                f"Invalid time slot '{slot}'. Slots run from 9:00 AM to 5:00 PM "
                "every 30 minutes."
            )


@dataclass
class DoctorUpdateRequest:
    """Profile changes; account email, password and role are not editable here."""

    name: Optional[str] = None
    specialization: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    experience: Optional[int] = None
    education: Optional[str] = None
    fees: Optional[float] = None
    profile_image: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "DoctorUpdateRequest":
        return cls(
            name=_clean(data.get("name")),
            specialization=_clean(data.get("specialization")),
            location=_clean(data.get("location")),
            bio=_clean(data.get("bio")),
            experience=_parse_int(data.get("experience"), "Experience"),
            education=_clean(data.get("education")),
            fees=_parse_float(data.get("fees"), "Fees"),
            profile_image=_clean(data.get("profile_image")),
        )

    def validate(self) -> None:
        if self.name is not None and len(self.name) < 2:
            raise ValidationError("Name must be at least 2 characters")
        if self.experience is not None and self.experience < 0:
            raise ValidationError("Experience cannot be negative")
        if self.fees is not None and self.fees < 0:
            raise ValidationError("Fees cannot be negative")


@dataclass
class DoctorAvailabilityRequest:
    available_days: Optional[List[str]] = None
    available_time_slots: Optional[List[str]] = None
    is_available: Optional[bool] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "DoctorAvailabilityRequest":
        return cls(
            available_days=_parse_str_list(data.get("available_days"), "available_days"),
            available_time_slots=_parse_str_list(
                data.get("available_time_slots"), "available_time_slots"
            ),
            is_available=_parse_bool(data.get("is_available")),
        )

    def validate(self) -> None:
        if (
            self.available_days is None
            and self.available_time_slots is None
            and self.is_available is None
        ):
            raise ValidationError("No availability changes provided")
        _validate_schedule(self.available_days, self.available_time_slots)


@dataclass
class DoctorStatusRequest:
    status: str
    reason: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "DoctorStatusRequest":
        return cls(status=_clean(data.get("status")) or "", reason=_clean(data.get("reason")))

    def validate(self) -> None:
        if self.status not in DOCTOR_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(DOCTOR_STATUSES)}"
            )


@dataclass
class DoctorSearchFilters:
    specialization: Optional[str] = None
    location: Optional[str] = None
    is_available: Optional[bool] = None
    min_rating: Optional[float] = None
    status: Optional[str] = None

    def validate(self) -> None:
        if self.min_rating is not None and not 0 <= self.min_rating <= 5:
            raise ValidationError("min_rating must be between 0 and 5")
        if self.status is not None and self.status not in DOCTOR_STATUSES:
            raise ValidationError("Invalid doctor status filter")


@dataclass
class DoctorResponse:
    id: str
    name: str
    email: str
    specialization: str
    location: str
    bio: Optional[str]
    experience: int
    education: Optional[str]
    fees: float
    available_days: List[str]
    available_time_slots: List[str]
    is_available: bool
    status: str
    profile_image: Optional[str]
    rating: float
    review_count: int

    @classmethod
    def from_domain(cls, doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            name=doctor.name,
            email=doctor.email,
            specialization=doctor.specialization,
            location=doctor.location,
            bio=doctor.bio,
            experience=doctor.experience,
            education=doctor.education,
            fees=doctor.fees,
            available_days=list(doctor.available_days),
            available_time_slots=list(doctor.available_time_slots),
            is_available=doctor.is_available,
            status=doctor.status,
            profile_image=doctor.profile_image,
            rating=doctor.rating,
            review_count=doctor.review_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ===========================
# Patients
# ===========================


@dataclass
class PatientUpdateRequest:
    name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: Optional[List[str]] = None
    emergency_contact: Optional[Dict[str, str]] = None
    profile_image: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "PatientUpdateRequest":
        contact = data.get("emergency_contact")
        if contact is not None and not isinstance(contact, dict):
            raise ValidationError("emergency_contact must be an object")
        return cls(
            name=_clean(data.get("name")),
            date_of_birth=_parse_day(data.get("date_of_birth"), "date of birth"),
            gender=_clean(data.get("gender")),
            phone_number=_clean(data.get("phone_number")),
            address=_clean(data.get("address")),
            medical_history=_clean(data.get("medical_history")),
            blood_group=_clean(data.get("blood_group")),
            allergies=_parse_str_list(data.get("allergies"), "allergies"),
            emergency_contact=(
                {
                    "name": _clean(contact.get("name")) or "",
                    "relationship": _clean(contact.get("relationship")) or "",
                    "phone_number": _clean(contact.get("phone_number")) or "",
                }
                if contact
                else None
            ),
            profile_image=_clean(data.get("profile_image")),
        )

    def validate(self) -> None:
        if self.name is not None and len(self.name) < 2:
            raise ValidationError("Name must be at least 2 characters")
        if self.gender is not None and self.gender not in GENDERS:
            raise ValidationError(f"Gender must be one of: {', '.join(GENDERS)}")
        if self.blood_group is not None and self.blood_group not in BLOOD_GROUPS:
            raise ValidationError(
                f"Blood group must be one of: {', '.join(BLOOD_GROUPS)}"
            )
        if self.date_of_birth is not None and self.date_of_birth > date.today():
            raise ValidationError("Date of birth cannot be in the future")


@dataclass
class PatientStatusRequest:
    status: str

    def validate(self) -> None:
        if self.status not in PATIENT_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(PATIENT_STATUSES)}"
            )


@dataclass
class PatientResponse:
    id: str
    name: str
    email: str
    date_of_birth: Optional[date]
    gender: Optional[str]
    phone_number: Optional[str]
    address: Optional[str]
    medical_history: Optional[str]
    blood_group: Optional[str]
    allergies: List[str]
    emergency_contact: Optional[Dict[str, str]]
    status: str
    profile_image: Optional[str]

    @classmethod
    def from_domain(cls, patient) -> "PatientResponse":
        contact = patient.emergency_contact
        return cls(
            id=patient.id,
            name=patient.name,
            email=patient.email,
            date_of_birth=patient.date_of_birth,
            gender=patient.gender,
            phone_number=patient.phone_number,
            address=patient.address,
            medical_history=patient.medical_history,
            blood_group=patient.blood_group,
            allergies=list(patient.allergies),
            emergency_contact=asdict(contact) if contact else None,
            status=patient.status,
            profile_image=patient.profile_image,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date_of_birth"] = _iso(self.date_of_birth)
        return data


# ===========================
# Appointments
# ===========================


def _validate_slot(time_slot: str) -> None:
    if not time_slot:
        raise ValidationError("Please select both date and time")
    if not is_valid_slot(time_slot):
        raise ValidationError(
            f"Invalid time '{time_slot}'. Choose a slot between 9:00 AM and 5:00 PM."
        )


@dataclass
class AppointmentCreateRequest:
    """DTO for appointment booking requests."""

    doctor_id: str
    date: Optional[date]
    time: str
    symptoms: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AppointmentCreateRequest":
        return cls(
            doctor_id=_clean(data.get("doctor_id")) or "",
            date=_parse_day(data.get("date"), "date"),
            time=_clean(data.get("time")) or "",
            symptoms=_clean(data.get("symptoms")),
            notes=_clean(data.get("notes")),
        )

    def validate(self) -> None:
        if not self.doctor_id:
            raise ValidationError("Doctor is required")
        if self.date is None or not self.time:
            raise ValidationError("Please select both date and time")
        _validate_slot(self.time)


@dataclass
class AppointmentRescheduleRequest:
    date: Optional[date]
    time: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AppointmentRescheduleRequest":
        return cls(
            date=_parse_day(data.get("date"), "date"),
            time=_clean(data.get("time")) or "",
        )

    def validate(self) -> None:
        if self.date is None or not self.time:
            raise ValidationError("Please select both date and time")
        _validate_slot(self.time)


@dataclass
class AppointmentStatusRequest:
    status: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AppointmentStatusRequest":
        return cls(status=_clean(data.get("status")) or "")

    def validate(self) -> None:
        if not self.status:
            raise ValidationError("Status is required")
        validate_status(self.status)


@dataclass
class AppointmentDetailsRequest:
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    meeting_link: Optional[str] = None
    follow_up: Optional[bool] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AppointmentDetailsRequest":
        return cls(
            symptoms=_clean(data.get("symptoms")),
            notes=_clean(data.get("notes")),
            meeting_link=_clean(data.get("meeting_link")),
            follow_up=_parse_bool(data.get("follow_up")),
        )

    def validate(self) -> None:
        if all(
            value is None
            for value in (self.symptoms, self.notes, self.meeting_link, self.follow_up)
        ):
            raise ValidationError("No appointment details provided")


@dataclass
class FeedbackRequest:
    rating: Optional[int]
    comment: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "FeedbackRequest":
        return cls(
            rating=_parse_int(data.get("rating"), "Rating"),
            comment=_clean(data.get("comment")),
        )

    def validate(self) -> None:
        if self.rating is None or not 1 <= self.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")


@dataclass
class AppointmentResponse:
    """DTO for appointment API responses."""

    id: str
    patient_id: str
    doctor_id: str
    patient_name: str
    doctor_name: str
    date: date
    time: str
    symptoms: Optional[str]
    notes: Optional[str]
    status: str
    follow_up: bool
    meeting_link: Optional[str]
    feedback: Optional[Dict[str, Any]]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_domain(cls, appointment) -> "AppointmentResponse":
        feedback = None
        if appointment.feedback_rating is not None:
            feedback = {
                "rating": appointment.feedback_rating,
                "comment": appointment.feedback_comment,
            }
        return cls(
            id=appointment.id,
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            patient_name=appointment.patient_name,
            doctor_name=appointment.doctor_name,
            date=appointment.date,
            time=appointment.time,
            symptoms=appointment.symptoms,
            notes=appointment.notes,
            status=appointment.status,
            follow_up=appointment.follow_up,
            meeting_link=appointment.meeting_link,
            feedback=feedback,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = _iso(self.date)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        return data


@dataclass
class AvailabilityResponse:
    doctor_id: str
    date: date
    available_slots: List[str]
    first_available: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "doctor_id": self.doctor_id,
            "date": _iso(self.date),
            "available_slots": list(self.available_slots),
            "first_available": self.first_available,
        }


# ===========================
# Prescriptions
# ===========================


def _parse_medications(value: Any) -> List[Medication]:
    if not isinstance(value, list) or not value:
        raise ValidationError("At least one medication is required")
    medications = []
    for index, entry in enumerate(value, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"Medication {index} must be an object")
        try:
            medications.append(
                Medication(
                    name=_clean(entry.get("name")) or "",
                    dosage=_clean(entry.get("dosage")) or "",
                    frequency=_clean(entry.get("frequency")) or "",
                    duration=_clean(entry.get("duration")) or "",
                )
            )
        except ValueError as e:
            raise ValidationError(f"Medication {index}: {e}") from None
    return medications


@dataclass
class PrescriptionRequest:
    """Create or replace the prescription of a completed appointment."""

    appointment_id: str
    medications: List[Medication]
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "PrescriptionRequest":
        return cls(
            appointment_id=_clean(data.get("appointment_id")) or "",
            medications=_parse_medications(data.get("medications")),
            notes=_clean(data.get("notes")),
            follow_up_date=_parse_day(data.get("follow_up_date"), "follow-up date"),
        )

    def validate(self) -> None:
        if not self.appointment_id:
            raise ValidationError("Appointment is required")
        if not self.medications:
            raise ValidationError("At least one medication is required")


@dataclass
class PrescriptionUpdateRequest:
    """Partial update; omitted fields keep their current value."""

    medications: Optional[List[Medication]] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    status: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "PrescriptionUpdateRequest":
        medications = data.get("medications")
        return cls(
            medications=(
                _parse_medications(medications) if medications is not None else None
            ),
            notes=_clean(data.get("notes")),
            follow_up_date=_parse_day(data.get("follow_up_date"), "follow-up date"),
            status=_clean(data.get("status")),
        )

    def validate(self) -> None:
        if self.status is not None:
            PrescriptionStatusRequest(status=self.status).validate()


@dataclass
class PrescriptionStatusRequest:
    status: str

    def validate(self) -> None:
        if self.status not in PRESCRIPTION_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(PRESCRIPTION_STATUSES)}"
            )


@dataclass
class PrescriptionResponse:
    id: str
    appointment_id: str
    patient_id: str
    doctor_id: str
    patient_name: str
    doctor_name: str
    medications: List[Dict[str, str]]
    notes: Optional[str]
    status: str
    follow_up_date: Optional[date]
    expiry_date: Optional[date]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, prescription) -> "PrescriptionResponse":
        return cls(
            id=prescription.id,
            appointment_id=prescription.appointment_id,
            patient_id=prescription.patient_id,
            doctor_id=prescription.doctor_id,
            patient_name=prescription.patient_name,
            doctor_name=prescription.doctor_name,
            medications=[m.to_dict() for m in prescription.medications],
            notes=prescription.notes,
            status=prescription.status,
            follow_up_date=prescription.follow_up_date,
            expiry_date=prescription.expiry_date,
            created_at=prescription.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["follow_up_date"] = _iso(self.follow_up_date)
        data["expiry_date"] = _iso(self.expiry_date)
        data["created_at"] = _iso(self.created_at)
        return data


# ===========================
# Reviews
# ===========================


@dataclass
class ReviewCreateRequest:
    appointment_id: str
    rating: Optional[int]
    comment: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ReviewCreateRequest":
        return cls(
            appointment_id=_clean(data.get("appointment_id")) or "",
            rating=_parse_int(data.get("rating"), "Rating"),
            comment=_clean(data.get("comment")) or "",
        )

    def validate(self) -> None:
        if not self.appointment_id:
            raise ValidationError("Appointment is required")
        if self.rating is None or not 1 <= self.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")


@dataclass
class ReviewStatusRequest:
    status: str

    def validate(self) -> None:
        if self.status not in REVIEW_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(REVIEW_STATUSES)}"
            )


@dataclass
class ReviewResponse:
    id: str
    appointment_id: str
    patient_id: str
    patient_name: str
    doctor_id: str
    doctor_name: str
    rating: int
    comment: str
    status: str
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, review) -> "ReviewResponse":
        return cls(
            id=review.id,
            appointment_id=review.appointment_id,
            patient_id=review.patient_id,
            patient_name=review.patient_name,
            doctor_id=review.doctor_id,
            doctor_name=review.doctor_name,
            rating=review.rating,
            comment=review.comment,
            status=review.status,
            created_at=review.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        return data


# ===========================
# Reports
# ===========================


@dataclass
class ReportCreateRequest:
    report_type: str
    title: str
    file_url: str
    description: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    issued_date: Optional[date] = None
    institution: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ReportCreateRequest":
        return cls(
            report_type=_clean(data.get("report_type")) or "other",
            title=_clean(data.get("title")) or "",
            file_url=_clean(data.get("file_url")) or "",
            description=_clean(data.get("description")),
            file_type=_clean(data.get("file_type")),
            file_size=_parse_int(data.get("file_size"), "File size"),
            issued_date=_parse_day(data.get("issued_date"), "issued date"),
            institution=_clean(data.get("institution")),
        )

    def validate(self) -> None:
        if not self.title:
            raise ValidationError("Report title is required")
        if not self.file_url:
            raise ValidationError("Report file URL is required")
        if self.report_type not in REPORT_TYPES:
            raise ValidationError(
                f"Invalid report type. Must be one of: {', '.join(REPORT_TYPES)}"
            )
        if self.file_size is not None and self.file_size < 0:
            raise ValidationError("File size cannot be negative")


@dataclass
class ReportResponse:
    id: str
    patient_id: str
    patient_name: str
    report_type: str
    title: str
    description: Optional[str]
    file_url: str
    file_type: Optional[str]
    file_size: Optional[int]
    issued_date: Optional[date]
    institution: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, report) -> "ReportResponse":
        return cls(
            id=report.id,
            patient_id=report.patient_id,
            patient_name=report.patient_name,
            report_type=report.report_type,
            title=report.title,
            description=report.description,
            file_url=report.file_url,
            file_type=report.file_type,
            file_size=report.file_size,
            issued_date=report.issued_date,
            institution=report.institution,
            created_at=report.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["issued_date"] = _iso(self.issued_date)
        data["created_at"] = _iso(self.created_at)
        return data


# ===========================
# Errors
# ===========================


@dataclass
class ErrorResponse:
    """DTO for error responses."""

    error: str
    message: str
    details: Optional[dict] = None

    @classmethod
    def validation_error(
        cls, message: str, details: Optional[dict] = None
    ) -> "ErrorResponse":
        return cls(error="validation_error", message=message, details=details)

    @classmethod
    def not_found(cls, resource: str) -> "ErrorResponse":
        return cls(error="not_found", message=f"{resource} not found")

    @classmethod
    def from_exception(cls, error) -> "ErrorResponse":
        names = {
            400: "validation_error",
            401: "unauthorized",
            403: "forbidden",
            404: "not_found",
            409: "conflict",
        }
        code = getattr(error, "status_code", 500)
        return cls(error=names.get(code, "server_error"), message=str(error))

    @classmethod
    def server_error(cls, message: str = "Internal server error") -> "ErrorResponse":
        return cls(error="server_error", message=message)
