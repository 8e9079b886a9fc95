"""
Abstract interfaces for repositories following Interface Segregation Principle.

These interfaces define contracts without implementation details,
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional

from .entities import (
    Appointment,
    Doctor,
    Patient,
    Prescription,
    Report,
    Review,
    User,
)


class IUserReader(ABC):
    """Interface for user read operations."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        pass

    @abstractmethod
    def get_password_hash(self, user_id: str) -> Optional[str]:
        """Get the stored password hash for a user."""
        pass


class IUserWriter(ABC):
    """Interface for user write operations."""

    @abstractmethod
    def create(self, user: User, password_hash: Optional[str]) -> User:
        """Create a new user."""
        pass

    @abstractmethod
    def update(self, user: User) -> User:
        """Update an existing user."""
        pass

    @abstractmethod
    def set_password(self, user_id: str, password_hash: str) -> bool:
        """Replace a user's password hash."""
        pass

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """Delete a user."""
        pass


class IUserRepository(IUserReader, IUserWriter):
    """Complete user repository interface combining read/write operations."""

    pass


class IDoctorRepository(ABC):
    @abstractmethod
    def get_by_id(self, doctor_id: str) -> Optional[Doctor]:
        pass

    @abstractmethod
    def list(
        self,
        specialization: Optional[str] = None,
        location: Optional[str] = None,
        is_available: Optional[bool] = None,
        status: Optional[str] = None,
    ) -> List[Doctor]:
        """List doctors matching every filter that is not None."""
        pass

    @abstractmethod
    def create(self, doctor: Doctor) -> Doctor:
        """Create the doctor profile for an existing doctor account."""
        pass

    @abstractmethod
    def update(self, doctor: Doctor) -> Doctor:
        pass

    @abstractmethod
    def delete(self, doctor_id: str) -> bool:
        """Delete the doctor account together with its appointments."""
        pass


class IPatientRepository(ABC):
    @abstractmethod
    def get_by_id(self, patient_id: str) -> Optional[Patient]:
        pass

    @abstractmethod
    def list(self, status: Optional[str] = None) -> List[Patient]:
        pass

    @abstractmethod
    def create(self, patient: Patient) -> Patient:
        pass

    @abstractmethod
    def update(self, patient: Patient) -> Patient:
        pass


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID."""
        pass

    @abstractmethod
    def list(
        self,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        on_date: Optional[date] = None,
        statuses: Optional[List[str]] = None,
    ) -> List[Appointment]:
        """List appointments ordered by date, then slot."""
        pass

    @abstractmethod
    def get_for_doctor_on_date(self, doctor_id: str, on_date: date) -> List[Appointment]:
        """All of a doctor's appointments on one day, any status."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        """Create a new appointment.

        Raises StateConflictError when the slot is already held.
        """
        pass

    @abstractmethod
    def update(self, appointment: Appointment) -> Appointment:
        """Update an existing appointment."""
        pass

    @abstractmethod
    def delete(self, appointment_id: str) -> bool:
        """Delete an appointment and anything attached to it."""
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""

    pass


class IPrescriptionRepository(ABC):
    @abstractmethod
    def get_by_id(self, prescription_id: str) -> Optional[Prescription]:
        pass

    @abstractmethod
    def get_by_appointment_id(self, appointment_id: str) -> Optional[Prescription]:
        pass

    @abstractmethod
    def list(
        self, patient_id: Optional[str] = None, doctor_id: Optional[str] = None
    ) -> List[Prescription]:
        pass

    @abstractmethod
    def create(self, prescription: Prescription) -> Prescription:
        pass

    @abstractmethod
    def update(self, prescription: Prescription) -> Prescription:
        pass

    @abstractmethod
    def delete(self, prescription_id: str) -> bool:
        pass


class IReviewRepository(ABC):
    @abstractmethod
    def get_by_id(self, review_id: str) -> Optional[Review]:
        pass

    @abstractmethod
    def get_by_appointment_id(self, appointment_id: str) -> Optional[Review]:
        pass

    @abstractmethod
    def list(
        self,
        doctor_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Review]:
        pass

    @abstractmethod
    def create(self, review: Review) -> Review:
        pass

    @abstractmethod
    def update_status(self, review_id: str, status: str) -> Optional[Review]:
        pass

    @abstractmethod
    def delete(self, review_id: str) -> bool:
        pass


class IReportRepository(ABC):
    @abstractmethod
    def get_by_id(self, report_id: str) -> Optional[Report]:
        pass

    @abstractmethod
    def list(self, patient_id: Optional[str] = None) -> List[Report]:
        pass

    @abstractmethod
    def create(self, report: Report) -> Report:
        pass

    @abstractmethod
    def delete(self, report_id: str) -> bool:
        pass


class IRevokedTokenRepository(ABC):
    """Storage for access tokens invalidated at logout."""

    @abstractmethod
    def revoke(self, jti: str, user_id: str, expires_at: datetime) -> None:
        pass

    @abstractmethod
    def is_revoked(self, jti: str) -> bool:
        pass

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Remove entries whose token has expired anyway; returns the count."""
        pass


class INotificationService(ABC):
    """Outgoing patient notifications. Implementations never raise."""

    @abstractmethod
    def send_email(self, to_email: str, subject: str, body: str) -> bool:
        pass
