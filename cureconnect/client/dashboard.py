"""
Role dashboards over ``CureConnectAPI``.

Each action checks what can be checked locally before any request is sent
(required fields, reschedule eligibility, suspended doctors) and reports its
outcome as a ``Notification``. Failures are scoped to the action: nothing
here raises ``ApiError`` to the caller.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Union

from cureconnect.domain.entities import Appointment, Prescription
from cureconnect.domain.lifecycle import CANCELLED, COMPLETED, CONFIRMED, can_reschedule
from cureconnect.domain.prescriptions import candidate_appointments, find_prescription
from cureconnect.domain.scheduling import (
    compute_available_slots,
    first_available_slot,
    parse_iso_day,
)

from .api import ApiError, CureConnectAPI
from .notifications import Notification

logger = logging.getLogger(__name__)

LOAD_TIMES_FAILED = "Failed to load available times. Please try again."
MISSING_DATE_TIME = "Please select both date and time."
CANNOT_RESCHEDULE = "Only pending appointments can be rescheduled."
SUSPENDED_ACTION = "Your account is suspended. You cannot perform this action."
SUSPENDED_PRESCRIPTION = "Your account is suspended. You cannot create prescriptions."

DayInput = Union[date, str, None]


@dataclass
class AvailabilityResult:
    """Free slots for a doctor/day plus the slot pre-selected for the user."""

    slots: List[str] = field(default_factory=list)
    selected: Optional[str] = None
    notification: Optional[Notification] = None

    @property
    def failed(self) -> bool:
        return self.notification is not None and self.notification.is_error


def _day_string(value: DayInput) -> Optional[str]:
    if value is None or value == "":
        return None
    try:
        return parse_iso_day(value).isoformat()
    except ValueError:
        return None


class Dashboard:
    """Common plumbing: the API client and the notification stack."""

    def __init__(self, api: CureConnectAPI):
        self.api = api
        self.notifications: List[Notification] = []

    @property
    def session(self):
        return self.api.session

    @property
    def active_notifications(self) -> List[Notification]:
        return [n for n in self.notifications if not n.dismissed]

    def _notify(self, notification: Notification) -> Notification:
        self.notifications.append(notification)
        return notification

    def _success(self, title: str, description: str) -> Notification:
        return self._notify(Notification.success(title, description))

    def _error(self, title: str, description: str) -> Notification:
        return self._notify(Notification.error(title, description))

    def _failed(self, title: str, error: ApiError, fallback: str) -> Notification:
        """Error notification for a failed call; transport errors get ``fallback``."""
        description = fallback if error.is_network or not error.message else error.message
        return self._error(title, description)


class _Rescheduling(Dashboard, ABC):
    """Availability and reschedule flow shared by patients and admins."""

    RESCHEDULED_MESSAGE = "The appointment has been rescheduled successfully."

    @abstractmethod
    def _fetch_available_slots(
        self, doctor_id: str, on_date: str, exclude_id: Optional[str]
    ) -> List[str]:
        """Free slots for the doctor on ``on_date``; may raise ``ApiError``."""
        pass

    def load_available_times(
        self, doctor_id: str, on_date: DayInput, exclude_id: Optional[str] = None
    ) -> AvailabilityResult:
        """Free slots for the doctor on the day, or an empty set on failure."""
        day = _day_string(on_date)
        if day is None:
            return AvailabilityResult()
        try:
            slots = self._fetch_available_slots(doctor_id, day, exclude_id)
        except ApiError as e:
            logger.warning(
                "Failed to load available times",
                extra={"context": {"doctor_id": doctor_id, "date": day, "kind": e.kind}},
            )
            return AvailabilityResult(notification=self._error("Error", LOAD_TIMES_FAILED))
        return AvailabilityResult(slots=slots, selected=first_available_slot(slots))

    def open_reschedule(self, appointment: Appointment) -> AvailabilityResult:
        """Slots offered when rescheduling ``appointment`` on its current day."""
        if not can_reschedule(appointment.status):
            return AvailabilityResult(
                notification=self._error("Cannot Reschedule", CANNOT_RESCHEDULE)
            )
        return self.load_available_times(
            appointment.doctor_id, appointment.date, exclude_id=appointment.id
        )

    def reschedule(
        self, appointment: Appointment, on_date: DayInput, time: Optional[str]
    ) -> Notification:
        if not can_reschedule(appointment.status):
            return self._error("Cannot Reschedule", CANNOT_RESCHEDULE)
        day = _day_string(on_date)
        if day is None or not time:
            return self._error("Error", MISSING_DATE_TIME)

        try:
            self.api.reschedule_appointment(appointment.id, day, time)
        except ApiError as e:
            return self._failed(
                "Error", e, "Failed to reschedule appointment. Please try again."
            )
        return self._success("Appointment Rescheduled", self.RESCHEDULED_MESSAGE)


class PatientDashboard(_Rescheduling):
    RESCHEDULED_MESSAGE = "Your appointment has been rescheduled successfully."

    def _fetch_available_slots(self, doctor_id, on_date, exclude_id):
        # Patients only see their own appointments, so the server computes it
        availability = self.api.get_availability(doctor_id, on_date, exclude_id)
        return list((availability or {}).get("available_slots") or [])

    def book(
        self,
        doctor_id: str,
        on_date: DayInput,
        time: Optional[str],
        symptoms: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Notification:
        day = _day_string(on_date)
        if not doctor_id:
            return self._error("Error", "Please select a doctor.")
        if day is None or not time:
            return self._error("Error", MISSING_DATE_TIME)

        try:
            self.api.book_appointment(doctor_id, day, time, symptoms=symptoms, notes=notes)
        except ApiError as e:
            return self._failed(
                "Booking Failed", e, "Failed to book appointment. Please try again."
            )
        return self._success(
            "Appointment Booked", "Your appointment has been booked successfully."
        )

    def cancel(self, appointment: Appointment) -> Notification:
        try:
            self.api.update_appointment_status(appointment.id, CANCELLED)
        except ApiError as e:
            return self._failed(
                "Error", e, "Failed to cancel appointment. Please try again."
            )
        return self._success(
            "Appointment Cancelled", "Your appointment has been cancelled successfully."
        )

    def update_details(
        self,
        appointment: Appointment,
        symptoms: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Notification:
        fields = {}
        if symptoms:
            fields["symptoms"] = symptoms
        if notes:
            fields["notes"] = notes
        if not fields:
            return self._error("Error", "Please provide at least one field to update.")

        try:
            self.api.update_appointment_details(appointment.id, **fields)
        except ApiError as e:
            return self._failed(
                "Error", e, "Failed to update appointment details. Please try again."
            )
        return self._success(
            "Appointment Updated",
            "Your appointment details have been updated successfully.",
        )

    def submit_feedback(
        self, appointment: Appointment, rating: Optional[int], comment: Optional[str]
    ) -> Notification:
        if not rating or not comment:
            return self._error("Error", "Please provide both rating and comment.")

        try:
            self.api.submit_feedback(appointment.id, rating, comment)
        except ApiError as e:
            return self._failed(
                "Error", e, "Failed to submit feedback. Please try again."
            )
        return self._success("Feedback Submitted", "Thank you for your feedback!")

    def load_prescriptions(self) -> List[Prescription]:
        try:
            return self.api.list_prescriptions()
        except ApiError as e:
            self._failed("Error", e, "Failed to load prescriptions")
            return []

    def load_reports(self) -> List[Dict]:
        try:
            return self.api.list_reports() or []
        except ApiError as e:
            self._failed("Error", e, "Failed to load medical reports")
            return []

    def download_prescription(self, prescription_id: Optional[str]) -> Optional[bytes]:
        if not prescription_id:
            self._error("Error", "No prescription ID provided for download.")
            return None
        try:
            content = self.api.download_prescription(prescription_id)
        except ApiError as e:
            self._failed(
                "Download Failed",
                e,
                "Failed to download the prescription file. Please try again.",
            )
            return None
        self._success("Success", "Prescription downloaded successfully.")
        return content


class DoctorDashboard(Dashboard):
    """Appointment handling and prescriptions for the signed-in doctor.

    Every mutating action is refused locally, without a request, while the
    doctor's account is suspended.
    """

    _ACTIONS = {
        "approve": (
            CONFIRMED,
            "Appointment Approved",
            "The appointment has been confirmed successfully.",
        ),
        "cancel": (
            CANCELLED,
            "Appointment Cancelled",
            "The appointment has been cancelled successfully.",
        ),
        "complete": (
            COMPLETED,
            "Appointment Completed",
            "The appointment has been marked as completed.",
        ),
    }

    @property
    def is_suspended(self) -> bool:
        return self.session is not None and self.session.is_suspended

    def load_appointments(self) -> List[Appointment]:
        try:
            return self.api.list_appointments()
        except ApiError as e:
            self._failed("Error", e, "Failed to load appointments. Please try again.")
            return []

    def load_prescriptions(self) -> List[Prescription]:
        try:
            return self.api.list_prescriptions()
        except ApiError as e:
            self._failed("Error", e, "Failed to load prescriptions. Please try again.")
            return []

    def _appointment_action(self, action: str, appointment_id: str) -> Notification:
        if self.is_suspended:
            return self._error("Action Denied", SUSPENDED_ACTION)

        status, title, description = self._ACTIONS[action]
        try:
            if status == COMPLETED:
                self.api.complete_appointment(appointment_id)
            else:
                self.api.update_appointment_status(appointment_id, status)
        except ApiError as e:
            return self._failed(
                "Action Failed",
                e,
                f"Failed to {action} the appointment. Please try again.",
            )
        return self._success(title, description)

    def approve(self, appointment_id: str) -> Notification:
        return self._appointment_action("approve", appointment_id)

    def cancel(self, appointment_id: str) -> Notification:
        return self._appointment_action("cancel", appointment_id)

    def complete(self, appointment_id: str) -> Notification:
        return self._appointment_action("complete", appointment_id)

    @staticmethod
    def prescription_candidates(
        appointments: List[Appointment], prescriptions: List[Prescription]
    ) -> List[Appointment]:
        """Completed appointments still waiting for a prescription."""
        return candidate_appointments(appointments, prescriptions)

    def submit_prescription(
        self,
        appointment: Optional[Appointment],
        medications: List[Dict[str, str]],
        prescriptions: List[Prescription],
        notes: Optional[str] = None,
        follow_up_date: DayInput = None,
    ) -> Notification:
        """Create the appointment's prescription, or update it if one exists."""
        if self.is_suspended:
            return self._error("Action Denied", SUSPENDED_PRESCRIPTION)
        if appointment is None or appointment.status != COMPLETED:
            return self._error("Error", "Please select a completed appointment.")
        if not medications:
            return self._error("Error", "Missing required information. Please try again.")

        fields = {"medications": medications}
        if notes:
            fields["notes"] = notes
        follow_up = _day_string(follow_up_date)
        if follow_up:
            fields["follow_up_date"] = follow_up

        existing = find_prescription(appointment.id, prescriptions)
        try:
            if existing is not None:
                self.api.update_prescription(existing.id, **fields)
            else:
                self.api.create_prescription(appointment.id, **fields)
        except ApiError as e:
            return self._failed(
                "Error", e, "Failed to process prescription. Please try again."
            )

        if existing is not None:
            return self._success("Success", "Prescription updated successfully.")
        return self._success("Success", "Prescription created successfully.")


class AdminDashboard(_Rescheduling):
    def _fetch_available_slots(self, doctor_id, on_date, exclude_id):
        appointments = self.api.list_appointments(doctor_id=doctor_id, on_date=on_date)
        return compute_available_slots(appointments, doctor_id, on_date, exclude_id)

    def load_appointments(self) -> List[Appointment]:
        try:
            return self.api.list_appointments()
        except ApiError as e:
            self._failed("Error", e, "Failed to load appointments. Please try again.")
            return []

    def delete_appointment(self, appointment_id: str) -> Notification:
        try:
            self.api.delete_appointment(appointment_id)
        except ApiError as e:
            return self._failed(
                "Error", e, "Failed to delete appointment. Please try again."
            )
        return self._success("Success", "The appointment has been deleted successfully.")

    def set_doctor_status(
        self, doctor_id: str, status: str, reason: Optional[str] = None
    ) -> Notification:
        try:
            self.api.update_doctor_status(doctor_id, status, reason=reason)
        except ApiError as e:
            return self._failed("Error", e, "Failed to update doctor status.")
        return self._success("Success", "Doctor status updated successfully.")

    def approve_doctor(self, doctor_id: str) -> Notification:
        try:
            self.api.update_doctor_status(doctor_id, "active")
        except ApiError as e:
            return self._failed("Error", e, "Failed to approve doctor.")
        return self._success("Success", "Doctor approved.")

    def reject_doctor(self, doctor_id: str) -> Notification:
        try:
            self.api.update_doctor_status(doctor_id, "rejected")
        except ApiError as e:
            return self._failed("Error", e, "Failed to reject doctor.")
        return self._success("Success", "Doctor rejected.")

    def moderate_review(self, review_id: str, status: str) -> Notification:
        try:
            self.api.moderate_review(review_id, status)
        except ApiError as e:
            return self._failed("Error", e, "Failed to update review status.")
        return self._success("Success", f"Review marked as {status}.")
