"""
Appointment service: booking, rescheduling and the status lifecycle.
"""

from datetime import date, datetime
from typing import Callable, List, Optional

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.config import APP_TZ
from cureconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from cureconnect.core.logging_config import get_logger
from cureconnect.domain.entities import Appointment, Doctor
from cureconnect.domain.interfaces import (
    IAppointmentRepository,
    IDoctorRepository,
    IUserRepository,
)
from cureconnect.domain.lifecycle import (
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    PENDING,
    ensure_doctor_active,
    ensure_reschedulable,
    ensure_role_may_reschedule,
    ensure_role_may_transition,
    ensure_transition,
    validate_status,
)
from cureconnect.domain.scheduling import (
    SLOT_TAKEN_MESSAGE,
    DayLike,
    compute_available_slots,
    first_available_slot,
    is_slot_available,
    parse_iso_day,
    weekday_name,
)
from cureconnect.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentDetailsRequest,
    AppointmentRescheduleRequest,
    AvailabilityResponse,
    FeedbackRequest,
)

logger = get_logger(__name__)

DOCTOR_UNAVAILABLE_MESSAGE = "This doctor is currently unavailable for appointments"


class AppointmentService:
    """Application service for appointment use-cases.

    Every method that acts for a user takes the caller's ``AuthContext``
    explicitly. Patient emails are best-effort: a failed notification is
    logged and never undoes the change that triggered it.
    """

    def __init__(
        self,
        appointment_repo: IAppointmentRepository,
        doctor_repo: IDoctorRepository,
        user_repo: IUserRepository,
        notifier=None,
    ):
        self.appointment_repo = appointment_repo
        self.doctor_repo = doctor_repo
        self.user_repo = user_repo
        self.notifier = notifier

    # ---- availability -------------------------------------------------

    def available_slots(
        self, doctor_id: str, on_date: DayLike, exclude_id: Optional[str] = None
    ) -> AvailabilityResponse:
        """Free grid slots for a doctor on a day, in grid order."""
        if not doctor_id:
            raise ValidationError("doctor_id is required")
        try:
            day = parse_iso_day(on_date)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self._get_doctor(doctor_id)

        booked = self.appointment_repo.get_for_doctor_on_date(doctor_id, day)
        slots = compute_available_slots(booked, doctor_id, day, exclude_id)
        return AvailabilityResponse(
            doctor_id=doctor_id,
            date=day,
            available_slots=slots,
            first_available=first_available_slot(slots),
        )

    # ---- booking ------------------------------------------------------

    def book(self, actor: AuthContext, request: AppointmentCreateRequest) -> Appointment:
        """Book a new appointment for the calling patient.

        Business Rules:
        - Time must be a slot of the daily grid
        - Doctor must exist and not be suspended
        - Doctor's available days / time slots must cover the request
        - Slot must still be free for that doctor and day
        """
        request.validate()
        if not actor.is_patient:
            raise AuthorizationError("Only patients can book appointments.")

        doctor = self._get_doctor(request.doctor_id)
        self._check_bookable(doctor, request.date, request.time)

        appointment = self.appointment_repo.create(
            Appointment(
                patient_id=actor.id,
                doctor_id=doctor.id,
                patient_name=actor.name,
                doctor_name=doctor.name,
                date=request.date,
                time=request.time,
                symptoms=request.symptoms,
                notes=request.notes,
                status=PENDING,
            )
        )
        logger.info(
            "Appointment booked",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "doctor_id": doctor.id,
                    "patient_id": actor.id,
                    "date": appointment.date.isoformat(),
                    "time": appointment.time,
                }
            },
        )
        self._notify_patient(
            appointment, lambda n, email: n.appointment_booked(email, appointment)
        )
        return appointment

    def reschedule(
        self,
        actor: AuthContext,
        appointment_id: str,
        request: AppointmentRescheduleRequest,
    ) -> Appointment:
        """Move a pending appointment to another day and slot.

        The appointment's own slot counts as free, so moving it to the time
        it already holds succeeds.
        """
        request.validate()
        ensure_role_may_reschedule(actor.role)
        appointment = self._get_accessible(actor, appointment_id)
        ensure_reschedulable(appointment.status)

        doctor = self._get_doctor(appointment.doctor_id)
        self._check_bookable(
            doctor, request.date, request.time, exclude_id=appointment.id
        )

        appointment.date = request.date
        appointment.time = request.time
        updated = self.appointment_repo.update(appointment)
        logger.info(
            "Appointment rescheduled",
            extra={
                "context": {
                    "appointment_id": updated.id,
                    "date": updated.date.isoformat(),
                    "time": updated.time,
                    "by": actor.role,
                }
            },
        )
        self._notify_patient(
            updated, lambda n, email: n.appointment_rescheduled(email, updated)
        )
        return updated

    # ---- queries ------------------------------------------------------

    def list_for(
        self,
        actor: AuthContext,
        doctor_id: Optional[str] = None,
        on_date: Optional[DayLike] = None,
        status: Optional[str] = None,
    ) -> List[Appointment]:
        """Appointments visible to the caller, ordered by date then slot."""
        day = None
        if on_date:
            try:
                day = parse_iso_day(on_date)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        statuses = [validate_status(status)] if status else None

        if actor.is_admin:
            return self.appointment_repo.list(
                doctor_id=doctor_id, on_date=day, statuses=statuses
            )
        if actor.is_doctor:
            return self.appointment_repo.list(
                doctor_id=actor.id, on_date=day, statuses=statuses
            )
        return self.appointment_repo.list(
            patient_id=actor.id, doctor_id=doctor_id, on_date=day, statuses=statuses
        )

    def get(self, actor: AuthContext, appointment_id: str) -> Appointment:
        return self._get_accessible(actor, appointment_id)

    # ---- status lifecycle ---------------------------------------------

    def change_status(
        self, actor: AuthContext, appointment_id: str, status: str
    ) -> Appointment:
        """Apply a status transition after role, ownership and state checks."""
        validate_status(status)
        ensure_role_may_transition(actor.role, status)
        if actor.is_doctor:
            ensure_doctor_active(actor.account_status)

        appointment = self._get_accessible(actor, appointment_id)
        ensure_transition(appointment.status, status)

        previous = appointment.status
        appointment.status = status
        updated = self.appointment_repo.update(appointment)
        logger.info(
            "Appointment status changed",
            extra={
                "context": {
                    "appointment_id": updated.id,
                    "from": previous,
                    "to": status,
                    "by": actor.role,
                }
            },
        )
        self._notify_patient(
            updated, lambda n, email: n.appointment_status_changed(email, updated)
        )
        return updated

    def confirm(self, actor: AuthContext, appointment_id: str) -> Appointment:
        return self.change_status(actor, appointment_id, CONFIRMED)

    def complete(self, actor: AuthContext, appointment_id: str) -> Appointment:
        return self.change_status(actor, appointment_id, COMPLETED)

    def cancel(self, actor: AuthContext, appointment_id: str) -> Appointment:
        return self.change_status(actor, appointment_id, CANCELLED)

    def cancel_for_suspended_doctor(
        self, doctor_id: str, reason: str
    ) -> List[Appointment]:
        """Cancel every open appointment of a doctor, noting ``reason`` on each."""
        cancelled = []
        for appointment in self.appointment_repo.list(
            doctor_id=doctor_id, statuses=[PENDING, CONFIRMED]
        ):
            appointment.status = CANCELLED
            appointment.notes = (
                f"{appointment.notes}\n{reason}" if appointment.notes else reason
            )
            updated = self.appointment_repo.update(appointment)
            cancelled.append(updated)
            self._notify_patient(
                updated,
                lambda n, email, a=updated: n.appointment_status_changed(
                    email, a, reason=reason
                ),
            )

        logger.info(
            "Cancelled appointments of suspended doctor",
            extra={"context": {"doctor_id": doctor_id, "count": len(cancelled)}},
        )
        return cancelled

    # ---- other edits --------------------------------------------------

    def update_details(
        self,
        actor: AuthContext,
        appointment_id: str,
        request: AppointmentDetailsRequest,
    ) -> Appointment:
        request.validate()
        if actor.is_doctor:
            ensure_doctor_active(actor.account_status)
        appointment = self._get_accessible(actor, appointment_id)

        if request.symptoms is not None:
            appointment.symptoms = request.symptoms
        if request.notes is not None:
            appointment.notes = request.notes
        if request.meeting_link is not None:
            if actor.is_patient:
                raise AuthorizationError("Only the doctor can set the meeting link.")
            appointment.meeting_link = request.meeting_link
        if request.follow_up is not None:
            if actor.is_patient:
                raise AuthorizationError("Only the doctor can request a follow-up.")
            appointment.follow_up = request.follow_up

        return self.appointment_repo.update(appointment)

    def delete(self, actor: AuthContext, appointment_id: str) -> None:
        """Hard-delete an appointment (admin, or the patient who booked it)."""
        if actor.is_doctor:
            raise AuthorizationError("Doctors cannot delete appointments.")
        appointment = self._get_accessible(actor, appointment_id)
        self.appointment_repo.delete(appointment.id)
        logger.info(
            "Appointment deleted",
            extra={"context": {"appointment_id": appointment.id, "by": actor.role}},
        )

    def submit_feedback(
        self, actor: AuthContext, appointment_id: str, request: FeedbackRequest
    ) -> Appointment:
        request.validate()
        if not actor.is_patient:
            raise AuthorizationError("Only patients can leave feedback.")
        appointment = self._get_accessible(actor, appointment_id)
        if appointment.status != COMPLETED:
            raise StateConflictError(
                "Feedback can only be submitted for completed appointments"
            )
        if appointment.has_feedback:
            raise StateConflictError("Feedback already submitted for this appointment")

        appointment.feedback_rating = request.rating
        appointment.feedback_comment = request.comment
        return self.appointment_repo.update(appointment)

    # ---- helpers ------------------------------------------------------

    def _get_doctor(self, doctor_id: str) -> Doctor:
        doctor = self.doctor_repo.get_by_id(doctor_id)
        if doctor is None:
            raise NotFoundError.for_resource("Doctor")
        return doctor

    def _get_accessible(self, actor: AuthContext, appointment_id: str) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError.for_resource("Appointment")
        if actor.is_patient and appointment.patient_id != actor.id:
            raise AuthorizationError("Not authorized to access this appointment")
        if actor.is_doctor and appointment.doctor_id != actor.id:
            raise AuthorizationError("Not authorized to access this appointment")
        return appointment

    def _check_bookable(
        self,
        doctor: Doctor,
        day: date,
        time_slot: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        if doctor.is_suspended:
            raise StateConflictError(DOCTOR_UNAVAILABLE_MESSAGE)
        if day < datetime.now(APP_TZ).date():
            raise ValidationError("Appointments cannot be scheduled in the past")

        weekday = weekday_name(day)
        if doctor.available_days and weekday not in doctor.available_days:
            raise ValidationError(f"Doctor is not available on {weekday}")
        if not doctor.accepts(weekday, time_slot):
            raise ValidationError("Selected time slot is not available for this doctor")

        booked = self.appointment_repo.get_for_doctor_on_date(doctor.id, day)
        if not is_slot_available(booked, doctor.id, day, time_slot, exclude_id):
            raise StateConflictError(SLOT_TAKEN_MESSAGE)

    def _notify_patient(self, appointment: Appointment, send: Callable) -> None:
        if self.notifier is None:
            return
        try:
            patient = self.user_repo.get_by_id(appointment.patient_id)
            if patient is None:
                return
            send(self.notifier, patient.email)
        except Exception:
            logger.warning(
                "Patient notification failed",
                extra={"context": {"appointment_id": appointment.id}},
                exc_info=True,
            )
