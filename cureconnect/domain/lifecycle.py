"""
Appointment status lifecycle and the role rules around it.

    pending ──> confirmed ──> completed
       │            │
       └────────────┴──────> cancelled

``completed`` and ``cancelled`` are terminal. Date/time changes are only
allowed while an appointment is still ``pending``.
"""

from typing import FrozenSet

from cureconnect.core.exceptions import (
    AuthorizationError,
    StateConflictError,
    ValidationError,
)

PENDING = "pending"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"

APPOINTMENT_STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED)
TERMINAL_STATUSES: FrozenSet[str] = frozenset({COMPLETED, CANCELLED})

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({COMPLETED, CANCELLED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

# Target statuses each role may request (on appointments it is allowed to touch)
ROLE_TRANSITIONS = {
    "patient": frozenset({CANCELLED}),
    "doctor": frozenset({CONFIRMED, COMPLETED, CANCELLED}),
    "admin": frozenset({CONFIRMED, COMPLETED, CANCELLED}),
}

RESCHEDULE_ROLES = frozenset({"patient", "admin"})

SUSPENDED_MESSAGE = (
    "Action denied: your account is suspended. You cannot perform this action."
)
RESCHEDULE_MESSAGE = "Only pending appointments can be rescheduled."


def validate_status(status: str) -> str:
    if status not in APPOINTMENT_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(APPOINTMENT_STATUSES)}"
        )
    return status


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    """Raise StateConflictError unless ``current -> target`` is a legal move."""
    validate_status(target)
    if not can_transition(current, target):
        if current in TERMINAL_STATUSES:
            raise StateConflictError(
                f"Appointment is already {current} and can no longer be changed."
            )
        raise StateConflictError(
            f"Cannot change appointment status from {current} to {target}."
        )


def can_reschedule(status: str) -> bool:
    return status == PENDING


def ensure_reschedulable(status: str) -> None:
    if not can_reschedule(status):
        raise StateConflictError(RESCHEDULE_MESSAGE)


def role_may_set(role: str, target: str) -> bool:
    return target in ROLE_TRANSITIONS.get(role, frozenset())


def ensure_role_may_transition(role: str, target: str) -> None:
    if not role_may_set(role, target):
        if role == "patient":
            raise AuthorizationError("Patients can only cancel their appointments.")
        raise AuthorizationError(f"A {role} cannot set an appointment to {target}.")


def ensure_role_may_reschedule(role: str) -> None:
    if role not in RESCHEDULE_ROLES:
        raise AuthorizationError("Only patients and admins can reschedule appointments.")


def ensure_doctor_active(doctor_status: str) -> None:
    """Block suspended doctors from any mutating action."""
    if doctor_status == "suspended":
        raise AuthorizationError(SUSPENDED_MESSAGE)
