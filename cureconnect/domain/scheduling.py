"""
Daily slot grid and doctor availability.

The grid is fixed: 30-minute slots from 9:00 AM to 5:00 PM inclusive, labelled
in 12-hour format ("9:00 AM" ... "5:00 PM", 17 slots). Availability for a
doctor on a day is the grid minus the slots taken by that doctor's
non-cancelled appointments on that day, in grid order.

Everything here is pure and shared by the API services and the Python client.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Protocol, Set, Union

OPENING_HOUR = 9
CLOSING_HOUR = 17
SLOT_INTERVAL_MINUTES = 30

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DayLike = Union[date, datetime, str]

SLOT_TAKEN_MESSAGE = "This time slot is already booked. Please choose another time."


class SlotHolder(Protocol):
    """Anything shaped like an appointment for availability purposes."""

    id: Optional[str]
    doctor_id: str
    date: DayLike
    time: str
    status: str


def format_slot(hour: int, minute: int) -> str:
    """Format a 24-hour time as a grid label, e.g. (13, 30) -> "1:30 PM"."""
    period = "PM" if hour >= 12 else "AM"
    if hour > 12:
        display_hour = hour - 12
    elif hour == 0:
        display_hour = 12
    else:
        display_hour = hour
    return f"{display_hour}:{minute:02d} {period}"


def generate_time_slots() -> List[str]:
    """Return the ordered list of bookable slot labels for one day."""
    slots = []
    for hour in range(OPENING_HOUR, CLOSING_HOUR + 1):
        for minute in range(0, 60, SLOT_INTERVAL_MINUTES):
            # The closing hour only contributes its :00 slot
            if hour == CLOSING_HOUR and minute > 0:
                break
            slots.append(format_slot(hour, minute))
    return slots


TIME_SLOTS = tuple(generate_time_slots())
_SLOT_POSITION = {slot: index for index, slot in enumerate(TIME_SLOTS)}


def is_valid_slot(label: Optional[str]) -> bool:
    return label in _SLOT_POSITION


def slot_sort_key(label: Optional[str]) -> int:
    """Grid position of a label; unknown labels sort last."""
    return _SLOT_POSITION.get(label, len(TIME_SLOTS))


def parse_iso_day(value: DayLike) -> date:
    """
    Reduce a date, datetime or ISO string to a calendar day.

    Any time-of-day component is discarded, so "2025-03-14T18:30:00.000Z"
    and "2025-03-14" are the same day.

    Raises:
        ValueError: If the value cannot be read as a day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) >= 10:
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValueError(f"Invalid date: {value!r}. Expected YYYY-MM-DD.")


def weekday_name(day: DayLike) -> str:
    return WEEKDAYS[parse_iso_day(day).weekday()]


def occupied_slots(
    appointments: Iterable[SlotHolder],
    doctor_id: str,
    on_date: DayLike,
    exclude_appointment_id: Optional[str] = None,
) -> Set[str]:
    """Slot labels held by the doctor's non-cancelled appointments on the day."""
    target_day = parse_iso_day(on_date)
    taken = set()
    for appointment in appointments:
        if appointment.doctor_id != doctor_id:
            continue
        if appointment.status == "cancelled":
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        try:
            appointment_day = parse_iso_day(appointment.date)
        except ValueError:
            continue
        if appointment_day == target_day:
            taken.add(appointment.time)
    return taken


def compute_available_slots(
    appointments: Iterable[SlotHolder],
    doctor_id: str,
    on_date: DayLike,
    exclude_appointment_id: Optional[str] = None,
) -> List[str]:
    """
    Return the free grid slots for ``doctor_id`` on ``on_date``.

    Args:
        appointments: Appointments to consider; entries for other doctors or
            days are ignored, so the caller may pass a wider list.
        doctor_id: Target doctor.
        on_date: Target day (date, datetime or ISO string).
        exclude_appointment_id: Appointment being rescheduled; its own slot
            is treated as free.

    Returns:
        Available slot labels in grid order.
    """
    taken = occupied_slots(appointments, doctor_id, on_date, exclude_appointment_id)
    return [slot for slot in TIME_SLOTS if slot not in taken]


def first_available_slot(slots: Iterable[str]) -> Optional[str]:
    """The slot pre-selected for the user, or None when nothing is free."""
    return next(iter(slots), None)


def is_slot_available(
    appointments: Iterable[SlotHolder],
    doctor_id: str,
    on_date: DayLike,
    time_slot: str,
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    return time_slot in compute_available_slots(
        appointments, doctor_id, on_date, exclude_appointment_id
    )
