"""
Unit tests for the daily slot grid and availability computation.
"""

from datetime import date, datetime

import pytest

from cureconnect.domain.entities import Appointment
from cureconnect.domain.scheduling import (
    TIME_SLOTS,
    compute_available_slots,
    first_available_slot,
    format_slot,
    generate_time_slots,
    is_slot_available,
    is_valid_slot,
    occupied_slots,
    parse_iso_day,
    slot_sort_key,
    weekday_name,
)

DOCTOR = "doc-1"
DAY = date(2025, 3, 14)


def _appointment(time, status="pending", doctor_id=DOCTOR, day=DAY, id=None):
    return Appointment(
        id=id or f"appt-{time}-{status}",
        patient_id="patient-1",
        doctor_id=doctor_id,
        date=day,
        time=time,
        status=status,
    )


@pytest.mark.domain
class TestSlotGrid:
    def test_grid_has_seventeen_slots_from_nine_to_five(self):
        slots = generate_time_slots()

        assert len(slots) == 17
        assert slots[0] == "9:00 AM"
        assert slots[1] == "9:30 AM"
        assert slots[-1] == "5:00 PM"
        assert "5:30 PM" not in slots

    def test_grid_crosses_noon_in_twelve_hour_format(self):
        assert "11:30 AM" in TIME_SLOTS
        assert "12:00 PM" in TIME_SLOTS
        assert "12:30 PM" in TIME_SLOTS
        assert "1:00 PM" in TIME_SLOTS
        assert TIME_SLOTS.index("12:00 PM") == TIME_SLOTS.index("11:30 AM") + 1

    def test_format_slot(self):
        assert format_slot(9, 0) == "9:00 AM"
        assert format_slot(12, 30) == "12:30 PM"
        assert format_slot(13, 30) == "1:30 PM"
        assert format_slot(0, 0) == "12:00 AM"

    def test_is_valid_slot(self):
        assert is_valid_slot("10:30 AM")
        assert not is_valid_slot("10:15 AM")
        assert not is_valid_slot("8:30 AM")
        assert not is_valid_slot("10:30")
        assert not is_valid_slot(None)

    def test_slot_sort_key_orders_by_grid_not_text(self):
        labels = ["1:00 PM", "10:00 AM", "9:30 AM", "12:00 PM"]

        assert sorted(labels, key=slot_sort_key) == [
            "9:30 AM",
            "10:00 AM",
            "12:00 PM",
            "1:00 PM",
        ]
        assert slot_sort_key("not a slot") == len(TIME_SLOTS)


@pytest.mark.domain
class TestDayParsing:
    def test_parse_iso_day_ignores_time_of_day(self):
        assert parse_iso_day("2025-03-14T18:30:00.000Z") == DAY
        assert parse_iso_day("2025-03-14") == DAY
        assert parse_iso_day(datetime(2025, 3, 14, 23, 59)) == DAY
        assert parse_iso_day(DAY) == DAY

    @pytest.mark.parametrize("value", ["", "14/03/2025", "2025-13-40", None, 42])
    def test_parse_iso_day_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_iso_day(value)

    def test_weekday_name(self):
        assert weekday_name(DAY) == "Friday"
        assert weekday_name("2025-03-17") == "Monday"


@pytest.mark.domain
class TestAvailability:
    def test_no_appointments_means_whole_grid(self):
        assert compute_available_slots([], DOCTOR, DAY) == list(TIME_SLOTS)

    def test_booked_slot_is_removed_and_order_kept(self):
        appointments = [_appointment("9:30 AM")]

        slots = compute_available_slots(appointments, DOCTOR, DAY)

        assert len(slots) == 16
        assert "9:30 AM" not in slots
        assert slots[:2] == ["9:00 AM", "10:00 AM"]
        assert first_available_slot(slots) == "9:00 AM"

    def test_cancelled_appointments_free_their_slot(self):
        appointments = [_appointment("9:00 AM", status="cancelled")]

        assert compute_available_slots(appointments, DOCTOR, DAY) == list(TIME_SLOTS)

    def test_confirmed_and_completed_still_block(self):
        appointments = [
            _appointment("9:00 AM", status="confirmed"),
            _appointment("9:30 AM", status="completed"),
        ]

        slots = compute_available_slots(appointments, DOCTOR, DAY)

        assert slots[0] == "10:00 AM"

    def test_other_doctors_and_days_are_ignored(self):
        appointments = [
            _appointment("9:00 AM", doctor_id="doc-2"),
            _appointment("9:30 AM", day=date(2025, 3, 15)),
        ]

        assert compute_available_slots(appointments, DOCTOR, DAY) == list(TIME_SLOTS)

    def test_excluded_appointment_keeps_its_own_slot_free(self):
        appointments = [_appointment("2:00 PM", id="moving")]

        slots = compute_available_slots(
            appointments, DOCTOR, DAY, exclude_appointment_id="moving"
        )

        assert "2:00 PM" in slots
        assert is_slot_available(appointments, DOCTOR, DAY, "2:00 PM", "moving")
        assert not is_slot_available(appointments, DOCTOR, DAY, "2:00 PM")

    def test_iso_timestamp_day_matches_date(self):
        appointments = [_appointment("11:00 AM")]

        slots = compute_available_slots(appointments, DOCTOR, "2025-03-14T00:00:00Z")

        assert "11:00 AM" not in slots

    def test_fully_booked_day_has_no_first_slot(self):
        appointments = [_appointment(slot) for slot in TIME_SLOTS]

        slots = compute_available_slots(appointments, DOCTOR, DAY)

        assert slots == []
        assert first_available_slot(slots) is None

    def test_occupied_slots(self):
        appointments = [
            _appointment("9:00 AM"),
            _appointment("9:30 AM", status="cancelled"),
        ]

        assert occupied_slots(appointments, DOCTOR, DAY) == {"9:00 AM"}

    def test_repeated_lookup_returns_same_slots(self):
        appointments = [
            _appointment("9:00 AM"),
            _appointment("1:30 PM", status="confirmed"),
            _appointment("3:00 PM", status="cancelled"),
        ]

        first = compute_available_slots(appointments, DOCTOR, DAY)
        second = compute_available_slots(appointments, DOCTOR, DAY)

        assert first == second
        assert len(first) == 15
