"""
Unit tests for entity invariants and the one-prescription-per-appointment helpers.
"""

from datetime import date

import pytest

from cureconnect.domain.entities import (
    Appointment,
    Doctor,
    Medication,
    Prescription,
    Review,
    User,
)
from cureconnect.domain.prescriptions import (
    candidate_appointments,
    find_prescription,
    has_prescription,
)

DAY = date(2025, 3, 14)


def _appointment(id, status):
    return Appointment(
        id=id, patient_id="p1", doctor_id="d1", date=DAY, time="9:00 AM", status=status
    )


def _prescription(id, appointment_id):
    return Prescription(
        id=id,
        appointment_id=appointment_id,
        medications=[Medication("Aspirin", "100mg", "Once daily", "7 days")],
    )


@pytest.mark.domain
class TestEntities:
    def test_user_requires_known_role(self):
        with pytest.raises(ValueError):
            User(name="Eve", email="eve@example.com", role="nurse")

    def test_doctor_rejects_slots_off_the_grid(self):
        with pytest.raises(ValueError):
            Doctor(specialization="Cardiology", available_time_slots=["9:15 AM"])

    def test_doctor_schedule_filters(self):
        doctor = Doctor(
            specialization="Cardiology",
            available_days=["Monday", "Wednesday"],
            available_time_slots=["9:00 AM", "9:30 AM"],
        )

        assert doctor.accepts("Monday", "9:30 AM")
        assert not doctor.accepts("Tuesday", "9:30 AM")
        assert not doctor.accepts("Monday", "10:00 AM")

    def test_doctor_without_schedule_accepts_everything(self):
        doctor = Doctor(specialization="Dermatology")

        assert doctor.accepts("Sunday", "5:00 PM")

    def test_appointment_requires_date_and_time(self):
        with pytest.raises(ValueError):
            Appointment(patient_id="p1", doctor_id="d1", date=None, time="9:00 AM")
        with pytest.raises(ValueError):
            Appointment(patient_id="p1", doctor_id="d1", date=DAY, time="")

    def test_medication_fields_are_required(self):
        with pytest.raises(ValueError):
            Medication(name="Aspirin", dosage="", frequency="daily", duration="7 days")

    def test_prescription_needs_a_medication(self):
        with pytest.raises(ValueError):
            Prescription(appointment_id="a1", medications=[])

    @pytest.mark.parametrize("rating", [0, 6, True, 4.5])
    def test_review_rating_bounds(self, rating):
        with pytest.raises(ValueError):
            Review(appointment_id="a1", rating=rating)


@pytest.mark.domain
class TestPrescriptionLookup:
    def test_find_prescription_by_appointment(self):
        prescriptions = [_prescription("rx1", "a1"), _prescription("rx2", "a2")]

        assert find_prescription("a2", prescriptions).id == "rx2"
        assert find_prescription("a3", prescriptions) is None
        assert has_prescription("a1", prescriptions)
        assert not has_prescription("a3", prescriptions)

    def test_candidates_are_completed_and_unprescribed(self):
        appointments = [
            _appointment("a1", "completed"),
            _appointment("a2", "completed"),
            _appointment("a3", "confirmed"),
        ]
        prescriptions = [_prescription("rx1", "a1")]

        candidates = candidate_appointments(appointments, prescriptions)

        assert [a.id for a in candidates] == ["a2"]
