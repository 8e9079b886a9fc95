"""
Integration tests for AppointmentRepository against the real schema.

These write straight through the repository, bypassing the service's
availability check, so only the partial unique index on
(doctor_id, date, time) stands between two writers and the same slot.
"""

import pytest

from cureconnect.core.exceptions import StateConflictError
from cureconnect.domain.entities import Appointment
from cureconnect.domain.scheduling import SLOT_TAKEN_MESSAGE
from cureconnect.repositories.appointment_repo import AppointmentRepository


@pytest.fixture
def people(api):
    doctor_id, _ = api.active_doctor()
    patient_id, _ = api.register_patient()
    other_patient_id, _ = api.register_patient("John Patient", "john@example.com")
    return doctor_id, patient_id, other_patient_id


@pytest.fixture
def repo(db_session):
    return AppointmentRepository(db_session)


def _appointment(doctor_id, patient_id, day, time, status="pending"):
    return Appointment(
        patient_id=patient_id,
        doctor_id=doctor_id,
        date=day,
        time=time,
        status=status,
    )


@pytest.mark.integration
@pytest.mark.repositories
@pytest.mark.appointment
class TestSlotUniqueness:
    def test_second_writer_for_same_slot_is_rejected(self, repo, people, next_monday):
        doctor_id, patient_id, other_patient_id = people
        repo.create(_appointment(doctor_id, patient_id, next_monday, "10:00 AM"))

        with pytest.raises(StateConflictError) as exc_info:
            repo.create(_appointment(doctor_id, other_patient_id, next_monday, "10:00 AM"))

        assert exc_info.value.message == SLOT_TAKEN_MESSAGE
        booked = repo.list(doctor_id=doctor_id, on_date=next_monday)
        assert [(a.patient_id, a.time) for a in booked] == [(patient_id, "10:00 AM")]

    def test_cancelled_row_does_not_hold_the_slot(self, repo, people, next_monday):
        doctor_id, patient_id, other_patient_id = people
        repo.create(
            _appointment(doctor_id, patient_id, next_monday, "10:30 AM", status="cancelled")
        )

        created = repo.create(
            _appointment(doctor_id, other_patient_id, next_monday, "10:30 AM")
        )

        assert created.id is not None
        assert len(repo.list(doctor_id=doctor_id, on_date=next_monday)) == 2

    def test_moving_onto_a_taken_slot_is_rejected(self, repo, people, next_monday):
        doctor_id, patient_id, other_patient_id = people
        repo.create(_appointment(doctor_id, patient_id, next_monday, "11:00 AM"))
        moving = repo.create(
            _appointment(doctor_id, other_patient_id, next_monday, "11:30 AM")
        )

        moving.time = "11:00 AM"
        with pytest.raises(StateConflictError):
            repo.update(moving)

        assert repo.get_by_id(moving.id).time == "11:30 AM"

    def test_session_stays_usable_after_a_rejected_write(
        self, repo, people, next_monday
    ):
        doctor_id, patient_id, other_patient_id = people
        repo.create(_appointment(doctor_id, patient_id, next_monday, "2:00 PM"))
        with pytest.raises(StateConflictError):
            repo.create(_appointment(doctor_id, other_patient_id, next_monday, "2:00 PM"))

        created = repo.create(
            _appointment(doctor_id, other_patient_id, next_monday, "2:30 PM")
        )

        assert created.time == "2:30 PM"
