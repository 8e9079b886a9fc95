"""
Unit tests for PrescriptionService.

Prescriptions belong to completed appointments of the prescribing doctor,
one per appointment; patients only read and download their own.
"""

from unittest.mock import Mock

import pytest

from cureconnect.core.auth_decorators import AuthContext
from cureconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
)
from cureconnect.domain.entities import Appointment, Doctor, Medication, Prescription
from cureconnect.domain.lifecycle import SUSPENDED_MESSAGE
from cureconnect.domain.prescriptions import DUPLICATE_MESSAGE
from cureconnect.schemas.dtos import (
    PrescriptionRequest,
    PrescriptionStatusRequest,
    PrescriptionUpdateRequest,
)
from cureconnect.services.prescription_service import PrescriptionService
from tests.factories.dates import future_weekday
from tests.factories.repository_factories import (
    AppointmentRepositoryFactory,
    DoctorRepositoryFactory,
    PrescriptionRepositoryFactory,
)

DOCTOR = AuthContext(id="doc-1", role="doctor", account_status="active")
SUSPENDED_DOCTOR = AuthContext(id="doc-1", role="doctor", account_status="suspended")
PATIENT = AuthContext(id="patient-1", role="patient")
ADMIN = AuthContext(id="admin-1", role="admin")

ASPIRIN = Medication("Aspirin", "100mg", "Once daily", "30 days")


def _appointment(status="completed", doctor_id="doc-1"):
    return Appointment(
        id="appt-1",
        patient_id="patient-1",
        doctor_id=doctor_id,
        patient_name="Jane Patient",
        doctor_name="Dr. House",
        date=future_weekday(0),
        time="10:00 AM",
        status=status,
    )


def _prescription(**overrides):
    fields = dict(
        id="rx-1",
        appointment_id="appt-1",
        patient_id="patient-1",
        doctor_id="doc-1",
        patient_name="Jane Patient",
        doctor_name="Dr. House",
        medications=[ASPIRIN],
    )
    fields.update(overrides)
    return Prescription(**fields)


@pytest.fixture
def prescription_repo() -> Mock:
    return PrescriptionRepositoryFactory.create_mock_full()


@pytest.fixture
def appointment_repo() -> Mock:
    repo = AppointmentRepositoryFactory.create_mock_full()
    repo.get_by_id.return_value = _appointment()
    return repo


@pytest.fixture
def doctor_repo() -> Mock:
    repo = DoctorRepositoryFactory.create_mock_full()
    repo.get_by_id.return_value = Doctor(
        id="doc-1", name="Dr. House", specialization="Cardiology", status="active"
    )
    return repo


@pytest.fixture
def pdf_generator() -> Mock:
    generator = Mock()
    generator.generate.return_value = b"%PDF-1.4 fake"
    return generator


@pytest.fixture
def service(prescription_repo, appointment_repo, doctor_repo, pdf_generator):
    return PrescriptionService(
        prescription_repo, appointment_repo, doctor_repo, pdf_generator=pdf_generator
    )


def _request(**overrides):
    fields = dict(appointment_id="appt-1", medications=[ASPIRIN], notes="After meals")
    fields.update(overrides)
    return PrescriptionRequest(**fields)


@pytest.mark.unit
@pytest.mark.services
class TestCreatePrescription:
    def test_create_for_completed_appointment(self, service, prescription_repo):
        prescription = service.create(DOCTOR, _request())

        assert prescription.patient_id == "patient-1"
        assert prescription.doctor_name == "Dr. House"
        assert prescription.medications == [ASPIRIN]
        prescription_repo.create.assert_called_once()

    @pytest.mark.parametrize("status", ["pending", "confirmed", "cancelled"])
    def test_appointment_must_be_completed(self, service, appointment_repo, status):
        appointment_repo.get_by_id.return_value = _appointment(status=status)

        with pytest.raises(StateConflictError):
            service.create(DOCTOR, _request())

    def test_one_prescription_per_appointment(self, service, prescription_repo):
        prescription_repo.get_by_appointment_id.return_value = _prescription()

        with pytest.raises(StateConflictError) as exc_info:
            service.create(DOCTOR, _request())

        assert exc_info.value.message == DUPLICATE_MESSAGE

    def test_only_the_assigned_doctor(self, service, appointment_repo):
        appointment_repo.get_by_id.return_value = _appointment(doctor_id="doc-2")

        with pytest.raises(AuthorizationError):
            service.create(DOCTOR, _request())

    def test_suspended_doctor(self, service, prescription_repo):
        with pytest.raises(AuthorizationError) as exc_info:
            service.create(SUSPENDED_DOCTOR, _request())

        assert exc_info.value.message == SUSPENDED_MESSAGE
        prescription_repo.create.assert_not_called()

    def test_patients_cannot_prescribe(self, service):
        with pytest.raises(AuthorizationError):
            service.create(PATIENT, _request())

    def test_missing_appointment(self, service, appointment_repo):
        appointment_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            service.create(DOCTOR, _request())


@pytest.mark.unit
@pytest.mark.services
class TestSaveForAppointment:
    def test_creates_when_missing(self, service, prescription_repo):
        prescription, created = service.save_for_appointment(DOCTOR, _request())

        assert created is True
        prescription_repo.create.assert_called_once()

    def test_updates_existing(self, service, prescription_repo):
        existing = _prescription(notes="Old")
        prescription_repo.list.return_value = [existing]
        new_med = Medication("Ibuprofen", "200mg", "Twice daily", "5 days")

        prescription, created = service.save_for_appointment(
            DOCTOR, _request(medications=[new_med], notes="New")
        )

        assert created is False
        assert prescription.id == "rx-1"
        assert prescription.medications == [new_med]
        assert prescription.notes == "New"
        prescription_repo.create.assert_not_called()


@pytest.mark.unit
@pytest.mark.services
class TestPrescriptionAccess:
    def test_patient_reads_own(self, service, prescription_repo):
        prescription_repo.get_by_id.return_value = _prescription()

        assert service.get(PATIENT, "rx-1").id == "rx-1"

    def test_patient_cannot_read_others(self, service, prescription_repo):
        prescription_repo.get_by_id.return_value = _prescription(patient_id="patient-2")

        with pytest.raises(AuthorizationError):
            service.get(PATIENT, "rx-1")

    def test_patient_list_scoped_and_filtered(self, service, prescription_repo):
        prescription_repo.list.return_value = [
            _prescription(),
            _prescription(id="rx-2", status="expired"),
        ]

        result = service.list_for(PATIENT, patient_id="patient-9", status="expired")

        prescription_repo.list.assert_called_once_with(
            patient_id="patient-1", doctor_id=None
        )
        assert [p.id for p in result] == ["rx-2"]

    def test_patients_cannot_modify(self, service):
        with pytest.raises(AuthorizationError):
            service.update(PATIENT, "rx-1", PrescriptionUpdateRequest(notes="x"))
        with pytest.raises(AuthorizationError):
            service.delete(PATIENT, "rx-1")

    def test_expiring_sets_expiry_date(self, service, prescription_repo):
        prescription_repo.get_by_id.return_value = _prescription()

        updated = service.update_status(
            ADMIN, "rx-1", PrescriptionStatusRequest(status="expired")
        )

        assert updated.status == "expired"
        assert updated.expiry_date is not None

    def test_render_pdf(self, service, prescription_repo, pdf_generator):
        prescription_repo.get_by_id.return_value = _prescription()

        content, filename = service.render_pdf(PATIENT, "rx-1")

        assert content.startswith(b"%PDF")
        assert filename == "prescription_rx-1.pdf"
        pdf_generator.generate.assert_called_once()
