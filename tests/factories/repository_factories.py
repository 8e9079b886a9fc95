"""
Repository test factories following Interface Segregation Principle.

Each factory returns a ``Mock`` constrained to one repository interface, so
a test fails loudly when a service calls something the interface does not
declare.
"""

from unittest.mock import Mock

from cureconnect.domain.interfaces import (
    IAppointmentRepository,
    IDoctorRepository,
    IPatientRepository,
    IPrescriptionRepository,
    IReviewRepository,
    IRevokedTokenRepository,
    IUserRepository,
)


def _echo_first_arg(entity, *args, **kwargs):
    return entity


class UserRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IUserRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.get_by_email.return_value = None
        mock_repo.get_password_hash.return_value = None
        mock_repo.delete.return_value = False
        return mock_repo


class DoctorRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IDoctorRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.list.return_value = []
        mock_repo.create.side_effect = _echo_first_arg
        mock_repo.update.side_effect = _echo_first_arg
        mock_repo.delete.return_value = False
        return mock_repo


class PatientRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IPatientRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.list.return_value = []
        mock_repo.create.side_effect = _echo_first_arg
        mock_repo.update.side_effect = _echo_first_arg
        return mock_repo


class AppointmentRepositoryFactory:
    """Factory for appointment repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        """Create full repository mock; writes return what they were given."""
        mock_repo = Mock(spec=IAppointmentRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.list.return_value = []
        mock_repo.get_for_doctor_on_date.return_value = []
        mock_repo.create.side_effect = _echo_first_arg
        mock_repo.update.side_effect = _echo_first_arg
        mock_repo.delete.return_value = True
        return mock_repo


class PrescriptionRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IPrescriptionRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.get_by_appointment_id.return_value = None
        mock_repo.list.return_value = []
        mock_repo.create.side_effect = _echo_first_arg
        mock_repo.update.side_effect = _echo_first_arg
        mock_repo.delete.return_value = True
        return mock_repo


class ReviewRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IReviewRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.get_by_appointment_id.return_value = None
        mock_repo.list.return_value = []
        mock_repo.create.side_effect = _echo_first_arg
        mock_repo.update_status.return_value = None
        mock_repo.delete.return_value = False
        return mock_repo


class RevokedTokenRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IRevokedTokenRepository)
        mock_repo.is_revoked.return_value = False
        mock_repo.purge_expired.return_value = 0
        return mock_repo


class NotificationServiceFactory:
    @staticmethod
    def create_mock() -> Mock:
        """Notifier mock; the appointment-specific senders are not on the interface."""
        notifier = Mock()
        notifier.send_email.return_value = True
        notifier.appointment_booked.return_value = True
        notifier.appointment_rescheduled.return_value = True
        notifier.appointment_status_changed.return_value = True
        return notifier

