# Client package: Python API client and role dashboards

from .api import ApiError, CureConnectAPI
from .dashboard import AdminDashboard, AvailabilityResult, DoctorDashboard, PatientDashboard
from .notifications import Notification
from .session import ClientSession

__all__ = [
    "AdminDashboard",
    "ApiError",
    "AvailabilityResult",
    "ClientSession",
    "CureConnectAPI",
    "DoctorDashboard",
    "Notification",
    "PatientDashboard",
]
