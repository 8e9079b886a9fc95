"""CureConnect: appointment booking for patients, doctors and admins."""

__version__ = "0.1.0"
