"""
Custom exceptions for the application.

Services raise these; a single Flask error handler in ``create_app`` turns
them into the standard ``{"success": false, "message": ...}`` envelope using
``status_code``.
"""


class CureConnectError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CureConnectError, ValueError):
    """Missing or malformed input."""

    status_code = 400


class AuthenticationError(CureConnectError):
    """Missing, invalid, expired or revoked credentials."""

    status_code = 401


class AuthorizationError(CureConnectError):
    """
    The caller is authenticated but may not perform the action.

    Also raised when a suspended doctor attempts a mutating action.
    """

    status_code = 403


class NotFoundError(CureConnectError):
    status_code = 404

    @classmethod
    def for_resource(cls, resource: str) -> "NotFoundError":
        return cls(f"{resource} not found")


class StateConflictError(CureConnectError):
    """The record is in a state that does not allow the requested change."""

    status_code = 409
