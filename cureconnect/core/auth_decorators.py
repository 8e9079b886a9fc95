"""
Authentication helpers for this application.

Every API call authenticates with ``Authorization: Bearer <JWT>``. The
Flask-Login request loader registered in ``create_app`` turns a valid,
unrevoked token into an :class:`AuthContext`, which controllers pass
explicitly into the service layer. Services never look the caller up
on their own.

DECORATOR GUIDE:
- @login_required (Flask-Login): any authenticated role
- @roles_required("doctor", "admin"): only the listed roles

Examples:
    @appointment_bp.route("/<appointment_id>/complete", methods=["PUT"])
    @roles_required("doctor", "admin")
    def complete_appointment(appointment_id):
        actor = get_current_user()
        ...
"""

from datetime import datetime
from functools import wraps
from typing import Optional

from flask import g
from flask_login import UserMixin, current_user

from cureconnect.core.exceptions import AuthenticationError, AuthorizationError

ROLE_PATIENT = "patient"
ROLE_DOCTOR = "doctor"
ROLE_ADMIN = "admin"
ROLES = (ROLE_PATIENT, ROLE_DOCTOR, ROLE_ADMIN)


class AuthContext(UserMixin):
    """The authenticated caller of one request.

    Built from the token claims plus the stored account, so role and doctor
    status reflect the database rather than whatever the token was issued with.
    """

    def __init__(
        self,
        id: str,
        role: str,
        name: str = "",
        email: str = "",
        account_status: Optional[str] = None,
        token_id: Optional[str] = None,
        token_expires_at: Optional[datetime] = None,
    ):
        self.id = id
        self.role = role
        self.name = name
        self.email = email
        self.account_status = account_status
        self.token_id = token_id
        self.token_expires_at = token_expires_at

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR

    @property
    def is_patient(self) -> bool:
        return self.role == ROLE_PATIENT

    @property
    def is_suspended(self) -> bool:
        return self.is_doctor and self.account_status == "suspended"

    def __repr__(self) -> str:
        return f"AuthContext(id={self.id!r}, role={self.role!r})"


def get_current_user() -> Optional[AuthContext]:
    """Return the AuthContext of the current request, or None when anonymous."""
    if hasattr(g, "current_user") and g.current_user:
        return g.current_user

    if current_user and getattr(current_user, "is_authenticated", False):
        return current_user._get_current_object()

    return None


def require_current_user() -> AuthContext:
    """Like get_current_user, but raises AuthenticationError when anonymous."""
    user = get_current_user()
    if user is None:
        raise AuthenticationError("Authentication required. Please log in.")
    return user


def roles_required(*roles: str):
    """Decorator restricting a route to authenticated users with one of ``roles``.

    Raises AuthenticationError (401) when no valid token was presented and
    AuthorizationError (403) for any other role.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = require_current_user()
            if roles and user.role not in roles:
                raise AuthorizationError(
                    f"Access denied. This action requires role: {', '.join(roles)}."
                )
            return f(*args, **kwargs)

        return decorated_function

    return decorator
