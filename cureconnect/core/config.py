"""
Centralized configuration module for application-wide settings.

Every setting is read from the environment through a ``get_*`` function and
cached in a module-level constant. The ``log_*_config`` helpers are called
once from ``create_app`` so the effective configuration shows up in the logs.
"""

import os
import logging
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'Asia/Kolkata', 'UTC')
            Default: 'UTC'
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


def log_timezone_config():
    """Log the active timezone configuration."""
    logger.info(
        "Timezone configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "tz_env_var": os.getenv("TZ", "UTC"),
            }
        },
    )


# ===========================
# Authentication Configuration
# ===========================


def get_jwt_expiration_hours() -> int:
    """
    Get the lifetime of issued access tokens.

    Environment Variables:
        JWT_EXPIRATION_HOURS: Token lifetime in hours
            Default: 24
    """
    raw = os.getenv("JWT_EXPIRATION_HOURS", "24")
    try:
        hours = int(raw)
    except ValueError:
        logger.warning(
            "Invalid JWT_EXPIRATION_HOURS, using default of 24",
            extra={"context": {"JWT_EXPIRATION_HOURS": raw}},
        )
        return 24
    return hours if hours > 0 else 24


def get_bcrypt_rounds() -> int:
    """
    Get the bcrypt cost factor used for password hashing.

    Environment Variables:
        BCRYPT_ROUNDS: bcrypt work factor (4-31)
            Default: 12
            Tests: 4 keeps the suite fast
    """
    raw = os.getenv("BCRYPT_ROUNDS", "12")
    try:
        rounds = int(raw)
    except ValueError:
        return 12
    return min(max(rounds, 4), 31)


JWT_EXPIRATION_HOURS = get_jwt_expiration_hours()


def get_admin_credentials() -> tuple[str | None, str | None]:
    """
    Get the bootstrap admin account credentials.

    Environment Variables:
        ADMIN_EMAIL: Email of the admin account created by ``flask seed-admin``
        ADMIN_PASSWORD: Initial password for that account

    Returns:
        (email, password); either may be None when not configured
    """
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    return (email.strip().lower() if email else None), password


# ===========================
# Email Configuration
# ===========================


def get_smtp_settings() -> dict:
    """
    Get SMTP settings for outgoing patient notifications.

    Environment Variables:
        SMTP_HOST: SMTP server hostname (notifications disabled when unset)
        SMTP_PORT: SMTP port, default 587
        SMTP_USER / SMTP_PASSWORD: Login credentials (optional)
        SMTP_USE_TLS: Issue STARTTLS before login, default 'true'
        FROM_NAME: Display name of the sender, default 'CureConnect'
        FROM_EMAIL: Sender address, defaults to SMTP_USER
        SMTP_TIMEOUT: Seconds to wait on the SMTP server, default 10
    """
    try:
        port = int(os.getenv("SMTP_PORT", "587"))
    except ValueError:
        port = 587
    try:
        timeout = float(os.getenv("SMTP_TIMEOUT", "10"))
    except ValueError:
        timeout = 10.0

    user = os.getenv("SMTP_USER", "")
    return {
        "host": os.getenv("SMTP_HOST", ""),
        "port": port,
        "timeout": timeout,
        "user": user,
        "password": os.getenv("SMTP_PASSWORD", ""),
        "use_tls": os.getenv("SMTP_USE_TLS", "true").strip().lower() in _TRUTHY,
        "from_name": os.getenv("FROM_NAME", "CureConnect"),
        "from_email": os.getenv("FROM_EMAIL", user or "no-reply@cureconnect.local"),
    }


def log_email_config():
    """Log whether outgoing email is configured (without credentials)."""
    settings = get_smtp_settings()
    logger.info(
        "Email configuration initialized",
        extra={
            "context": {
                "enabled": bool(settings["host"]),
                "smtp_host": settings["host"] or None,
                "smtp_port": settings["port"],
                "from_email": settings["from_email"],
            }
        },
    )


# ===========================
# HTTP / CORS Configuration
# ===========================


def get_client_url() -> str:
    """
    Get the browser origin allowed to call the API.

    Environment Variables:
        CLIENT_URL: Frontend origin for CORS headers
            Default: 'http://localhost:5173'
    """
    return os.getenv("CLIENT_URL", "http://localhost:5173").rstrip("/")


CLIENT_URL = get_client_url()


def get_client_timeout() -> float:
    """
    Get the request timeout used by ``cureconnect.client``.

    Environment Variables:
        CURECONNECT_CLIENT_TIMEOUT: Seconds, default 10
    """
    try:
        return float(os.getenv("CURECONNECT_CLIENT_TIMEOUT", "10"))
    except ValueError:
        return 10.0


def is_rate_limit_enabled() -> bool:
    """RATE_LIMIT_ENABLED=0 turns the limiter off (honoured in test mode only)."""
    return os.getenv("RATE_LIMIT_ENABLED", "1").strip().lower() in _TRUTHY


def is_test_mode() -> bool:
    """Check the TESTING environment flag set by the test suite and CI."""
    return os.getenv("TESTING", "").lower().strip() in _TRUTHY
