"""
Health controller - liveness/readiness endpoint for monitoring.
"""

from flask import Blueprint, jsonify
from sqlalchemy import text

from cureconnect.core.logging_config import get_logger
from cureconnect.db.session import get_engine

logger = get_logger(__name__)

health_bp = Blueprint("health", __name__)


def check_database_connection() -> bool:
    """Run ``SELECT 1`` against the configured database."""
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(
            "Database connection failed",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        return False


@health_bp.route("/health", methods=["GET"])
def health_check():
    """
    Report service health.

    Returns 200 with ``{"status": "healthy", "database": "connected"}`` when
    the database answers, otherwise 503 with ``unhealthy``/``disconnected``.
    No authentication required.
    """
    db_status = check_database_connection()
    return jsonify(
        {
            "status": "healthy" if db_status else "unhealthy",
            "database": "connected" if db_status else "disconnected",
        }
    ), (200 if db_status else 503)
