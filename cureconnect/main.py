import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()

logger = logging.getLogger(__name__)


def _error_body(error: str, message: str, details=None) -> dict:
    body = {"success": False, "message": message, "error": error}
    if details:
        body["details"] = details
    return body


def create_app():  # noqa: C901
    from cureconnect.core.config import is_test_mode

    env = os.getenv("FLASK_ENV", "development")
    is_production = env == "production"

    app = Flask(__name__)

    # Set TESTING before any other configuration so every component sees it
    if is_test_mode():
        app.config["TESTING"] = True

    # Configure structured logging (after app creation so we can register hooks)
    from cureconnect.core.logging_config import setup_logging

    setup_logging(
        app=app,
        log_level=os.getenv("LOG_LEVEL")
        or (logging.INFO if is_production else logging.DEBUG),
        enable_sql_echo=not is_production and not app.config.get("TESTING"),
        use_json_format=is_production,
    )
    logger.info(
        "Logging configured",
        extra={"context": {"environment": env, "json_format": is_production}},
    )

    from cureconnect.core.config import CLIENT_URL, log_email_config, log_timezone_config

    log_timezone_config()
    log_email_config()

    # Sentry error tracking, only when a DSN is configured
    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=env,
            release=os.getenv("GIT_SHA", "unknown"),
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=0.1,
            send_default_pii=False,  # Don't send PII by default
        )
        logger.info(
            "Sentry initialized",
            extra={"context": {"environment": env, "traces_sample_rate": 0.1}},
        )
    else:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": env}},
        )

    # Prometheus metrics on /metrics; initialized before the limiter
    from prometheus_flask_exporter import PrometheusMetrics

    if app.config.get("TESTING"):
        # Each test app gets its own registry so metric names never collide
        from prometheus_client import CollectorRegistry

        metrics = PrometheusMetrics(app, registry=CollectorRegistry(auto_describe=True))
    else:
        metrics = PrometheusMetrics(app)
    try:
        metrics.info(
            "app_info",
            "Application information",
            version=os.getenv("GIT_SHA", "unknown"),
            environment=env,
        )
    except ValueError as e:
        # Metric already registered (create_app called more than once)
        logger.debug(
            "app_info metric already registered",
            extra={"context": {"error": str(e)}},
        )

    app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")

    # Rate limiting
    from cureconnect.core.config import is_rate_limit_enabled
    from cureconnect.core.limiter_config import limiter

    app.config["RATELIMIT_STORAGE_URI"] = os.getenv("LIMITER_STORAGE_URI", "memory://")
    limiter.init_app(app)
    if app.config.get("TESTING") and not is_rate_limit_enabled():
        limiter.enabled = False
        logger.info(
            "Rate limiting disabled for testing", extra={"context": {"test_mode": True}}
        )

    # Production validation: fail fast if weak secrets are used
    if is_production:
        from cureconnect.core.security import get_jwt_secret_key

        weak_secrets = ["dev-secret-change-me", "dev-jwt-secret-change-me", "secret123"]
        secret_key = app.config["SECRET_KEY"]
        if secret_key in weak_secrets or len(secret_key) < 32:
            raise ValueError(
                "Production deployment requires strong SECRET_KEY (min 32 chars). "
                "Set FLASK_SECRET_KEY environment variable."
            )
        get_jwt_secret_key()

    # Ensure database tables exist before the first request
    from cureconnect.db.session import create_tables, get_engine

    try:
        create_tables()
        logger.info(
            "Database ready",
            extra={"context": {"driver": get_engine().dialect.name}},
        )
    except Exception as e:
        logger.warning(
            "Failed to auto-create tables",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )

    # Bearer-token authentication through Flask-Login
    from cureconnect.controllers.auth_controller import build_auth_service
    from cureconnect.core.security import extract_bearer_token
    from cureconnect.db.session import SessionLocal

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_user_from_request(req):
        """Resolve ``Authorization: Bearer <token>`` into an AuthContext."""
        token = extract_bearer_token(req.headers.get("Authorization"))
        if not token:
            return None

        db = SessionLocal()
        try:
            return build_auth_service(db).authenticate_token(token)
        finally:
            db.close()

    @login_manager.unauthorized_handler
    def unauthorized():
        return (
            jsonify(
                _error_body(
                    "unauthorized", "Authentication required. Please log in."
                )
            ),
            401,
        )

    # CORS for the configured browser client
    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = CLIENT_URL
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
        response.headers["Access-Control-Allow-Methods"] = (
            "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        )
        response.headers["Vary"] = "Origin"
        return response

    # Error handlers: every failure leaves as the standard JSON envelope
    from cureconnect.core.exceptions import CureConnectError
    from cureconnect.schemas.dtos import ErrorResponse

    @app.errorhandler(CureConnectError)
    def handle_domain_error(error):
        response = ErrorResponse.from_exception(error)
        logger.info(
            "Request rejected",
            extra={
                "context": {
                    "path": request.path,
                    "status_code": error.status_code,
                    "error": response.error,
                    "message": error.message,
                }
            },
        )
        return (
            jsonify(_error_body(response.error, response.message, response.details)),
            error.status_code,
        )

    @app.errorhandler(ValueError)
    def handle_value_error(error):
        response = ErrorResponse.validation_error(str(error))
        return jsonify(_error_body(response.error, response.message)), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        names = {404: "not_found", 405: "method_not_allowed", 429: "rate_limited"}
        return (
            jsonify(
                _error_body(
                    names.get(error.code, error.name.lower().replace(" ", "_")),
                    error.description or error.name,
                )
            ),
            error.code,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.error(
            "Unhandled exception",
            extra={
                "context": {
                    "path": request.path,
                    "method": request.method,
                    "error": str(error),
                }
            },
            exc_info=True,
        )
        response = ErrorResponse.server_error()
        return jsonify(_error_body(response.error, response.message)), 500

    # Register blueprints
    from cureconnect.controllers.appointment_controller import appointment_bp
    from cureconnect.controllers.auth_controller import auth_bp
    from cureconnect.controllers.doctor_controller import doctor_bp
    from cureconnect.controllers.health_controller import health_bp
    from cureconnect.controllers.patient_controller import patient_bp
    from cureconnect.controllers.prescription_controller import prescription_bp
    from cureconnect.controllers.report_controller import report_bp
    from cureconnect.controllers.review_controller import review_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(appointment_bp)
    app.register_blueprint(doctor_bp)
    app.register_blueprint(patient_bp)
    app.register_blueprint(prescription_bp)
    app.register_blueprint(review_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(health_bp)

    # Monitoring endpoint is exempt from rate limiting
    limiter.exempt(health_bp)

    @app.cli.command("seed-admin")
    def seed_admin_command():
        """Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD."""
        from cureconnect.core.config import get_admin_credentials

        email, password = get_admin_credentials()
        if not email or not password:
            raise click.ClickException(
                "ADMIN_EMAIL and ADMIN_PASSWORD must be set to seed the admin account"
            )

        db = SessionLocal()
        try:
            admin, created = build_auth_service(db).ensure_admin(email, password)
        except CureConnectError as e:
            raise click.ClickException(e.message) from e
        finally:
            db.close()

        if created:
            click.echo(f"Admin account created: {admin.email}")
        else:
            click.echo(f"Admin account already exists: {admin.email}")

    logger.info(
        "Application created",
        extra={"context": {"environment": env, "blueprints": len(app.blueprints)}},
    )
    return app
