"""
Centralized logging configuration for CureConnect.

This module provides structured logging with:
- JSON records in production and in the rotating log files
- Colored console output in development, with the structured context inline
- A request id per API call, echoed back as ``X-Request-ID``
- Optional SQLAlchemy query timing

Usage:
    from cureconnect.core.logging_config import setup_logging, get_logger

    # In main.py
    setup_logging(app, log_level="INFO", enable_sql_echo=True)

    # In any module
    logger = get_logger(__name__)
    logger.info("Appointment booked", extra={"context": {"appointment_id": "ab12"}})
"""

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, current_app, g, has_request_context, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.engine import Engine

LOG_FILES = (
    ("app.log", None),  # None: use the configured level
    ("cureconnect_errors.log", logging.ERROR),
)
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_sql_timing_installed = False


def _current_request_id() -> Optional[str]:
    if has_request_context():
        return g.get("request_id")
    return None


class JSONFormatter(logging.Formatter):
    """One JSON object per record: level, logger, message, location, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        request_id = _current_request_id()
        if request_id:
            entry["request_id"] = request_id
        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Development formatter: colored level, then ``key=value`` context pairs."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self):
        super().__init__(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        # Copy: other handlers format the same record
        record = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        line = super().format(record)

        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line} | {pairs}"
        return line


def _level(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in ("1", "true", "yes")


def _file_handlers(log_dir: Path, level: int):
    """Rotating JSON file handlers; a directory that cannot be written is skipped."""
    handlers = []
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return handlers, [f"Cannot create log directory {log_dir}: {e}"]

    problems = []
    for filename, file_level in LOG_FILES:
        try:
            handler = logging.handlers.RotatingFileHandler(
                log_dir / filename,
                maxBytes=MAX_LOG_BYTES,
                backupCount=LOG_BACKUPS,
                encoding="utf-8",
            )
        except OSError as e:
            problems.append(f"Cannot open {filename}: {e}")
            continue
        handler.setLevel(file_level or level)
        handler.setFormatter(JSONFormatter())
        handlers.append(handler)
    return handlers, problems


def _install_sql_timing() -> None:
    """Log every statement's duration on ``sqlalchemy.performance`` (DEBUG)."""
    global _sql_timing_installed
    if _sql_timing_installed:
        return

    sql_logger = logging.getLogger("sqlalchemy.performance")

    @event.listens_for(Engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("cureconnect_query_start", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.get("cureconnect_query_start")
        if not started:
            return
        elapsed_ms = (time.perf_counter() - started.pop()) * 1000
        sql_logger.debug(
            f"Query executed in {elapsed_ms:.2f}ms",
            extra={
                "context": {
                    "sql": statement[:500],
                    "duration_ms": round(elapsed_ms, 2),
                }
            },
        )

    _sql_timing_installed = True


def _install_request_hooks(app: Flask) -> None:
    http_logger = logging.getLogger("cureconnect.http")

    @app.before_request
    def _start_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def _finish_request(response):
        started = g.get("request_started")
        if started is None:
            return response

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        caller = None
        # Apps without Flask-Login (tools, tests) have no current_user
        if getattr(current_app, "login_manager", None) is not None:
            caller = current_user if current_user.is_authenticated else None
        http_logger.info(
            f"{request.method} {request.path} -> {response.status_code}",
            extra={
                "context": {
                    "route": request.url_rule.rule if request.url_rule else None,
                    "status_code": response.status_code,
                    "duration_ms": round(elapsed_ms, 2),
                    "user_id": getattr(caller, "id", None),
                    "role": getattr(caller, "role", None),
                }
            },
        )
        return response


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: Optional[bool] = None,
    use_json_format: bool = False,
) -> None:
    """
    Configure the root logger and, when ``app`` is given, the request hooks.

    Args:
        app: Flask application to attach request/response logging to
        log_level: Level as an int (logging.INFO) or a name ("INFO")
        enable_sql_echo: Log SQLAlchemy statement timings at DEBUG
        log_to_file: Also write rotating JSON files under LOG_DIR
            (default: the LOG_TO_FILE environment flag)
        use_json_format: JSON console output instead of the colored format
    """
    level = _level(log_level)
    if log_to_file is None:
        log_to_file = _env_flag("LOG_TO_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(JSONFormatter() if use_json_format else ConsoleFormatter())
    root_logger.addHandler(console)

    if log_to_file:
        log_dir = Path(os.getenv("LOG_DIR", Path.cwd() / "logs"))
        handlers, problems = _file_handlers(log_dir, level)
        for handler in handlers:
            root_logger.addHandler(handler)
        for problem in problems:
            root_logger.warning(
                f"{problem}. Logging to console only.",
                extra={"context": {"component": "logging_setup"}},
            )

    if enable_sql_echo:
        _install_sql_timing()

    if app is not None:
        _install_request_hooks(app)

    # fpdf2 pulls in fontTools, which is chatty at INFO
    for noisy in ("werkzeug", "urllib3", "fontTools"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for ``name`` (usually ``__name__``).

    Example:
        logger = get_logger(__name__)
        logger.info("User logged in", extra={"context": {"user_id": "ab12"}})
    """
    return logging.getLogger(name)


def log_performance(operation: str, duration_ms: float, **context) -> None:
    """
    Log how long an operation took on ``cureconnect.performance``.

    Args:
        operation: Name of the operation, e.g. "render_prescription_pdf"
        duration_ms: Elapsed time in milliseconds
        **context: Extra fields (ids, sizes, counts)
    """
    get_logger("cureconnect.performance").info(
        f"{operation} completed in {duration_ms:.2f}ms",
        extra={
            "context": {"operation": operation, "duration_ms": round(duration_ms, 2), **context}
        },
    )
