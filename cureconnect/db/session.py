import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./cureconnect.db"

# Create Base class for models
Base = declarative_base()

# Internal lazy globals
_engine = None
_SessionLocal = None
_database_url = None


def _mask_url_password(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "<unparseable database url>"


def get_engine():
    """Return a cached SQLAlchemy engine, creating it from DATABASE_URL on
    first call. This allows tests to set DATABASE_URL before the engine is
    constructed."""
    global _engine, _database_url, _SessionLocal
    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

    if _engine is not None and _database_url == database_url:
        return _engine

    if _engine is not None:
        _engine.dispose()
        _SessionLocal = None

    drivername = make_url(database_url).drivername
    if drivername.startswith("postgres"):
        _engine = create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Detects and refreshes stale connections
            pool_recycle=3600,
            connect_args={
                "application_name": "cureconnect",
                "connect_timeout": 10,
            },
        )
    elif drivername.startswith("sqlite") and ":memory:" in database_url:
        # Single shared in-memory database so DDL persists across sessions
        _engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif drivername.startswith("sqlite"):
        _engine = create_engine(
            database_url, connect_args={"check_same_thread": False}
        )
    else:
        _engine = create_engine(database_url, pool_pre_ping=True)

    logger.info(
        "Database engine created",
        extra={
            "context": {
                "database_url": _mask_url_password(database_url),
                "dialect": _engine.dialect.name,
            }
        },
    )
    _database_url = database_url
    return _engine


def get_sessionmaker():
    """Return a cached sessionmaker bound to the lazy engine."""
    global _SessionLocal
    engine = get_engine()
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
        )
    return _SessionLocal


def SessionLocal():
    """Return a new Session bound to the lazy engine.

    Controllers open one per request and close it in a ``finally`` block.
    """
    return get_sessionmaker()()


def get_db():
    """Yield a database session and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all tables in database using the lazy engine."""
    # Importing the models module populates Base.metadata
    from cureconnect.db import base  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def drop_tables():
    """Drop every table; used by the test suite between tests."""
    from cureconnect.db import base  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
