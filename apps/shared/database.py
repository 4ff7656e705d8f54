"""
Database configuration and session management

This module provides the SQLAlchemy setup for database connectivity.
NO models are defined here - this is just infrastructure.

The engine is created lazily on first use and then reused for the lifetime
of the process. The DATABASE_URL is validated up front so a bad value is
reported once at startup instead of on every request.
"""

import logging
import os
import threading
from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

# Accepted connection string prefixes
ALLOWED_SCHEMES = ("postgresql+psycopg2://", "postgresql://", "postgres://")

# Base class for ORM models
Base = declarative_base()


class DatabaseConfigError(RuntimeError):
    """Raised when DATABASE_URL is missing or does not use an accepted scheme."""


def validate_database_url(url: Optional[str], allowed_schemes=ALLOWED_SCHEMES) -> str:
    """
    Check the connection string and normalise it for psycopg2.

    Hosting providers usually hand out postgres:// or postgresql:// URLs,
    SQLAlchemy needs the driver spelled out.
    """
    if not url or not isinstance(url, str):
        raise DatabaseConfigError("DATABASE_URL is not set")
    if not url.startswith(tuple(allowed_schemes)):
        raise DatabaseConfigError(
            f"DATABASE_URL must start with one of: {', '.join(allowed_schemes)}"
        )
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            url = url.replace(prefix, "postgresql+psycopg2://", 1)
            break
    try:
        make_url(url)
    except (ArgumentError, ValueError) as e:
        raise DatabaseConfigError(f"DATABASE_URL could not be parsed: {e}")
    return url


class Database:
    """
    Process-wide handle on the engine and session factory.

    Construction only validates the URL. The engine itself is built on the
    first call to ``engine`` (or ``session``) under a lock, so concurrent first
    requests still end up sharing a single engine.
    """

    def __init__(self, url: Optional[str], allowed_schemes=ALLOWED_SCHEMES, **engine_kwargs):
        self.config_error: Optional[str] = None
        self.url: Optional[str] = None
        try:
            self.url = validate_database_url(url, allowed_schemes)
        except DatabaseConfigError as e:
            self.config_error = str(e)

        # Using NullPool for better compatibility with containerized environments
        engine_kwargs.setdefault("poolclass", NullPool)
        engine_kwargs.setdefault("echo", False)
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "Database":
        return cls(os.getenv("DATABASE_URL"))

    @property
    def configured(self) -> bool:
        return self.config_error is None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    if self.config_error:
                        raise DatabaseConfigError(self.config_error)
                    engine = create_engine(self.url, **self._engine_kwargs)
                    self._session_factory = sessionmaker(
                        autocommit=False, autoflush=False, bind=engine
                    )
                    self._engine = engine
                    logger.info("Database engine initialised")
        return self._engine

    def session(self) -> Session:
        """Open a new session bound to the shared engine."""
        if self._session_factory is None:
            self.engine  # first use builds the engine and the factory
        return self._session_factory()

    def check_connection(self) -> bool:
        """
        Test database connectivity
        Returns True if connection successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database connectivity check failed", exc_info=True)
            return False


def get_database(request: Request) -> Database:
    """Dependency returning the Database attached to the running app."""
    return request.app.state.database


def get_db(request: Request):
    """
    Dependency injection for database sessions
    Usage in FastAPI endpoints:

    @app.get("/endpoint")
    def endpoint(db: Session = Depends(get_db)):
        # use db here
        pass
    """
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
