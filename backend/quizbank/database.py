"""
Database connection and session management module.

Uses SQLAlchemy for ORM and Core operations. Supports PostgreSQL
(production/Docker) and SQLite (local development and tests).

The Database handle is constructed once at application startup, stored on
app.state, and disposed on shutdown. Request handlers get a session from it
through the get_db dependency.
"""

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session
from sqlalchemy.pool import StaticPool

from quizbank.logging_config import get_logger, log_with_context

logger = get_logger("db")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class Database:
    """
    Owns the engine (and therefore the connection pool) and the session factory.
    """

    def __init__(self, url: str, pool_size: int = 10, max_overflow: int = 20,
                 echo: bool = False):
        self.url = url

        # SQLite does not support pool_size, max_overflow, or pool_pre_ping
        engine_kwargs = {"echo": echo}
        if url.startswith("postgresql"):
            engine_kwargs.update({
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_pre_ping": True,
            })
        elif url.startswith("sqlite"):
            # SQLite needs check_same_thread=False for FastAPI (multi-threaded)
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(url):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, **engine_kwargs)

        if self.is_sqlite:
            # Junction-row referential checks must fail the same way they do on PostgreSQL
            @event.listens_for(self.engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self.session_factory = sessionmaker(autocommit=False, autoflush=False,
                                            bind=self.engine)

        log_with_context(logger, "INFO", "Database engine created",
                         extra_data={"dialect": self.engine.dialect.name})

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def session(self) -> Session:
        """Create a new session. The caller is responsible for closing it."""
        return self.session_factory()

    def create_tables(self):
        """
        Create all database tables directly (used for SQLite).
        For PostgreSQL, use Alembic migrations instead.
        """
        # Register every model with Base.metadata
        import quizbank.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        """Close every pooled connection."""
        self.engine.dispose()
        log_with_context(logger, "INFO", "Database engine disposed")


def get_db(request: Request):
    """
    FastAPI dependency that provides a database session.

    Yields a session and ensures proper cleanup after request completion.
    Connections are returned to the pool even if an exception occurs
    during request processing.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
