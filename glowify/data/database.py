"""
Database connection and session management.
Uses SQLAlchemy; Postgres in production, SQLite for development and tests.

Order placement relies on serializable writes. On Postgres the store takes
row locks (SELECT ... FOR UPDATE). SQLite has no row locks, so every SQLite
transaction is opened with BEGIN IMMEDIATE, which takes the database write
lock up front and queues concurrent writers behind it.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from glowify.core.config import get_config
from glowify.utils.logger import get_logger

logger = get_logger("database")

# Base class for all our database models (must be defined before engine)
Base = declarative_base()

engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker] = None


def _use_begin_immediate(sqlite_engine: Engine) -> None:
    """Hand transaction control to SQLAlchemy and open each one with BEGIN IMMEDIATE."""

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_autobegin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_storefront_engine(url: str, sqlite_busy_timeout: float = 30.0) -> Engine:
    """Build an engine for ``url`` with the locking behaviour order placement needs."""
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": sqlite_busy_timeout},
        )
        _use_begin_immediate(sqlite_engine)
        return sqlite_engine
    return create_engine(url, pool_pre_ping=True)


def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


def init_db(url: Optional[str] = None) -> Engine:
    """Create the module engine/session factory and any missing tables."""
    global engine, SessionLocal
    config = get_config()
    url = url or config.database_url
    engine = create_storefront_engine(url, config.sqlite_busy_timeout)
    SessionLocal = create_session_factory(engine)

    # Importing models registers the tables on Base.metadata
    from glowify.data import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialised (%s)", engine.url.get_backend_name())
    return engine


def get_db() -> Iterator[Session]:
    """
    Dependency function that provides a database session.
    Initialises the default engine on first use.
    """
    if SessionLocal is None:
        init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run the block as one transaction: commit on success, roll back on any error."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
