# cyberbill/config/database.py
from contextlib import contextmanager
from typing import Generator, Iterator
import sqlite3
import time

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from .settings import Settings, get_settings
from .logging import get_logger, log_database_operation
from ..core.exceptions import BaseCustomException, ConflictError, StoreUnavailableError

logger = get_logger(__name__)
settings = get_settings()


def build_engine(database_url: str, settings: Settings = settings) -> Engine:
    """Create an engine whose store round-trips are bounded by DB_TIMEOUT_SECONDS."""
    if database_url.startswith("sqlite"):
        options = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DB_TIMEOUT_SECONDS,
            },
        }
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
    else:
        options = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_recycle": 300,
            "connect_args": {
                "connect_timeout": settings.DB_TIMEOUT_SECONDS,
                "options": f"-c statement_timeout={settings.DB_TIMEOUT_SECONDS * 1000}",
            },
        }

    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,
        **options
    )


engine = build_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Creates a new database session for each request.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.debug(f"Database session closed on error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()


def check_database_health(bind: Engine = None) -> bool:
    """Check if database connection is healthy."""
    try:
        with (bind or engine).connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False


def init_database(bind: Engine = None):
    """Initialize database with tables."""
    from .. import models  # noqa: F401  register mappers

    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database initialized successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise


def cleanup_database():
    """Clean up database connections."""
    engine.dispose()
    logger.info("Database connections cleaned up")


@contextmanager
def unit_of_work(db: Session, operation: str) -> Iterator[Session]:
    """
    Run a block of writes as one transaction.

    Commits when the block finishes, rolls back on any error. Store errors are
    translated into the service error taxonomy so callers can tell retryable
    failures from rejected input.
    """
    start_time = time.time()
    try:
        yield db
        db.commit()
    except BaseCustomException:
        db.rollback()
        raise
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"{operation}: concurrent modification detected: {e}")
        raise ConflictError(f"Concurrent modification during {operation}, retry the request")
    except IntegrityError:
        db.rollback()
        raise
    except OperationalError as e:
        db.rollback()
        logger.error(f"{operation}: store error: {e}")
        raise StoreUnavailableError(operation)
    except DBAPIError as e:
        db.rollback()
        if e.connection_invalidated:
            raise StoreUnavailableError(operation)
        raise
    except Exception:
        db.rollback()
        raise
    else:
        log_database_operation(operation, "ledger", duration=time.time() - start_time)


__all__ = [
    "engine",
    "build_engine",
    "SessionLocal",
    "Base",
    "get_db",
    "init_database",
    "cleanup_database",
    "check_database_health",
    "unit_of_work",
]
