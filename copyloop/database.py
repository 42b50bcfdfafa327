"""
Engine and sessions for the CopyLoop store.

PostgreSQL gets a pooled engine; any other URL is treated as SQLite with
foreign keys switched on per connection. Stores commit through
commit_or_raise so a failed write surfaces as StoreError.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from .config import settings
from .db_models import Base
from .exceptions import StoreError

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url
IS_POSTGRES = DATABASE_URL.startswith("postgresql://")


def _redact(url: str) -> str:
    return url.rsplit("@", 1)[-1]


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str):
    if IS_POSTGRES:
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600,
            echo=False,
        )

    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
    return sqlite_engine


logger.info(f"Using database at {_redact(DATABASE_URL)}")
engine = _build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Create any missing tables. Alembic owns the schema outside tests and local runs."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database schema ready")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def get_db() -> Session:
    # Request-scoped session for route handlers.
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context():
    """Session that commits on success and rolls back on any error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def commit_or_raise(db: Session, operation: str) -> None:
    """
    Commit the session, translating store failures into StoreError.

    The session is rolled back first so no partial write survives.
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Commit failed during {operation}: {e}")
        raise StoreError(operation, str(e)) from e


def check_database_health() -> dict:
    try:
        with get_db_context() as db:
            db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "database_connected": False,
            "database_error": str(e),
        }

    return {
        "database_connected": True,
        "database_type": "postgresql" if IS_POSTGRES else "sqlite",
    }
