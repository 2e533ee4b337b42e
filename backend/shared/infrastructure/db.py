"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.

The engine is created on first use so importing repositories (and their
tests, which bring their own engine) never opens a connection pool.
"""

from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from shared.config.logging import get_logger
from shared.config.settings import get_settings
from shared.utils.exceptions import DuplicateEntityError, TransactionError

logger = get_logger(__name__)


@lru_cache
def get_engine() -> Engine:
    """Create the application engine with connection pooling and timeouts."""
    settings = get_settings()

    if settings.database_url.startswith("sqlite"):
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            echo=settings.db_echo,
        )

    return create_engine(
        settings.database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        connect_args={"connect_timeout": 10},
        echo=settings.db_echo,
    )


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Session factory bound to the application engine."""
    return sessionmaker(
        bind=get_engine(),
        autoflush=False,
        autocommit=False,
    )


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @app.get("/donations")
        def list_donations(db: Session = Depends(get_db)):
            return get_donation_repository(db).find_all({})

    The session is automatically closed after the request completes.
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            get_donation_repository(db).bulk_import(rows)
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Safe commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def transaction_scope(
    db: Session,
    operation: str,
    *,
    entity: str = "Record",
    commit: bool = True,
) -> Generator[Session, None, None]:
    """
    Run a block of writes as one unit.

    The block's changes are flushed on exit. When ``commit`` is True the
    scope owns the transaction: it commits on success and rolls back on
    any exception. When False the caller owns the transaction and is
    responsible for commit or rollback.

    Backend failures are re-raised as DuplicateEntityError (constraint
    violations) or TransactionError, chained to the original exception.
    Application exceptions propagate unchanged.

    Usage:
        with transaction_scope(db, "delete donations", entity="Donation"):
            ...
    """
    try:
        yield db
        db.flush()
        if commit:
            db.commit()
    except Exception as e:
        if commit:
            db.rollback()

        if isinstance(e, IntegrityError):
            logger.error(
                f"Constraint violation during {operation}",
                error=str(e.orig),
                rolled_back=commit,
            )
            raise DuplicateEntityError(entity, operation=operation) from e

        if isinstance(e, SQLAlchemyError):
            logger.error(
                f"Transaction failed during {operation}",
                error=str(e),
                rolled_back=commit,
            )
            raise TransactionError(operation, rolled_back=commit) from e

        raise
