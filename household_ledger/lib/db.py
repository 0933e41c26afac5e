"""
Database connection and initialization module.

Manages SQLite database creation, connection pooling, schema initialization,
and the atomic primitives used by the balance mutation services.
"""

import os
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generator, Optional, TypeVar

from sqlalchemy import create_engine, event, func, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from household_ledger.lib.config import (
    APP_HOME,
    DB_BUSY_TIMEOUT,
    DB_PATH_ENV_VAR,
    DB_RETRY_ATTEMPTS,
    DB_RETRY_MAX_DELAY,
)

T = TypeVar("T")

# Base class for all models
Base = declarative_base()

# Default database path (can be overridden by environment variable)
DEFAULT_DB_PATH = APP_HOME / "data.db"

# Global engine and session factory
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker[Session]] = None


def _configure_connection(dbapi_conn: Any, connection_record: Any) -> None:
    """Enable foreign key constraints and hand transaction control to SQLAlchemy."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # pysqlite would otherwise emit its own deferred BEGIN
    dbapi_conn.isolation_level = None


def _begin_immediate(conn: Any) -> None:
    """
    Start every transaction holding the SQLite write lock.

    SQLite ignores SELECT ... FOR UPDATE, so balance checks and the writes
    that depend on them are serialized here instead: a second writer waits at
    BEGIN until the first commits, then reads the committed balances.
    """
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_engine(db_path: Optional[Path] = None) -> Engine:
    """
    Get or create the SQLAlchemy engine.

    Args:
        db_path: Optional custom database path. Defaults to ~/.household-ledger/data.db
                 Can also be set via HOUSEHOLD_LEDGER_DB_PATH environment variable.

    Returns:
        SQLAlchemy Engine instance
    """
    global _engine

    if _engine is None:
        if db_path is None:
            env_db_path = os.environ.get(DB_PATH_ENV_VAR)
            if env_db_path:
                db_path = Path(env_db_path)
            else:
                db_path = DEFAULT_DB_PATH

        db_path.parent.mkdir(parents=True, exist_ok=True)

        db_url = f"sqlite:///{db_path}"
        _engine = create_engine(
            db_url,
            echo=False,  # Set to True for SQL debugging
            connect_args={"check_same_thread": False, "timeout": DB_BUSY_TIMEOUT},
        )

        event.listen(_engine, "connect", _configure_connection)
        event.listen(_engine, "begin", _begin_immediate)

    return _engine


def reset_engine() -> None:
    """Reset the global engine and session factory.

    This is used for testing to ensure a fresh database connection.
    **WARNING: Only use this in tests!**
    """
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionLocal = None


def get_session() -> Session:
    """
    Get a new database session.

    Returns:
        SQLAlchemy Session instance
    """
    global _SessionLocal

    if _SessionLocal is None:
        engine = get_engine()
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
        )

    return _SessionLocal()


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic commit/rollback.

    Provides transactional safety by automatically:
    - Committing on successful completion
    - Rolling back on exceptions
    - Closing the session in all cases

    Yields:
        SQLAlchemy Session instance

    Example:
        with db_session() as session:
            account = Account(user_id=user.id, name="Wallet", type=AccountType.CASH)
            session.add(account)
            # Commits automatically when context exits successfully
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@retry(
    stop=stop_after_attempt(DB_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=DB_RETRY_MAX_DELAY),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
)
def run_atomic(operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a service operation as one all-or-nothing unit.

    The operation receives a fresh session as its first argument. The whole
    unit is retried when SQLite reports lock contention; domain errors
    propagate immediately and leave the store untouched.

    Args:
        operation: Callable taking (session, *args, **kwargs)

    Returns:
        Whatever the operation returns
    """
    with db_session() as session:
        return operation(session, *args, **kwargs)


def increment_balance(
    session: Session,
    model: Any,
    entity_id: str,
    delta: Decimal,
    floor: Optional[Decimal] = None,
) -> bool:
    """
    Atomically add ``delta`` to the ``balance`` column of one row.

    Issued as a single ``UPDATE ... SET balance = balance + :delta`` so the
    read-modify-write happens inside the store. A NULL balance counts as zero.
    With ``floor`` the row only changes while its balance is at least
    ``floor``, so a withdrawal can never take it below zero.

    Loaded instances are not synchronized; refresh them afterwards.

    Args:
        session: Database session (the caller owns the transaction)
        model: Mapped class with ``id`` and ``balance`` columns
        entity_id: Primary key of the row to update
        delta: Signed amount to add
        floor: Minimum balance the row must hold for the update to apply

    Returns:
        False when ``floor`` was not met and nothing changed
    """
    current = func.coalesce(model.balance, 0)
    stmt = update(model).where(model.id == entity_id)
    if floor is not None:
        stmt = stmt.where(current >= floor)
    result = session.execute(
        stmt.values(balance=current + delta).execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


def init_db(db_path: Optional[Path] = None) -> None:
    """
    Initialize the database by creating all tables.

    Args:
        db_path: Optional custom database path. Defaults to ~/.household-ledger/data.db
    """
    engine = get_engine(db_path)

    # Import all models to ensure they're registered with Base
    from household_ledger.models import (  # noqa: F401
        Account,
        AutoTransfer,
        Budget,
        Card,
        Category,
        Currency,
        ExchangeRate,
        PostpayPayment,
        ScheduledTransaction,
        Transaction,
        User,
    )

    Base.metadata.create_all(bind=engine)


def reset_db(db_path: Optional[Path] = None) -> None:
    """
    Drop all tables and recreate them. **WARNING: This deletes all data!**

    Args:
        db_path: Optional custom database path
    """
    engine = get_engine(db_path)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def db_exists(db_path: Optional[Path] = None) -> bool:
    """
    Check if the database file exists.

    Args:
        db_path: Optional custom database path

    Returns:
        True if database file exists
    """
    if db_path is None:
        env_db_path = os.environ.get(DB_PATH_ENV_VAR)
        db_path = Path(env_db_path) if env_db_path else DEFAULT_DB_PATH
    return db_path.exists()
