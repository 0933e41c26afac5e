"""Pytest configuration and fixtures for all tests."""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from household_ledger.lib.config import DB_PATH_ENV_VAR
from household_ledger.lib.context import AuthenticatedUser
from household_ledger.lib.db import get_session, init_db, reset_db, reset_engine
from household_ledger.models import AccountType, CategoryType
from household_ledger.services.ledger_service import (
    create_account,
    create_category,
    create_user,
    ensure_default_currencies,
)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Initialize test database before any tests run.

    Creates a temporary database for testing that is automatically cleaned up.
    Uses session scope so database is created once per test session.
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        test_db_path = Path(tmp.name)

    # Set environment variables BEFORE initializing
    os.environ[DB_PATH_ENV_VAR] = str(test_db_path)
    os.environ["LOG_FILE"] = ""

    init_db(test_db_path)

    yield test_db_path

    reset_engine()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture(autouse=True)
def reset_database_between_tests(setup_test_database):
    """Reset database state between each test.

    This ensures test isolation by clearing all data between tests
    while keeping the schema intact.
    """
    reset_engine()
    reset_db(setup_test_database)

    yield


@pytest.fixture
def session():
    """Database session; services flush, the test decides whether to commit."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def currencies(session):
    """Register the default currency set."""
    return ensure_default_currencies(session)


@pytest.fixture
def user(session, currencies):
    """Authenticated JPY-based user."""
    created = create_user(session, "alice@example.com", "Alice", "JPY")
    return AuthenticatedUser.from_user(created)


@pytest.fixture
def other_user(session, currencies):
    """Second user for ownership checks."""
    created = create_user(session, "bob@example.com", "Bob", "USD")
    return AuthenticatedUser.from_user(created)


@pytest.fixture
def checking(session, user):
    """JPY checking account with 100,000 opening balance."""
    return create_account(
        session,
        user,
        {"name": "Main Bank", "type": AccountType.CHECKING, "currency": "JPY", "balance": 100000},
    )


@pytest.fixture
def savings(session, user):
    """JPY savings account with 50,000 opening balance."""
    return create_account(
        session,
        user,
        {"name": "Savings", "type": AccountType.SAVINGS, "currency": "JPY", "balance": 50000},
    )


@pytest.fixture
def usd_account(session, user):
    """USD cash account with 1,000.00 opening balance."""
    return create_account(
        session,
        user,
        {
            "name": "Dollar Wallet",
            "type": AccountType.CASH,
            "currency": "USD",
            "balance": Decimal("1000.00"),
        },
    )


@pytest.fixture
def groceries(session, user):
    """Expense category."""
    return create_category(session, user, "Groceries", CategoryType.EXPENSE)
