"""Shared test fixtures for the lead intake test suite."""

import pytest
from pathlib import Path
from unittest.mock import Mock
from uuid import UUID

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

from clients.postgres_client import PostgresClient
from core.history import HistoryLog
from tests.factories import TEST_USER_ID, TEST_USER_B_ID
from utils.user_context import user_context, clear_current_user_id


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user_id()
    yield
    clear_current_user_id()


@pytest.fixture
def test_user_id() -> UUID:
    """The primary test user's ID."""
    return TEST_USER_ID


@pytest.fixture
def test_user_b_id() -> UUID:
    """The secondary test user's ID."""
    return TEST_USER_B_ID


@pytest.fixture
def as_test_user(test_user_id):
    """Run the test as the primary test user."""
    with user_context(test_user_id):
        yield test_user_id


@pytest.fixture
def as_test_user_b(test_user_b_id):
    """Run the test as the secondary test user."""
    with user_context(test_user_b_id):
        yield test_user_b_id


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def db():
    """Stand-in PostgresClient; tests script its return values."""
    return Mock(spec=PostgresClient)


@pytest.fixture
def history(db):
    return HistoryLog(db)
