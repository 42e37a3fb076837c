"""
Shared pytest fixtures for the ledger test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary SQLite databases wired through the config system
- Ledger backends (in-memory and SQLite) and stores built on them
- A deterministic clock so timestamps can be asserted exactly
- FastAPI TestClient instances

Fixtures that take ``backend_name`` run once per backend so every ledger
property is checked against both persistence implementations.
"""

import shutil
import tempfile
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hiring_ledger.api.server import create_app
from hiring_ledger.config import use_test_database
from hiring_ledger.db.memory_backend import MemoryBackend
from hiring_ledger.db.sqlite_backend import SqliteBackend
from hiring_ledger.ledger import LedgerStore
from tests.constants import OWNER

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """
    Create a temporary database path for testing.

    Uses the config system's use_test_database context manager so code that
    reads ``config.database`` also lands in the temporary file.

    Yields:
        Path to a not-yet-created SQLite database file
    """
    temp_dir = tempfile.mkdtemp()
    temp_db = Path(temp_dir) / "test_ledger.db"

    with use_test_database(temp_db):
        yield temp_db

    shutil.rmtree(temp_dir, ignore_errors=True)


# ============================================================================
# CLOCK FIXTURE
# ============================================================================


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """
    Deterministic clock advancing one second per call.

    The first reading is 2026-01-01T00:00:01+00:00.
    """
    state = {"now": datetime(2026, 1, 1, tzinfo=UTC)}

    def tick() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return tick


# ============================================================================
# LEDGER FIXTURES
# ============================================================================


@pytest.fixture(params=["memory", "sqlite"])
def backend_name(request) -> str:
    """Name of the backend under test; parametrizes dependent fixtures."""
    return request.param


@pytest.fixture
def backend(backend_name: str, temp_db_path: Path):
    """Fresh backend owned by ``OWNER``."""
    if backend_name == "memory":
        return MemoryBackend(owner=OWNER)
    return SqliteBackend(temp_db_path, owner=OWNER)


@pytest.fixture
def store(backend, clock) -> LedgerStore:
    """Ledger store over a fresh backend with a deterministic clock."""
    return LedgerStore(backend, clock=clock)


@pytest.fixture
def sqlite_store(temp_db_path: Path, clock) -> LedgerStore:
    """Ledger store over a fresh SQLite backend only."""
    return LedgerStore(SqliteBackend(temp_db_path, owner=OWNER), clock=clock)


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def api_store(backend, clock) -> LedgerStore:
    """Store served by ``test_client``; runs once per backend."""
    return LedgerStore(backend, clock=clock)


@pytest.fixture
def test_client(api_store: LedgerStore) -> Generator[TestClient, None, None]:
    """FastAPI TestClient around ``api_store``."""
    with TestClient(create_app(store=api_store)) as client:
        yield client
