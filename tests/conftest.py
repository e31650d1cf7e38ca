"""Shared pytest fixtures for all tests."""

import sqlite3
import threading
from contextlib import contextmanager

import pytest

from config import Config, get_migrations_dir
from services.base import Services
from tests.helpers import run_migrations


class SharedConnectionManager:
    """DatabaseManager stand-in serving one in-memory connection.

    The controller runs store calls through asyncio.to_thread, so the
    connection is handed out to one thread at a time.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.RLock()

    @contextmanager
    def connect(self):
        with self._lock:
            yield self.conn


@pytest.fixture
def test_db():
    """In-memory SQLite database usable from worker threads."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Configuration pointing at a temporary directory, with the LLM off."""
    base_dir = tmp_path / "hornerito"
    return Config(
        base_dir=base_dir,
        db_data_dir=base_dir / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=base_dir / "logs",
        llm_enabled=False,
        llm_openai_model="gpt-4o-mini",
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Database manager over the in-memory database with all migrations applied."""
    run_migrations(test_db, get_migrations_dir())
    return SharedConnectionManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Services container backed by the in-memory database."""
    return Services(test_config, db_manager=db_manager_with_schema)
