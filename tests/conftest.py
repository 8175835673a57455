"""Pytest configuration and shared fixtures for FinImport tests.

Provides an isolated SQLite database per test, a Flask app/test client wired to
it, and a recording fake for the bulk-commit collaborator.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from sqlmodel import create_engine

from finimport import create_app
from finimport.config import BaseConfig
from finimport.infra.database import create_session_factory, init_database
from finimport.infra.repositories.transaction import SQLModelTransactionRepository
from finimport.logging_config import ROOT_LOGGER_NAME, setup_logging

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Configuration & Database Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Restore the package logger after tests that configure logging."""

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = package_logger.level
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(level)


@pytest.fixture()
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> BaseConfig:
    """Configuration pointing at a throwaway data dir and SQLite file."""

    monkeypatch.setenv("FINIMPORT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FINIMPORT_DATABASE_URL", f"sqlite:///{tmp_path / 'finimport.db'}")
    monkeypatch.delenv("FINIMPORT_API_URL", raising=False)
    return BaseConfig()


@pytest.fixture()
def package_logging(config) -> logging.Logger:
    """Console and JSON file logging enabled, as the console script sets it up."""

    return setup_logging(config)


@pytest.fixture()
def db_engine(tmp_path: Path):
    """Create an isolated SQLite database with all tables created."""

    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", echo=False)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    """Factory returning transactional session scopes, as repositories expect."""

    return create_session_factory(db_engine)


@pytest.fixture()
def repository(session_factory) -> SQLModelTransactionRepository:
    return SQLModelTransactionRepository(session_factory)


@pytest.fixture()
def app(config):
    flask_app = create_app(config=config)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


# =============================================================================
# Collaborator fakes
# =============================================================================


class RecordingClient:
    """Bulk-commit fake that records each call and reports a fixed count."""

    def __init__(self, imported: int | None = None, error: Exception | None = None):
        self.imported = imported
        self.error = error
        self.calls: list[list[dict[str, Any]]] = []

    def commit(self, transactions: list[dict[str, Any]]) -> int:
        self.calls.append(transactions)
        if self.error is not None:
            raise self.error
        return len(transactions) if self.imported is None else self.imported


@pytest.fixture()
def recording_client():
    return RecordingClient()


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def make_client():
    """Return the fake class so tests can configure counts or failures."""

    return RecordingClient
