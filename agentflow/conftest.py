"""Pytest configuration and fixtures for agentflow tests.

Environment variables are set before the app is imported so settings are
loaded with the test configuration.
"""

import os
import sys

import pytest

# Ensure the project root is importable without an install
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


def pytest_configure(config):
    """Configure the test environment before any tests run.

    - ENVIRONMENT=test
    - PROVIDER_MODE=mock so agents answer deterministically without network
    - AUTH_DEV_MODE=true so requests authenticate with x-dev-jwt-* headers
    - metrics pushes and Sentry stay disabled
    """
    config.addinivalue_line("markers", "security: Security-related tests")
    config.addinivalue_line("markers", "slow: Slow-running tests (excluded from fast)")
    config.addinivalue_line("markers", "integration: Integration tests requiring external services")

    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("PROVIDER_MODE", "mock")
    os.environ.setdefault("AUTH_DEV_MODE", "true")
    os.environ["PROMETHEUS_PUSHGATEWAY_URL"] = ""
    os.environ["SENTRY_DSN"] = ""


@pytest.fixture
def database(tmp_path, monkeypatch):
    """Fresh SQLite database with all tables, bound to the global engine."""
    from agentflow.config import get_settings
    from agentflow.db import Base, dispose_engine, get_engine

    db_path = tmp_path / "agentflow.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    monkeypatch.setenv("DATABASE_URL_POSTGRES", "")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.create_all(bind=engine)

    yield engine

    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture
def db_session(database):
    from agentflow.db import get_session_local

    session = get_session_local()()
    try:
        yield session
    finally:
        session.close()
