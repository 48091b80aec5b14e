"""Unit test environment helpers."""

import pytest

_COMPILER_ENV_VARS = (
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_USER",
    "DB_PASS",
    "TABLE_PREFIX",
    "INSTALLER_CLASS_NAME",
    "SEED_ROW_LIMIT",
    "INTROSPECTION_QUERY_TIMEOUT_SECONDS",
    "INTROSPECTION_CONNECT_TIMEOUT_SECONDS",
    "INTROSPECTION_MAX_CONCURRENCY",
    "DAL_TRACE_QUERIES",
)


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Clear compiler settings so unit tests never see a developer's environment."""
    for name in _COMPILER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
