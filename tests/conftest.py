"""
Shared pytest fixtures for device-spine tests.

This module provides:
- In-memory fakes of the psycopg pool and connection that record SQL
- A fake clock for bootstrap backoff
- Settings isolation

Unit tests never need a database; integration tests live under
``tests/integration`` and skip unless DEVICE_SPINE_TEST_DATABASE_URL is set.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import psycopg
import pytest

from device_spine.settings import DeviceSpineSettings, reset_settings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fakes
# =============================================================================


class FakeCursor:
    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows

    def fetchone(self) -> dict[str, Any] | None:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> list[dict[str, Any]]:
        return list(self._rows)


class FakeConnection:
    def __init__(self, pool: FakePool):
        self.pool = pool

    def execute(self, stmt: str, params: Any = None) -> FakeCursor:
        self.pool.executed.append((stmt, params))
        if self.pool.fail_on is not None and self.pool.fail_on in stmt:
            raise self.pool.error
        return FakeCursor(self.pool.rows)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield


class FakePool:
    """Stands in for ``psycopg_pool.ConnectionPool``.

    ``unreachable_for`` makes that many ``connection()`` calls fail before
    the pool starts handing out connections.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        *,
        unreachable_for: int = 0,
        fail_on: str | None = None,
        error: Exception | None = None,
    ):
        self.rows = rows or []
        self.unreachable_for = unreachable_for
        self.fail_on = fail_on
        self.error = error or psycopg.OperationalError("server closed the connection")
        self.executed: list[tuple[str, Any]] = []
        self.connection_attempts = 0
        self.closed = False

    @contextmanager
    def connection(self, timeout: float | None = None) -> Iterator[FakeConnection]:
        self.connection_attempts += 1
        if self.connection_attempts <= self.unreachable_for:
            raise psycopg.OperationalError("connection refused")
        yield FakeConnection(self)

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> list[str]:
        return [stmt for stmt, _ in self.executed]


class FakeClock:
    """Records sleeps instead of sleeping."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.sleeps.append(seconds)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep DEVICE_SPINE_* variables from the host out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("DEVICE_SPINE_") and key != "DEVICE_SPINE_TEST_DATABASE_URL":
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> DeviceSpineSettings:
    return DeviceSpineSettings(_env_file=None, connect_max_attempts=20, connect_backoff_unit=1.0)


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def make_pool() -> type[FakePool]:
    """The FakePool class, for tests that need custom rows or failures."""
    return FakePool


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
