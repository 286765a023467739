"""Pytest configuration for test isolation.

Settings are read from ``UPI_PAY_*`` environment variables, and the default
file backend writes under ``./.upi_pay``. To keep tests hermetic we clear
those variables and point the data directory at the test's own temporary
directory via an autouse fixture.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tests.helpers.backends import FakeClock
from upi_pay.models import PaymentFields
from upi_pay.storage import MemoryBackend
from upi_pay.store import TransactionStore

_ENV_VARS = (
    "UPI_PAY_DATABASE_URL",
    "UPI_PAY_DATA_DIR",
    "UPI_PAY_STORAGE_KEY",
    "UPI_PAY_RETENTION_DAYS",
    "UPI_PAY_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Force a per-test data directory and drop any ambient configuration."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("UPI_PAY_DATA_DIR", os.fspath(data_dir))
    return data_dir


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend, clock: FakeClock) -> TransactionStore:
    return TransactionStore(backend, clock=clock)


@pytest.fixture
def fields() -> PaymentFields:
    return PaymentFields(
        payee_address="foo@bank",
        amount="100",
        payee_name="Foo",
        note="lunch",
    )
