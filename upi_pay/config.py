"""Runtime settings resolved from environment variables.

Entrypoints load a local ``.env`` (python-dotenv, ``override=False``) before
calling :func:`load_settings`, so values can come from either place.

Variables
---------
- ``UPI_PAY_DATABASE_URL``: SQLAlchemy URL; when set, records persist in SQL.
- ``UPI_PAY_DATA_DIR``: directory for file-backed storage (default ``./.upi_pay``).
- ``UPI_PAY_STORAGE_KEY``: key of the transaction blob.
- ``UPI_PAY_RETENTION_DAYS``: retention horizon for soft-deleted records.
- ``UPI_PAY_LOG_LEVEL``: level name handed to :func:`upi_pay.logging_setup.configure_logging`
  (default ``INFO``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_STORAGE_KEY = "upi_pay.transactions"
DEFAULT_RETENTION_DAYS = 30
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True, slots=True)
class Settings:
    data_dir: Path
    database_url: str | None = None
    storage_key: str = DEFAULT_STORAGE_KEY
    retention_days: int = DEFAULT_RETENTION_DAYS
    log_level: str = DEFAULT_LOG_LEVEL


def _resolve_retention_days(raw: str | None) -> int:
    """Parse the retention override; invalid or negative values use the default."""

    try:
        days = int(raw) if raw else None
    except ValueError:
        days = None
    if days is None or days < 0:
        return DEFAULT_RETENTION_DAYS
    return days


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``)."""

    env = os.environ if env is None else env

    data_dir_raw = (env.get("UPI_PAY_DATA_DIR") or "").strip()
    if data_dir_raw:
        data_dir = Path(data_dir_raw).expanduser().resolve()
    else:
        data_dir = (Path.cwd() / ".upi_pay").resolve()

    return Settings(
        data_dir=data_dir,
        database_url=(env.get("UPI_PAY_DATABASE_URL") or "").strip() or None,
        storage_key=(env.get("UPI_PAY_STORAGE_KEY") or "").strip() or DEFAULT_STORAGE_KEY,
        retention_days=_resolve_retention_days(env.get("UPI_PAY_RETENTION_DAYS")),
        log_level=(env.get("UPI_PAY_LOG_LEVEL") or "").strip().upper() or DEFAULT_LOG_LEVEL,
    )


__all__ = [
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_RETENTION_DAYS",
    "DEFAULT_STORAGE_KEY",
    "Settings",
    "load_settings",
]
