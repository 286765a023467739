"""Retention sweeper for soft-deleted transactions.

Records in ``Deleted`` status stay restorable until they are older than the
retention horizon (30 days by default), measured from ``deletedAt``. The
sweeper hard-deletes everything past the horizon in a single serialized store
mutation. Run it once at process start (see :func:`upi_pay.api.open_store`)
and whenever an operator asks for it.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from .config import DEFAULT_RETENTION_DAYS
from .logging_setup import get_logger
from .models import Transaction, TransactionStatus
from .store import TransactionStore

_logger = get_logger("upi_pay.retention")


def is_expired(record: Transaction, *, now: datetime, horizon: timedelta) -> bool:
    """True when ``record`` is soft-deleted and strictly older than ``horizon``."""

    if record.status is not TransactionStatus.DELETED or record.deleted_at is None:
        return False
    return now - record.deleted_at > horizon


async def sweep(
    store: TransactionStore,
    *,
    now: datetime | None = None,
    horizon_days: int = DEFAULT_RETENTION_DAYS,
) -> int:
    """Purge soft-deleted records past the horizon; return how many were removed.

    Idempotent for a fixed ``now``: a second call removes nothing.
    """

    if horizon_days < 0:
        raise ValueError("horizon_days must be non-negative")
    if now is None:
        now = store.now()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    horizon = timedelta(days=horizon_days)
    removed = await store.purge(lambda r: is_expired(r, now=now, horizon=horizon))
    if removed:
        _logger.info(
            "retention:swept purged=%d horizon_days=%d ids=%s",
            len(removed),
            horizon_days,
            ",".join(r.id for r in removed),
        )
    else:
        _logger.debug("retention:swept purged=0 horizon_days=%d", horizon_days)
    return len(removed)


__all__ = ["is_expired", "sweep"]
