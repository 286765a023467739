from __future__ import annotations

from datetime import timedelta

import pytest

from tests.helpers.backends import FlakyBackend
from upi_pay.errors import StorageUnavailable
from upi_pay.models import PaymentFields, TransactionStatus, TransitionTarget
from upi_pay.retention import sweep
from upi_pay.store import TransactionStore


async def _soft_deleted(store: TransactionStore, clock, *, days_ago: float, n: int = 0):
    """Create a record and fail it so that ``deletedAt`` is ``days_ago`` before ``clock.now``."""

    real_now = clock.now
    clock.now = real_now - timedelta(days=days_ago)
    record = await store.create(PaymentFields(payee_address=f"p{n}@bank", amount="1"))
    record = await store.transition(record.id, TransitionTarget.FAILED)
    clock.now = real_now
    return record


@pytest.mark.asyncio
async def test_sweep_purges_past_horizon_and_keeps_recent(store, clock):
    old = await _soft_deleted(store, clock, days_ago=31, n=1)
    recent = await _soft_deleted(store, clock, days_ago=29, n=2)

    purged = await sweep(store, now=clock.now)

    assert purged == 1
    ids = {r.id for r in await store.list_transactions()}
    assert old.id not in ids
    assert recent.id in ids


@pytest.mark.asyncio
async def test_sweep_is_idempotent_for_same_now(store, clock):
    await _soft_deleted(store, clock, days_ago=40, n=1)
    await _soft_deleted(store, clock, days_ago=35, n=2)

    assert await sweep(store, now=clock.now) == 2
    assert await sweep(store, now=clock.now) == 0


@pytest.mark.asyncio
async def test_sweep_never_touches_pending_or_completed(store, clock):
    clock.now = clock.now - timedelta(days=90)
    pending = await store.create(PaymentFields(payee_address="a@bank", amount="1"))
    completed = await store.create(PaymentFields(payee_address="b@bank", amount="2"))
    await store.transition(completed.id, TransitionTarget.COMPLETED)
    clock.now = clock.now + timedelta(days=90)

    assert await sweep(store, now=clock.now) == 0
    statuses = {r.id: r.status for r in await store.list_transactions()}
    assert statuses == {
        pending.id: TransactionStatus.PENDING,
        completed.id: TransactionStatus.COMPLETED,
    }


@pytest.mark.asyncio
async def test_record_exactly_at_horizon_is_kept(store, clock):
    await _soft_deleted(store, clock, days_ago=30)
    assert await sweep(store, now=clock.now) == 0


@pytest.mark.asyncio
async def test_sweep_defaults_now_to_store_clock(store, clock):
    await _soft_deleted(store, clock, days_ago=1)
    assert await sweep(store) == 0
    clock.tick(days=31)
    assert await sweep(store) == 1


@pytest.mark.asyncio
async def test_custom_horizon(store, clock):
    await _soft_deleted(store, clock, days_ago=8)
    assert await sweep(store, now=clock.now, horizon_days=7) == 1


@pytest.mark.asyncio
async def test_naive_now_is_treated_as_utc(store, clock):
    await _soft_deleted(store, clock, days_ago=31)
    assert await sweep(store, now=clock.now.replace(tzinfo=None)) == 1


@pytest.mark.asyncio
async def test_negative_horizon_is_rejected(store):
    with pytest.raises(ValueError):
        await sweep(store, horizon_days=-1)


@pytest.mark.asyncio
async def test_restored_record_is_not_purged(store, clock):
    record = await _soft_deleted(store, clock, days_ago=45)
    await store.restore(record.id)
    assert await sweep(store, now=clock.now) == 0


@pytest.mark.asyncio
async def test_sweep_surfaces_read_failure(clock):
    backend = FlakyBackend()
    backend.fail_reads = True
    with pytest.raises(StorageUnavailable):
        await sweep(TransactionStore(backend, clock=clock))


@pytest.mark.asyncio
async def test_sweep_surfaces_write_failure_and_keeps_records(clock):
    backend = FlakyBackend()
    store = TransactionStore(backend, clock=clock)
    record = await _soft_deleted(store, clock, days_ago=45)

    backend.fail_writes = True
    with pytest.raises(StorageUnavailable):
        await sweep(store, now=clock.now)
    assert [r.id for r in await store.list_transactions()] == [record.id]
