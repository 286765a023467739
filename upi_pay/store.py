"""Transaction store: persisted payment attempts and their lifecycle.

The whole collection lives in one JSON blob (most-recent-first) behind a
:class:`~upi_pay.storage.KeyValueBackend`. Every mutation is a full
read-modify-write of that blob, so mutations on one store instance are
serialized with an ``asyncio.Lock`` held for the duration of the cycle. Reads
are served from the last committed snapshot, which is materialized from the
backend on first use.

Lifecycle
---------
- ``create``: new records start ``Pending`` and are prepended.
- ``transition(id, Completed)``: ``Pending`` -> ``Completed``.
- ``transition(id, Failed)``: ``Pending`` -> ``Deleted`` with ``deletedAt``
  set in the same write; ``Failed`` is never stored.
- ``restore``: ``Deleted`` -> ``Pending``, clearing ``deletedAt``.
- ``delete``/``purge``/``clear_all``: physical removal.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .config import DEFAULT_STORAGE_KEY
from .errors import InvalidTransition, NotFound, StorageUnavailable
from .logging_setup import get_logger
from .models import (
    PaymentFields,
    Transaction,
    TransactionStatus,
    TransitionTarget,
)
from .storage import KeyValueBackend

_logger = get_logger("upi_pay.store")

_RECORDS = TypeAdapter(list[Transaction])


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_transaction_id() -> str:
    return uuid.uuid4().hex


def _decode(blob: str | None) -> list[Transaction]:
    if blob is None:
        return []
    try:
        return _RECORDS.validate_json(blob)
    except ValidationError as exc:
        raise StorageUnavailable(f"stored transactions are unreadable: {exc}") from exc


def _encode(records: Sequence[Transaction]) -> str:
    return json.dumps([r.to_record() for r in records], ensure_ascii=False, separators=(",", ":"))


def _with_changes(record: Transaction, **changes: Any) -> Transaction:
    # Re-validate so the status/deletedAt invariant is checked on every change.
    return Transaction.model_validate(record.model_dump() | changes)


class TransactionStore:
    """Async, single-writer store of :class:`~upi_pay.models.Transaction` records.

    Create one instance per backend/key and pass it to every component that
    needs it. Two instances over the same blob do not coordinate.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_transaction_id,
    ) -> None:
        self._backend = backend
        self._key = key
        self._clock = clock
        self._id_factory = id_factory
        self._write_lock = asyncio.Lock()
        self._snapshot: tuple[Transaction, ...] | None = None
        # Bumped by every successful commit.
        self._commits = 0

    @property
    def key(self) -> str:
        return self._key

    def now(self) -> datetime:
        """Current time according to the store's clock (always timezone-aware)."""

        now = self._clock()
        return now if now.tzinfo is not None else now.replace(tzinfo=UTC)

    # ------------------------------------------------------------------
    # Backend I/O
    # ------------------------------------------------------------------

    async def _read(self) -> list[Transaction]:
        try:
            blob = await self._backend.get(self._key)
        except StorageUnavailable:
            _logger.warning("store:read_failed key=%s", self._key, exc_info=True)
            raise
        except OSError as exc:
            _logger.warning("store:read_failed key=%s", self._key, exc_info=True)
            raise StorageUnavailable(f"failed to read transactions: {exc}") from exc
        return _decode(blob)

    async def _commit(self, records: list[Transaction]) -> None:
        try:
            if records:
                await self._backend.set(self._key, _encode(records))
            else:
                await self._backend.remove(self._key)
        except StorageUnavailable:
            _logger.warning("store:write_failed key=%s", self._key, exc_info=True)
            raise
        except OSError as exc:
            _logger.warning("store:write_failed key=%s", self._key, exc_info=True)
            raise StorageUnavailable(f"failed to write transactions: {exc}") from exc
        self._snapshot = tuple(records)
        self._commits += 1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh(self) -> list[Transaction]:
        """Re-read the backend and replace the committed snapshot.

        A commit that lands while the read is in flight wins: the older blob is
        discarded and the newer snapshot is returned instead.
        """

        seen = self._commits
        records = await self._read()
        if self._commits != seen and self._snapshot is not None:
            return list(self._snapshot)
        self._snapshot = tuple(records)
        return records

    async def list_transactions(self) -> list[Transaction]:
        """Return every record, most recent first.

        Raises ``StorageUnavailable`` when the blob cannot be read; an empty
        list always means "no records".
        """

        if self._snapshot is None:
            return await self.refresh()
        return list(self._snapshot)

    async def get(self, transaction_id: str) -> Transaction:
        for record in await self.list_transactions():
            if record.id == transaction_id:
                return record
        raise NotFound(transaction_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _unique_id(self, records: Sequence[Transaction]) -> str:
        taken = {r.id for r in records}
        new_id = self._id_factory()
        while new_id in taken:
            new_id = self._id_factory()
        return new_id

    async def create(self, fields: PaymentFields) -> Transaction:
        """Persist a new ``Pending`` record and return it."""

        async with self._write_lock:
            records = await self._read()
            record = Transaction(
                id=self._unique_id(records),
                created_at=self.now(),
                payee_address=fields.payee_address,
                payee_name=fields.payee_name,
                amount=fields.amount,
                currency=fields.currency,
                note=fields.note,
                status=TransactionStatus.PENDING,
            )
            records.insert(0, record)
            await self._commit(records)
        _logger.debug("store:create id=%s", record.id)
        return record

    async def _replace(
        self,
        transaction_id: str,
        update: Callable[[Transaction], Transaction],
    ) -> Transaction:
        async with self._write_lock:
            records = await self._read()
            for i, record in enumerate(records):
                if record.id == transaction_id:
                    break
            else:
                raise NotFound(transaction_id)
            updated = update(record)
            records[i] = updated
            await self._commit(records)
        return updated

    async def transition(
        self, transaction_id: str, target: TransitionTarget | str
    ) -> Transaction:
        """Move a ``Pending`` record to ``Completed``, or collapse ``Failed`` to ``Deleted``."""

        try:
            target = TransitionTarget(target)
        except ValueError as exc:
            raise InvalidTransition(f"unsupported transition target: {target!r}") from exc

        def _apply(record: Transaction) -> Transaction:
            if record.status is not TransactionStatus.PENDING:
                raise InvalidTransition(
                    f"cannot mark {record.id} {target.value}: status is {record.status.value}"
                )
            if target is TransitionTarget.COMPLETED:
                return _with_changes(record, status=TransactionStatus.COMPLETED)
            return _with_changes(record, status=TransactionStatus.DELETED, deleted_at=self.now())

        updated = await self._replace(transaction_id, _apply)
        _logger.debug(
            "store:transition id=%s target=%s status=%s",
            transaction_id,
            target.value,
            updated.status.value,
        )
        return updated

    async def restore(self, transaction_id: str) -> Transaction:
        """Return a soft-deleted record to ``Pending``."""

        def _apply(record: Transaction) -> Transaction:
            if record.status is not TransactionStatus.DELETED:
                raise InvalidTransition(
                    f"cannot restore {record.id}: status is {record.status.value}"
                )
            return _with_changes(record, status=TransactionStatus.PENDING, deleted_at=None)

        updated = await self._replace(transaction_id, _apply)
        _logger.debug("store:restore id=%s", transaction_id)
        return updated

    async def delete(self, transaction_id: str) -> Transaction:
        """Physically remove a record regardless of its status; return it."""

        async with self._write_lock:
            records = await self._read()
            for i, record in enumerate(records):
                if record.id == transaction_id:
                    break
            else:
                raise NotFound(transaction_id)
            del records[i]
            await self._commit(records)
        _logger.debug("store:delete id=%s status=%s", transaction_id, record.status.value)
        return record

    async def purge(self, predicate: Callable[[Transaction], bool]) -> list[Transaction]:
        """Remove every record matching ``predicate`` in one write; return them.

        Nothing is written when no record matches.
        """

        async with self._write_lock:
            records = await self._read()
            kept: list[Transaction] = []
            removed: list[Transaction] = []
            for record in records:
                (removed if predicate(record) else kept).append(record)
            if removed:
                await self._commit(kept)
            else:
                self._snapshot = tuple(records)
        if removed:
            _logger.debug("store:purge removed=%d", len(removed))
        return removed

    async def clear_all(self) -> int:
        """Wipe the whole collection. Returns how many records were removed."""

        async with self._write_lock:
            records = await self._read()
            await self._commit([])
        _logger.info("store:clear_all removed=%d", len(records))
        return len(records)


__all__ = ["TransactionStore", "new_transaction_id", "utc_now"]
