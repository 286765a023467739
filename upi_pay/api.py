"""Public orchestration for the payment flow.

The UI collaborator drives the flow in this order:

1. :func:`prefill_from_text` turns scanned/typed text into form defaults.
2. The user edits and confirms; :func:`initiate_payment` persists a
   ``Pending`` record and returns the deep link the platform should open.
3. Later status changes go straight to the :class:`TransactionStore`.

:func:`open_store` builds the one store handle for the process and runs the
retention sweep that must happen at startup.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import Settings
from .intent import build_payment_uri, parse_intent
from .logging_setup import get_logger
from .models import PaymentFields, PaymentIntent, Transaction
from .retention import sweep
from .storage import KeyValueBackend, backend_from_settings
from .store import TransactionStore

_logger = get_logger("upi_pay.api")


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    """A freshly persisted attempt and the deep link that launches it."""

    transaction: Transaction
    uri: str


async def open_store(
    settings: Settings,
    *,
    backend: KeyValueBackend | None = None,
) -> TransactionStore:
    """Create the process-wide store handle and purge expired soft-deletes."""

    store = TransactionStore(
        backend if backend is not None else backend_from_settings(settings),
        key=settings.storage_key,
    )
    purged = await sweep(store, horizon_days=settings.retention_days)
    _logger.debug("api:open_store key=%s startup_purged=%d", settings.storage_key, purged)
    return store


def prefill_from_text(text: str) -> PaymentIntent:
    """Parse scanned or typed text into prefilled payment fields."""

    intent = parse_intent(text)
    if intent.is_empty:
        _logger.info("api:prefill could not interpret input (%d chars)", len(text or ""))
    return intent


def transaction_uri(record: Transaction) -> str:
    """Rebuild the deep link for a stored record."""

    return build_payment_uri(
        record.payee_address,
        record.amount,
        payee_name=record.payee_name,
        note=record.note,
        currency=record.currency,
    )


async def initiate_payment(store: TransactionStore, fields: PaymentFields) -> PaymentRequest:
    """Persist a new ``Pending`` attempt and return it with its deep link.

    The URI is built before persisting so an unbuildable request never leaves
    a record behind.
    """

    uri = build_payment_uri(
        fields.payee_address,
        fields.amount,
        payee_name=fields.payee_name,
        note=fields.note,
        currency=fields.currency,
    )
    record = await store.create(fields)
    _logger.info("api:initiate_payment id=%s", record.id)
    return PaymentRequest(transaction=record, uri=uri)


__all__ = [
    "PaymentRequest",
    "initiate_payment",
    "open_store",
    "prefill_from_text",
    "transaction_uri",
]
