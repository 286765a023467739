"""Data models for ``upi_pay``.

Three shapes live here:

- ``PaymentIntent``: the best-effort result of parsing scanned or typed text.
- ``PaymentFields``: the confirmed form values handed to the store on create.
- ``Transaction``: the only persisted entity. It is a pydantic model so the
  stored JSON blob is validated on every read; attribute names are snake_case
  while persisted keys are camelCase (``payeeAddress``, ``createdAt``...).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_CURRENCY = "INR"

# ---------------------------------------------------------------------------
# Status taxonomy
# ---------------------------------------------------------------------------


class TransactionStatus(StrEnum):
    """Persisted lifecycle states. ``Failed`` is deliberately absent."""

    PENDING = "Pending"
    COMPLETED = "Completed"
    DELETED = "Deleted"


class TransitionTarget(StrEnum):
    """Targets accepted by ``TransactionStore.transition``.

    ``FAILED`` never reaches storage: it collapses to ``Deleted`` with
    ``deletedAt`` set in the same write.
    """

    COMPLETED = "Completed"
    FAILED = "Failed"


# ---------------------------------------------------------------------------
# Parser output and create input
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    """Structured payment request recovered from a deep link or QR payload.

    All fields default to the empty string except ``currency``.
    """

    payee_address: str = ""
    payee_name: str = ""
    amount: str = ""
    currency: str = DEFAULT_CURRENCY
    note: str = ""

    @property
    def is_empty(self) -> bool:
        """True when nothing usable was recovered (the degraded parse)."""

        return not (self.payee_address or self.payee_name or self.amount or self.note)


@dataclass(frozen=True, slots=True)
class PaymentFields:
    """Confirmed values for a new payment attempt.

    ``payee_address`` and ``amount`` must be non-blank. Format validation
    beyond that belongs to whatever form collected the values.
    """

    payee_address: str
    amount: str
    payee_name: str | None = None
    note: str | None = None
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        for name in ("payee_address", "amount"):
            val = getattr(self, name)
            if not isinstance(val, str) or not val.strip():
                raise ValueError(f"PaymentFields.{name} is required")

    @classmethod
    def from_intent(cls, intent: PaymentIntent, **overrides: Any) -> PaymentFields:
        """Build fields from a parsed intent, letting non-``None`` overrides win."""

        values: dict[str, Any] = {
            "payee_address": intent.payee_address,
            "amount": intent.amount,
            "payee_name": intent.payee_name or None,
            "note": intent.note or None,
            "currency": intent.currency or DEFAULT_CURRENCY,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# ---------------------------------------------------------------------------
# Persisted entity
# ---------------------------------------------------------------------------


def _as_aware(value: datetime) -> datetime:
    # Stored values written by older builds may lack an offset; treat as UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class Transaction(BaseModel):
    """A single payment attempt and its lifecycle state.

    Invariants
    ----------
    - ``deleted_at`` is set if and only if ``status`` is ``Deleted``.
    - ``display_date``/``display_time`` are projections of ``created_at``;
      they are never stored independently.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str
    created_at: datetime
    payee_address: str
    payee_name: str | None = None
    amount: str
    currency: str = DEFAULT_CURRENCY
    note: str | None = None
    status: TransactionStatus = TransactionStatus.PENDING
    deleted_at: datetime | None = None

    @field_validator("id", "payee_address", "amount")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @field_validator("payee_name", "note")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("created_at", "deleted_at")
    @classmethod
    def _aware(cls, v: datetime | None) -> datetime | None:
        return None if v is None else _as_aware(v)

    @model_validator(mode="after")
    def _deleted_at_matches_status(self) -> Transaction:
        is_deleted = self.status is TransactionStatus.DELETED
        if is_deleted and self.deleted_at is None:
            raise ValueError("deletedAt is required when status is Deleted")
        if not is_deleted and self.deleted_at is not None:
            raise ValueError("deletedAt must be absent unless status is Deleted")
        return self

    # -- projections -------------------------------------------------------

    def _local_created(self, tz: tzinfo | None) -> datetime:
        return self.created_at.astimezone(tz) if tz is not None else self.created_at

    def display_date(self, tz: tzinfo | None = None) -> str:
        return self._local_created(tz).strftime("%Y-%m-%d")

    def display_time(self, tz: tzinfo | None = None) -> str:
        return self._local_created(tz).strftime("%H:%M:%S")

    # -- serialization -----------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        """Return the persisted JSON shape (camelCase; ``deletedAt`` omitted when unset)."""

        exclude = {"deleted_at"} if self.deleted_at is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


__all__ = [
    "DEFAULT_CURRENCY",
    "PaymentFields",
    "PaymentIntent",
    "Transaction",
    "TransactionStatus",
    "TransitionTarget",
]
