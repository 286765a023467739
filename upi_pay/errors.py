"""Typed errors raised by the transaction store and retention sweeper.

The intent parser never raises; an all-empty :class:`~upi_pay.models.PaymentIntent`
is its degraded result (see ``PaymentIntent.is_empty``).
"""

from __future__ import annotations


class UpiPayError(Exception):
    """Base class for errors surfaced to callers of the store and sweeper."""


class StorageUnavailable(UpiPayError):
    """Reading or writing the persisted transaction blob failed.

    Also raised when the stored blob cannot be decoded or validated, so that
    corrupt data is never mistaken for an empty history.
    """


class NotFound(UpiPayError):
    """An operation referenced a transaction id that is not stored."""

    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class InvalidTransition(UpiPayError):
    """The requested status change is not permitted from the current state."""


__all__ = ["UpiPayError", "StorageUnavailable", "NotFound", "InvalidTransition"]
