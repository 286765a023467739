"""Public interface for the ``upi_pay`` package.

This module re-exports the parser, store, sweeper and models as the stable
import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import PaymentRequest, initiate_payment, open_store, prefill_from_text
from .errors import InvalidTransition, NotFound, StorageUnavailable, UpiPayError
from .intent import build_payment_uri, extract_handle, parse_intent
from .models import (
    PaymentFields,
    PaymentIntent,
    Transaction,
    TransactionStatus,
    TransitionTarget,
)
from .retention import sweep
from .storage import FileBackend, KeyValueBackend, MemoryBackend, SqlBackend
from .store import TransactionStore

__all__ = [
    # API
    "initiate_payment",
    "open_store",
    "prefill_from_text",
    "PaymentRequest",
    # Parser
    "build_payment_uri",
    "extract_handle",
    "parse_intent",
    # Store / retention
    "TransactionStore",
    "sweep",
    # Backends
    "KeyValueBackend",
    "MemoryBackend",
    "FileBackend",
    "SqlBackend",
    # Models / types
    "PaymentFields",
    "PaymentIntent",
    "Transaction",
    "TransactionStatus",
    "TransitionTarget",
    # Errors
    "UpiPayError",
    "StorageUnavailable",
    "NotFound",
    "InvalidTransition",
]
