"""db: SQLAlchemy persistence for the key-value blob backend.

Public exports
--------------
- ``Base`` and ``metadata``
- ORM model ``KvBlob`` from ``upi_pay.db.models``
- Engine/session helpers in ``upi_pay.db.client``
"""

from __future__ import annotations

from .models import Base, KvBlob

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "KvBlob",
]
