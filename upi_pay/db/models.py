from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Key-value blobs: upi_kv_blobs
# ---------------------------


class KvBlob(Base):
    __tablename__ = "upi_kv_blobs"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    # Opaque payload; the transaction store writes a JSON array here.
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


__all__ = [
    "Base",
    "KvBlob",
]
