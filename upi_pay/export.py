"""Export helpers: stable field-ordered rows plus CSV/JSON rendering.

Column order (exact):
    Date, Time, UPI ID, Payee Name, Amount, Description, Status

``Date``/``Time`` are projections of ``createdAt``. Absent optional text
(payee name, note) is rendered as ``N/A``. JSON export is the raw persisted
record array, in the order given.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo

from .models import Transaction, TransactionStatus

EXPORT_COLUMNS: tuple[str, ...] = (
    "Date",
    "Time",
    "UPI ID",
    "Payee Name",
    "Amount",
    "Description",
    "Status",
)

NOT_AVAILABLE = "N/A"


def export_row(record: Transaction, *, tz: tzinfo | None = None) -> tuple[str, ...]:
    return (
        record.display_date(tz),
        record.display_time(tz),
        record.payee_address,
        record.payee_name or NOT_AVAILABLE,
        record.amount,
        record.note or NOT_AVAILABLE,
        record.status.value,
    )


def export_rows(
    records: Iterable[Transaction], *, tz: tzinfo | None = None
) -> list[tuple[str, ...]]:
    """Return one tuple per record in :data:`EXPORT_COLUMNS` order."""

    return [export_row(r, tz=tz) for r in records]


def filter_transactions(
    records: Iterable[Transaction],
    *,
    status: TransactionStatus | str | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    search: str | None = None,
) -> list[Transaction]:
    """Select records for export, preserving input order.

    ``since``/``until`` bound ``createdAt`` inclusively. ``search`` is a
    case-insensitive substring match over address, payee name and note.
    """

    wanted = TransactionStatus(status) if status is not None else None
    if since is not None and since.tzinfo is None:
        since = since.replace(tzinfo=UTC)
    if until is not None and until.tzinfo is None:
        until = until.replace(tzinfo=UTC)
    needle = (search or "").strip().casefold()

    out: list[Transaction] = []
    for r in records:
        if wanted is not None and r.status is not wanted:
            continue
        if since is not None and r.created_at < since:
            continue
        if until is not None and r.created_at > until:
            continue
        if needle:
            haystack = " ".join(
                v for v in (r.payee_address, r.payee_name, r.note) if v
            ).casefold()
            if needle not in haystack:
                continue
        out.append(r)
    return out


def to_csv(records: Iterable[Transaction], *, tz: tzinfo | None = None) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    writer.writerows(export_rows(records, tz=tz))
    return buf.getvalue()


def to_json(records: Iterable[Transaction], *, indent: int | None = 2) -> str:
    return json.dumps([r.to_record() for r in records], ensure_ascii=False, indent=indent)


__all__ = [
    "EXPORT_COLUMNS",
    "NOT_AVAILABLE",
    "export_row",
    "export_rows",
    "filter_transactions",
    "to_csv",
    "to_json",
]
