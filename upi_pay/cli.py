"""CLI for the ``upi_pay`` package.

A Typer-based console interface over the payment core. Environment variables
are loaded from a local ``.env`` using ``python-dotenv`` before any command
runs; business logic lives in :mod:`upi_pay.api`, :mod:`upi_pay.store` and
:mod:`upi_pay.retention`.

Every command opens the store through :func:`upi_pay.api.open_store`, which
runs the startup retention sweep. Destructive commands (``delete``,
``clear``) ask for confirmation unless ``--yes`` is given; the store itself
never asks.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
from collections.abc import Awaitable, Callable
from enum import StrEnum
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from dotenv import load_dotenv

from .api import initiate_payment, open_store, prefill_from_text, transaction_uri
from .config import Settings, load_settings
from .errors import UpiPayError
from .export import filter_transactions, to_csv, to_json
from .logging_setup import configure_logging
from .models import PaymentFields, PaymentIntent, Transaction, TransactionStatus, TransitionTarget
from .retention import sweep
from .store import TransactionStore
from .term_ui import confirm, prompt_payment_fields

T = TypeVar("T")


class ExportFormat(StrEnum):
    CSV = "csv"
    JSON = "json"


# ---- Small module-level helpers used by CLI commands -------------------------


def _settings(ctx: typer.Context) -> Settings:
    obj = ctx.obj
    return obj if isinstance(obj, Settings) else load_settings()


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _with_store(settings: Settings, action: Callable[[TransactionStore], Awaitable[T]]) -> T:
    """Open the store, run ``action`` on the event loop and map core errors to exit 1."""

    async def _run() -> T:
        store = await open_store(settings)
        return await action(store)

    try:
        return asyncio.run(_run())
    except (UpiPayError, ValueError) as e:
        raise _fail(str(e)) from e


def _format_line(record: Transaction) -> str:
    return "\t".join(
        (
            record.id,
            f"{record.display_date()} {record.display_time()}",
            record.payee_address,
            record.payee_name or "",
            record.amount,
            record.currency,
            record.status.value,
        )
    )


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Record UPI payment attempts and build upi://pay deep links. "
        "Loads settings from a local .env before running."
    ),
)


@app.command("parse")
def parse_cmd(
    text: Annotated[str, typer.Argument(help="Scanned QR payload or pasted text.")],
) -> None:
    """Print the payment intent recovered from TEXT as JSON."""

    intent = prefill_from_text(text)
    if intent.is_empty:
        typer.echo("Warning: could not interpret input", err=True)
    typer.echo(json.dumps(dataclasses.asdict(intent), ensure_ascii=False))


@app.command("pay")
def pay_cmd(
    ctx: typer.Context,
    *,
    scan: str | None = typer.Option(None, help="QR payload / deep link used to prefill fields."),
    upi_id: str | None = typer.Option(None, "--upi-id", help="Payee UPI ID (overrides --scan)."),
    name: str | None = typer.Option(None, help="Payee display name."),
    amount: str | None = typer.Option(None, help="Amount as entered, e.g. 250.00."),
    note: str | None = typer.Option(None, help="Payment description."),
    currency: str | None = typer.Option(None, help="Currency code (default INR)."),
    interactive: bool = typer.Option(
        False, "--interactive", "-i", help="Confirm and edit every field in a prompt."
    ),
) -> None:
    """Record a new pending payment and print its upi://pay link."""

    intent = prefill_from_text(scan) if scan else PaymentIntent()
    overrides = {
        "payee_address": upi_id,
        "payee_name": name,
        "amount": amount,
        "note": note,
        "currency": currency,
    }

    if interactive:
        intent = dataclasses.replace(
            intent, **{k: v for k, v in overrides.items() if v is not None}
        )
        fields = prompt_payment_fields(intent)
        if fields is None:
            typer.echo("Cancelled.", err=True)
            raise typer.Exit(1)
    else:
        try:
            fields = PaymentFields.from_intent(intent, **overrides)
        except ValueError as e:
            raise _fail(f"{e} (pass --upi-id/--amount or a --scan payload)") from e

    request = _with_store(_settings(ctx), lambda store: initiate_payment(store, fields))
    typer.echo(request.transaction.id)
    typer.echo(request.uri)


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    *,
    status: TransactionStatus | None = typer.Option(None, help="Only show this status."),
    links: bool = typer.Option(False, "--links", help="Append each record's upi://pay link."),
) -> None:
    """List recorded payments, most recent first."""

    records = _with_store(_settings(ctx), lambda store: store.list_transactions())
    for record in filter_transactions(records, status=status):
        line = _format_line(record)
        typer.echo(f"{line}\t{transaction_uri(record)}" if links else line)


def _transition(ctx: typer.Context, transaction_id: str, target: TransitionTarget) -> None:
    record = _with_store(_settings(ctx), lambda store: store.transition(transaction_id, target))
    typer.echo(_format_line(record))


@app.command("complete")
def complete_cmd(ctx: typer.Context, transaction_id: str) -> None:
    """Mark a pending payment as completed."""

    _transition(ctx, transaction_id, TransitionTarget.COMPLETED)


@app.command("fail")
def fail_cmd(ctx: typer.Context, transaction_id: str) -> None:
    """Mark a pending payment as failed (moves it to the deleted list)."""

    _transition(ctx, transaction_id, TransitionTarget.FAILED)


@app.command("restore")
def restore_cmd(ctx: typer.Context, transaction_id: str) -> None:
    """Restore a deleted payment to pending."""

    record = _with_store(_settings(ctx), lambda store: store.restore(transaction_id))
    typer.echo(_format_line(record))


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    transaction_id: str,
    *,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Permanently delete one payment record."""

    if not yes and not confirm(f"Permanently delete {transaction_id}?"):
        typer.echo("Aborted.", err=True)
        raise typer.Exit(1)
    _with_store(_settings(ctx), lambda store: store.delete(transaction_id))
    typer.echo(f"Deleted {transaction_id}")


@app.command("clear")
def clear_cmd(
    ctx: typer.Context,
    *,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Permanently delete every payment record."""

    if not yes and not confirm("Permanently delete ALL payment records?"):
        typer.echo("Aborted.", err=True)
        raise typer.Exit(1)
    removed = _with_store(_settings(ctx), lambda store: store.clear_all())
    typer.echo(f"Removed {removed} records")


@app.command("sweep")
def sweep_cmd(
    ctx: typer.Context,
    *,
    days: int | None = typer.Option(
        None, min=0, help="Retention horizon in days (defaults to UPI_PAY_RETENTION_DAYS)."
    ),
) -> None:
    """Purge deleted payments older than the retention horizon."""

    settings = _settings(ctx)
    horizon = settings.retention_days if days is None else days
    purged = _with_store(settings, lambda store: sweep(store, horizon_days=horizon))
    typer.echo(f"Purged {purged} records")


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    *,
    fmt: ExportFormat = typer.Option(ExportFormat.CSV, "--format", help="Output format."),
    status: TransactionStatus | None = typer.Option(None, help="Only export this status."),
    search: str | None = typer.Option(None, help="Substring match on UPI ID, name or note."),
    output: Path | None = typer.Option(
        None, "--output", "-o", dir_okay=False, help="Write here instead of stdout."
    ),
) -> None:
    """Export payment records as CSV or JSON."""

    records = _with_store(_settings(ctx), lambda store: store.list_transactions())
    selected = filter_transactions(records, status=status, search=search)
    text = to_csv(selected) if fmt is ExportFormat.CSV else to_json(selected)

    if output is None:
        typer.echo(text, nl=False)
        return
    try:
        output.write_text(text, encoding="utf-8")
    except OSError as e:
        raise _fail(f"failed to write {output}: {e}") from e
    typer.echo(f"Wrote {len(selected)} records to {output}")


@app.callback()
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), configures logging and resolves
    settings for the subcommand.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    settings = load_settings()
    configure_logging(settings.log_level)
    ctx.obj = settings


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
