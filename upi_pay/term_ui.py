"""Tiny terminal UI helpers (prompt_toolkit-based).

This module holds the interactive pieces of the CLI, kept apart from the core
store/parser logic so they are easy to test in isolation:

- ``prompt_payment_fields``: the payment form, each field pre-filled from a
  parsed :class:`~upi_pay.models.PaymentIntent`.
- ``confirm``: the yes/no gate in front of destructive operations.
"""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

from .models import DEFAULT_CURRENCY, PaymentFields, PaymentIntent

_YES = {"y", "yes"}
_NO = {"n", "no"}


class _Required(Validator):
    def __init__(self, label: str) -> None:
        self._label = label

    def validate(self, document) -> None:
        if not document.text.strip():
            raise ValidationError(message=f"{self._label} is required")


class _YesNo(Validator):
    def validate(self, document) -> None:
        v = document.text.strip().lower()
        if v and v not in _YES | _NO:
            raise ValidationError(message="Answer y or n")


def _session(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def _cancel_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    return kb


def prompt_payment_fields(
    intent: PaymentIntent | None = None,
    *,
    session: PromptSession | None = None,
) -> PaymentFields | None:
    """Collect payment details, one prompt per field, pre-filled from ``intent``.

    Enter accepts the pre-filled value. UPI ID and amount must be non-blank.
    Esc or Ctrl+C on any field cancels the whole form and returns ``None``.
    """

    intent = intent or PaymentIntent()
    kb = _cancel_bindings()
    sess = _session(session, kb)

    currency = intent.currency or DEFAULT_CURRENCY
    # (attribute, label, default, required)
    steps: list[tuple[str, str, str, bool]] = [
        ("payee_address", "To UPI ID", intent.payee_address, True),
        ("payee_name", "Payee name", intent.payee_name, False),
        ("note", "Description", intent.note, False),
        ("amount", f"Amount ({currency})", intent.amount, True),
    ]

    values: dict[str, str | None] = {}
    for attr, label, default, required in steps:
        message = f"{label}: " if required else f"{label} (optional): "
        answer = sess.prompt(
            message,
            default=default,
            validator=_Required(label) if required else None,
            validate_while_typing=False,
        )
        if answer is None:
            return None
        values[attr] = answer.strip() or None

    return PaymentFields(
        payee_address=values["payee_address"] or "",
        amount=values["amount"] or "",
        payee_name=values["payee_name"],
        note=values["note"],
        currency=currency,
    )


def confirm(
    message: str,
    *,
    default: bool = False,
    session: PromptSession | None = None,
) -> bool:
    """Ask a yes/no question; Enter on an empty answer returns ``default``.

    Esc or Ctrl+C answers "no".
    """

    kb = _cancel_bindings()
    sess = _session(session, kb)
    suffix = " [Y/n]: " if default else " [y/N]: "
    answer = sess.prompt(message + suffix, validator=_YesNo(), validate_while_typing=False)
    if answer is None:
        return False
    v = answer.strip().lower()
    if not v:
        return default
    return v in _YES


__all__ = ["confirm", "prompt_payment_fields"]
