"""Deep-link / QR payload parsing into a :class:`~upi_pay.models.PaymentIntent`.

Input comes from third-party QR codes and pasted text, so nothing here may
raise. Parsing proceeds in priority order:

1. Text starting with ``upi://pay``: read ``pa, pn, am, cu, tn`` from the query.
2. ``upi://pay`` embedded in longer text: take the run of non-whitespace
   characters starting at the prefix (the whole query survives) and parse it
   as in step 1.
3. Text containing ``@``: extract the first handle-shaped substring as the
   payee address.
4. Otherwise: an empty intent (``currency`` still defaults to ``INR``).

When the URI in steps 1-2 is malformed, fall back to the handle extraction of
step 3 over the raw text.

``build_payment_uri`` produces the outbound deep link for a confirmed payment.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

from .logging_setup import get_logger
from .models import DEFAULT_CURRENCY, PaymentIntent

PAY_PREFIX = "upi://pay"
DEFAULT_PAYEE_LABEL = "Recipient"

# Query parameter -> PaymentIntent attribute
_PARAM_FIELDS: dict[str, str] = {
    "pa": "payee_address",
    "pn": "payee_name",
    "am": "amount",
    "cu": "currency",
    "tn": "note",
}

_PREFIX_RE = re.compile(re.escape(PAY_PREFIX), re.IGNORECASE)
_EMBEDDED_URI_RE = re.compile(re.escape(PAY_PREFIX) + r"\S*", re.IGNORECASE)
_HANDLE_RE = re.compile(r"[A-Za-z0-9._-]+@[A-Za-z][A-Za-z0-9-]*(?:\.[A-Za-z0-9-]+)*")

_logger = get_logger("upi_pay.intent")


def extract_handle(text: str) -> str | None:
    """Return the first handle-shaped substring of ``text`` (``name@bank``), if any."""

    m = _HANDLE_RE.search(text)
    if m is None:
        return None
    # Sentence punctuation ("pay foo@bank.") is not part of the handle.
    handle = m.group(0).rstrip(".")
    return handle or None


def _intent_from_uri(uri: str) -> PaymentIntent:
    """Parse a ``upi://pay?...`` URI. Raises ``ValueError`` when malformed."""

    parts = urlsplit(uri)
    # errors="strict" turns undecodable percent-escapes into UnicodeDecodeError
    # (a ValueError subclass) so the caller can fall back.
    pairs = parse_qsl(parts.query, keep_blank_values=True, errors="strict")

    values: dict[str, str] = {}
    for key, value in pairs:
        field = _PARAM_FIELDS.get(key.lower())
        if field is None or field in values:
            continue
        values[field] = value.strip()

    if not values.get("currency"):
        values["currency"] = DEFAULT_CURRENCY
    return PaymentIntent(**values)


def _intent_from_handle(text: str) -> PaymentIntent:
    handle = extract_handle(text)
    if handle is None:
        return PaymentIntent()
    return PaymentIntent(payee_address=handle)


def parse_intent(text: str) -> PaymentIntent:
    """Recover a best-effort payment intent from scanned or typed ``text``.

    Never raises. Callers should treat ``result.is_empty`` as "could not
    interpret input".
    """

    if not isinstance(text, str):
        return PaymentIntent()
    raw = text.strip()
    if not raw:
        return PaymentIntent()

    uri: str | None = None
    if _PREFIX_RE.match(raw):
        uri = raw
    else:
        m = _EMBEDDED_URI_RE.search(raw)
        if m is not None:
            uri = m.group(0)

    if uri is not None:
        try:
            return _intent_from_uri(uri)
        except ValueError:
            _logger.debug("intent:malformed_uri; falling back to handle extraction", exc_info=True)
            return _intent_from_handle(raw)

    if "@" in raw:
        return _intent_from_handle(raw)
    return PaymentIntent()


def build_payment_uri(
    payee_address: str,
    amount: str,
    *,
    payee_name: str | None = None,
    note: str | None = None,
    currency: str | None = None,
) -> str:
    """Return the outbound ``upi://pay`` deep link for a payment.

    ``payee_address`` and ``amount`` are required; ``pn`` defaults to a
    generic label and ``cu`` to ``INR``. ``tn`` is omitted when blank.
    """

    pa = (payee_address or "").strip()
    am = (amount or "").strip()
    if not pa:
        raise ValueError("payee_address is required to build a payment URI")
    if not am:
        raise ValueError("amount is required to build a payment URI")

    params: list[tuple[str, str]] = [
        ("pa", pa),
        ("pn", (payee_name or "").strip() or DEFAULT_PAYEE_LABEL),
    ]
    tn = (note or "").strip()
    if tn:
        params.append(("tn", tn))
    params.append(("am", am))
    params.append(("cu", (currency or "").strip() or DEFAULT_CURRENCY))

    return f"{PAY_PREFIX}?{urlencode(params, quote_via=quote, safe='@')}"


__all__ = [
    "DEFAULT_PAYEE_LABEL",
    "PAY_PREFIX",
    "build_payment_uri",
    "extract_handle",
    "parse_intent",
]
