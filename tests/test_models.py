from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from upi_pay.models import (
    PaymentFields,
    PaymentIntent,
    Transaction,
    TransactionStatus,
)

_NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)


def test_payment_intent_defaults():
    intent = PaymentIntent()
    assert intent.currency == "INR"
    assert intent.is_empty
    assert not PaymentIntent(amount="5").is_empty


@pytest.mark.parametrize(
    "kwargs",
    [
        {"payee_address": "", "amount": "1"},
        {"payee_address": "a@b", "amount": "   "},
    ],
)
def test_payment_fields_require_address_and_amount(kwargs):
    with pytest.raises(ValueError):
        PaymentFields(**kwargs)


def test_payment_fields_from_intent_with_overrides():
    intent = PaymentIntent(payee_address="a@b", payee_name="A", amount="10", note="")
    fields = PaymentFields.from_intent(intent, amount="12", note=None)
    assert fields == PaymentFields(payee_address="a@b", amount="12", payee_name="A", note=None)


def test_deleted_requires_deleted_at():
    with pytest.raises(ValidationError):
        Transaction(
            id="x",
            created_at=_NOW,
            payee_address="a@b",
            amount="1",
            status=TransactionStatus.DELETED,
        )


def test_deleted_at_forbidden_unless_deleted():
    with pytest.raises(ValidationError):
        Transaction(
            id="x",
            created_at=_NOW,
            payee_address="a@b",
            amount="1",
            status=TransactionStatus.COMPLETED,
            deleted_at=_NOW,
        )


def test_record_round_trips_through_camel_case_json():
    tx = Transaction(
        id="x",
        created_at=_NOW,
        payee_address="a@b",
        amount="1",
        status=TransactionStatus.DELETED,
        deleted_at=_NOW,
    )
    record = tx.to_record()
    assert record["payeeAddress"] == "a@b"
    assert record["deletedAt"] == "2025-01-02T03:04:05Z"
    assert Transaction.model_validate(record) == tx


def test_display_projections_come_from_created_at():
    tx = Transaction(id="x", created_at=_NOW, payee_address="a@b", amount="1")
    assert tx.display_date() == "2025-01-02"
    assert tx.display_time() == "03:04:05"
