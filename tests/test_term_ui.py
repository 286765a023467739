import contextlib

import pytest

from upi_pay.models import PaymentFields, PaymentIntent
from upi_pay.term_ui import confirm, prompt_payment_fields

# Compatibility import across prompt_toolkit versions
try:  # pragma: no cover - fallback path depends on library version
    from prompt_toolkit.input import create_pipe_input
except Exception:  # pragma: no cover - defensive
    from prompt_toolkit.input.defaults import create_pipe_input

from prompt_toolkit import PromptSession
from prompt_toolkit.output import DummyOutput


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def test_payment_form_accepts_prefilled_values_with_enter():
    intent = PaymentIntent(payee_address="foo@bank", payee_name="Foo", amount="100", note="lunch")
    with pipe_session() as (pipe, sess):
        pipe.send_text("\r\r\r\r")
        fields = prompt_payment_fields(intent, session=sess)
    assert fields == PaymentFields(
        payee_address="foo@bank", amount="100", payee_name="Foo", note="lunch"
    )


def test_payment_form_collects_typed_values_for_empty_intent():
    with pipe_session() as (pipe, sess):
        pipe.send_text("shop@ybl\r\rsnacks\r45\r")
        fields = prompt_payment_fields(None, session=sess)
    assert fields == PaymentFields(payee_address="shop@ybl", amount="45", payee_name=None, note="snacks")


def test_payment_form_allows_editing_a_prefilled_amount():
    intent = PaymentIntent(payee_address="foo@bank", amount="100")
    with pipe_session() as (pipe, sess):
        # Ctrl-A (home), Ctrl-K (kill to end) clears the amount before typing.
        pipe.send_text("\r\r\r\x01\x0b250\r")
        fields = prompt_payment_fields(intent, session=sess)
    assert fields is not None
    assert fields.amount == "250"


@pytest.mark.parametrize(
    ("keys", "default", "expected"),
    [
        ("y\r", False, True),
        ("yes\r", False, True),
        ("n\r", True, False),
        ("\r", False, False),
        ("\r", True, True),
    ],
)
def test_confirm(keys, default, expected):
    with pipe_session() as (pipe, sess):
        pipe.send_text(keys)
        assert confirm("Delete?", default=default, session=sess) is expected
