from datetime import datetime
from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException
from domain.payment.entity import Constraint, Money, TransactionRecord

from wallet_fakes import FakePayment


def test_money_from_cents():
    money = Money.from_cents(1999, "usd")
    assert money.amount == Decimal("19.99")
    assert money.currency == "USD"
    assert money.to_cents() == 1999
    assert money.formatted() == "19.99"


def test_constraint_str():
    assert str(Constraint("ShippingAddressNotSet", "No address")) == "ShippingAddressNotSet: No address"
    assert str(Constraint("PaymentPlanNotSet")) == "PaymentPlanNotSet"


def test_order_reference_is_set_once():
    record = TransactionRecord(id=1, order_id=1)
    record.assign_order_reference("S01-A")
    record.assign_order_reference("S01-A")

    with pytest.raises(DomainValidationException):
        record.assign_order_reference("S01-B")
    with pytest.raises(DomainValidationException):
        TransactionRecord(id=2, order_id=1).assign_order_reference("")
    assert record.order_reference == "S01-A"


def test_record_authorization_keeps_previous_authorization_id():
    record = TransactionRecord(id=1, order_id=1, authorization_id="P01-OLD")
    record.record_authorization(success=False, message="m", reference_id="R-1")
    assert record.authorization_id == "P01-OLD"
    assert record.authorization_reference_id == "R-1"
    assert record.success is False
    assert record.updated_at is not None


def test_capture_and_close_markers():
    record = TransactionRecord(id=1, order_id=1)
    assert record.captured is False
    with pytest.raises(DomainValidationException):
        record.record_capture("")
    record.record_capture("P01-CAP")
    assert record.captured is True

    record.mark_closed(datetime(2026, 10, 19, 12, 0))
    assert record.closed_at.tzinfo is not None


@pytest.mark.parametrize(
    "state, amount, expected",
    [
        ("pending", Decimal("10"), True),
        ("checkout", Decimal("10"), True),
        ("checkout", Decimal("0"), False),
        ("completed", Decimal("10"), False),
    ],
)
def test_can_capture(state, amount, expected):
    record = TransactionRecord(id=1, order_id=1)
    assert record.can_capture(FakePayment(state=state, amount=amount)) is expected


def test_can_credit_void_close():
    record = TransactionRecord(id=1, order_id=1)
    completed = FakePayment(state="completed", amount=Decimal("10"))
    refunded = FakePayment(state="completed", amount=Decimal("10"), refunded=Decimal("10"))
    pending = FakePayment(state="pending", amount=Decimal("10"))

    assert record.can_credit(completed) is True
    assert record.can_credit(refunded) is False
    assert record.can_void(pending) is True
    assert record.can_void(completed) is False
    assert record.can_close(completed) is True
    assert record.can_close(pending) is False

    record.mark_closed()
    assert record.can_close(completed) is False


def test_display_attributes():
    record = TransactionRecord(id=1, order_id=1)
    assert record.name == "Pay with Amazon"
    assert record.display_number == "n/a"
    assert record.actions == ("capture", "credit", "void", "close")
