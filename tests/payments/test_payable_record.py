from decimal import Decimal

import pytest

from domain.common.exceptions import (
    DomainValidationException,
    PaymentAlreadyCompletedException,
    ProviderOrderMismatchException,
    RecordAccessDeniedException,
)
from domain.payment.entity import PayableKind, PaymentStatus, to_minor_units
from tests.fakes import make_booking, make_custom_order, make_order


@pytest.mark.parametrize(
    "amount, expected",
    [
        (1999.5, 199950),
        (500, 50000),
        (Decimal("500.00"), 50000),
        (10.005, 1001),
        (0.1, 10),
        ("249.99", 24999),
    ],
)
def test_to_minor_units_rounds_half_up(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.parametrize("amount", [True, "abc", float("inf"), float("nan")])
def test_to_minor_units_rejects_non_numbers(amount):
    with pytest.raises(DomainValidationException):
        to_minor_units(amount)


def test_record_normalizes_amount_and_timestamps():
    record = make_order(amount=1999.5)
    assert record.amount == Decimal("1999.5")
    assert record.created_at.tzinfo is not None
    assert record.kind is PayableKind.ORDER
    assert record.payment_status is PaymentStatus.PENDING


@pytest.mark.parametrize(
    "status, paid",
    [
        ("requested", False),
        ("payment_pending", False),
        ("payment_done", True),
        ("in_progress", True),
        ("in_delivery", True),
        ("delivered", True),
    ],
)
def test_custom_order_paid_state_follows_status(status, paid):
    assert make_custom_order(status=status).is_paid() is paid


def test_ownership_check():
    record = make_order(user_id="user-1")
    record.ensure_owned_by("user-1")
    with pytest.raises(RecordAccessDeniedException) as exc:
        record.ensure_owned_by("user-2")
    assert exc.value.message == "Unauthorized"

    orphan = make_order(user_id=None)
    with pytest.raises(RecordAccessDeniedException):
        orphan.ensure_owned_by("user-1")


def test_provider_order_must_match_when_recorded():
    make_order(provider_order_id=None).ensure_provider_order("order_abc")
    make_order(provider_order_id="order_abc").ensure_provider_order("order_abc")
    with pytest.raises(ProviderOrderMismatchException):
        make_order(provider_order_id="order_abc").ensure_provider_order("order_other")


def test_mark_paid_is_one_way():
    record = make_booking()
    record.mark_paid("order_abc", "pay_xyz")
    assert record.is_paid()
    assert record.lifecycle_status == "confirmed"
    assert record.provider_payment_id == "pay_xyz"
    assert record.updated_at is not None

    with pytest.raises(PaymentAlreadyCompletedException) as exc:
        record.mark_paid("order_abc", "pay_again")
    assert exc.value.message == "Booking already paid"


def test_custom_order_marked_paid_moves_to_payment_done():
    record = make_custom_order()
    record.mark_paid("order_abc", "pay_xyz")
    assert record.lifecycle_status == "payment_done"
    assert record.label == "Order"
