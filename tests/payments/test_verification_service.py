import asyncio

import pytest

from application.dtos.auth import Principal
from application.dtos.payments import VerifyCheckoutPayment, VerifyCustomOrderPayment, VerifyExperiencePayment
from application.services.payment_verification_service import (
    CHECKOUT,
    CUSTOM_ORDER,
    EXPERIENCE,
    PaymentVerificationService,
    serialize_booking,
)
from core.exceptions import UnauthorizedException
from domain.common.exceptions import (
    InvalidPaymentInputException,
    InvalidPaymentSignatureException,
    PayableRecordNotFoundException,
    PaymentAlreadyCompletedException,
    ProviderOrderMismatchException,
    RecordAccessDeniedException,
    VerificationRateLimitedException,
)
from domain.payment.entity import PayableKind, PaymentStatus
from infrastructure.rate_limit import InMemoryAttemptLimiter
from tests.fakes import FailingNotifier, make_booking, make_custom_order, make_order, new_id


OWNER = Principal(id="user-1", email="asha@example.com")


def _service(db, gateway, notifier, limiter=None, **kwargs):
    return PaymentVerificationService(
        db.uow_factory,
        gateway,
        limiter or InMemoryAttemptLimiter(max_attempts=5, window_seconds=1800),
        notifier,
        **kwargs,
    )


def _checkout(gateway, record_id, *, order_id="order_abc", payment_id="pay_xyz", signature=None):
    return VerifyCheckoutPayment(
        order_id=record_id,
        razorpay_order_id=order_id,
        razorpay_payment_id=payment_id,
        razorpay_signature=signature if signature is not None else gateway.sign(order_id, payment_id),
    )


@pytest.mark.asyncio
async def test_checkout_verification_marks_order_paid(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, notifier)

    record = await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)

    stored = fake_db.record(PayableKind.ORDER, order.id)
    assert record.is_paid()
    assert stored.payment_status is PaymentStatus.PAID
    assert stored.lifecycle_status == "confirmed"
    assert (stored.provider_order_id, stored.provider_payment_id) == ("order_abc", "pay_xyz")
    assert fake_db.commits == 1
    assert notifier.calls == [(order.id, "order_confirmed", "asha@example.com")]


@pytest.mark.asyncio
async def test_second_verification_is_rejected_without_new_side_effects(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, notifier)
    await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)

    with pytest.raises(PaymentAlreadyCompletedException) as exc:
        await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)

    assert exc.value.message == "Order already paid"
    assert len(notifier.calls) == 1
    assert fake_db.record(PayableKind.ORDER, order.id).provider_payment_id == "pay_xyz"


@pytest.mark.asyncio
async def test_concurrent_verifications_only_one_succeeds(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, notifier)

    results = await asyncio.gather(
        svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER),
        svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], PaymentAlreadyCompletedException)
    assert len(notifier.calls) == 1


@pytest.mark.asyncio
async def test_checkout_requires_principal(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    with pytest.raises(UnauthorizedException):
        await _service(fake_db, gateway, notifier).verify(CHECKOUT, _checkout(gateway, order.id))


@pytest.mark.asyncio
async def test_ownership_checked_before_signature(fake_db, gateway, notifier):
    order = fake_db.add(make_order(user_id="someone-else"))
    svc = _service(fake_db, gateway, notifier)

    with pytest.raises(RecordAccessDeniedException):
        await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)

    assert gateway.signature_checks == []
    assert not fake_db.record(PayableKind.ORDER, order.id).is_paid()


@pytest.mark.asyncio
async def test_provider_order_mismatch_rejected_before_signature(fake_db, gateway, notifier):
    order = fake_db.add(make_order(provider_order_id="order_other"))
    svc = _service(fake_db, gateway, notifier)

    with pytest.raises(ProviderOrderMismatchException):
        await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)
    assert gateway.signature_checks == []


@pytest.mark.asyncio
async def test_invalid_signature_leaves_record_untouched(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, notifier)

    with pytest.raises(InvalidPaymentSignatureException) as exc:
        await svc.verify(CHECKOUT, _checkout(gateway, order.id, signature="0" * 64), principal=OWNER)

    assert exc.value.message == "Invalid payment signature"
    assert not fake_db.record(PayableKind.ORDER, order.id).is_paid()
    assert notifier.calls == []
    assert fake_db.rollbacks == 1


@pytest.mark.asyncio
async def test_sixth_attempt_is_rate_limited(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, notifier)

    for _ in range(5):
        with pytest.raises(InvalidPaymentSignatureException):
            await svc.verify(CHECKOUT, _checkout(gateway, order.id, signature="bad"), principal=OWNER)

    # even a correct signature is refused once the budget is spent
    with pytest.raises(VerificationRateLimitedException) as exc:
        await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)
    assert exc.value.message == "Too many verification attempts for this order. Please contact support."
    assert len(gateway.signature_checks) == 5


@pytest.mark.asyncio
async def test_rate_limit_applies_before_provider_field_checks(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, notifier)

    for _ in range(4):
        with pytest.raises(InvalidPaymentSignatureException):
            await svc.verify(CHECKOUT, _checkout(gateway, order.id, signature="bad"), principal=OWNER)
    # malformed attempts still spend the budget
    with pytest.raises(InvalidPaymentInputException):
        await svc.verify(CHECKOUT, _checkout(gateway, order.id, order_id="order-abc!"), principal=OWNER)

    with pytest.raises(VerificationRateLimitedException):
        await svc.verify(CHECKOUT, _checkout(gateway, order.id, order_id="order-abc!"), principal=OWNER)
    assert len(gateway.signature_checks) == 4


@pytest.mark.asyncio
async def test_successful_verification_resets_attempts(fake_db, gateway, notifier):
    order = fake_db.add(make_order())
    limiter = InMemoryAttemptLimiter(max_attempts=5)
    svc = _service(fake_db, gateway, notifier, limiter=limiter)

    with pytest.raises(InvalidPaymentSignatureException):
        await svc.verify(CHECKOUT, _checkout(gateway, order.id, signature="bad"), principal=OWNER)
    await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)

    key = svc.attempt_key(CHECKOUT, order.id, OWNER)
    assert (await limiter.check(key)).attempts == 1


@pytest.mark.asyncio
async def test_notifier_failure_does_not_fail_verification(fake_db, gateway):
    order = fake_db.add(make_order())
    svc = _service(fake_db, gateway, FailingNotifier())

    record = await svc.verify(CHECKOUT, _checkout(gateway, order.id), principal=OWNER)

    assert record.is_paid()
    assert fake_db.record(PayableKind.ORDER, order.id).is_paid()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"order_id": "not-a-uuid"}, "Invalid order_id format"),
        ({"razorpay_order_id": "order-abc!"}, "Invalid razorpay_order_id format"),
        ({"razorpay_payment_id": ""}, "Invalid razorpay_payment_id format"),
        ({"razorpay_order_id": "o" * 65}, "Invalid razorpay_order_id format"),
        ({"razorpay_signature": ""}, "Invalid razorpay_signature"),
        ({"razorpay_signature": "a" * 257}, "Invalid razorpay_signature"),
    ],
)
async def test_malformed_input_rejected(fake_db, gateway, notifier, overrides, message):
    order = fake_db.add(make_order())
    data = _checkout(gateway, order.id).model_dump()
    data.update(overrides)

    with pytest.raises(InvalidPaymentInputException) as exc:
        await _service(fake_db, gateway, notifier).verify(
            CHECKOUT, VerifyCheckoutPayment(**data), principal=OWNER
        )
    assert exc.value.message == message
    assert gateway.signature_checks == []


@pytest.mark.asyncio
async def test_unknown_record_is_not_found(fake_db, gateway, notifier):
    payload = VerifyExperiencePayment(
        booking_id=new_id(),
        razorpay_order_id="order_abc",
        razorpay_payment_id="pay_xyz",
        razorpay_signature=gateway.sign("order_abc", "pay_xyz"),
    )
    with pytest.raises(PayableRecordNotFoundException) as exc:
        await _service(fake_db, gateway, notifier).verify(EXPERIENCE, payload, principal=OWNER)
    assert exc.value.message == "Booking not found"


@pytest.mark.asyncio
async def test_custom_order_verification_needs_no_principal(fake_db, gateway, notifier):
    custom = fake_db.add(make_custom_order())
    payload = VerifyCustomOrderPayment(
        customOrderId=custom.id,
        razorpay_order_id="order_abc",
        razorpay_payment_id="pay_xyz",
        razorpay_signature=gateway.sign("order_abc", "pay_xyz"),
    )

    await _service(fake_db, gateway, notifier).verify(CUSTOM_ORDER, payload)

    stored = fake_db.record(PayableKind.CUSTOM_ORDER, custom.id)
    assert stored.lifecycle_status == "payment_done"
    assert stored.provider_payment_id == "pay_xyz"
    assert notifier.calls == [(custom.id, "custom_payment_confirmed", "meera@example.com")]


@pytest.mark.asyncio
async def test_custom_order_already_in_progress_is_paid(fake_db, gateway, notifier):
    custom = fake_db.add(make_custom_order(status="in_progress"))
    payload = VerifyCustomOrderPayment(
        customOrderId=custom.id,
        razorpay_order_id="order_abc",
        razorpay_payment_id="pay_xyz",
        razorpay_signature=gateway.sign("order_abc", "pay_xyz"),
    )
    with pytest.raises(PaymentAlreadyCompletedException):
        await _service(fake_db, gateway, notifier).verify(CUSTOM_ORDER, payload)


@pytest.mark.asyncio
async def test_booking_confirmation_falls_back_to_caller_email(fake_db, gateway, notifier):
    booking = fake_db.add(make_booking(customer_email=None))
    payload = VerifyExperiencePayment(
        booking_id=booking.id,
        razorpay_order_id="order_abc",
        razorpay_payment_id="pay_xyz",
        razorpay_signature=gateway.sign("order_abc", "pay_xyz"),
    )

    record = await _service(fake_db, gateway, notifier).verify(EXPERIENCE, payload, principal=OWNER)

    assert notifier.calls == [(booking.id, "experience_confirmed", "asha@example.com")]
    body = serialize_booking(record)
    assert body["payment_status"] == "paid"
    assert body["booking_status"] == "confirmed"
    assert body["total_amount"] == 3000.0
    assert body["booking_date"] == "2025-11-08"
    assert body["razorpay_payment_id"] == "pay_xyz"


def test_attempt_key_scoping(fake_db, gateway, notifier):
    scoped = _service(fake_db, gateway, notifier, scope_by_caller=True)
    assert scoped.attempt_key(CHECKOUT, "r1", OWNER) == "order:r1:user-1"
    assert scoped.attempt_key(CUSTOM_ORDER, "r1") == "custom_order:r1"

    unscoped = _service(fake_db, gateway, notifier, scope_by_caller=False)
    assert unscoped.attempt_key(EXPERIENCE, "r1", OWNER) == "experience_booking:r1"
