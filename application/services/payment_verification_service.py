"""
Payment verification pipeline.

Checkout orders, custom orders and experience bookings share one sequence of
terminal gates; a ``VerificationFlow`` supplies the per-kind differences
(record repository, whether the caller must own the record, which
notification to send). The signature check runs only after the record has
been loaded and its ownership/state checked, and the paid transition is a
conditional update so two concurrent callers cannot both succeed.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from application.dtos.auth import Principal
from application.dtos.payments import VerifyPaymentBase
from application.ports.attempt_limiter import AttemptLimiter
from application.ports.notifier import Notifier
from application.ports.payment_gateway import PaymentGateway
from application.utils.validators import is_provider_id, is_signature, is_uuid
from core.exceptions import UnauthorizedException
from core.logging_config import get_logger
from core.settings import payment_settings
from domain.common.exceptions import (
    InvalidPaymentInputException,
    InvalidPaymentSignatureException,
    PayableRecordNotFoundException,
    PaymentAlreadyCompletedException,
    VerificationRateLimitedException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import PayableKind, PayableRecord, RECORD_LABELS
from domain.payment.events import NotificationKind, PaymentVerified


logger = get_logger(__name__)


@dataclass(frozen=True)
class VerificationFlow:
    kind: PayableKind
    # user-scoped flows require a principal that owns the record
    user_scoped: bool
    notification: str
    # request field carrying the local record id (used in error messages)
    record_field: str

    @property
    def label(self) -> str:
        return RECORD_LABELS[self.kind]


CHECKOUT = VerificationFlow(
    kind=PayableKind.ORDER,
    user_scoped=True,
    notification=NotificationKind.ORDER_CONFIRMED,
    record_field="order_id",
)
CUSTOM_ORDER = VerificationFlow(
    kind=PayableKind.CUSTOM_ORDER,
    user_scoped=False,
    notification=NotificationKind.CUSTOM_PAYMENT_CONFIRMED,
    record_field="customOrderId",
)
EXPERIENCE = VerificationFlow(
    kind=PayableKind.EXPERIENCE_BOOKING,
    user_scoped=True,
    notification=NotificationKind.EXPERIENCE_CONFIRMED,
    record_field="booking_id",
)


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def serialize_booking(record: PayableRecord) -> dict[str, Any]:
    """Booking as returned to the experience confirmation page."""
    details = record.details
    return {
        "id": record.id,
        "user_id": record.user_id,
        "experience_type": details.get("experience_type"),
        "booking_date": _json_value(details.get("booking_date")),
        "time_slot": details.get("time_slot"),
        "guests": details.get("guests"),
        "notes": details.get("notes"),
        "total_amount": _json_value(record.amount),
        "payment_status": record.payment_status.value,
        "booking_status": record.lifecycle_status,
        "razorpay_order_id": record.provider_order_id,
        "razorpay_payment_id": record.provider_payment_id,
        "created_at": _json_value(record.created_at),
        "updated_at": _json_value(record.updated_at),
    }


class PaymentVerificationService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        gateway: PaymentGateway,
        limiter: AttemptLimiter,
        notifier: Notifier,
        *,
        scope_by_caller: Optional[bool] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway
        self._limiter = limiter
        self._notifier = notifier
        self._scope_by_caller = (
            payment_settings.verification.scope_by_caller if scope_by_caller is None else scope_by_caller
        )

    def attempt_key(
        self,
        flow: VerificationFlow,
        record_id: str,
        principal: Optional[Principal] = None,
    ) -> str:
        key = f"{flow.kind.value}:{record_id}"
        # anonymous flows share the per-record budget
        if not self._scope_by_caller or principal is None:
            return key
        return f"{key}:{principal.id}"

    @staticmethod
    def _validate_record_id(flow: VerificationFlow, payload: VerifyPaymentBase) -> None:
        if not is_uuid(payload.record_id):
            raise InvalidPaymentInputException(flow.record_field)

    @staticmethod
    def _validate_provider_fields(payload: VerifyPaymentBase) -> None:
        if not is_provider_id(payload.razorpay_order_id):
            raise InvalidPaymentInputException("razorpay_order_id")
        if not is_provider_id(payload.razorpay_payment_id):
            raise InvalidPaymentInputException("razorpay_payment_id")
        if not is_signature(payload.razorpay_signature):
            raise InvalidPaymentInputException("razorpay_signature", "Invalid razorpay_signature")

    async def verify(
        self,
        flow: VerificationFlow,
        payload: VerifyPaymentBase,
        *,
        principal: Optional[Principal] = None,
    ) -> PayableRecord:
        if flow.user_scoped and principal is None:
            raise UnauthorizedException()

        self._validate_record_id(flow, payload)
        record_id = payload.record_id

        key = self.attempt_key(flow, record_id, principal)
        decision = await self._limiter.check(key)
        if not decision.allowed:
            logger.warning(
                "payment_verify_rate_limited",
                kind=flow.kind.value,
                record_id=record_id,
                attempts=decision.attempts,
            )
            raise VerificationRateLimitedException(decision.attempts)

        self._validate_provider_fields(payload)

        logger.info(
            "payment_verify_request",
            kind=flow.kind.value,
            record_id=record_id,
            provider_order_id=payload.razorpay_order_id,
            attempt=decision.attempts,
        )

        async with self._uow_factory() as uow:
            repo = uow.payables(flow.kind)
            record = await repo.get(record_id)
            if record is None:
                raise PayableRecordNotFoundException(flow.label, record_id)
            if flow.user_scoped:
                record.ensure_owned_by(principal.id)
            record.ensure_unpaid()
            record.ensure_provider_order(payload.razorpay_order_id)

            if not self._gateway.verify_payment_signature(
                payload.razorpay_order_id,
                payload.razorpay_payment_id,
                payload.razorpay_signature,
            ):
                logger.warning("payment_signature_invalid", kind=flow.kind.value, record_id=record_id)
                raise InvalidPaymentSignatureException()

            transitioned = await repo.mark_paid(
                record_id,
                provider_order_id=payload.razorpay_order_id,
                provider_payment_id=payload.razorpay_payment_id,
                lifecycle_status=record.paid_lifecycle_status,
            )
            if not transitioned:
                # another request completed the payment between our read and update
                raise PaymentAlreadyCompletedException(flow.label)
            record.mark_paid(payload.razorpay_order_id, payload.razorpay_payment_id)
            await uow.commit()

        await self._limiter.reset(key)

        event = PaymentVerified(
            record_id=record.id,
            kind=record.kind,
            provider_order_id=payload.razorpay_order_id,
            provider_payment_id=payload.razorpay_payment_id,
            lifecycle_status=record.lifecycle_status,
        )
        logger.info(
            "payment_verified",
            kind=event.kind.value,
            record_id=event.record_id,
            provider_order_id=event.provider_order_id,
            provider_payment_id=event.provider_payment_id,
            lifecycle_status=event.lifecycle_status,
            event_id=event.event_id,
        )

        await self._dispatch_notification(flow, record, principal)
        return record

    async def _dispatch_notification(
        self,
        flow: VerificationFlow,
        record: PayableRecord,
        principal: Optional[Principal],
    ) -> None:
        # bookings store no email; fall back to the authenticated caller's address
        recipient = record.customer_email or (principal.email if principal else None)
        try:
            await self._notifier.notify(record.id, flow.notification, recipient=recipient)
        except Exception as exc:
            logger.error(
                "payment_notification_dispatch_failed",
                kind=flow.kind.value,
                record_id=record.id,
                notification=flow.notification,
                error=str(exc),
            )
