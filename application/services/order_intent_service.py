"""
Order-intent creation: asks the payment provider for an order the checkout
widget can pay against. Nothing is persisted locally; the provider order id
is only stored on the local record once a payment for it is verified.
"""
from __future__ import annotations

from typing import Callable, Optional

from application.dtos.auth import Principal
from application.dtos.payments import (
    CreateCustomOrderIntent,
    CreateOrderIntent,
    CustomOrderIntent,
    OrderIntent,
    ProviderOrderRequest,
)
from application.ports.payment_gateway import PaymentGateway
from application.utils.validators import is_uuid
from core.logging_config import get_logger
from core.settings import payment_settings
from domain.common.exceptions import (
    EstimatedPriceMissingException,
    InvalidPaymentInputException,
    PayableRecordNotFoundException,
    PaymentAlreadyCompletedException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import to_minor_units


logger = get_logger(__name__)

CUSTOM_RECEIPT_PREFIX = "custom_"


class OrderIntentService:
    def __init__(self, gateway: PaymentGateway, uow_factory: Optional[Callable[..., AbstractUnitOfWork]] = None) -> None:
        self._gateway = gateway
        self._uow_factory = uow_factory

    async def create_order_intent(self, principal: Optional[Principal], req: CreateOrderIntent) -> OrderIntent:
        notes = dict(req.notes or {})
        if principal is not None:
            notes["user_id"] = principal.id

        provider_req = ProviderOrderRequest(
            amount=to_minor_units(req.amount),
            currency=req.currency,
            receipt=req.receipt,
            notes=notes,
        )
        logger.info(
            "order_intent_create_request",
            user_id=principal.id if principal else None,
            amount=provider_req.amount,
            receipt=provider_req.receipt,
        )
        order = await self._gateway.create_order(provider_req)
        return OrderIntent(
            order_id=order.id,
            amount=order.amount,
            currency=order.currency,
            key_id=self._gateway.key_id,
        )

    async def create_custom_order_intent(self, req: CreateCustomOrderIntent) -> CustomOrderIntent:
        custom_order_id = req.custom_order_id
        if not custom_order_id:
            raise InvalidPaymentInputException("customOrderId", "Custom order ID is required")
        if not is_uuid(custom_order_id):
            raise InvalidPaymentInputException("customOrderId")

        async with self._uow_factory(readonly=True) as uow:
            record = await uow.custom_orders.get(custom_order_id)
        if record is None:
            raise PayableRecordNotFoundException("Order", custom_order_id)
        if not record.amount:
            raise EstimatedPriceMissingException()
        if record.is_paid():
            raise PaymentAlreadyCompletedException(message="Payment already completed for this order")

        provider_req = ProviderOrderRequest(
            amount=to_minor_units(record.amount),
            currency=payment_settings.razorpay.currency,
            receipt=f"{CUSTOM_RECEIPT_PREFIX}{custom_order_id[:20]}",
            notes={
                "custom_order_id": custom_order_id,
                "customer_name": record.customer_name,
                "customer_email": record.customer_email,
            },
        )
        logger.info("custom_order_intent_create_request", custom_order_id=custom_order_id, amount=provider_req.amount)
        order = await self._gateway.create_order(provider_req)
        return CustomOrderIntent(
            order_id=order.id,
            amount=order.amount,
            currency=order.currency,
            key_id=self._gateway.key_id,
            customer_name=record.customer_name,
            customer_email=record.customer_email,
            custom_order_id=record.id,
        )
