"""
Admin-side custom order emails.

Sending a status email also advances the custom order lifecycle, so the
admin dashboard only needs one action per step.
"""
from __future__ import annotations

from typing import Callable

from application.dtos.auth import Principal
from application.dtos.payments import CustomOrderEmailSent, EmailMessage, SendCustomOrderEmail
from application.ports.notifier import EmailSender
from application.services.email_templates import EmailTemplates
from application.utils.validators import is_uuid
from core.config import settings
from core.exceptions import ForbiddenException
from core.logging_config import get_logger
from domain.common.exceptions import (
    InvalidPaymentInputException,
    PayableRecordNotFoundException,
    PaymentAlreadyCompletedException,
)
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)

# email type -> status the custom order moves to after the email is sent
STATUS_AFTER_EMAIL: dict[str, str] = {
    "payment_request": "payment_pending",
    "payment_confirmed": "in_progress",
    "in_delivery": "in_delivery",
    "delivered": "delivered",
}


def payment_link(custom_order_id: str) -> str:
    return f"{settings.email.site_url.rstrip('/')}/custom-order-payment/{custom_order_id}"


class CustomOrderAdminService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], email_sender: EmailSender) -> None:
        self._uow_factory = uow_factory
        self._email_sender = email_sender

    async def send_status_email(
        self,
        principal: Principal,
        custom_order_id: str,
        req: SendCustomOrderEmail,
    ) -> CustomOrderEmailSent:
        if not is_uuid(custom_order_id):
            raise InvalidPaymentInputException("customOrderId")

        async with self._uow_factory() as uow:
            if not await uow.user_roles.has_role(principal.id, settings.ADMIN_ROLE):
                logger.warning("admin_access_denied", user_id=principal.id)
                raise ForbiddenException("Admin access required")

            record = await uow.custom_orders.get(custom_order_id)
            if record is None:
                raise PayableRecordNotFoundException("Order", custom_order_id)
            if req.email_type == "payment_request" and record.is_paid():
                raise PaymentAlreadyCompletedException(message="Payment already completed for this order")
            if not record.customer_email:
                raise InvalidPaymentInputException("email", "Custom order has no customer email")

            price = req.payment_amount or record.amount
            link = payment_link(record.id) if req.email_type == "payment_request" and price else None
            subject, html = EmailTemplates.custom_order_status(
                req.email_type,
                record.customer_name or "",
                estimated_price=price,
                custom_message=req.custom_message,
                payment_link=link,
            )
            email_id = await self._email_sender.send(
                EmailMessage(to=[record.customer_email], subject=subject, html=html)
            )

            new_status = STATUS_AFTER_EMAIL.get(req.email_type, record.lifecycle_status)
            await uow.custom_orders.update_status(
                record.id,
                new_status,
                estimated_price=req.payment_amount,
                email_type=req.email_type,
            )

        logger.info(
            "custom_order_email_sent",
            custom_order_id=custom_order_id,
            email_type=req.email_type,
            status=new_status,
            email_id=email_id,
        )
        return CustomOrderEmailSent(email_id=email_id, status=new_status)
