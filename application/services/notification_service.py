"""
Transactional email delivery for verified payments.

Runs inside the background worker: loads the record, renders the matching
template, sends it, and for shop orders leaves a notification for the
studio admin dashboard.
"""
from __future__ import annotations

from typing import Callable, Optional

from application.dtos.payments import EmailMessage
from application.ports.notifier import EmailSender
from application.services.email_templates import EmailTemplates, format_inr
from core.logging_config import get_logger
from domain.common.exceptions import PayableRecordNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import PayableKind, PayableRecord, RECORD_LABELS
from domain.payment.events import NotificationKind


logger = get_logger(__name__)

RECORD_KIND_BY_NOTIFICATION: dict[str, PayableKind] = {
    NotificationKind.ORDER_CONFIRMED: PayableKind.ORDER,
    NotificationKind.CUSTOM_PAYMENT_CONFIRMED: PayableKind.CUSTOM_ORDER,
    NotificationKind.EXPERIENCE_CONFIRMED: PayableKind.EXPERIENCE_BOOKING,
}


class NotificationService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], email_sender: EmailSender) -> None:
        self._uow_factory = uow_factory
        self._email_sender = email_sender

    async def deliver(self, record_id: str, event_kind: str, recipient: Optional[str] = None) -> Optional[str]:
        """
        Send the email for ``event_kind`` and return the provider message id.

        Returns None when neither the record nor the caller supplied an address.
        """
        kind = RECORD_KIND_BY_NOTIFICATION.get(event_kind)
        if kind is None:
            raise ValueError(f"Unknown notification kind: {event_kind}")

        async with self._uow_factory(readonly=True) as uow:
            record = await uow.payables(kind).get(record_id)
            if record is None:
                raise PayableRecordNotFoundException(RECORD_LABELS[kind], record_id)

            to = recipient or record.customer_email
            if not to:
                logger.warning("notification_recipient_missing", record_id=record_id, event_kind=event_kind)
                return None

            if event_kind == NotificationKind.ORDER_CONFIRMED:
                items = await uow.orders.list_items(record_id)
                subject, html = EmailTemplates.order_confirmation(record, items)
            elif event_kind == NotificationKind.CUSTOM_PAYMENT_CONFIRMED:
                subject, html = EmailTemplates.custom_order_status(
                    "payment_confirmed",
                    record.customer_name or "",
                    estimated_price=record.amount,
                )
            else:
                subject, html = EmailTemplates.experience_confirmation(record)

        email_id = await self._email_sender.send(EmailMessage(to=[to], subject=subject, html=html))
        logger.info("payment_notification_sent", record_id=record_id, event_kind=event_kind, email_id=email_id)

        # the email is out; a failed bookkeeping write must not trigger a task retry that resends it
        try:
            await self._record_delivery(record, event_kind)
        except Exception:
            logger.exception("payment_notification_record_failed", record_id=record_id, event_kind=event_kind)
        return email_id

    async def _record_delivery(self, record: PayableRecord, event_kind: str) -> None:
        if event_kind not in (NotificationKind.ORDER_CONFIRMED, NotificationKind.CUSTOM_PAYMENT_CONFIRMED):
            return
        async with self._uow_factory() as uow:
            if event_kind == NotificationKind.ORDER_CONFIRMED:
                order_number = record.details.get("order_number") or record.id
                await uow.admin_notifications.add(
                    type="order",
                    title="New Order Received",
                    message=f"Order #{order_number} from {record.customer_name or 'customer'} for {format_inr(record.amount)}",
                    order_id=record.id,
                )
            else:
                await uow.custom_orders.update_status(
                    record.id, record.lifecycle_status, email_type="payment_confirmed"
                )
