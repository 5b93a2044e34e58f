"""Payment notification Celery tasks"""
from __future__ import annotations

import asyncio
from functools import partial
from typing import Optional

from celery import shared_task

from ..utils.base_task import BaseTask
from application.services.notification_service import NotificationService
from core.logging_config import get_logger
from domain.common.exceptions import ConfigurationException, PayableRecordNotFoundException
from infrastructure.database import task_session_factory
from infrastructure.external.email import ResendEmailSender
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

logger = get_logger(__name__)

DELIVER_PAYMENT_NOTIFICATION = "notifications.deliver_payment_notification"


async def _deliver(record_id: str, event_kind: str, recipient: Optional[str]) -> Optional[str]:
    async with task_session_factory() as session_factory:
        sender = ResendEmailSender()
        try:
            service = NotificationService(
                uow_factory=partial(SQLAlchemyUnitOfWork, session_factory),
                email_sender=sender,
            )
            return await service.deliver(record_id, event_kind, recipient=recipient)
        finally:
            await sender.aclose()


@shared_task(
    bind=True,
    base=BaseTask,
    name=DELIVER_PAYMENT_NOTIFICATION,
    autoretry_for=(Exception,),
    # retrying cannot fix a missing record, an unknown kind or missing credentials
    dont_autoretry_for=(PayableRecordNotFoundException, ConfigurationException, ValueError),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
    retry_kwargs={"max_retries": 5},
)
def deliver_payment_notification(
    self, record_id: str, event_kind: str, recipient: Optional[str] = None
) -> Optional[str]:
    """Render and send the confirmation email for a verified payment."""
    logger.info(
        "deliver_payment_notification",
        record_id=record_id,
        event_kind=event_kind,
        retries=self.request.retries,
    )
    return asyncio.run(_deliver(record_id, event_kind, recipient))
