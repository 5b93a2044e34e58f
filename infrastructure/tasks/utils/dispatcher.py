"""Small dispatching helpers to decouple Celery from callers."""
from __future__ import annotations

from typing import Optional


class TaskDispatcher:
    """Internal facade used by application layer to schedule tasks."""

    def send_payment_notification(self, record_id: str, event_kind: str, recipient: Optional[str] = None) -> None:
        """Fire-and-forget helper for post-payment confirmation emails."""
        # imported lazily: the task module pulls in the database and email stack
        from ..tasks.notifications import deliver_payment_notification

        # apply_async (unlike send_task) honours task_always_eager in development
        deliver_payment_notification.apply_async(
            kwargs={"record_id": record_id, "event_kind": event_kind, "recipient": recipient},
        )
