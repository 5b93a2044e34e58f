"""
Outbound notification ports.

``Notifier`` is what the verification pipeline calls after a successful
transition; ``EmailSender`` is the transport used by the background worker and
the admin email flow.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from application.dtos.payments import EmailMessage


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, record_id: str, event_kind: str, *, recipient: Optional[str] = None) -> None:
        """Fire-and-forget; implementations must not raise."""
        ...


@runtime_checkable
class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> Optional[str]:
        """Send one email and return the provider message id."""
        ...
