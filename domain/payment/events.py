"""
Payment domain events.

Dataclass events record payment lifecycle facts for downstream handling
(notifications, logging). Domain remains free of infrastructure imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid

from .entity import PayableKind


class NotificationKind:
    ORDER_CONFIRMED = "order_confirmed"
    CUSTOM_PAYMENT_CONFIRMED = "custom_payment_confirmed"
    EXPERIENCE_CONFIRMED = "experience_confirmed"


@dataclass
class PaymentEvent:
    record_id: str
    kind: PayableKind
    provider_order_id: str
    provider_payment_id: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class PaymentVerified(PaymentEvent):
    lifecycle_status: str = ""
