"""In-memory stand-ins for the gateway, notifier, email sender and unit of work."""
from __future__ import annotations

import asyncio
import copy
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import jwt

from application.dtos.payments import EmailMessage, ProviderOrder, ProviderOrderRequest
from core.config import settings
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import PayableKind, PayableRecord, PaymentStatus
from domain.payment.signature import compute_signature, signature_matches


KEY_ID = "rzp_test_key"
KEY_SECRET = "rzp_test_secret"


class FakeGateway:
    provider = "razorpay"

    def __init__(self, *, order_id: str = "order_abc", key_secret: str = KEY_SECRET) -> None:
        self.next_order_id = order_id
        self.key_secret = key_secret
        self.created: list[ProviderOrderRequest] = []
        self.signature_checks: list[tuple[str, str]] = []
        self.closed = False

    @property
    def key_id(self) -> str:
        return KEY_ID

    def sign(self, provider_order_id: str, provider_payment_id: str) -> str:
        return compute_signature(self.key_secret, provider_order_id, provider_payment_id)

    async def create_order(self, req: ProviderOrderRequest) -> ProviderOrder:
        self.created.append(req)
        return ProviderOrder(
            id=self.next_order_id,
            amount=req.amount,
            currency=req.currency,
            receipt=req.receipt,
            notes=req.notes,
        )

    def verify_payment_signature(self, provider_order_id: str, provider_payment_id: str, signature: str) -> bool:
        self.signature_checks.append((provider_order_id, provider_payment_id))
        return signature_matches(self.key_secret, provider_order_id, provider_payment_id, signature)

    async def aclose(self) -> None:
        self.closed = True


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Optional[str]]] = []

    async def notify(self, record_id: str, event_kind: str, *, recipient: Optional[str] = None) -> None:
        self.calls.append((record_id, event_kind, recipient))


class FailingNotifier:
    async def notify(self, record_id: str, event_kind: str, *, recipient: Optional[str] = None) -> None:
        raise RuntimeError("broker down")


class FakeEmailSender:
    def __init__(self, *, email_id: str = "email_1", error: Optional[Exception] = None) -> None:
        self.email_id = email_id
        self.error = error
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> Optional[str]:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return self.email_id


# --- Unit of work --------------------------------------------------------

class _FakePayableRepository:
    def __init__(self, table: dict[str, PayableRecord]) -> None:
        self._table = table

    async def get(self, record_id: str) -> Optional[PayableRecord]:
        # yield to the loop so concurrent verifications interleave between read and update
        await asyncio.sleep(0)
        record = self._table.get(record_id)
        return copy.deepcopy(record) if record else None

    async def mark_paid(
        self,
        record_id: str,
        *,
        provider_order_id: str,
        provider_payment_id: str,
        lifecycle_status: str,
    ) -> bool:
        record = self._table.get(record_id)
        if record is None or record.is_paid():
            return False
        record.payment_status = PaymentStatus.PAID
        record.lifecycle_status = lifecycle_status
        record.provider_order_id = provider_order_id
        record.provider_payment_id = provider_payment_id
        return True


class FakeOrderRepository(_FakePayableRepository):
    def __init__(self, table: dict[str, PayableRecord], items: dict[str, list[dict[str, Any]]]) -> None:
        super().__init__(table)
        self._items = items

    async def list_items(self, order_id: str) -> list[dict[str, Any]]:
        return list(self._items.get(order_id, []))


class FakeCustomOrderRepository(_FakePayableRepository):
    def __init__(self, table: dict[str, PayableRecord], updates: list[dict[str, Any]]) -> None:
        super().__init__(table)
        self._updates = updates

    async def update_status(
        self,
        record_id: str,
        status: str,
        *,
        estimated_price: Optional[Decimal] = None,
        email_type: Optional[str] = None,
    ) -> None:
        self._updates.append(
            {"record_id": record_id, "status": status, "estimated_price": estimated_price, "email_type": email_type}
        )
        record = self._table.get(record_id)
        if record is None:
            return
        record.lifecycle_status = status
        if estimated_price is not None:
            record.amount = Decimal(str(estimated_price))
        if email_type:
            record.details.setdefault("emails_sent", []).append({"type": email_type})


class FakeUserRoleRepository:
    def __init__(self, roles: set[tuple[str, str]]) -> None:
        self._roles = roles

    async def has_role(self, user_id: str, role: str) -> bool:
        return (user_id, role) in self._roles


class FakeAdminNotificationRepository:
    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = rows

    async def add(self, *, type: str, title: str, message: str, order_id: Optional[str] = None) -> None:
        self._rows.append({"type": type, "title": title, "message": message, "order_id": order_id})


class FakeDatabase:
    def __init__(self) -> None:
        self.tables: dict[PayableKind, dict[str, PayableRecord]] = {kind: {} for kind in PayableKind}
        self.order_items: dict[str, list[dict[str, Any]]] = {}
        self.status_updates: list[dict[str, Any]] = []
        self.roles: set[tuple[str, str]] = set()
        self.admin_notifications: list[dict[str, Any]] = []
        self.commits = 0
        self.rollbacks = 0

    def add(self, record: PayableRecord) -> PayableRecord:
        self.tables[record.kind][record.id] = record
        return record

    def record(self, kind: PayableKind, record_id: str) -> PayableRecord:
        return self.tables[kind][record_id]

    def uow_factory(self, *, readonly: bool = False) -> "FakeUnitOfWork":
        return FakeUnitOfWork(self, readonly=readonly)


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, db: FakeDatabase, *, readonly: bool = False) -> None:
        super().__init__(readonly=readonly)
        self._db = db

    async def __aenter__(self) -> "FakeUnitOfWork":
        db = self._db
        self.orders = FakeOrderRepository(db.tables[PayableKind.ORDER], db.order_items)
        self.custom_orders = FakeCustomOrderRepository(db.tables[PayableKind.CUSTOM_ORDER], db.status_updates)
        self.experience_bookings = _FakePayableRepository(db.tables[PayableKind.EXPERIENCE_BOOKING])
        self.user_roles = FakeUserRoleRepository(db.roles)
        self.admin_notifications = FakeAdminNotificationRepository(db.admin_notifications)
        return self

    async def commit(self) -> None:
        self._committed = True
        self._db.commits += 1

    async def rollback(self) -> None:
        self._db.rollbacks += 1


# --- Builders ------------------------------------------------------------

def new_id() -> str:
    return str(uuid.uuid4())


def make_order(
    *,
    user_id: Optional[str] = "user-1",
    amount: Any = "500.00",
    payment_status: str = "pending",
    order_status: str = "pending",
    provider_order_id: Optional[str] = None,
    customer_email: Optional[str] = "asha@example.com",
    order_number: str = "BSH-0001",
) -> PayableRecord:
    return PayableRecord(
        id=new_id(),
        kind=PayableKind.ORDER,
        amount=Decimal(str(amount)),
        payment_status=payment_status,
        lifecycle_status=order_status,
        user_id=user_id,
        provider_order_id=provider_order_id,
        customer_name="Asha Rao",
        customer_email=customer_email,
        details={
            "order_number": order_number,
            "subtotal": Decimal(str(amount)),
            "shipping_cost": Decimal("0"),
            "shipping_address": "12 Lake Road, Pune 411001",
        },
        created_at=datetime(2025, 10, 1, 9, 30, tzinfo=timezone.utc),
    )


def make_custom_order(
    *,
    status: str = "payment_pending",
    amount: Any = "2500.00",
    customer_email: Optional[str] = "meera@example.com",
) -> PayableRecord:
    payment_status = "pending" if status == "payment_pending" else "unpaid"
    return PayableRecord(
        id=new_id(),
        kind=PayableKind.CUSTOM_ORDER,
        amount=None if amount is None else Decimal(str(amount)),
        payment_status=payment_status,
        lifecycle_status=status,
        customer_name="Meera Iyer",
        customer_email=customer_email,
        details={"preferred_size": "Medium", "emails_sent": []},
    )


def make_booking(
    *,
    user_id: str = "user-1",
    amount: Any = "3000.00",
    customer_email: Optional[str] = None,
    experience_type: str = "couple",
) -> PayableRecord:
    return PayableRecord(
        id=new_id(),
        kind=PayableKind.EXPERIENCE_BOOKING,
        amount=Decimal(str(amount)),
        payment_status="pending",
        lifecycle_status="pending",
        user_id=user_id,
        customer_email=customer_email,
        details={
            "experience_type": experience_type,
            "booking_date": date(2025, 11, 8),
            "time_slot": "11:00 AM - 1:00 PM",
            "guests": 2,
            "notes": "Anniversary",
        },
        created_at=datetime(2025, 10, 1, 9, 30, tzinfo=timezone.utc),
    )


def make_token(sub: str = "user-1", *, secret: Optional[str] = None, **claims: Any) -> str:
    payload = {"sub": sub, **claims}
    return jwt.encode(payload, secret or settings.SECRET_KEY, algorithm="HS256")


def auth_header(sub: str = "user-1", **claims: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub, **claims)}"}
