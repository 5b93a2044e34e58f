from decimal import Decimal

import pytest

from application.services.notification_service import NotificationService
from domain.common.exceptions import PayableRecordNotFoundException
from tests.fakes import FakeAdminNotificationRepository, make_booking, make_custom_order, make_order, new_id


@pytest.mark.asyncio
async def test_order_confirmation_email_and_admin_notification(fake_db, email_sender):
    order = fake_db.add(make_order(amount="1250.00", order_number="BSH-0042"))
    fake_db.order_items[order.id] = [
        {"item_name": "Tea Cup", "item_type": "product", "quantity": 2,
         "unit_price": Decimal("625.00"), "total_price": Decimal("1250.00")},
    ]
    svc = NotificationService(fake_db.uow_factory, email_sender)

    email_id = await svc.deliver(order.id, "order_confirmed")

    assert email_id == "email_1"
    message = email_sender.sent[0]
    assert message.to == ["asha@example.com"]
    assert message.subject == "Order Confirmed - BSH-0042"
    assert "Tea Cup" in message.html
    assert fake_db.admin_notifications == [
        {
            "type": "order",
            "title": "New Order Received",
            "message": "Order #BSH-0042 from Asha Rao for ₹1,250",
            "order_id": order.id,
        }
    ]


@pytest.mark.asyncio
async def test_failed_admin_notification_write_does_not_fail_delivery(fake_db, email_sender, monkeypatch):
    order = fake_db.add(make_order())

    async def _broken_add(self, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(FakeAdminNotificationRepository, "add", _broken_add)
    svc = NotificationService(fake_db.uow_factory, email_sender)

    email_id = await svc.deliver(order.id, "order_confirmed")

    assert email_id == "email_1"
    assert len(email_sender.sent) == 1
    assert fake_db.admin_notifications == []
    assert fake_db.rollbacks == 1


@pytest.mark.asyncio
async def test_custom_payment_confirmation_is_recorded(fake_db, email_sender):
    custom = fake_db.add(make_custom_order(status="payment_done"))
    svc = NotificationService(fake_db.uow_factory, email_sender)

    await svc.deliver(custom.id, "custom_payment_confirmed")

    assert email_sender.sent[0].subject == "Payment Confirmed - Your Custom Pottery is Now Being Crafted!"
    assert fake_db.status_updates == [
        {"record_id": custom.id, "status": "payment_done", "estimated_price": None, "email_type": "payment_confirmed"}
    ]


@pytest.mark.asyncio
async def test_booking_confirmation_uses_explicit_recipient(fake_db, email_sender):
    booking = fake_db.add(make_booking(customer_email=None, experience_type="birthday"))
    svc = NotificationService(fake_db.uow_factory, email_sender)

    await svc.deliver(booking.id, "experience_confirmed", recipient="asha@example.com")

    message = email_sender.sent[0]
    assert message.to == ["asha@example.com"]
    assert message.subject == "Your Birthday Session is Confirmed!"
    assert "2 people" in message.html


@pytest.mark.asyncio
async def test_no_recipient_skips_delivery(fake_db, email_sender):
    booking = fake_db.add(make_booking(customer_email=None))
    svc = NotificationService(fake_db.uow_factory, email_sender)

    assert await svc.deliver(booking.id, "experience_confirmed") is None
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_unknown_kind_and_missing_record(fake_db, email_sender):
    svc = NotificationService(fake_db.uow_factory, email_sender)
    with pytest.raises(ValueError):
        await svc.deliver(new_id(), "refund_issued")
    with pytest.raises(PayableRecordNotFoundException) as exc:
        await svc.deliver(new_id(), "experience_confirmed")
    assert exc.value.message == "Booking not found"
