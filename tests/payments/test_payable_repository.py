from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from application.dtos.auth import Principal
from application.dtos.payments import VerifyCheckoutPayment
from application.services.payment_verification_service import CHECKOUT, PaymentVerificationService
from domain.common.exceptions import PaymentAlreadyCompletedException
from domain.payment.entity import PaymentStatus
from infrastructure.models import (
    AdminNotificationModel,
    CustomOrderModel,
    ExperienceBookingModel,
    OrderItemModel,
    OrderModel,
    UserRoleModel,
)
from infrastructure.rate_limit import InMemoryAttemptLimiter
from tests.fakes import FakeGateway, RecordingNotifier, new_id


async def _insert(session_factory, *models):
    async with session_factory() as session:
        session.add_all(models)
        await session.commit()


def _order(**overrides) -> OrderModel:
    fields = dict(
        id=new_id(),
        order_number="BSH-0001",
        user_id="user-1",
        customer_name="Asha Rao",
        customer_email="asha@example.com",
        subtotal=Decimal("450.00"),
        shipping_cost=Decimal("50.00"),
        total_amount=Decimal("500.00"),
    )
    fields.update(overrides)
    return OrderModel(**fields)


@pytest.mark.asyncio
async def test_order_maps_to_payable_record(session_factory, sql_uow_factory):
    order = _order()
    await _insert(session_factory, order)

    async with sql_uow_factory(readonly=True) as uow:
        record = await uow.orders.get(order.id)

    assert record.amount == Decimal("500.00")
    assert record.payment_status is PaymentStatus.PENDING
    assert record.lifecycle_status == "pending"
    assert record.user_id == "user-1"
    assert record.details["order_number"] == "BSH-0001"
    assert record.details["shipping_cost"] == Decimal("50.00")
    assert record.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_mark_paid_is_conditional(session_factory, sql_uow_factory):
    order = _order()
    await _insert(session_factory, order)

    async with sql_uow_factory() as uow:
        first = await uow.orders.mark_paid(
            order.id, provider_order_id="order_abc", provider_payment_id="pay_1", lifecycle_status="confirmed"
        )
    async with sql_uow_factory() as uow:
        second = await uow.orders.mark_paid(
            order.id, provider_order_id="order_abc", provider_payment_id="pay_2", lifecycle_status="confirmed"
        )
        missing = await uow.orders.mark_paid(
            new_id(), provider_order_id="order_abc", provider_payment_id="pay_3", lifecycle_status="confirmed"
        )

    assert (first, second, missing) == (True, False, False)
    async with session_factory() as session:
        row = await session.get(OrderModel, order.id)
    assert row.payment_status == "paid"
    assert row.order_status == "confirmed"
    assert row.razorpay_payment_id == "pay_1"


@pytest.mark.asyncio
async def test_failed_unit_of_work_rolls_back(session_factory, sql_uow_factory):
    order = _order()
    await _insert(session_factory, order)

    with pytest.raises(RuntimeError):
        async with sql_uow_factory() as uow:
            await uow.orders.mark_paid(
                order.id, provider_order_id="order_abc", provider_payment_id="pay_1", lifecycle_status="confirmed"
            )
            raise RuntimeError("boom")

    async with sql_uow_factory(readonly=True) as uow:
        record = await uow.orders.get(order.id)
    assert not record.is_paid()


@pytest.mark.asyncio
async def test_order_items_listed_by_name(session_factory, sql_uow_factory):
    order = _order()
    await _insert(session_factory, order)
    await _insert(
        session_factory,
        OrderItemModel(order_id=order.id, item_name="Tea Cup", quantity=2, unit_price=150, total_price=300),
        OrderItemModel(
            order_id=order.id, item_name="Beginner Workshop", item_type="workshop",
            quantity=1, unit_price=150, total_price=150,
        ),
    )

    async with sql_uow_factory(readonly=True) as uow:
        items = await uow.orders.list_items(order.id)

    assert [i["item_name"] for i in items] == ["Beginner Workshop", "Tea Cup"]
    assert items[1]["quantity"] == 2
    assert items[1]["total_price"] == Decimal("300")


@pytest.mark.asyncio
async def test_custom_order_payment_state_derived_from_status(session_factory, sql_uow_factory):
    pending = CustomOrderModel(
        id=new_id(), name="Meera", email="meera@example.com", status="payment_pending", estimated_price=2500
    )
    started = CustomOrderModel(
        id=new_id(), name="Ravi", email="ravi@example.com", status="in_progress", estimated_price=900
    )
    await _insert(session_factory, pending, started)

    async with sql_uow_factory() as uow:
        assert not (await uow.custom_orders.get(pending.id)).is_paid()
        assert (await uow.custom_orders.get(pending.id)).payment_status is PaymentStatus.PENDING
        assert (await uow.custom_orders.get(started.id)).is_paid()
        assert not await uow.custom_orders.mark_paid(
            started.id, provider_order_id="order_abc", provider_payment_id="pay_1", lifecycle_status="payment_done"
        )
        assert await uow.custom_orders.mark_paid(
            pending.id, provider_order_id="order_abc", provider_payment_id="pay_1", lifecycle_status="payment_done"
        )

    async with sql_uow_factory(readonly=True) as uow:
        record = await uow.custom_orders.get(pending.id)
    assert record.lifecycle_status == "payment_done"
    assert record.is_paid()


@pytest.mark.asyncio
async def test_custom_order_status_update_records_email(session_factory, sql_uow_factory):
    custom = CustomOrderModel(id=new_id(), name="Meera", email="meera@example.com")
    await _insert(session_factory, custom)

    async with sql_uow_factory() as uow:
        await uow.custom_orders.update_status(
            custom.id, "payment_pending", estimated_price=Decimal("1800.00"), email_type="payment_request"
        )
    async with sql_uow_factory() as uow:
        await uow.custom_orders.update_status(custom.id, "payment_pending", email_type="custom")

    async with sql_uow_factory(readonly=True) as uow:
        record = await uow.custom_orders.get(custom.id)
    assert record.lifecycle_status == "payment_pending"
    assert record.amount == Decimal("1800.00")
    assert [e["type"] for e in record.details["emails_sent"]] == ["payment_request", "custom"]


@pytest.mark.asyncio
async def test_experience_booking_mapping(session_factory, sql_uow_factory):
    booking = ExperienceBookingModel(
        id=new_id(), user_id="user-1", experience_type="farm", booking_date=date(2025, 11, 8),
        time_slot="4:00 PM - 6:00 PM", guests=6, total_amount=Decimal("9000.00"),
    )
    await _insert(session_factory, booking)

    async with sql_uow_factory(readonly=True) as uow:
        record = await uow.experience_bookings.get(booking.id)
    assert record.label == "Booking"
    assert record.details["booking_date"] == date(2025, 11, 8)
    assert record.details["guests"] == 6
    assert record.customer_email is None


@pytest.mark.asyncio
async def test_roles_and_admin_notifications(session_factory, sql_uow_factory):
    await _insert(session_factory, UserRoleModel(user_id="admin-1", role="admin"))

    async with sql_uow_factory() as uow:
        assert await uow.user_roles.has_role("admin-1", "admin")
        assert not await uow.user_roles.has_role("user-1", "admin")
        await uow.admin_notifications.add(
            type="order", title="New Order Received", message="Order #BSH-0001", order_id="o1"
        )

    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(AdminNotificationModel))
    assert count == 1


@pytest.mark.asyncio
async def test_verification_against_database(session_factory, sql_uow_factory):
    order = _order()
    await _insert(session_factory, order)
    gateway, notifier = FakeGateway(), RecordingNotifier()
    svc = PaymentVerificationService(sql_uow_factory, gateway, InMemoryAttemptLimiter(), notifier)
    payload = VerifyCheckoutPayment(
        order_id=order.id,
        razorpay_order_id="order_abc",
        razorpay_payment_id="pay_xyz",
        razorpay_signature=gateway.sign("order_abc", "pay_xyz"),
    )
    owner = Principal(id="user-1")

    await svc.verify(CHECKOUT, payload, principal=owner)
    with pytest.raises(PaymentAlreadyCompletedException):
        await svc.verify(CHECKOUT, payload, principal=owner)

    async with session_factory() as session:
        row = await session.get(OrderModel, order.id)
    assert (row.payment_status, row.order_status, row.razorpay_order_id) == ("paid", "confirmed", "order_abc")
    assert len(notifier.calls) == 1
