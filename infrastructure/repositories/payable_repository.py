"""
可支付记录仓储实现 - 使用SQLAlchemy实现数据访问

三类记录共用同一套读取/条件更新流程：
mark_paid 通过 `UPDATE ... WHERE id = ? AND <未支付>` 实现比较并交换，
影响行数为 0 即表示并发请求已抢先完成支付。
"""
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.payment.entity import (
    CUSTOM_ORDER_PAYMENT_COMPLETED,
    PayableKind,
    PayableRecord,
    PaymentStatus,
)
from domain.payment.repository import (
    CustomOrderRepository,
    ExperienceBookingRepository,
    OrderRepository,
)
from infrastructure.models.base import utcnow
from infrastructure.models.custom_order import CustomOrderModel
from infrastructure.models.experience_booking import ExperienceBookingModel
from infrastructure.models.order import OrderItemModel, OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


def _payment_status(value: Optional[str]) -> PaymentStatus:
    if value == PaymentStatus.PAID.value:
        return PaymentStatus.PAID
    if value == PaymentStatus.UNPAID.value:
        return PaymentStatus.UNPAID
    # pending/failed 等其它取值都视为待支付
    return PaymentStatus.PENDING


def _decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


class _SQLAlchemyPayableRepository:
    model: Any
    kind: PayableKind

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: Any) -> PayableRecord:
        raise NotImplementedError

    async def get(self, record_id: str) -> Optional[PayableRecord]:
        result = await self.session.execute(select(self.model).where(self.model.id == record_id))
        db_record = result.scalar_one_or_none()
        return self._to_entity(db_record) if db_record else None

    async def _apply_paid_update(self, record_id: str, stmt) -> bool:
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        transitioned = result.rowcount == 1
        if transitioned:
            logger.info("payable_marked_paid", kind=self.kind.value, record_id=record_id)
        else:
            logger.warning("payable_mark_paid_no_rows", kind=self.kind.value, record_id=record_id)
        return transitioned


class SQLAlchemyOrderRepository(_SQLAlchemyPayableRepository, OrderRepository):
    """商城订单仓储"""

    model = OrderModel
    kind = PayableKind.ORDER

    def _to_entity(self, model: OrderModel) -> PayableRecord:
        return PayableRecord(
            id=model.id,
            kind=self.kind,
            amount=_decimal(model.total_amount),
            payment_status=_payment_status(model.payment_status),
            lifecycle_status=model.order_status,
            user_id=model.user_id,
            provider_order_id=model.razorpay_order_id,
            provider_payment_id=model.razorpay_payment_id,
            customer_name=model.customer_name,
            customer_email=model.customer_email,
            details={
                "order_number": model.order_number,
                "subtotal": _decimal(model.subtotal),
                "shipping_cost": _decimal(model.shipping_cost),
                "shipping_address": model.shipping_address,
                "customer_phone": model.customer_phone,
            },
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def mark_paid(
        self,
        record_id: str,
        *,
        provider_order_id: str,
        provider_payment_id: str,
        lifecycle_status: str,
    ) -> bool:
        stmt = (
            update(OrderModel)
            .where(OrderModel.id == record_id, OrderModel.payment_status != PaymentStatus.PAID.value)
            .values(
                payment_status=PaymentStatus.PAID.value,
                order_status=lifecycle_status,
                razorpay_order_id=provider_order_id,
                razorpay_payment_id=provider_payment_id,
                updated_at=utcnow(),
            )
        )
        return await self._apply_paid_update(record_id, stmt)

    async def list_items(self, order_id: str) -> List[dict[str, Any]]:
        result = await self.session.execute(
            select(OrderItemModel)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.item_name)
        )
        return [
            {
                "item_name": item.item_name,
                "item_type": item.item_type,
                "quantity": item.quantity,
                "unit_price": _decimal(item.unit_price),
                "total_price": _decimal(item.total_price),
            }
            for item in result.scalars().all()
        ]


class SQLAlchemyCustomOrderRepository(_SQLAlchemyPayableRepository, CustomOrderRepository):
    """定制订单仓储：支付状态由 status 推导"""

    model = CustomOrderModel
    kind = PayableKind.CUSTOM_ORDER

    def _to_entity(self, model: CustomOrderModel) -> PayableRecord:
        if model.status in CUSTOM_ORDER_PAYMENT_COMPLETED:
            payment_status = PaymentStatus.PAID
        elif model.status == "payment_pending":
            payment_status = PaymentStatus.PENDING
        else:
            payment_status = PaymentStatus.UNPAID
        return PayableRecord(
            id=model.id,
            kind=self.kind,
            amount=_decimal(model.estimated_price),
            payment_status=payment_status,
            lifecycle_status=model.status,
            user_id=model.user_id,
            provider_order_id=model.razorpay_order_id,
            provider_payment_id=model.razorpay_payment_id,
            customer_name=model.name,
            customer_email=model.email,
            details={
                "preferred_size": model.preferred_size,
                "usage_description": model.usage_description,
                "estimated_delivery_date": model.estimated_delivery_date,
                "emails_sent": list(model.emails_sent or []),
            },
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def mark_paid(
        self,
        record_id: str,
        *,
        provider_order_id: str,
        provider_payment_id: str,
        lifecycle_status: str,
    ) -> bool:
        stmt = (
            update(CustomOrderModel)
            .where(
                CustomOrderModel.id == record_id,
                CustomOrderModel.status.notin_(sorted(CUSTOM_ORDER_PAYMENT_COMPLETED)),
            )
            .values(
                status=lifecycle_status,
                razorpay_order_id=provider_order_id,
                razorpay_payment_id=provider_payment_id,
                updated_at=utcnow(),
            )
        )
        return await self._apply_paid_update(record_id, stmt)

    async def update_status(
        self,
        record_id: str,
        status: str,
        *,
        estimated_price: Optional[Decimal] = None,
        email_type: Optional[str] = None,
    ) -> None:
        model = await self.session.get(CustomOrderModel, record_id)
        if model is None:
            return
        model.status = status
        if estimated_price is not None:
            model.estimated_price = estimated_price
        if email_type:
            # JSON 列需整体替换才会被识别为变更
            model.emails_sent = [
                *(model.emails_sent or []),
                {"type": email_type, "sent_at": utcnow().isoformat()},
            ]
        model.updated_at = utcnow()
        await self.session.flush()
        logger.info("custom_order_status_updated", record_id=record_id, status=status)


class SQLAlchemyExperienceBookingRepository(_SQLAlchemyPayableRepository, ExperienceBookingRepository):
    """体验课预约仓储"""

    model = ExperienceBookingModel
    kind = PayableKind.EXPERIENCE_BOOKING

    def _to_entity(self, model: ExperienceBookingModel) -> PayableRecord:
        return PayableRecord(
            id=model.id,
            kind=self.kind,
            amount=_decimal(model.total_amount),
            payment_status=_payment_status(model.payment_status),
            lifecycle_status=model.booking_status,
            user_id=model.user_id,
            provider_order_id=model.razorpay_order_id,
            provider_payment_id=model.razorpay_payment_id,
            customer_email=model.customer_email,
            details={
                "experience_type": model.experience_type,
                "booking_date": model.booking_date,
                "time_slot": model.time_slot,
                "guests": model.guests,
                "notes": model.notes,
            },
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def mark_paid(
        self,
        record_id: str,
        *,
        provider_order_id: str,
        provider_payment_id: str,
        lifecycle_status: str,
    ) -> bool:
        stmt = (
            update(ExperienceBookingModel)
            .where(
                ExperienceBookingModel.id == record_id,
                ExperienceBookingModel.payment_status != PaymentStatus.PAID.value,
            )
            .values(
                payment_status=PaymentStatus.PAID.value,
                booking_status=lifecycle_status,
                razorpay_order_id=provider_order_id,
                razorpay_payment_id=provider_payment_id,
                updated_at=utcnow(),
            )
        )
        return await self._apply_paid_update(record_id, stmt)
