"""
支付领域实体 - 可支付记录（订单 / 定制订单 / 体验预约）
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional, Union

from domain.common.exceptions import (
    DomainValidationException,
    PaymentAlreadyCompletedException,
    ProviderOrderMismatchException,
    RecordAccessDeniedException,
)


class PayableKind(str, Enum):
    """可支付记录类型"""
    ORDER = "order"                              # 商城订单
    CUSTOM_ORDER = "custom_order"                # 定制订单（按估价付款）
    EXPERIENCE_BOOKING = "experience_booking"    # 体验课预约


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"


# 支付成功后各类记录进入的业务状态
PAID_LIFECYCLE_STATUS: dict[PayableKind, str] = {
    PayableKind.ORDER: "confirmed",
    PayableKind.CUSTOM_ORDER: "payment_done",
    PayableKind.EXPERIENCE_BOOKING: "confirmed",
}

# 定制订单进入这些状态后视为已完成付款
CUSTOM_ORDER_PAYMENT_COMPLETED = frozenset({"payment_done", "in_progress", "in_delivery", "delivered"})

RECORD_LABELS: dict[PayableKind, str] = {
    PayableKind.ORDER: "Order",
    PayableKind.CUSTOM_ORDER: "Order",
    PayableKind.EXPERIENCE_BOOKING: "Booking",
}

Amount = Union[int, float, Decimal, str]


def to_minor_units(amount: Amount) -> int:
    """
    主币单位 -> 最小货币单位（卢比 -> 派士），四舍五入（half-up）。

    浮点数先转成字符串再构造 Decimal，避免二进制误差：
    1999.5 -> 199950, 10.005 -> 1001
    """
    if isinstance(amount, bool):
        raise DomainValidationException("amount must be a number", field="amount")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except ArithmeticError as exc:
        raise DomainValidationException(f"amount is not a number: {amount!r}", field="amount") from exc
    if not value.is_finite():
        raise DomainValidationException("amount must be finite", field="amount")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class PayableRecord:
    """
    可支付记录 - 统一三类本地记录的支付视图

    业务规则：
    1. 支付状态只能变为 paid 一次
    2. 已记录的渠道订单号必须与校验请求中的一致
    3. 归属用户的记录只能由本人校验
    """

    id: str
    kind: PayableKind
    amount: Optional[Decimal]
    payment_status: PaymentStatus
    lifecycle_status: str
    user_id: Optional[str] = None
    provider_order_id: Optional[str] = None
    provider_payment_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    # 通知模板使用的只读数据（订单号、收货地址、预约时段等）
    details: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.kind = PayableKind(self.kind)
        self.payment_status = PaymentStatus(self.payment_status)
        if self.amount is not None and not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)
        if self.details is None:
            self.details = {}

    @property
    def label(self) -> str:
        return RECORD_LABELS[self.kind]

    @property
    def paid_lifecycle_status(self) -> str:
        return PAID_LIFECYCLE_STATUS[self.kind]

    def is_paid(self) -> bool:
        if self.payment_status == PaymentStatus.PAID:
            return True
        # 定制订单没有独立的支付状态列，以业务状态判断
        return self.kind == PayableKind.CUSTOM_ORDER and self.lifecycle_status in CUSTOM_ORDER_PAYMENT_COMPLETED

    def ensure_owned_by(self, user_id: str) -> None:
        if self.user_id is None or str(self.user_id) != str(user_id):
            raise RecordAccessDeniedException()

    def ensure_unpaid(self) -> None:
        if self.is_paid():
            raise PaymentAlreadyCompletedException(self.label)

    def ensure_provider_order(self, provider_order_id: str) -> None:
        """记录上已存在渠道订单号时，必须与本次提交的一致"""
        if self.provider_order_id and self.provider_order_id != provider_order_id:
            raise ProviderOrderMismatchException()

    def mark_paid(self, provider_order_id: str, provider_payment_id: str) -> None:
        """内存中的状态迁移；持久化由仓储的条件更新完成"""
        self.ensure_unpaid()
        self.payment_status = PaymentStatus.PAID
        self.lifecycle_status = self.paid_lifecycle_status
        self.provider_order_id = provider_order_id
        self.provider_payment_id = provider_payment_id
        self.updated_at = datetime.now(timezone.utc)
