"""
支付仓储接口 - 定义可支付记录数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, List, Optional

from .entity import PayableRecord


class PayableRecordRepository(ABC):
    """可支付记录仓储抽象接口 - 订单/定制订单/体验预约各有一个实现"""

    @abstractmethod
    async def get(self, record_id: str) -> Optional[PayableRecord]:
        """根据ID获取记录"""
        pass

    @abstractmethod
    async def mark_paid(
        self,
        record_id: str,
        *,
        provider_order_id: str,
        provider_payment_id: str,
        lifecycle_status: str,
    ) -> bool:
        """
        条件更新为已支付：仅当记录尚未支付时生效。

        Returns:
            True 表示本次调用完成了状态迁移；False 表示记录已被支付（并发失败方）
        """
        pass


class OrderRepository(PayableRecordRepository):
    @abstractmethod
    async def list_items(self, order_id: str) -> List[dict[str, Any]]:
        """订单明细（确认邮件使用）"""
        pass


class CustomOrderRepository(PayableRecordRepository):
    @abstractmethod
    async def update_status(
        self,
        record_id: str,
        status: str,
        *,
        estimated_price: Optional[Decimal] = None,
        email_type: Optional[str] = None,
    ) -> None:
        """更新定制订单状态（可同时更新估价，并记录已发送的邮件类型）"""
        pass


class ExperienceBookingRepository(PayableRecordRepository):
    pass


class UserRoleRepository(ABC):
    @abstractmethod
    async def has_role(self, user_id: str, role: str) -> bool:
        pass


class AdminNotificationRepository(ABC):
    @abstractmethod
    async def add(
        self,
        *,
        type: str,
        title: str,
        message: str,
        order_id: Optional[str] = None,
    ) -> None:
        """写入一条后台通知"""
        pass
