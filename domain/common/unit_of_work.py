"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.payment.entity import PayableKind
from domain.payment.repository import (
    AdminNotificationRepository,
    CustomOrderRepository,
    ExperienceBookingRepository,
    OrderRepository,
    PayableRecordRepository,
    UserRoleRepository,
)


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象"""

    orders: OrderRepository
    custom_orders: CustomOrderRepository
    experience_bookings: ExperienceBookingRepository
    user_roles: UserRoleRepository
    admin_notifications: AdminNotificationRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.orders = None  # type: ignore[assignment]
        self.custom_orders = None  # type: ignore[assignment]
        self.experience_bookings = None  # type: ignore[assignment]
        self.user_roles = None  # type: ignore[assignment]
        self.admin_notifications = None  # type: ignore[assignment]

    def payables(self, kind: PayableKind) -> PayableRecordRepository:
        """按记录类型取对应仓储"""
        return {
            PayableKind.ORDER: self.orders,
            PayableKind.CUSTOM_ORDER: self.custom_orders,
            PayableKind.EXPERIENCE_BOOKING: self.experience_bookings,
        }[PayableKind(kind)]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
        ...
