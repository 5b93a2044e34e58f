"""
用户角色 / 后台通知仓储实现
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.payment.repository import AdminNotificationRepository, UserRoleRepository
from infrastructure.models.admin import AdminNotificationModel, UserRoleModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyUserRoleRepository(UserRoleRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def has_role(self, user_id: str, role: str) -> bool:
        result = await self.session.execute(
            select(UserRoleModel.id).where(UserRoleModel.user_id == user_id, UserRoleModel.role == role)
        )
        return result.first() is not None


class SQLAlchemyAdminNotificationRepository(AdminNotificationRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(
        self,
        *,
        type: str,
        title: str,
        message: str,
        order_id: Optional[str] = None,
    ) -> None:
        self.session.add(AdminNotificationModel(type=type, title=title, message=message, order_id=order_id))
        await self.session.flush()
        logger.info("admin_notification_created", type=type, order_id=order_id)
