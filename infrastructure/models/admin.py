"""
后台相关数据库模型：用户角色与后台通知
"""
from sqlalchemy import Boolean, Column, DateTime, String, Text, UniqueConstraint

from .base import Base, new_uuid, utcnow


class UserRoleModel(Base):
    __tablename__ = "user_roles"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String(20), nullable=False, comment="admin/user")

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )


class AdminNotificationModel(Base):
    """后台通知（如新订单提醒）"""
    __tablename__ = "admin_notifications"

    id = Column(String(36), primary_key=True, default=new_uuid)
    type = Column(String(30), nullable=False, comment="order/custom_order/experience")
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    order_id = Column(String(36), nullable=True, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
