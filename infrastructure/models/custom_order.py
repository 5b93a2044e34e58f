"""
定制订单数据库模型
"""
from sqlalchemy import JSON, Column, Date, Numeric, String, Text

from .base import Base, TimestampMixin, new_uuid


class CustomOrderModel(TimestampMixin, Base):
    """
    定制订单请求

    status: requested -> payment_pending -> payment_done -> in_progress -> in_delivery -> delivered
    没有独立的支付状态列，payment_done 及之后的状态都视为已付款
    """
    __tablename__ = "custom_order_requests"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=True, index=True, comment="提交人（可匿名）")

    name = Column(String(200), nullable=False, comment="客户姓名")
    email = Column(String(255), nullable=False, comment="客户邮箱")
    phone = Column(String(30), nullable=True)
    preferred_size = Column(String(100), nullable=True)
    usage_description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    shipping_address = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="requested", index=True, comment="定制订单状态")
    admin_notes = Column(Text, nullable=True)
    estimated_price = Column(Numeric(precision=12, scale=2), nullable=True, comment="估价（主币单位）")
    estimated_delivery_date = Column(Date, nullable=True)
    # 已发送的状态邮件：[{"type": ..., "sent_at": ...}]
    emails_sent = Column(JSON, nullable=True)

    razorpay_order_id = Column(String(64), nullable=True)
    razorpay_payment_id = Column(String(64), nullable=True)

    def __repr__(self):
        return f"<CustomOrderModel(id='{self.id}', status='{self.status}')>"
