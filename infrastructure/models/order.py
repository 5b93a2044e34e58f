"""
商城订单数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, new_uuid


class OrderModel(TimestampMixin, Base):
    """
    商城订单

    订单由前端结账流程创建；本服务只负责支付确认（payment_status/order_status/渠道单号）
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    order_number = Column(String(40), unique=True, nullable=False, comment="订单号，如 BSH...")
    user_id = Column(String(36), nullable=True, index=True, comment="下单用户ID")
    session_id = Column(String(100), nullable=True, comment="匿名购物车会话")

    customer_name = Column(String(200), nullable=False, comment="收件人")
    customer_email = Column(String(255), nullable=False, comment="联系邮箱")
    customer_phone = Column(String(30), nullable=True, comment="联系电话")
    shipping_address = Column(Text, nullable=True, comment="收货地址（格式化文本）")
    gst_number = Column(String(20), nullable=True, comment="GST 税号")

    # 金额（主币单位，INR）
    subtotal = Column(Numeric(precision=12, scale=2), nullable=False, default=0, comment="商品小计")
    shipping_cost = Column(Numeric(precision=12, scale=2), nullable=False, default=0, comment="运费")
    total_amount = Column(Numeric(precision=12, scale=2), nullable=False, comment="应付总额")

    payment_status = Column(String(20), nullable=False, default="pending", index=True, comment="pending/paid")
    order_status = Column(
        String(20),
        nullable=False,
        default="pending",
        comment="pending/confirmed/processing/shipped/delivered/cancelled",
    )
    razorpay_order_id = Column(String(64), nullable=True, comment="Razorpay 订单号")
    razorpay_payment_id = Column(String(64), nullable=True, comment="Razorpay 支付单号")

    items = relationship("OrderItemModel", back_populates="order", lazy="select")

    __table_args__ = (
        Index("ix_orders_razorpay_order_id", "razorpay_order_id"),
    )

    def __repr__(self):
        return f"<OrderModel(id='{self.id}', order_number='{self.order_number}', payment_status='{self.payment_status}')>"


class OrderItemModel(Base):
    """订单明细（只读，确认邮件使用）"""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type = Column(String(20), nullable=False, default="product", comment="product/workshop")
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(precision=12, scale=2), nullable=False)
    total_price = Column(Numeric(precision=12, scale=2), nullable=False)

    order = relationship("OrderModel", back_populates="items")
