"""
体验课预约数据库模型
"""
from sqlalchemy import Column, Date, Index, Integer, Numeric, String, Text

from .base import Base, TimestampMixin, new_uuid


class ExperienceBookingModel(TimestampMixin, Base):
    __tablename__ = "experience_bookings"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    customer_email = Column(String(255), nullable=True, comment="确认邮件收件人")

    experience_type = Column(String(50), nullable=False, comment="couple/birthday/farm/studio")
    booking_date = Column(Date, nullable=False)
    time_slot = Column(String(50), nullable=False)
    guests = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    total_amount = Column(Numeric(precision=12, scale=2), nullable=False)

    payment_status = Column(String(20), nullable=False, default="pending", comment="pending/paid")
    booking_status = Column(String(20), nullable=False, default="pending", comment="pending/confirmed/completed/cancelled")
    razorpay_order_id = Column(String(64), nullable=True)
    razorpay_payment_id = Column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_experience_bookings_razorpay_order_id", "razorpay_order_id"),
    )

    def __repr__(self):
        return f"<ExperienceBookingModel(id='{self.id}', payment_status='{self.payment_status}')>"
