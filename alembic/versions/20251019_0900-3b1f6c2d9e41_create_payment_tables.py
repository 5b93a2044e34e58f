"""create_payment_tables

Revision ID: 3b1f6c2d9e41
Revises:
Create Date: 2025-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b1f6c2d9e41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
    ]


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_number', sa.String(length=40), nullable=False, comment='订单号，如 BSH...'),
        sa.Column('user_id', sa.String(length=36), nullable=True, comment='下单用户ID'),
        sa.Column('session_id', sa.String(length=100), nullable=True, comment='匿名购物车会话'),
        sa.Column('customer_name', sa.String(length=200), nullable=False, comment='收件人'),
        sa.Column('customer_email', sa.String(length=255), nullable=False, comment='联系邮箱'),
        sa.Column('customer_phone', sa.String(length=30), nullable=True, comment='联系电话'),
        sa.Column('shipping_address', sa.Text(), nullable=True, comment='收货地址（格式化文本）'),
        sa.Column('gst_number', sa.String(length=20), nullable=True, comment='GST 税号'),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0', comment='商品小计'),
        sa.Column('shipping_cost', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0', comment='运费'),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False, comment='应付总额'),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='pending', comment='pending/paid'),
        sa.Column('order_status', sa.String(length=20), nullable=False, server_default='pending',
                  comment='pending/confirmed/processing/shipped/delivered/cancelled'),
        sa.Column('razorpay_order_id', sa.String(length=64), nullable=True, comment='Razorpay 订单号'),
        sa.Column('razorpay_payment_id', sa.String(length=64), nullable=True, comment='Razorpay 支付单号'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_payment_status', 'orders', ['payment_status'])
    op.create_index('ix_orders_razorpay_order_id', 'orders', ['razorpay_order_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('item_type', sa.String(length=20), nullable=False, server_default='product', comment='product/workshop'),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'custom_order_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True, comment='提交人（可匿名）'),
        sa.Column('name', sa.String(length=200), nullable=False, comment='客户姓名'),
        sa.Column('email', sa.String(length=255), nullable=False, comment='客户邮箱'),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('preferred_size', sa.String(length=100), nullable=True),
        sa.Column('usage_description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('shipping_address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='requested', comment='定制订单状态'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('estimated_price', sa.Numeric(precision=12, scale=2), nullable=True, comment='估价（主币单位）'),
        sa.Column('estimated_delivery_date', sa.Date(), nullable=True),
        sa.Column('emails_sent', sa.JSON(), nullable=True),
        sa.Column('razorpay_order_id', sa.String(length=64), nullable=True),
        sa.Column('razorpay_payment_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_custom_order_requests_user_id', 'custom_order_requests', ['user_id'])
    op.create_index('ix_custom_order_requests_status', 'custom_order_requests', ['status'])

    op.create_table(
        'experience_bookings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True, comment='确认邮件收件人'),
        sa.Column('experience_type', sa.String(length=50), nullable=False, comment='couple/birthday/farm/studio'),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('time_slot', sa.String(length=50), nullable=False),
        sa.Column('guests', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='pending', comment='pending/paid'),
        sa.Column('booking_status', sa.String(length=20), nullable=False, server_default='pending',
                  comment='pending/confirmed/completed/cancelled'),
        sa.Column('razorpay_order_id', sa.String(length=64), nullable=True),
        sa.Column('razorpay_payment_id', sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_experience_bookings_user_id', 'experience_bookings', ['user_id'])
    op.create_index('ix_experience_bookings_razorpay_order_id', 'experience_bookings', ['razorpay_order_id'])

    op.create_table(
        'user_roles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, comment='admin/user'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])

    op.create_table(
        'admin_notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False, comment='order/custom_order/experience'),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_notifications_order_id', 'admin_notifications', ['order_id'])


def downgrade() -> None:
    op.drop_index('ix_admin_notifications_order_id', table_name='admin_notifications')
    op.drop_table('admin_notifications')
    op.drop_index('ix_user_roles_user_id', table_name='user_roles')
    op.drop_table('user_roles')
    op.drop_index('ix_experience_bookings_razorpay_order_id', table_name='experience_bookings')
    op.drop_index('ix_experience_bookings_user_id', table_name='experience_bookings')
    op.drop_table('experience_bookings')
    op.drop_index('ix_custom_order_requests_status', table_name='custom_order_requests')
    op.drop_index('ix_custom_order_requests_user_id', table_name='custom_order_requests')
    op.drop_table('custom_order_requests')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_razorpay_order_id', table_name='orders')
    op.drop_index('ix_orders_payment_status', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')
