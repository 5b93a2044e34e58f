"""Infrastructure models package exports."""
from .base import Base, metadata
from .order import OrderModel, OrderItemModel
from .custom_order import CustomOrderModel
from .experience_booking import ExperienceBookingModel
from .admin import UserRoleModel, AdminNotificationModel

__all__ = [
    "Base",
    "metadata",
    "OrderModel",
    "OrderItemModel",
    "CustomOrderModel",
    "ExperienceBookingModel",
    "UserRoleModel",
    "AdminNotificationModel",
]
